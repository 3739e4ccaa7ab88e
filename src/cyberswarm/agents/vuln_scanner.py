"""
agents.vuln_scanner — Vulnerability assessment of discovered services.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ..core.models import CyberEvent, EventType, Severity, Task
from . import prompts
from .base import Agent, AgentKind, expect_keys

VULN_SCANNER = AgentKind(
    "VulnerabilityScannerAgent",
    "Vulnerability Scanner Agent",
    "vuln-scanner-01",
    ["vuln_scan", "web_app_scan", "config_audit"],
    team="red",
    description="CVE correlation, web application and configuration assessment",
)

_SEVERITY_RANK = {Severity.CRITICAL: 4, Severity.HIGH: 3, Severity.MEDIUM: 2, Severity.LOW: 1}


def _most_severe(vulns: List[Dict[str, Any]]) -> Dict[str, Any]:
    def rank(v: Dict[str, Any]) -> tuple:
        sev = Severity.from_str(v.get("severity"), Severity.LOW)
        return (_SEVERITY_RANK[sev], float(v.get("cvss_score") or 0))

    return max(vulns, key=rank)


def _services_for(task: Task) -> Any:
    details = task.details or {}
    if details.get("services"):
        return details["services"]
    recon = details.get("recon") or {}
    return recon.get("services") or recon.get("open_ports") or []


async def _assess(agent: Agent, task: Task, *, focus: str, tool_id: str, command: str) -> Dict[str, Any]:
    target = task.target or "192.168.1.10"
    services = _services_for(task)

    agent.log_chain_of_thought(
        2, "analysis", f"Assessing {focus}",
        f"Correlating {focus} on {target} with known vulnerabilities",
        {"target": target, "services": services},
    )
    await agent.run_tool(
        tool_id, command, target,
        output="assessment complete",
        duration=(1.5, 3.0),
    )
    assessment = expect_keys(
        await agent.get_decision(prompts.vuln_scan_prompt(target, services, focus)),
        "vulnerabilities",
        context=task.task_name,
    )
    vulns = assessment["vulnerabilities"]
    agent.log_chain_of_thought(
        3, "evaluation", "Vulnerability assessment results",
        str(assessment.get("analysis_summary") or f"Identified {len(vulns)} vulnerabilities"),
        {"count": len(vulns), "risk_summary": assessment.get("risk_summary")},
        0.9,
    )
    return assessment


@VULN_SCANNER.handler("vuln_scan")
async def vuln_scan(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or "192.168.1.10"
    assessment = await _assess(
        agent, task, focus="network services", tool_id="openvas",
        command=f"gvm-cli scan --target {target}",
    )
    vulns = assessment["vulnerabilities"]
    if not vulns:
        return agent.emit_event(
            EventType.SCAN_COMPLETE,
            {"target": target, "vulnerabilities": [], "summary": assessment.get("analysis_summary")},
            "Low",
            target,
            task.task_id,
        )

    worst = _most_severe(vulns)
    agent.log_chain_of_thought(
        4, "decision", "Prioritising vulnerability",
        f"{worst.get('cve_id', 'Unknown CVE')} ({worst.get('severity')}) is the highest-risk finding",
        {"cve_id": worst.get("cve_id"), "cvss_score": worst.get("cvss_score")},
        0.85,
    )
    return agent.emit_event(
        EventType.VULNERABILITY_FOUND,
        {**worst, "all_vulnerabilities": vulns, "risk_summary": assessment.get("risk_summary")},
        worst.get("severity"),
        target,
        task.task_id,
    )


@VULN_SCANNER.handler("web_app_scan")
async def web_app_scan(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or "192.168.1.10"
    assessment = await _assess(
        agent, task, focus="web application", tool_id="nuclei",
        command=f"nuclei -u http://{target} -severity critical,high,medium",
    )
    vulns = assessment["vulnerabilities"]
    severity = _most_severe(vulns).get("severity") if vulns else "Low"
    return agent.emit_event(
        EventType.WEBAPP_SCAN_COMPLETE,
        {"target": target, "findings": vulns, "risk_summary": assessment.get("risk_summary")},
        severity,
        target,
        task.task_id,
    )


@VULN_SCANNER.handler("config_audit")
async def config_audit(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or "192.168.1.10"
    assessment = await _assess(
        agent, task, focus="system configuration", tool_id="lynis",
        command="lynis audit system --quick",
    )
    vulns = assessment["vulnerabilities"]
    severity = _most_severe(vulns).get("severity") if vulns else "Low"
    return agent.emit_event(
        EventType.CONFIG_AUDIT_COMPLETE,
        {"target": target, "misconfigurations": vulns, "risk_summary": assessment.get("risk_summary")},
        severity,
        target,
        task.task_id,
    )
