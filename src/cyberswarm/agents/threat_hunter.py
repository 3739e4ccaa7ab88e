"""
agents.threat_hunter — Hypothesis-driven hunting for IOCs, TTPs and anomalies.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List

from ..core.models import CyberEvent, EventType, Task
from . import prompts
from .base import Agent, AgentKind, as_confidence, expect_keys

THREAT_HUNTER = AgentKind(
    "ThreatHunterAgent",
    "Threat Hunter Agent",
    "threat-hunter-01",
    ["hunt_ioc", "hunt_ttp", "hunt_anomaly", "validate_detection"],
    team="purple",
    description="Proactive threat hunting and detection validation",
)


def _findings(raw: List[Dict[str, Any]], prefix: str, default_type: str) -> List[Dict[str, Any]]:
    stamp = int(time.time() * 1000)
    return [
        {
            "finding_id": f"{prefix}-{stamp}-{i}",
            "type": f.get("type") or default_type,
            "description": f.get("description"),
            "severity": f.get("severity"),
            "confidence": f.get("confidence"),
            "evidence": f.get("evidence") or [],
            "mitre_technique_id": f.get("mitre_technique_id"),
        }
        for i, f in enumerate(raw)
    ]


def _hunt(hunt_id: str, result: Dict[str, Any], findings: List[Dict[str, Any]], **extra: Any) -> Dict[str, Any]:
    hunt = {
        "hunt_id": f"{hunt_id}-{int(time.time() * 1000)}",
        "hypothesis": result.get("hypothesis"),
        "indicators": result.get("indicators_checked") or result.get("indicators") or [],
        "data_sources": result.get("data_sources") or [],
        "findings": findings,
        "mitre_techniques": result.get("mitre_techniques") or [],
        "status": "ESCALATED" if any(f["severity"] == "Critical" for f in findings) else "COMPLETED",
    }
    hunt.update(extra)
    return hunt


def _hunt_event(agent: Agent, task: Task, target: str, hunt: Dict[str, Any], severity: Any = None) -> CyberEvent:
    findings = hunt["findings"]
    if findings:
        return agent.emit_event(
            EventType.THREAT_HUNT_FINDING, hunt, severity or findings[0]["severity"], target, task.task_id
        )
    return agent.emit_event(EventType.THREAT_HUNT_COMPLETE, hunt, "Low", target, task.task_id)


@THREAT_HUNTER.handler("hunt_ioc")
async def hunt_ioc(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "IOC-based threat hunt",
        f"Formulating hypothesis for IOC-based hunting on {target}. "
        "Correlating known indicators of compromise.",
        {"target": target, "context": context},
    )
    await agent.run_tool(
        "yara", "yara -r rules/ /srv", target,
        output="rule scan complete", duration=(2.0, 4.0),
    )
    result = expect_keys(
        await agent.get_decision(prompts.threat_hunt_ioc_prompt(target, context)),
        "hypothesis", "findings",
        context="hunt_ioc",
    )
    confidence = as_confidence(result.get("confidence"))
    agent.log_chain_of_thought(
        3, "evaluation", "Hunt hypothesis evaluation", str(result["hypothesis"]),
        {"indicators_checked": result.get("indicators_checked"), "data_sources": result.get("data_sources")},
        confidence,
    )
    await agent.delay(3.0, 5.0)

    findings = _findings(result["findings"], "finding", "IOC_MATCH")
    urgent = [f for f in findings if f["severity"] in ("Critical", "High")]
    agent.log_chain_of_thought(
        4, "evaluation", "IOC hunt complete",
        f"Hunt completed. Found {len(findings)} findings. {len(urgent)} require immediate attention.",
        {"findings_count": len(findings)},
        confidence,
    )
    return _hunt_event(agent, task, target, _hunt("hunt", result, findings))


@THREAT_HUNTER.handler("hunt_ttp")
async def hunt_ttp(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "TTP-based threat hunt",
        f"Hunting for tactics, techniques and procedures across {target}. Mapping to MITRE ATT&CK.",
        {"target": target, "context": context},
    )
    await agent.delay(2.5, 4.5)
    result = expect_keys(
        await agent.get_decision(prompts.threat_hunt_ttp_prompt(target, context)),
        "findings",
        context="hunt_ttp",
    )
    techniques = result.get("techniques_analyzed") or []
    confidence = as_confidence(result.get("confidence"))
    agent.log_chain_of_thought(
        3, "decision", "TTP pattern matching",
        f"Evaluating {len(techniques)} MITRE ATT&CK techniques against observed activity.",
        {"techniques": techniques, "kill_chain_phases": result.get("kill_chain_phases")},
        confidence,
    )
    await agent.delay(2.0, 4.0)

    chain = bool(result.get("attack_chain_detected"))
    findings = _findings(result["findings"], "ttp-finding", "TTP_DETECTED")
    agent.log_chain_of_thought(
        4, "evaluation", "TTP hunt complete",
        f"Mapped {len(findings)} findings to MITRE ATT&CK. "
        + ("Attack chain detected." if chain else "No complete attack chain identified."),
        {"findings": len(findings), "attack_chain": chain},
        confidence,
    )
    hunt = _hunt(
        "hunt-ttp", result, findings,
        mitre_techniques=[t.get("technique_id") for t in techniques],
        status="ESCALATED" if chain else "COMPLETED",
    )
    return _hunt_event(agent, task, target, hunt, "Critical" if findings and chain else None)


@THREAT_HUNTER.handler("hunt_anomaly")
async def hunt_anomaly(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Anomaly-based threat hunt",
        f"Establishing behavioral baselines and hunting for deviations on {target}.",
        {"target": target, "context": context},
    )
    await agent.run_tool(
        "elastic-siem", "esql 'FROM logs-* | STATS count() BY host.name'", target,
        output="baseline aggregated", duration=(3.0, 5.0),
    )
    result = expect_keys(
        await agent.get_decision(prompts.threat_hunt_anomaly_prompt(target, context)),
        "anomalies",
        context="hunt_anomaly",
    )
    agent.log_chain_of_thought(
        3, "evaluation", "Baseline deviation analysis",
        f"Detected {len(result['anomalies'])} deviations from established baselines.",
        {"baselines": result.get("baselines"), "anomalies": result["anomalies"]},
        as_confidence(result.get("confidence")),
    )
    findings = _findings(result["anomalies"], "anomaly", "BEHAVIORAL_ANOMALY")
    for finding in findings:
        finding["type"] = "BEHAVIORAL_ANOMALY"
    return _hunt_event(agent, task, target, _hunt("hunt-anomaly", result, findings, indicators=[]))


@THREAT_HUNTER.handler("validate_detection")
async def validate_detection(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Detection validation",
        f"Validating detection capabilities against known attack patterns on {target}.",
        {"target": target, "context": context},
    )
    await agent.delay(2.0, 4.0)
    validation = expect_keys(
        await agent.get_decision(prompts.threat_hunt_validate_prompt(target, context)),
        "detection_rate",
        context="validate_detection",
    )
    tested = validation.get("techniques_tested") or []
    gaps = validation.get("detection_gaps") or []
    try:
        rate = float(validation["detection_rate"])
    except (TypeError, ValueError):
        rate = 0.0
    agent.log_chain_of_thought(
        3, "evaluation", "Detection coverage assessment",
        f"Tested {len(tested)} attack techniques. Detection rate: {rate:g}%.",
        {"techniques_tested": tested, "detection_rate": rate, "gaps": gaps},
        as_confidence(validation.get("confidence")),
    )

    if gaps:
        severity = "Critical" if rate < 50 else "High" if rate < 75 else "Medium"
        return agent.emit_event(
            EventType.DETECTION_GAP_FOUND,
            {
                "target": target,
                "detection_rate": rate,
                "gaps": gaps,
                "techniques_tested": tested,
                "recommendations": validation.get("recommendations"),
            },
            severity,
            target,
            task.task_id,
        )
    return agent.emit_event(
        EventType.THREAT_HUNT_COMPLETE,
        {"target": target, "validation_result": validation, "status": "validated"},
        "Low",
        target,
        task.task_id,
    )
