"""
agents.discovery — Network reconnaissance: host discovery, port scans, service enumeration.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ..core.errors import OracleParseError
from ..core.models import CyberEvent, EventType, Task
from . import prompts
from .base import Agent, AgentKind, as_confidence, expect_keys

DISCOVERY = AgentKind(
    "DiscoveryAgent",
    "Network Discovery Agent",
    "discovery-01",
    ["network_scan", "port_scan", "service_enum"],
    team="red",
    description="Host discovery, port scanning and service fingerprinting",
)

_RISK_SEVERITY = {"critical": "Critical", "high": "High"}


def _open_ports(scan_results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [r for r in scan_results if r.get("state") == "open"]


@DISCOVERY.handler("network_scan")
async def network_scan(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network

    agent.log_chain_of_thought(
        2, "decision", "Network scan strategy selection",
        f"Consulting the decision oracle for a scanning strategy against {target}",
        {"target": target},
    )
    plan = expect_keys(
        await agent.get_decision(prompts.network_scan_prompt(target)),
        "strategy", "reasoning", "discovered_hosts",
        context="network_scan",
    )
    hosts = plan["discovered_hosts"]
    if not hosts:
        raise OracleParseError("network_scan: no discovered_hosts in decision")

    agent.log_chain_of_thought(
        3, "decision", "Recommended scan strategy", str(plan["reasoning"]),
        {
            "strategy": plan["strategy"],
            "stealth_level": plan.get("stealth_level"),
            "estimated_time": plan.get("estimated_time"),
        },
        0.95,
    )

    estimated = float(plan.get("estimated_time") or 5)
    await agent.run_tool(
        "nmap", f"nmap -sn {target}", target,
        options={"strategy": plan["strategy"]},
        output=f"{len(hosts)} hosts up",
        duration=(estimated * 0.8, estimated * 1.2),
    )

    selected = hosts[0]
    selected_ip = selected.get("ip", target)
    agent.log_chain_of_thought(
        4, "evaluation", "Network scan results analysis",
        f"Scan completed. Discovered {len(hosts)} live hosts. "
        f"Selected {selected_ip} based on confidence score and indicators.",
        {"discovered_hosts": hosts, "selected_host": selected_ip},
        as_confidence(selected.get("confidence"), 0.8),
    )

    return agent.emit_event(
        EventType.RECON_DATA,
        {
            "target_ip": selected_ip,
            "live_status": True,
            "open_ports": [],
            "scan_type": "network_discovery",
            "discovered_hosts": [h.get("ip") for h in hosts],
        },
        "Medium",
        selected_ip,
        task.task_id,
    )


@DISCOVERY.handler("port_scan")
async def port_scan(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or "192.168.1.10"

    agent.log_chain_of_thought(
        2, "decision", "Port scanning strategy",
        f"Consulting the decision oracle for a port scanning approach on {target}",
        {"target": target},
    )
    scan = expect_keys(
        await agent.get_decision(prompts.port_scan_prompt(target, task.details)),
        "technique", "scan_results", "security_assessment",
        context="port_scan",
    )
    agent.log_chain_of_thought(
        3, "decision", "Port scanning technique", str(scan.get("reasoning", "")),
        {"technique": scan["technique"], "port_range": scan.get("port_range")},
        0.92,
    )

    open_results = _open_ports(scan["scan_results"])
    agent.log_chain_of_thought(
        4, "action", "Executing port scan",
        f"Scanning {len(scan['scan_results'])} ports using {scan['technique']}",
        {"scan_results": scan["scan_results"]},
    )
    await agent.run_tool(
        "nmap", f"nmap -sS -sV {target}", target,
        options={"technique": scan["technique"], "ports": scan.get("port_range")},
        output=f"{len(open_results)} open ports",
        duration=(2.0, 4.0),
    )

    risk = str(scan["security_assessment"].get("risk_level", "medium")).lower()
    agent.log_chain_of_thought(
        5, "evaluation", "Port scan results",
        f"Discovered {len(open_results)} open ports. Security assessment: {risk}",
        {"open_ports": open_results, "risk_level": risk},
        0.88,
    )

    return agent.emit_event(
        EventType.RECON_DATA,
        {
            "target_ip": target,
            "live_status": True,
            "open_ports": [r.get("port") for r in open_results],
            "scan_type": "port_scan",
            "services": {str(r.get("port")): r.get("service") for r in open_results},
        },
        _RISK_SEVERITY.get(risk, "Medium"),
        target,
        task.task_id,
    )


@DISCOVERY.handler("service_enum")
async def service_enum(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or "192.168.1.10"
    details = task.details or {}
    ports = details.get("ports") or [22, 80, 443]

    agent.log_chain_of_thought(
        2, "analysis", "Service enumeration",
        f"Enumerating services on {target} for ports: {', '.join(str(p) for p in ports)}",
        {"target": target, "ports": ports},
    )
    analysis = expect_keys(
        await agent.get_decision(prompts.port_scan_prompt(target, {**details, "ports": ports})),
        "scan_results",
        context="service_enum",
    )
    await agent.run_tool(
        "nmap", f"nmap -sV -p {','.join(str(p) for p in ports)} {target}", target,
        output=f"{len(analysis['scan_results'])} services fingerprinted",
        duration=(2.0, 4.0),
    )

    services = {
        str(r.get("port")): f"{r.get('service', '')} {r.get('version') or ''}".strip()
        for r in analysis["scan_results"]
    }
    agent.log_chain_of_thought(
        3, "evaluation", "Service enumeration complete",
        f"Identified services and versions. {len(services)} services analyzed.",
        {"services": services},
        0.85,
    )

    return agent.emit_event(
        EventType.SCAN_COMPLETE,
        {
            "target_ip": target,
            "live_status": True,
            "open_ports": ports,
            "scan_type": "service_enumeration",
            "services": services,
        },
        "Medium",
        target,
        task.task_id,
    )
