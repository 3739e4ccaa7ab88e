"""
agents.network_monitor — Traffic monitoring, intrusion detection, log analysis.
"""

from __future__ import annotations

import random
from typing import Any, Dict

from ..core.models import CyberEvent, EventType, Task
from . import prompts
from .base import Agent, AgentKind, as_confidence, expect_keys

NETWORK_MONITOR = AgentKind(
    "NetworkMonitorAgent",
    "Network Monitor Agent",
    "network-monitor-01",
    ["monitor_traffic", "detect_intrusion", "analyze_logs"],
    team="blue",
    description="IDS-style traffic analysis and log review",
)


def _intrusion_payload(intrusion: Dict[str, Any]) -> Dict[str, Any]:
    keys = ("source_ip", "destination_ip", "signature_id", "description", "attack_vector", "type")
    return {k: intrusion.get(k) for k in keys}


@NETWORK_MONITOR.handler("monitor_traffic")
async def monitor_traffic(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network

    agent.log_chain_of_thought(
        2, "analysis", "Network traffic monitoring",
        f"Monitoring network traffic on {target} for anomalies and suspicious patterns",
        {"target": target},
    )
    await agent.run_tool(
        "zeek", "zeek -i eth0 local", target,
        output="conn.log rotated", duration=(2.0, 4.0),
    )
    traffic = {
        "connections": random.randint(500, 1500),
        "protocols": ["TCP", "UDP", "ICMP"],
        "suspicious_patterns": random.random() > 0.7,
        **(task.details or {}),
    }
    agent.log_chain_of_thought(
        3, "evaluation", "Traffic analysis",
        f"Analyzed {traffic['connections']} connections. Consulting the decision oracle for pattern recognition.",
        {"traffic": traffic},
    )

    analysis = expect_keys(
        await agent.get_decision(prompts.network_monitor_prompt(target, traffic)),
        "intrusions_detected", "traffic_analysis",
        context="monitor_traffic",
    )
    intrusions = analysis["intrusions_detected"]
    agent.log_chain_of_thought(
        4, "evaluation", "Traffic monitoring complete",
        str(analysis.get("monitoring_summary") or f"{len(intrusions)} intrusions detected"),
        {"intrusions": len(intrusions), "risk": analysis["traffic_analysis"].get("risk_assessment")},
        0.85,
    )

    if intrusions:
        worst = intrusions[0]
        return agent.emit_event(
            EventType.INTRUSION_DETECTED,
            {
                **_intrusion_payload(worst),
                "all_intrusions": intrusions,
                "traffic_analysis": analysis["traffic_analysis"],
            },
            worst.get("severity"),
            target,
            task.task_id,
        )

    return agent.emit_event(
        EventType.MONITORING_COMPLETE,
        {"target": target, "analysis": analysis, "status": "normal"},
        "Low",
        target,
        task.task_id,
    )


@NETWORK_MONITOR.handler("detect_intrusion")
async def detect_intrusion(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    observed = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Intrusion detection",
        f"Analyzing potential intrusion on {target}",
        {"target": target, "event": observed},
    )
    await agent.run_tool(
        "suricata", "suricata -r capture.pcap -l /var/log/suricata", target,
        output="alerts written to eve.json", duration=(1.5, 3.0),
    )
    detection = expect_keys(
        await agent.get_decision(prompts.network_monitor_prompt(target, observed)),
        "intrusions_detected",
        context="detect_intrusion",
    )
    intrusions = detection["intrusions_detected"]
    agent.log_chain_of_thought(
        3, "evaluation", "Intrusion detection complete",
        f"Detected {len(intrusions)} potential intrusions",
        {"detections": intrusions},
        as_confidence(intrusions[0].get("confidence"), 0.8) if intrusions else 0.8,
    )

    if intrusions:
        intrusion = intrusions[0]
        return agent.emit_event(
            EventType.INTRUSION_DETECTED,
            _intrusion_payload(intrusion),
            intrusion.get("severity"),
            target,
            task.task_id,
        )
    return agent.emit_event(
        EventType.MONITORING_COMPLETE,
        {"status": "no_intrusion", "analysis": detection},
        "Low",
        target,
        task.task_id,
    )


@NETWORK_MONITOR.handler("analyze_logs")
async def analyze_logs(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or "system"

    agent.log_chain_of_thought(
        2, "analysis", "Log analysis",
        f"Analyzing system logs for {target}",
        {"target": target},
    )
    await agent.delay(2.0, 4.0)
    findings = await agent.get_decision(prompts.log_analysis_prompt(target, task.details))
    agent.log_chain_of_thought(
        3, "evaluation", "Log analysis complete",
        str(findings.get("summary") or "Identified patterns and potential security events in logs"),
        {"findings": findings.get("findings", [])},
        as_confidence(findings.get("confidence"), 0.75),
    )
    return agent.emit_event(
        EventType.DEFENSE_ANALYSIS_COMPLETE,
        findings,
        "Medium",
        target,
        task.task_id,
    )
