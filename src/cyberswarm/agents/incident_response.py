"""
agents.incident_response — Triage, containment, eradication and recovery.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List

from ..core.models import CyberEvent, EventType, Task, utcnow
from . import prompts
from .base import Agent, AgentKind, as_confidence, expect_keys

INCIDENT_RESPONSE = AgentKind(
    "IncidentResponseAgent",
    "Incident Response Agent",
    "incident-response-01",
    ["triage_incident", "contain_incident", "eradicate_threat", "recover_systems"],
    team="purple",
    description="Automated incident handling across the response lifecycle",
)


def _incident_id(details: Dict[str, Any]) -> str:
    return details.get("incident_id") or f"incident-{int(time.time() * 1000)}"


async def _walk_steps(agent: Agent, steps: List[Dict[str, Any]], label: str, target: str) -> List[Dict[str, Any]]:
    """Log one action thought per step, starting at step 4; returns the actions taken."""
    actions = []
    for i, step in enumerate(steps):
        action = step.get("action", "unnamed step")
        agent.log_chain_of_thought(
            4 + i, "action", f"{label} step {i + 1}: {action}",
            f"Executing: {step.get('command') or step.get('description') or action}. "
            f"Target: {step.get('target') or target}",
            {"step": step},
        )
        await agent.delay(1.0, 2.0)
        actions.append({
            "action": action,
            "target": step.get("target") or target,
            "result": "SUCCESS",
            "timestamp": utcnow().isoformat(),
        })
    return actions


@INCIDENT_RESPONSE.handler("triage_incident")
async def triage_incident(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    alert = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Incident triage",
        f"Performing initial triage on {target}. Opening a case and enriching IOCs.",
        {"target": target, "alert": alert, "tools": ["thehive", "cortex"]},
    )
    await agent.run_tool("thehive", "thehive-api create-case --severity high", target, duration=(0.5, 1.0))
    await agent.run_tool(
        "cortex", "cortex-analyzer --run VirusTotal,AbuseIPDB", target,
        output="observables enriched", duration=(1.0, 2.0),
    )
    triage = expect_keys(
        await agent.get_decision(prompts.incident_triage_prompt(target, alert)),
        "classification", "severity",
        context="triage_incident",
    )
    confidence = as_confidence(triage.get("confidence"))
    affected = triage.get("affected_assets") or [target]
    agent.log_chain_of_thought(
        3, "decision", "Incident classification",
        f"Classified as {triage['classification']}. Severity: {triage['severity']}. "
        f"Scope: {len(affected)} assets affected.",
        {"classification": triage["classification"], "attack_vector": triage.get("attack_vector")},
        confidence,
    )
    await agent.delay(1.0, 2.0)
    immediate = triage.get("immediate_actions") or []
    agent.log_chain_of_thought(
        4, "decision", "Response prioritization",
        f"Immediate actions: {', '.join(immediate) or 'none'}",
        {"priority": triage.get("priority"), "escalation_required": triage.get("escalation_required")},
        confidence,
    )

    now = utcnow().isoformat()
    incident = {
        "incident_id": _incident_id(alert),
        "classification": triage["classification"],
        "phase": "TRIAGE",
        "actions_taken": [{"action": "Initial triage completed", "target": target, "result": "SUCCESS", "timestamp": now}],
        "affected_assets": affected,
        "timeline": [{"timestamp": now, "event": "Incident triaged", "source": agent.agent_id, "details": triage.get("summary")}],
        "status": "OPEN",
        "triage_details": triage,
    }
    if triage["classification"] == "TRUE_POSITIVE":
        incident["recommended_actions"] = triage.get("recommended_actions")
        return agent.emit_event(EventType.INCIDENT_DETECTED, incident, triage["severity"], target, task.task_id)
    incident["note"] = f"Classified as {triage['classification']} - monitoring"
    return agent.emit_event(EventType.INCIDENT_DETECTED, incident, "Low", target, task.task_id)


@INCIDENT_RESPONSE.handler("contain_incident")
async def contain_incident(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    incident = task.details or {}

    agent.log_chain_of_thought(
        2, "decision", "Containment strategy",
        f"Developing containment strategy for {target} with remote endpoint isolation.",
        {"target": target, "incident": incident, "tools": ["grr", "velociraptor"]},
    )
    await agent.run_tool("grr", "grr-client --isolate-endpoint", target, duration=(1.5, 3.0))
    plan = expect_keys(
        await agent.get_decision(prompts.incident_contain_prompt(target, incident)),
        "containment_strategy", "containment_steps",
        context="contain_incident",
    )
    confidence = as_confidence(plan.get("confidence"))
    agent.log_chain_of_thought(
        3, "decision", "Containment plan", str(plan.get("reasoning") or plan["containment_strategy"]),
        {"strategy": plan["containment_strategy"], "isolation_scope": plan.get("isolation_scope")},
        confidence,
    )
    actions = await _walk_steps(agent, plan["containment_steps"], "Containment", target)
    verified = bool(plan.get("containment_verified"))
    agent.log_chain_of_thought(
        4 + len(actions), "evaluation", "Containment verification",
        "Containment confirmed." if verified else "Verification pending.",
        {"verified": verified, "actions_taken": len(actions)},
        confidence,
    )
    return agent.emit_event(
        EventType.INCIDENT_CONTAINED,
        {
            "incident_id": _incident_id(incident),
            "containment_strategy": plan["containment_strategy"],
            "actions_taken": actions,
            "containment_verified": verified,
            "isolation_scope": plan.get("isolation_scope"),
            "next_steps": plan.get("next_steps"),
        },
        "High",
        target,
        task.task_id,
    )


@INCIDENT_RESPONSE.handler("eradicate_threat")
async def eradicate_threat(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    incident = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Threat eradication planning",
        f"Planning eradication for {target}. Running memory forensics to find injected code.",
        {"target": target, "incident": incident, "tools": ["volatility", "velociraptor"]},
    )
    await agent.run_tool(
        "volatility", "vol3 -f memdump.raw windows.malfind", target,
        output="malfind complete", duration=(2.0, 4.0),
    )
    plan = expect_keys(
        await agent.get_decision(prompts.incident_eradicate_prompt(target, incident)),
        "eradication_steps",
        context="eradicate_threat",
    )
    confidence = as_confidence(plan.get("confidence"))
    agent.log_chain_of_thought(
        3, "decision", "Eradication plan", str(plan.get("reasoning") or "Removing threat components"),
        {
            "artifacts_found": plan.get("artifacts"),
            "persistence_mechanisms": plan.get("persistence_mechanisms"),
            "eradication_steps": len(plan["eradication_steps"]),
        },
        confidence,
    )
    actions = await _walk_steps(agent, plan["eradication_steps"], "Eradication", target)
    clean = bool(plan.get("clean_scan"))
    agent.log_chain_of_thought(
        4 + len(actions), "evaluation", "Eradication verification",
        f"Verifying complete threat removal. Clean scan: {'PASS' if clean else 'PENDING'}",
        {"clean_scan": clean, "residual_risk": plan.get("residual_risk")},
        confidence,
    )
    return agent.emit_event(
        EventType.INCIDENT_ERADICATED,
        {
            "incident_id": _incident_id(incident),
            "artifacts_removed": plan.get("artifacts"),
            "persistence_cleared": plan.get("persistence_mechanisms"),
            "clean_scan": clean,
            "residual_risk": plan.get("residual_risk"),
            "eradication_details": plan,
        },
        "High",
        target,
        task.task_id,
    )


@INCIDENT_RESPONSE.handler("recover_systems")
async def recover_systems(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    incident = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Recovery planning",
        f"Planning system recovery for {target}. Validating integrity before restoring services.",
        {"target": target, "incident": incident, "tools": ["autopsy"]},
    )
    await agent.run_tool("autopsy", "autopsy --verify-integrity --baseline", target, duration=(2.0, 3.0))
    plan = expect_keys(
        await agent.get_decision(prompts.incident_recover_prompt(target, incident)),
        "recovery_strategy", "recovery_steps",
        context="recover_systems",
    )
    confidence = as_confidence(plan.get("confidence"))
    agent.log_chain_of_thought(
        3, "decision", "Recovery strategy", str(plan.get("reasoning") or plan["recovery_strategy"]),
        {"recovery_strategy": plan["recovery_strategy"], "services_to_restore": plan.get("services_to_restore")},
        confidence,
    )
    actions = await _walk_steps(agent, plan["recovery_steps"], "Recovery", target)
    validated = bool(plan.get("recovery_validated"))
    restored = plan.get("services_restored") or []
    agent.log_chain_of_thought(
        4 + len(actions), "evaluation", "Recovery validation",
        f"System recovery {'validated' if validated else 'pending validation'}. "
        f"Services restored: {len(restored)}",
        {"validated": validated, "services_restored": restored},
        confidence,
    )
    return agent.emit_event(
        EventType.INCIDENT_RECOVERED,
        {
            "incident_id": _incident_id(incident),
            "recovery_strategy": plan["recovery_strategy"],
            "services_restored": restored,
            "recovery_validated": validated,
            "lessons_learned": plan.get("lessons_learned"),
            "hardening_applied": plan.get("hardening_applied"),
        },
        "Medium",
        target,
        task.task_id,
    )
