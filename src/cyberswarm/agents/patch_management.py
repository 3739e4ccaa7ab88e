"""
agents.patch_management — Blue-team remediation: vulnerability fixes, patches, hardening.
"""

from __future__ import annotations

from ..core.models import CyberEvent, EventType, Task
from . import prompts
from .base import Agent, AgentKind, as_confidence, expect_keys

PATCH_MANAGEMENT = AgentKind(
    "PatchManagementAgent",
    "Patch Management Agent",
    "patch-mgmt-01",
    ["remediate_vuln", "apply_patch", "config_harden"],
    team="blue",
    description="Remediation planning, patch rollout and configuration hardening",
)


@PATCH_MANAGEMENT.handler("remediate_vuln")
async def remediate_vuln(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or "192.168.1.10"
    vulnerability = (task.details or {}).get("vulnerability") or {}
    cve_id = vulnerability.get("cve_id") or "UNKNOWN"

    agent.log_chain_of_thought(
        2, "decision", "Remediation strategy selection",
        f"Consulting the decision oracle for a remediation approach for {cve_id}",
        {"target": target, "vulnerability": vulnerability},
    )
    plan = expect_keys(
        await agent.get_decision(prompts.patch_management_prompt(vulnerability, target)),
        "remediation_strategy", "remediation_steps", "status",
        context="remediate_vuln",
    )
    confidence = as_confidence(plan.get("confidence"), 0.8)
    agent.log_chain_of_thought(
        3, "decision", "Remediation plan", str(plan.get("reasoning", "")),
        {"strategy": plan["remediation_strategy"], "impact": plan.get("impact_assessment")},
        confidence,
    )

    step_no = 4
    for step in plan["remediation_steps"]:
        action = step.get("action", "remediation step")
        agent.log_chain_of_thought(
            step_no, "action", f"Step {step.get('step', step_no - 3)}: {action}",
            f"Executing: {step.get('command') or action}. Expected: {step.get('expected_outcome', 'n/a')}",
            {"step": step.get("step"), "action": action},
        )
        if step.get("command"):
            await agent.run_tool("ansible", step["command"], target, output="ok", duration=(1.0, 2.0))
        else:
            await agent.delay(1.0, 2.0)
        step_no += 1

    post = plan.get("post_remediation") or {}
    agent.log_chain_of_thought(
        step_no, "evaluation", "Remediation verification",
        "Verifying remediation success: " + ", ".join(post.get("success_criteria") or ["n/a"]),
        {"verification": post.get("verification_steps"), "status": plan["status"]},
        confidence,
    )

    return agent.emit_event(
        EventType.DEFENSE_ACTION,
        {
            "action_type": "REMEDIATE",
            "target_cve": cve_id,
            "status": "SUCCESS" if plan["status"] == "SUCCESS" else "FAILED",
            "details": f"Applied {plan['remediation_strategy']} strategy",
            "remediation_plan": plan,
        },
        "High",
        target,
        task.task_id,
    )


@PATCH_MANAGEMENT.handler("apply_patch")
async def apply_patch(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or "192.168.1.10"
    patch = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Patch application",
        f"Applying patch to {target}. Assessing impact and planning deployment.",
        {"target": target, "patch": patch},
    )
    strategy = expect_keys(
        await agent.get_decision(prompts.patch_management_prompt(patch, target)),
        "remediation_strategy",
        context="apply_patch",
    )
    agent.log_chain_of_thought(
        3, "action", "Applying patch",
        f"Patch deployment in progress using strategy: {strategy['remediation_strategy']}",
        {"strategy": strategy["remediation_strategy"]},
    )
    await agent.run_tool(
        "ansible", f"ansible-playbook patch.yml --limit {target}", target,
        output="changed=1 failed=0", duration=(3.0, 5.0),
    )
    agent.log_chain_of_thought(
        4, "evaluation", "Patch applied",
        "Patch application completed. System status verified.",
        {"status": "SUCCESS"},
        0.95,
    )

    return agent.emit_event(
        EventType.DEFENSE_ACTION,
        {
            "action_type": "REMEDIATE",
            "target_cve": patch.get("cve_id") or "PATCH",
            "status": "SUCCESS",
            "details": "Patch applied successfully",
        },
        "Medium",
        target,
        task.task_id,
    )


@PATCH_MANAGEMENT.handler("config_harden")
async def config_harden(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or "192.168.1.10"

    agent.log_chain_of_thought(
        2, "analysis", "Configuration hardening",
        f"Hardening system configuration on {target}",
        {"target": target},
    )
    plan = await agent.get_decision(prompts.config_harden_prompt(target, task.details))
    steps = plan.get("hardening_steps") or []
    agent.log_chain_of_thought(
        3, "action", "Applying hardening measures",
        f"Implementing {len(steps)} security controls and configuration changes",
        {"plan": plan},
    )
    await agent.run_tool(
        "ansible", f"ansible-playbook harden.yml --limit {target}", target,
        output=f"changed={len(steps)} failed=0", duration=(3.0, 5.0),
    )
    agent.log_chain_of_thought(
        4, "evaluation", "Hardening complete",
        "Security posture improved. Configuration hardened successfully.",
        {"status": "SUCCESS"},
        as_confidence(plan.get("confidence"), 0.88),
    )

    return agent.emit_event(
        EventType.DEFENSE_ACTION,
        {
            "action_type": "CONTAIN",
            "target_cve": "CONFIG_HARDENING",
            "status": "SUCCESS",
            "details": "System hardening applied",
        },
        "Medium",
        target,
        task.task_id,
    )
