"""
agents.strategy_adaptation — Red-team pivoting after detections and defensive actions.
"""

from __future__ import annotations

from ..core.models import CyberEvent, EventType, Task
from . import prompts
from .base import Agent, AgentKind, as_confidence, expect_keys

STRATEGY_ADAPTATION = AgentKind(
    "StrategyAdaptationAgent",
    "Strategy Adaptation Agent",
    "strategy-adapt-01",
    ["adapt_strategy", "reevaluate_targets", "change_tactics"],
    team="red",
    description="Evasion planning, target re-prioritisation and tactical changes",
)


@STRATEGY_ADAPTATION.handler("adapt_strategy")
async def adapt_strategy(agent: Agent, task: Task) -> CyberEvent:
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Situation analysis",
        "Analyzing current operational context to determine if strategy adaptation is needed",
        {"context": context},
    )
    await agent.delay(1.5, 3.0)
    adaptation = expect_keys(
        await agent.get_decision(prompts.strategy_adaptation_prompt(context)),
        "adaptation_needed", "reasoning", "new_strategy",
        context="adapt_strategy",
    )
    confidence = as_confidence(adaptation.get("confidence"), 0.7)
    new_strategy = adaptation["new_strategy"] or {}
    agent.log_chain_of_thought(
        3, "decision", "Strategy adaptation decision", str(adaptation["reasoning"]),
        {
            "adaptation_needed": adaptation["adaptation_needed"],
            "new_approach": new_strategy.get("approach"),
        },
        confidence,
    )

    if not adaptation["adaptation_needed"]:
        return agent.emit_event(
            EventType.ATTACK_ADAPTATION,
            {
                "strategy_change": "maintain_current",
                "reason": adaptation["reasoning"],
                "new_techniques": [],
                "adaptation_type": "no_change",
                "confidence": confidence,
            },
            "Low",
            None,
            task.task_id,
        )

    tactics = new_strategy.get("tactics") or []
    agent.log_chain_of_thought(
        4, "action", "Implementing new strategy",
        f"Adapting tactics: {', '.join(tactics) or 'none listed'}",
        {"tactics": tactics, "stealth_level": new_strategy.get("stealth_level")},
        confidence,
    )
    await agent.run_tool(
        "sliver", "generate --mtls --os linux --evasion", task.target or "c2",
        options={"approach": new_strategy.get("approach")},
        output="implant regenerated", duration=(2.0, 4.0),
    )
    return agent.emit_event(
        EventType.ATTACK_ADAPTATION,
        {
            "strategy_change": new_strategy.get("approach"),
            "reason": adaptation["reasoning"],
            "new_techniques": new_strategy.get("techniques") or [],
            "adaptation_type": "strategic_pivot",
            "confidence": confidence,
            "full_analysis": adaptation,
        },
        "High",
        None,
        task.task_id,
    )


@STRATEGY_ADAPTATION.handler("reevaluate_targets")
async def reevaluate_targets(agent: Agent, task: Task) -> CyberEvent:
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Target reevaluation",
        "Reevaluating targets based on current situation and defensive responses",
        {"context": context},
    )
    await agent.delay(1.5, 3.0)
    analysis = await agent.get_decision(
        prompts.strategy_adaptation_prompt({**context, "task": "reevaluate_targets"})
    )
    targets = analysis.get("alternative_targets") or []
    confidence = as_confidence(analysis.get("confidence"), 0.7)
    agent.log_chain_of_thought(
        3, "decision", "Target prioritization",
        f"Identified {len(targets)} alternative targets",
        {"targets": targets},
        confidence,
    )
    return agent.emit_event(
        EventType.TARGET_REEVALUATION,
        {
            "strategy_change": "target_shift",
            "reason": "Reevaluating targets based on defensive measures",
            "new_techniques": [t.get("technique") for t in analysis.get("evasion_techniques") or []],
            "adaptation_type": "target_reevaluation",
            "confidence": confidence,
            "alternative_targets": targets,
        },
        "Medium",
        None,
        task.task_id,
    )


@STRATEGY_ADAPTATION.handler("change_tactics")
async def change_tactics(agent: Agent, task: Task) -> CyberEvent:
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Tactical changes",
        "Determining tactical adjustments to evade detection and improve effectiveness",
        {"context": context},
    )
    await agent.delay(1.5, 3.0)
    tactics = await agent.get_decision(
        prompts.strategy_adaptation_prompt({**context, "task": "change_tactics"})
    )
    new_strategy = tactics.get("new_strategy") or {}
    confidence = as_confidence(tactics.get("confidence"), 0.7)
    agent.log_chain_of_thought(
        3, "decision", "Tactical recommendations",
        f"Recommended {len(new_strategy.get('tactics') or [])} tactical changes",
        {"tactics": new_strategy},
        confidence,
    )
    return agent.emit_event(
        EventType.ATTACK_ADAPTATION,
        {
            "strategy_change": "tactical_adjustment",
            "reason": "Adapting tactics to improve operational effectiveness",
            "new_techniques": new_strategy.get("techniques") or [],
            "adaptation_type": "tactical_change",
            "confidence": confidence,
            "tactics": new_strategy,
            "evasion": tactics.get("evasion_techniques"),
        },
        "Medium",
        None,
        task.task_id,
    )
