"""
agents.posture_assessment — Defensive posture scoring, control evaluation
and MITRE ATT&CK coverage mapping.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from ..core.models import CyberEvent, EventType, Task
from . import prompts
from .base import Agent, AgentKind, as_confidence, expect_keys

POSTURE_ASSESSMENT = AgentKind(
    "PostureAssessmentAgent",
    "Security Posture Assessment Agent",
    "posture-assess-01",
    ["assess_posture", "evaluate_controls", "map_mitre_coverage", "generate_scorecard"],
    team="purple",
    description="Defense gap analysis and security scorecards",
)


def _score(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _score_severity(score: float, medium_floor: Optional[float] = 75) -> str:
    """Lower scores are worse: < 50 is High, then Medium, then Low."""
    if score < 50:
        return "High"
    if medium_floor is None or score < medium_floor:
        return "Medium"
    return "Low"


@POSTURE_ASSESSMENT.handler("assess_posture")
async def assess_posture(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    context = task.details or {}
    available = agent.tools()

    agent.log_chain_of_thought(
        2, "analysis", "Comprehensive posture assessment",
        f"Evaluating security posture for {target} using {len(available)} tools.",
        {"target": target, "context": context, "tools": [t.id for t in available]},
    )
    await agent.run_tool(
        "nessus", "nessus-scan --policy compliance-audit --target", target,
        options={"scan_policy": "Compliance"}, duration=(1.5, 2.5),
    )
    await agent.run_tool(
        "openvas", "omp --xml '<create_task><config id=full-and-fast/>'", target,
        duration=(1.5, 2.5),
    )
    assessment = expect_keys(
        await agent.get_decision(prompts.posture_assessment_prompt(target, context)),
        "overall_score", "gaps",
        context="assess_posture",
    )
    confidence = as_confidence(assessment.get("confidence"))
    overall = _score(assessment["overall_score"])
    agent.log_chain_of_thought(
        3, "evaluation", "Security posture scoring",
        f"Overall security score: {overall:g}/100. "
        f"Detection coverage: {assessment.get('detection_coverage')}%. "
        f"Response readiness: {assessment.get('response_readiness')}%.",
        {"overall_score": overall, "categories": assessment.get("category_scores")},
        confidence,
    )
    await agent.delay(2.0, 3.0)

    gaps = [
        {
            "area": g.get("area"),
            "severity": g.get("severity"),
            "description": g.get("description"),
            "mitre_techniques_uncovered": g.get("mitre_techniques_uncovered") or [],
            "remediation": g.get("remediation"),
        }
        for g in assessment["gaps"]
    ]
    high = [g for g in gaps if g["severity"] in ("Critical", "High")]
    agent.log_chain_of_thought(
        4, "evaluation", "Gap analysis",
        f"Identified {len(gaps)} security gaps. {len(high)} are high priority.",
        {"gaps_summary": [{"area": g["area"], "severity": g["severity"]} for g in gaps]},
        confidence,
    )

    posture = {
        "assessment_id": f"posture-{int(time.time() * 1000)}",
        "overall_score": overall,
        "detection_coverage": assessment.get("detection_coverage"),
        "response_readiness": assessment.get("response_readiness"),
        "gap_analysis": gaps,
        "recommendations": assessment.get("recommendations") or [],
        "mitre_coverage": assessment.get("mitre_coverage") or {},
    }
    if any(g["severity"] == "Critical" for g in gaps):
        return agent.emit_event(EventType.DETECTION_GAP_FOUND, posture, "Critical", target, task.task_id)
    return agent.emit_event(
        EventType.POSTURE_ASSESSMENT_COMPLETE, posture, _score_severity(overall), target, task.task_id
    )


@POSTURE_ASSESSMENT.handler("evaluate_controls")
async def evaluate_controls(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Security controls evaluation",
        f"Evaluating security controls on {target} with atomic tests and adversary emulation.",
        {"target": target, "context": context, "tools": ["atomic-red-team", "caldera", "suricata"]},
    )
    await agent.run_tool(
        "atomic-red-team", "Invoke-AtomicTest -All -GetPrereqs", target, duration=(2.5, 4.0),
    )
    evaluation = expect_keys(
        await agent.get_decision(prompts.posture_controls_prompt(target, context)),
        "average_effectiveness",
        context="evaluate_controls",
    )
    confidence = as_confidence(evaluation.get("confidence"))
    controls = evaluation.get("controls_evaluated") or []
    average = _score(evaluation["average_effectiveness"])
    agent.log_chain_of_thought(
        3, "evaluation", "Controls effectiveness assessment",
        f"Evaluated {len(controls)} security controls. Average effectiveness: {average:g}%.",
        {"controls": controls, "failing_controls": evaluation.get("failing_controls")},
        confidence,
    )
    recommendations = evaluation.get("recommendations") or []
    agent.log_chain_of_thought(
        4, "evaluation", "Control recommendations",
        f"Generated {len(recommendations)} improvement recommendations.",
        {"recommendations": recommendations},
        confidence,
    )
    return agent.emit_event(
        EventType.POSTURE_ASSESSMENT_COMPLETE,
        {
            "target": target,
            "controls_evaluated": controls,
            "average_effectiveness": average,
            "failing_controls": evaluation.get("failing_controls"),
            "recommendations": recommendations,
        },
        _score_severity(average, None),
        target,
        task.task_id,
    )


@POSTURE_ASSESSMENT.handler("map_mitre_coverage")
async def map_mitre_coverage(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "MITRE ATT&CK coverage mapping",
        f"Mapping capabilities to MITRE ATT&CK for {target}. Cross-referencing detection rules.",
        {"target": target, "context": context, "tools": ["sigma", "nuclei"]},
    )
    await agent.run_tool(
        "sigma", "sigma-cli convert --target splunk --pipeline sysmon", target, duration=(3.0, 5.0),
    )
    coverage = expect_keys(
        await agent.get_decision(prompts.posture_mitre_prompt(target, context)),
        "overall_coverage",
        context="map_mitre_coverage",
    )
    confidence = as_confidence(coverage.get("confidence"))
    overall = _score(coverage["overall_coverage"])
    mapped = coverage.get("techniques_mapped") or []
    priority_gaps = coverage.get("priority_gaps") or []
    agent.log_chain_of_thought(
        3, "evaluation", "MITRE coverage analysis",
        f"Analyzed {len(mapped)} MITRE ATT&CK techniques. Overall coverage: {overall:g}%.",
        {"coverage_by_tactic": coverage.get("coverage_by_tactic"), "uncovered": coverage.get("uncovered_techniques")},
        confidence,
    )
    agent.log_chain_of_thought(
        4, "evaluation", "Priority coverage gaps",
        f"Identified {len(priority_gaps)} priority gaps in MITRE ATT&CK coverage.",
        {"priority_gaps": priority_gaps},
        confidence,
    )
    return agent.emit_event(
        EventType.MITRE_MAPPING_COMPLETE,
        {
            "target": target,
            "techniques_mapped": mapped,
            "coverage_by_tactic": coverage.get("coverage_by_tactic"),
            "uncovered_techniques": coverage.get("uncovered_techniques"),
            "overall_coverage": overall,
            "priority_gaps": priority_gaps,
            "recommendations": coverage.get("recommendations"),
        },
        _score_severity(overall, None),
        target,
        task.task_id,
    )


@POSTURE_ASSESSMENT.handler("generate_scorecard")
async def generate_scorecard(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    context = task.details or {}
    available = agent.tools()

    agent.log_chain_of_thought(
        2, "analysis", "Security scorecard generation",
        f"Generating security scorecard for {target}, aggregating results from {len(available)} tools.",
        {"target": target, "context": context, "tools": [t.id for t in available]},
    )
    await agent.delay(2.0, 4.0)
    scorecard = expect_keys(
        await agent.get_decision(prompts.posture_scorecard_prompt(target, context)),
        "overall_score",
        context="generate_scorecard",
    )
    overall = _score(scorecard["overall_score"])
    agent.log_chain_of_thought(
        3, "evaluation", "Scorecard results",
        f"Security Scorecard: Overall {scorecard.get('overall_grade') or 'N/A'} ({overall:g}/100) "
        f"across {len(scorecard.get('categories') or [])} categories.",
        {"overall_grade": scorecard.get("overall_grade"), "trend": scorecard.get("trend")},
        as_confidence(scorecard.get("confidence")),
    )
    return agent.emit_event(
        EventType.POSTURE_ASSESSMENT_COMPLETE,
        {"target": target, "scorecard": scorecard, "assessment_type": "scorecard"},
        _score_severity(overall),
        target,
        task.task_id,
    )
