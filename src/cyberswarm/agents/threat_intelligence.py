"""
agents.threat_intelligence — IOC correlation, actor profiling, campaign mapping.
"""

from __future__ import annotations

from ..core.models import CyberEvent, EventType, Task
from . import prompts
from .base import Agent, AgentKind, as_confidence, expect_keys

THREAT_INTELLIGENCE = AgentKind(
    "ThreatIntelligenceAgent",
    "Threat Intelligence Agent",
    "threat-intel-01",
    ["correlate_iocs", "profile_threat_actor", "map_attack_campaign", "enrich_indicators"],
    team="purple",
    description="Threat intel correlation and enrichment",
)

_RISK_SEVERITY = {"critical": "Critical", "high": "High"}


@THREAT_INTELLIGENCE.handler("correlate_iocs")
async def correlate_iocs(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "IOC correlation analysis",
        f"Correlating indicators of compromise from multiple sources for {target}.",
        {"target": target, "context": context},
    )
    await agent.run_tool(
        "misp", "misp-search --type ip-dst --correlate", target,
        output="attributes correlated", duration=(2.5, 4.5),
    )
    correlation = expect_keys(
        await agent.get_decision(prompts.intel_correlate_prompt(target, context)),
        "correlated_iocs",
        context="correlate_iocs",
    )
    confidence = as_confidence(correlation.get("confidence"))
    iocs = [
        {
            "ioc_type": ioc.get("type"),
            "value": ioc.get("value"),
            "source": ioc.get("source"),
            "correlation_score": ioc.get("correlation_score"),
            "related_campaigns": ioc.get("related_campaigns") or [],
        }
        for ioc in correlation["correlated_iocs"]
    ]
    matches = correlation.get("high_confidence_matches") or 0
    agent.log_chain_of_thought(
        3, "evaluation", "Correlation results",
        f"Analyzed {correlation.get('total_iocs') or 0} indicators. {len(iocs)} correlated across "
        f"sources. {matches} high-confidence matches.",
        {"campaigns_identified": correlation.get("campaigns_identified")},
        confidence,
    )
    await agent.delay(1.5, 2.5)
    attribution = correlation.get("threat_attribution") or "unknown"
    agent.log_chain_of_thought(
        4, "evaluation", "Threat attribution",
        f"IOC correlation suggests {attribution} threat actor involvement.",
        {"attribution": attribution, "correlated_iocs": len(iocs)},
        confidence,
    )

    if iocs:
        return agent.emit_event(
            EventType.IOC_CORRELATED,
            {
                "target": target,
                "correlated_iocs": iocs,
                "threat_attribution": correlation.get("threat_attribution"),
                "campaigns_identified": correlation.get("campaigns_identified"),
                "risk_assessment": correlation.get("risk_assessment"),
                "recommendations": correlation.get("recommendations"),
            },
            "High" if matches > 0 else "Medium",
            target,
            task.task_id,
        )
    return agent.emit_event(
        EventType.THREAT_INTEL_REPORT,
        {"target": target, "analysis": correlation, "status": "no_correlation"},
        "Low",
        target,
        task.task_id,
    )


@THREAT_INTELLIGENCE.handler("profile_threat_actor")
async def profile_threat_actor(agent: Agent, task: Task) -> CyberEvent:
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Threat actor profiling",
        "Building a threat actor profile from observed TTPs and indicators.",
        {"context": context},
    )
    await agent.delay(3.0, 5.0)
    profile = expect_keys(
        await agent.get_decision(prompts.intel_profile_prompt(context)),
        "primary_actor", "capability_level",
        context="profile_threat_actor",
    )
    confidence = as_confidence(profile.get("confidence"))
    agent.log_chain_of_thought(
        3, "evaluation", "Actor profile assessment",
        f"Identified potential threat actor: {profile['primary_actor']}. "
        f"Motivation: {profile.get('motivation') or 'Unknown'}. "
        f"Capability level: {profile['capability_level']}.",
        {"aliases": profile.get("aliases"), "ttps": profile.get("associated_ttps")},
        confidence,
    )
    predicted = profile.get("predicted_actions") or []
    agent.log_chain_of_thought(
        4, "evaluation", "Predictive analysis",
        f"Likely next actions: {', '.join(predicted) or 'unknown'}.",
        {"predicted_actions": predicted, "defensive_priorities": profile.get("defensive_priorities")},
        confidence,
    )
    keys = (
        "primary_actor", "aliases", "motivation", "capability_level", "associated_ttps",
        "predicted_actions", "defensive_priorities", "historical_campaigns",
    )
    return agent.emit_event(
        EventType.THREAT_INTEL_REPORT,
        {"report_type": "threat_actor_profile", **{k: profile.get(k) for k in keys}},
        "Critical" if profile["capability_level"] in ("advanced", "nation_state") else "High",
        task.target,
        task.task_id,
    )


@THREAT_INTELLIGENCE.handler("map_attack_campaign")
async def map_attack_campaign(agent: Agent, task: Task) -> CyberEvent:
    target = task.target or agent.config.target_network
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Attack campaign mapping",
        "Mapping observed activities to known attack campaigns and constructing the kill chain.",
        {"target": target, "context": context},
    )
    await agent.run_tool(
        "opencti", "opencti-cli search --entity-type Campaign", target, duration=(3.0, 5.0),
    )
    campaign = expect_keys(
        await agent.get_decision(prompts.intel_campaign_prompt(target, context)),
        "campaign_name", "mitre_mappings",
        context="map_attack_campaign",
    )
    confidence = as_confidence(campaign.get("confidence"))
    mappings = [
        {
            "technique_id": m.get("technique_id"),
            "technique_name": m.get("technique_name"),
            "tactic": m.get("tactic"),
            "observed": m.get("observed"),
            "detection_status": m.get("detection_status") or "PARTIAL",
        }
        for m in campaign["mitre_mappings"]
    ]
    agent.log_chain_of_thought(
        3, "evaluation", "Campaign identification",
        f"Identified campaign: {campaign['campaign_name']}. "
        f"Kill chain progression: {campaign.get('kill_chain_phase') or 'Unknown'}.",
        {"timeline": campaign.get("attack_timeline")},
        confidence,
    )
    tactics = {m["tactic"] for m in mappings}
    agent.log_chain_of_thought(
        4, "evaluation", "Campaign intelligence summary",
        f"Mapped to {len(mappings)} MITRE techniques across {len(tactics)} tactics.",
        {"mitre_mappings": mappings, "overall_risk": campaign.get("overall_risk")},
        confidence,
    )
    return agent.emit_event(
        EventType.MITRE_MAPPING_COMPLETE,
        {
            "target": target,
            "campaign_name": campaign["campaign_name"],
            "kill_chain_phase": campaign.get("kill_chain_phase"),
            "mitre_mappings": mappings,
            "attack_timeline": campaign.get("attack_timeline"),
            "overall_risk": campaign.get("overall_risk"),
            "countermeasures": campaign.get("countermeasures"),
        },
        "Critical" if campaign.get("overall_risk") == "critical" else "High",
        target,
        task.task_id,
    )


@THREAT_INTELLIGENCE.handler("enrich_indicators")
async def enrich_indicators(agent: Agent, task: Task) -> CyberEvent:
    context = task.details or {}

    agent.log_chain_of_thought(
        2, "analysis", "Indicator enrichment",
        "Enriching indicators with threat intelligence context, MITRE mappings and risk scores.",
        {"context": context},
    )
    await agent.delay(2.0, 3.5)
    enrichment = expect_keys(
        await agent.get_decision(prompts.intel_enrich_prompt(context)),
        "enriched_indicators",
        context="enrich_indicators",
    )
    agent.log_chain_of_thought(
        3, "evaluation", "Enrichment results",
        f"Enriched {enrichment.get('indicators_enriched') or 0} indicators. "
        f"Risk score adjusted for {enrichment.get('risk_adjustments') or 0} indicators.",
        {"sources": enrichment.get("sources")},
        as_confidence(enrichment.get("confidence")),
    )
    risk = (enrichment.get("risk_summary") or {}).get("overall_risk")
    return agent.emit_event(
        EventType.THREAT_INTEL_REPORT,
        {
            "report_type": "indicator_enrichment",
            "enriched_indicators": enrichment["enriched_indicators"],
            "sources": enrichment.get("sources"),
            "mitre_mappings": enrichment.get("mitre_mappings"),
            "risk_summary": enrichment.get("risk_summary"),
            "actionable_intelligence": enrichment.get("actionable_intelligence"),
        },
        _RISK_SEVERITY.get(risk, "Medium"),
        task.target,
        task.task_id,
    )
