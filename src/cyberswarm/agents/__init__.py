"""
agents — Agent state machine plus the nine built-in agent kinds.

    red     DiscoveryAgent             discovery-01          network_scan, port_scan, service_enum
    red     VulnerabilityScannerAgent  vuln-scanner-01       vuln_scan, web_app_scan, config_audit
    blue    PatchManagementAgent       patch-mgmt-01         remediate_vuln, apply_patch, config_harden
    blue    NetworkMonitorAgent        network-monitor-01    monitor_traffic, detect_intrusion, analyze_logs
    red     StrategyAdaptationAgent    strategy-adapt-01     adapt_strategy, reevaluate_targets, change_tactics
    purple  ThreatHunterAgent          threat-hunter-01      hunt_ioc, hunt_ttp, hunt_anomaly, validate_detection
    purple  IncidentResponseAgent      incident-response-01  triage_incident, contain_incident,
                                                             eradicate_threat, recover_systems
    purple  PostureAssessmentAgent     posture-assess-01     assess_posture, evaluate_controls,
                                                             map_mitre_coverage, generate_scorecard
    purple  ThreatIntelligenceAgent    threat-intel-01       correlate_iocs, profile_threat_actor,
                                                             map_attack_campaign, enrich_indicators

Purple-team kinds are never targeted by the logic pipe; they run tasks
injected directly or listed in a scenario.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..core.config import Config
from ..core.oracle import DecisionOracle
from ..tools.registry import SecurityToolRegistry
from .base import Agent, AgentKind, as_confidence, expect_keys
from .discovery import DISCOVERY
from .incident_response import INCIDENT_RESPONSE
from .network_monitor import NETWORK_MONITOR
from .patch_management import PATCH_MANAGEMENT
from .posture_assessment import POSTURE_ASSESSMENT
from .strategy_adaptation import STRATEGY_ADAPTATION
from .threat_hunter import THREAT_HUNTER
from .threat_intelligence import THREAT_INTELLIGENCE
from .vuln_scanner import VULN_SCANNER

DEFAULT_KINDS: List[AgentKind] = [
    DISCOVERY,
    VULN_SCANNER,
    PATCH_MANAGEMENT,
    NETWORK_MONITOR,
    STRATEGY_ADAPTATION,
    THREAT_HUNTER,
    INCIDENT_RESPONSE,
    POSTURE_ASSESSMENT,
    THREAT_INTELLIGENCE,
]

KINDS_BY_TYPE: Dict[str, AgentKind] = {k.agent_type: k for k in DEFAULT_KINDS}


def build_default_agents(
    oracle: DecisionOracle,
    registry: Optional[SecurityToolRegistry] = None,
    config: Optional[Config] = None,
    logger: Optional[logging.Logger] = None,
) -> List[Agent]:
    """One agent per built-in kind, sharing the same oracle and registry."""
    return [
        kind.create(oracle, registry=registry, config=config, logger=logger)
        for kind in DEFAULT_KINDS
    ]


__all__ = [
    "Agent",
    "AgentKind",
    "DEFAULT_KINDS",
    "DISCOVERY",
    "INCIDENT_RESPONSE",
    "KINDS_BY_TYPE",
    "NETWORK_MONITOR",
    "PATCH_MANAGEMENT",
    "POSTURE_ASSESSMENT",
    "STRATEGY_ADAPTATION",
    "THREAT_HUNTER",
    "THREAT_INTELLIGENCE",
    "VULN_SCANNER",
    "as_confidence",
    "build_default_agents",
    "expect_keys",
]
