import pytest

from cyberswarm.agents import (
    INCIDENT_RESPONSE,
    POSTURE_ASSESSMENT,
    THREAT_HUNTER,
    THREAT_INTELLIGENCE,
    build_default_agents,
)
from cyberswarm.core.errors import OracleParseError
from cyberswarm.core.models import AgentStatus, EventType, Severity, Task
from cyberswarm.tools import default_registry

from .fakes import CANNED, FakeOracle

TARGET = "10.0.0.10"


def _run(kind, task_name, cfg, oracle=None, details=None):
    agent = kind.create(oracle or FakeOracle(), registry=default_registry(), config=cfg)
    task = Task(agent_type=kind.agent_type, task_name=task_name, target=TARGET, details=details)
    return agent, task


@pytest.mark.parametrize(
    "kind, task_name, event_type, severity, tools",
    [
        (THREAT_HUNTER, "hunt_ioc", EventType.THREAT_HUNT_FINDING, Severity.HIGH, ["yara"]),
        (THREAT_HUNTER, "hunt_ttp", EventType.THREAT_HUNT_FINDING, Severity.CRITICAL, []),
        (THREAT_HUNTER, "hunt_anomaly", EventType.THREAT_HUNT_COMPLETE, Severity.LOW, ["elastic-siem"]),
        (THREAT_HUNTER, "validate_detection", EventType.DETECTION_GAP_FOUND, Severity.HIGH, []),
        (INCIDENT_RESPONSE, "triage_incident", EventType.INCIDENT_DETECTED, Severity.CRITICAL, ["thehive", "cortex"]),
        (INCIDENT_RESPONSE, "contain_incident", EventType.INCIDENT_CONTAINED, Severity.HIGH, ["grr"]),
        (INCIDENT_RESPONSE, "eradicate_threat", EventType.INCIDENT_ERADICATED, Severity.HIGH, ["volatility"]),
        (INCIDENT_RESPONSE, "recover_systems", EventType.INCIDENT_RECOVERED, Severity.MEDIUM, ["autopsy"]),
        (POSTURE_ASSESSMENT, "assess_posture", EventType.DETECTION_GAP_FOUND, Severity.CRITICAL, ["nessus", "openvas"]),
        (POSTURE_ASSESSMENT, "evaluate_controls", EventType.POSTURE_ASSESSMENT_COMPLETE, Severity.HIGH, ["atomic-red-team"]),
        (POSTURE_ASSESSMENT, "map_mitre_coverage", EventType.MITRE_MAPPING_COMPLETE, Severity.MEDIUM, ["sigma"]),
        (POSTURE_ASSESSMENT, "generate_scorecard", EventType.POSTURE_ASSESSMENT_COMPLETE, Severity.LOW, []),
        (THREAT_INTELLIGENCE, "correlate_iocs", EventType.IOC_CORRELATED, Severity.HIGH, ["misp"]),
        (THREAT_INTELLIGENCE, "profile_threat_actor", EventType.THREAT_INTEL_REPORT, Severity.CRITICAL, []),
        (THREAT_INTELLIGENCE, "map_attack_campaign", EventType.MITRE_MAPPING_COMPLETE, Severity.HIGH, ["opencti"]),
        (THREAT_INTELLIGENCE, "enrich_indicators", EventType.THREAT_INTEL_REPORT, Severity.CRITICAL, []),
    ],
)
async def test_handler_outcomes(cfg, kind, task_name, event_type, severity, tools):
    agent, task = _run(kind, task_name, cfg)
    event = await agent.execute_task(task)

    assert event.event_type == event_type.value
    assert event.severity == severity
    assert event.category == "purple"
    assert event.task_id == task.task_id
    assert agent.status == AgentStatus.IDLE
    assert [r.tool_id for r in agent.tool_executions] == tools
    assert all(r.completed for r in agent.tool_executions)

    steps = [t.step_number for t in agent.thoughts if t.task_id == task.task_id]
    assert steps[:2] == [1, 2]
    assert steps == sorted(steps)


def test_purple_kinds_cover_their_tasks():
    for kind in (THREAT_HUNTER, INCIDENT_RESPONSE, POSTURE_ASSESSMENT, THREAT_INTELLIGENCE):
        assert kind.team == "purple"
        assert set(kind.supported_tasks) == set(kind.handled_tasks)
    purple = [a for a in build_default_agents(FakeOracle()) if a.kind.team == "purple"]
    assert [a.agent_type for a in purple] == [
        "ThreatHunterAgent",
        "IncidentResponseAgent",
        "PostureAssessmentAgent",
        "ThreatIntelligenceAgent",
    ]


def test_purple_agents_see_their_tool_categories(cfg):
    agent = INCIDENT_RESPONSE.create(FakeOracle(), registry=default_registry(), config=cfg)
    ids = {t.id for t in agent.tools()}
    assert {"thehive", "cortex", "grr", "volatility", "autopsy"} <= ids
    assert "metasploit" not in ids


async def test_hunt_ttp_escalates_an_attack_chain(cfg):
    agent, task = _run(THREAT_HUNTER, "hunt_ttp", cfg)
    event = await agent.execute_task(task)
    assert event.payload["status"] == "ESCALATED"
    assert event.payload["mitre_techniques"] == ["T1003", "T1021"]
    assert event.payload["findings"][0]["type"] == "LATERAL_MOVEMENT"


async def test_detection_rate_sets_gap_severity(cfg):
    answer = dict(CANNED["validating detection capabilities"], detection_rate=40)
    oracle = FakeOracle({"validating detection capabilities": answer})
    agent, task = _run(THREAT_HUNTER, "validate_detection", cfg, oracle)
    event = await agent.execute_task(task)
    assert event.severity == Severity.CRITICAL

    answer = dict(answer, detection_gaps=[])
    oracle = FakeOracle({"validating detection capabilities": answer})
    agent, task = _run(THREAT_HUNTER, "validate_detection", cfg, oracle)
    event = await agent.execute_task(task)
    assert event.event_type == EventType.THREAT_HUNT_COMPLETE.value
    assert event.severity == Severity.LOW


async def test_triage_keeps_incident_id_and_downgrades_false_positives(cfg):
    agent, task = _run(INCIDENT_RESPONSE, "triage_incident", cfg, details={"incident_id": "INC-42"})
    event = await agent.execute_task(task)
    assert event.payload["incident_id"] == "INC-42"
    assert event.payload["phase"] == "TRIAGE"
    assert event.payload["affected_assets"] == ["10.0.0.10", "10.0.0.11"]

    answer = dict(CANNED["initial triage of a security alert"], classification="FALSE_POSITIVE")
    oracle = FakeOracle({"initial triage of a security alert": answer})
    agent, task = _run(INCIDENT_RESPONSE, "triage_incident", cfg, oracle)
    event = await agent.execute_task(task)
    assert event.event_type == EventType.INCIDENT_DETECTED.value
    assert event.severity == Severity.LOW
    assert event.payload["incident_id"].startswith("incident-")
    assert "FALSE_POSITIVE" in event.payload["note"]


async def test_containment_walks_each_step(cfg):
    agent, task = _run(INCIDENT_RESPONSE, "contain_incident", cfg, details={"incident_id": "INC-42"})
    event = await agent.execute_task(task)

    steps = [t for t in agent.thoughts if t.task_id == task.task_id]
    assert [t.step_number for t in steps] == [1, 2, 3, 4, 5, 6]
    assert [t.step_type for t in steps[3:5]] == ["action", "action"]
    assert "Block egress" in steps[3].description
    assert [a["target"] for a in event.payload["actions_taken"]] == ["fw-01", TARGET]
    assert event.payload["containment_verified"] is True
    assert event.payload["incident_id"] == "INC-42"


async def test_missing_triage_keys_fail_the_task(cfg):
    oracle = FakeOracle({"initial triage of a security alert": {"summary": "unclear"}})
    agent, task = _run(INCIDENT_RESPONSE, "triage_incident", cfg, oracle)
    with pytest.raises(OracleParseError):
        await agent.execute_task(task)
    assert agent.status == AgentStatus.ERROR


async def test_scorecard_and_controls_scores(cfg):
    answer = dict(CANNED["generating a security scorecard"], overall_score="62")
    oracle = FakeOracle({"generating a security scorecard": answer})
    agent, task = _run(POSTURE_ASSESSMENT, "generate_scorecard", cfg, oracle)
    event = await agent.execute_task(task)
    assert event.severity == Severity.MEDIUM

    answer = dict(CANNED["evaluating security control effectiveness"], average_effectiveness=90)
    oracle = FakeOracle({"evaluating security control effectiveness": answer})
    agent, task = _run(POSTURE_ASSESSMENT, "evaluate_controls", cfg, oracle)
    event = await agent.execute_task(task)
    assert event.payload["average_effectiveness"] == 90.0
    assert event.severity == Severity.MEDIUM


async def test_posture_without_critical_gaps_reports_score(cfg):
    answer = dict(CANNED["comprehensive security posture assessment"], gaps=[{"area": "logging", "severity": "Medium"}])
    oracle = FakeOracle({"comprehensive security posture assessment": answer})
    agent, task = _run(POSTURE_ASSESSMENT, "assess_posture", cfg, oracle)
    event = await agent.execute_task(task)
    assert event.event_type == EventType.POSTURE_ASSESSMENT_COMPLETE.value
    assert event.severity == Severity.MEDIUM
    assert event.payload["overall_score"] == 62.0


async def test_campaign_mapping_defaults_detection_status(cfg):
    agent, task = _run(THREAT_INTELLIGENCE, "map_attack_campaign", cfg)
    event = await agent.execute_task(task)
    statuses = [m["detection_status"] for m in event.payload["mitre_mappings"]]
    assert statuses == ["PARTIAL", "DETECTED"]


async def test_uncorrelated_iocs_produce_a_low_report(cfg):
    answer = dict(CANNED["correlating indicators of compromise"], correlated_iocs=[], high_confidence_matches=0)
    oracle = FakeOracle({"correlating indicators of compromise": answer})
    agent, task = _run(THREAT_INTELLIGENCE, "correlate_iocs", cfg, oracle)
    event = await agent.execute_task(task)
    assert event.event_type == EventType.THREAT_INTEL_REPORT.value
    assert event.severity == Severity.LOW
    assert event.payload["status"] == "no_correlation"
