"""
Test doubles: a scripted decision oracle and its canned answers.
"""

import json
from typing import Any, Dict, List, Optional, Sequence


# Canned oracle answers, keyed by a phrase that only appears in one prompt template.
CANNED: Dict[str, Dict[str, Any]] = {
    "performing a network scan": {
        "strategy": "ping_sweep",
        "reasoning": "Small subnet, speed over stealth",
        "estimated_time": 5,
        "stealth_level": "low",
        "discovered_hosts": [
            {"ip": "192.168.1.10", "confidence": 0.9, "indicators": ["icmp reply"]},
            {"ip": "192.168.1.20", "confidence": 0.6, "indicators": ["arp"]},
        ],
        "next_steps": ["port_scan"],
    },
    "performing a port scan": {
        "technique": "SYN_stealth",
        "port_range": "top_1000",
        "reasoning": "Common ports first",
        "scan_results": [
            {"port": 22, "state": "open", "service": "ssh", "version": "OpenSSH 7.4", "confidence": 0.9},
            {"port": 80, "state": "open", "service": "http", "version": "Apache 2.4.49", "confidence": 0.9},
            {"port": 3306, "state": "filtered", "service": "mysql", "version": "", "confidence": 0.4},
        ],
        "security_assessment": {"risk_level": "high", "concerns": [], "recommendations": []},
    },
    "vulnerability assessment agent": {
        "analysis_summary": "Outdated Apache",
        "vulnerabilities": [
            {
                "cve_id": "CVE-2021-41773",
                "title": "Apache path traversal",
                "severity": "Critical",
                "cvss_score": 9.8,
                "affected_service": "http",
                "affected_port": 80,
                "exploit_available": True,
                "remediation": "Upgrade Apache",
            },
            {
                "cve_id": "CVE-2018-15473",
                "title": "OpenSSH user enumeration",
                "severity": "Medium",
                "cvss_score": 5.3,
                "affected_service": "ssh",
                "affected_port": 22,
            },
        ],
        "risk_summary": {"total_vulnerabilities": 2, "critical_count": 1, "overall_risk": "critical"},
    },
    "responsible for vulnerability remediation": {
        "remediation_strategy": "patch",
        "reasoning": "Vendor patch available",
        "impact_assessment": {"downtime_required": False},
        "remediation_steps": [
            {"step": 1, "action": "Upgrade Apache", "command": "apt-get install apache2", "expected_outcome": "2.4.51"},
            {"step": 2, "action": "Restart service", "command": "", "expected_outcome": "running"},
        ],
        "post_remediation": {"success_criteria": ["version >= 2.4.51"]},
        "status": "SUCCESS",
        "confidence": 0.9,
    },
    "hardening the configuration": {
        "hardening_steps": [{"control": "ssh", "action": "disable root login", "command": "sed ..."}],
        "reasoning": "Reduce attack surface",
        "confidence": 0.8,
    },
    "intrusion detection agent": {
        "monitoring_summary": "Port scan observed",
        "intrusions_detected": [
            {
                "signature_id": "ET SCAN",
                "type": "port_scan",
                "source_ip": "10.0.0.66",
                "destination_ip": "192.168.1.10",
                "severity": "High",
                "confidence": 0.85,
            }
        ],
        "traffic_analysis": {"anomalies": ["SYN burst"], "risk_assessment": "high"},
    },
    "reviewing system logs": {
        "summary": "Repeated failed logins",
        "findings": [{"event": "ssh brute force", "severity": "High", "evidence": "auth.log"}],
        "confidence": 0.7,
    },
    "red team strategy agent": {
        "situation_analysis": "Scan was detected",
        "adaptation_needed": True,
        "reasoning": "Switch to low-and-slow",
        "new_strategy": {
            "approach": "low_and_slow",
            "tactics": ["slow scan", "fragmented packets"],
            "techniques": ["T1046"],
            "stealth_level": "high",
        },
        "evasion_techniques": [{"technique": "timing", "description": "jitter"}],
        "alternative_targets": [{"target": "192.168.1.20", "rationale": "less monitored", "priority": 7}],
        "confidence": 0.75,
    },
    # purple team
    "performing IOC-based threat hunting": {
        "hypothesis": "Beaconing from a compromised web host",
        "indicators_checked": ["203.0.113.7"],
        "data_sources": ["zeek conn.log", "dns"],
        "findings": [
            {
                "type": "IOC_MATCH",
                "description": "Outbound traffic to known C2 address",
                "severity": "High",
                "confidence": 0.8,
                "evidence": ["10.0.0.10 -> 203.0.113.7:443"],
                "mitre_technique_id": "T1071.001",
            }
        ],
        "mitre_techniques": ["T1071.001"],
        "confidence": 0.7,
    },
    "performing TTP-based threat hunting": {
        "hypothesis": "Credential dumping followed by lateral movement",
        "techniques_analyzed": [
            {"technique_id": "T1003", "technique_name": "OS Credential Dumping", "tactic": "Credential Access"},
            {"technique_id": "T1021", "technique_name": "Remote Services", "tactic": "Lateral Movement"},
        ],
        "kill_chain_phases": ["credential_access", "lateral_movement"],
        "attack_chain_detected": True,
        "findings": [
            {"type": "LATERAL_MOVEMENT", "description": "SMB logons from web host", "severity": "Medium"}
        ],
        "confidence": 0.65,
    },
    "performing anomaly-based threat hunting": {
        "hypothesis": "Unusual egress volume",
        "baselines": [{"metric": "egress_mb", "normal_range": "10-50", "current_value": "32"}],
        "anomalies": [],
        "confidence": 0.6,
    },
    "validating detection capabilities": {
        "techniques_tested": [{"technique_id": "T1059", "detected": True}, {"technique_id": "T1547", "detected": False}],
        "detection_rate": 60,
        "detection_gaps": [{"technique_id": "T1547", "gap_reason": "no autorun rule", "risk_level": "High"}],
        "recommendations": [{"priority": 8, "recommendation": "Add registry run-key rule"}],
        "confidence": 0.8,
    },
    "initial triage of a security alert": {
        "classification": "TRUE_POSITIVE",
        "severity": "Critical",
        "summary": "Web shell on 10.0.0.10",
        "attack_vector": "path traversal",
        "affected_assets": ["10.0.0.10", "10.0.0.11"],
        "priority": 9,
        "escalation_required": True,
        "immediate_actions": ["isolate host", "reset credentials"],
        "recommended_actions": [{"action": "isolate host", "priority": 9, "rationale": "active C2"}],
        "confidence": 0.9,
    },
    "executing containment procedures": {
        "containment_strategy": "network isolation",
        "reasoning": "Stop lateral movement while preserving memory",
        "isolation_scope": {"systems": ["10.0.0.10"]},
        "containment_steps": [
            {"action": "Block egress", "target": "fw-01", "command": "iptables -A OUTPUT -d 203.0.113.7 -j DROP"},
            {"action": "Isolate host"},
        ],
        "containment_verified": True,
        "next_steps": ["eradicate_threat"],
        "confidence": 0.85,
    },
    "performing threat eradication": {
        "reasoning": "Remove web shell and cron persistence",
        "artifacts": [{"type": "web_shell", "location": "/var/www/html/x.php", "removed": True}],
        "persistence_mechanisms": [{"type": "cron", "location": "/etc/cron.d/upd", "cleared": True}],
        "eradication_steps": [{"action": "Delete web shell", "description": "rm x.php"}],
        "clean_scan": True,
        "residual_risk": "low",
        "confidence": 0.8,
    },
    "performing system recovery": {
        "reasoning": "Restore from known-good image",
        "recovery_strategy": "rebuild",
        "recovery_steps": [{"action": "Restore image"}, {"action": "Restart httpd"}],
        "services_to_restore": ["httpd"],
        "services_restored": ["httpd"],
        "recovery_validated": True,
        "lessons_learned": [{"finding": "Unpatched Apache", "recommendation": "Patch window", "priority": 8}],
        "confidence": 0.8,
    },
    "comprehensive security posture assessment": {
        "overall_score": 62,
        "detection_coverage": 55,
        "response_readiness": 70,
        "gaps": [
            {"area": "endpoint", "severity": "Critical", "description": "No EDR on web tier"},
            {"area": "logging", "severity": "Medium", "description": "Short retention"},
        ],
        "recommendations": [{"priority": 9, "recommendation": "Deploy EDR"}],
        "confidence": 0.75,
    },
    "evaluating security control effectiveness": {
        "controls_evaluated": [{"control_name": "WAF", "effectiveness": 45, "status": "degraded"}],
        "average_effectiveness": 45,
        "failing_controls": ["WAF"],
        "recommendations": [{"control": "WAF", "recommendation": "Enable traversal rules", "priority": 8}],
        "confidence": 0.7,
    },
    "mapping detection capabilities to MITRE": {
        "techniques_mapped": [{"technique_id": "T1059", "tactic": "execution", "coverage": "full"}],
        "coverage_by_tactic": {"execution": 80},
        "uncovered_techniques": [{"technique_id": "T1547", "risk": "High"}],
        "overall_coverage": 70,
        "priority_gaps": [{"technique_id": "T1547", "tactic": "persistence"}],
        "confidence": 0.7,
    },
    "generating a security scorecard": {
        "overall_grade": "B",
        "overall_score": 81,
        "categories": [{"name": "network", "score": 85, "grade": "B"}],
        "trend": "improving",
        "confidence": 0.8,
    },
    "correlating indicators of compromise": {
        "total_iocs": 4,
        "correlated_iocs": [
            {"type": "IP", "value": "203.0.113.7", "source": "misp", "correlation_score": 0.9, "related_campaigns": ["Op Dusk"]}
        ],
        "high_confidence_matches": 1,
        "campaigns_identified": ["Op Dusk"],
        "threat_attribution": "FIN-X",
        "confidence": 0.7,
    },
    "building a threat actor profile": {
        "primary_actor": "FIN-X",
        "aliases": ["Dusk Spider"],
        "motivation": "financial",
        "capability_level": "advanced",
        "predicted_actions": ["data exfiltration"],
        "confidence": 0.6,
    },
    "mapping an attack campaign": {
        "campaign_name": "Op Dusk",
        "kill_chain_phase": "exploitation",
        "mitre_mappings": [
            {"technique_id": "T1190", "tactic": "initial_access", "observed": True},
            {"technique_id": "T1071", "tactic": "command_and_control", "observed": True, "detection_status": "DETECTED"},
        ],
        "overall_risk": "high",
        "confidence": 0.7,
    },
    "enriching indicators with additional context": {
        "indicators_enriched": 2,
        "enriched_indicators": [{"original_value": "203.0.113.7", "type": "ip", "risk_score": 95}],
        "sources": ["misp", "opencti"],
        "risk_adjustments": 1,
        "risk_summary": {"overall_risk": "critical", "key_findings": ["active C2"]},
        "confidence": 0.8,
    },
}


class FakeOracle:
    """Decision oracle that answers from a keyword table, with optional overrides.

    ``responses`` entries are returned first, in order, as raw text.  Once
    they are used up the prompt is matched against ``table``.  Set
    ``error`` to make every call raise it.
    """

    def __init__(
        self,
        table: Optional[Dict[str, Any]] = None,
        responses: Optional[List[str]] = None,
        error: Optional[Exception] = None,
        fence: bool = False,
    ) -> None:
        self.table = dict(CANNED if table is None else table)
        self.responses = list(responses or [])
        self.error = error
        self.fence = fence
        self.prompts: List[str] = []
        self.files: List[Sequence[str]] = []

    async def submit(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        for key, answer in self.table.items():
            if key in prompt:
                text = json.dumps(answer)
                return f"```json\n{text}\n```" if self.fence else text
        raise AssertionError(f"FakeOracle has no answer for prompt: {prompt[:80]!r}")

    async def submit_with_files(self, prompt: str, files: Sequence[str]) -> str:
        self.files.append(list(files))
        return await self.submit(prompt)

