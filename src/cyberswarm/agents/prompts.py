"""
agents.prompts — Prompt templates for the decision oracle.

Each template asks for a single JSON object; the handlers in the
sibling modules validate the keys they rely on.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional


def _dump(obj: Any) -> str:
    return json.dumps(obj if obj is not None else {}, indent=2, default=str)


# ── Discovery ─────────────────────────────────────────────────────────

_NETWORK_SCAN_PROMPT = """\
You are a cybersecurity reconnaissance agent performing a network scan.

Target: {target}

Your task is to:
1. Analyze the target network range
2. Determine the optimal scanning strategy (stealth vs. speed vs. comprehensiveness)
3. Identify live hosts
4. Provide reasoning for your approach

Output a JSON object with this structure:
{{
  "strategy": "string (e.g., 'ping_sweep', 'arp_scan', 'tcp_syn')",
  "reasoning": "string explaining your choice",
  "estimated_time": number (seconds),
  "stealth_level": "low" | "medium" | "high",
  "discovered_hosts": [
    {{"ip": "string", "confidence": number (0-1), "indicators": ["detection indicators"]}}
  ],
  "next_steps": ["recommended actions"]
}}
"""

_PORT_SCAN_PROMPT = """\
You are a cybersecurity reconnaissance agent performing a port scan.

Target: {target}
Context: {context}

Your task is to:
1. Determine the optimal port scanning technique
2. Select which ports to scan (common, all, specific range)
3. Identify open ports and running services
4. Assess the security posture based on findings

Output a JSON object with this structure:
{{
  "technique": "string (e.g., 'SYN_stealth', 'full_connect', 'UDP_scan')",
  "port_range": "string (e.g., 'top_1000', '1-65535')",
  "reasoning": "string explaining your choices",
  "scan_results": [
    {{"port": number, "state": "open" | "closed" | "filtered",
      "service": "string", "version": "string", "confidence": number (0-1)}}
  ],
  "security_assessment": {{
    "risk_level": "low" | "medium" | "high" | "critical",
    "concerns": ["security concerns"],
    "recommendations": ["recommendations"]
  }}
}}
"""


def network_scan_prompt(target: str) -> str:
    return _NETWORK_SCAN_PROMPT.format(target=target)


def port_scan_prompt(target: str, details: Optional[Dict[str, Any]] = None) -> str:
    return _PORT_SCAN_PROMPT.format(target=target, context=_dump(details))


# ── Vulnerability scanning ────────────────────────────────────────────

_VULN_SCAN_PROMPT = """\
You are a vulnerability assessment agent analyzing a target system.

Target: {target}
Scan focus: {focus}
Discovered Services: {services}

Your task is to:
1. Identify potential vulnerabilities based on discovered services
2. Cross-reference with known CVE databases
3. Assess severity and exploitability
4. Prioritize vulnerabilities for remediation

Output a JSON object with this structure:
{{
  "analysis_summary": "string",
  "vulnerabilities": [
    {{
      "cve_id": "string (e.g., 'CVE-2021-44228')",
      "title": "string",
      "description": "string",
      "severity": "Critical" | "High" | "Medium" | "Low",
      "cvss_score": number (0-10),
      "affected_service": "string",
      "affected_port": number,
      "exploit_available": boolean,
      "remediation": "string"
    }}
  ],
  "risk_summary": {{
    "total_vulnerabilities": number,
    "critical_count": number,
    "high_count": number,
    "overall_risk": "low" | "medium" | "high" | "critical",
    "immediate_actions": ["urgent actions"]
  }}
}}
"""


def vuln_scan_prompt(target: str, services: Any, focus: str = "network services") -> str:
    return _VULN_SCAN_PROMPT.format(target=target, focus=focus, services=_dump(services))


# ── Patch management ──────────────────────────────────────────────────

_PATCH_MANAGEMENT_PROMPT = """\
You are a defensive security agent responsible for vulnerability remediation.

Target: {target}
Vulnerability: {vulnerability}

Your task is to:
1. Determine the best remediation strategy
2. Assess potential impact of remediation
3. Provide a step-by-step remediation plan
4. Consider business continuity and minimal disruption

Output a JSON object with this structure:
{{
  "remediation_strategy": "patch" | "configuration_change" | "workaround" | "isolation",
  "reasoning": "string explaining the chosen strategy",
  "impact_assessment": {{
    "downtime_required": boolean,
    "estimated_duration": "string",
    "risk_of_disruption": "low" | "medium" | "high",
    "rollback_possible": boolean
  }},
  "remediation_steps": [
    {{"step": number, "action": "string", "command": "string",
      "expected_outcome": "string", "verification": "string"}}
  ],
  "post_remediation": {{
    "verification_steps": ["verification steps"],
    "monitoring_required": ["what to monitor"],
    "success_criteria": ["criteria for success"]
  }},
  "status": "SUCCESS" | "PARTIAL" | "FAILED",
  "confidence": number (0-1)
}}
"""

_CONFIG_HARDEN_PROMPT = """\
You are a defensive security agent hardening the configuration of {target}.

Context: {context}

Output a JSON object with this structure:
{{
  "hardening_steps": [
    {{"control": "string", "action": "string", "command": "string"}}
  ],
  "reasoning": "string",
  "confidence": number (0-1)
}}
"""


def patch_management_prompt(vulnerability: Dict[str, Any], target: str) -> str:
    return _PATCH_MANAGEMENT_PROMPT.format(target=target, vulnerability=_dump(vulnerability))


def config_harden_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _CONFIG_HARDEN_PROMPT.format(target=target, context=_dump(context))


# ── Network monitoring ────────────────────────────────────────────────

_NETWORK_MONITOR_PROMPT = """\
You are an intrusion detection agent monitoring network activity.

Target Network: {target}
Traffic Data: {traffic}

Your task is to:
1. Analyze network traffic patterns
2. Detect suspicious or malicious activity
3. Identify potential intrusion attempts
4. Classify the type and severity of threats

Output a JSON object with this structure:
{{
  "monitoring_summary": "string",
  "intrusions_detected": [
    {{
      "signature_id": "string",
      "type": "port_scan" | "brute_force" | "malware" | "data_exfiltration" | "dos",
      "source_ip": "string",
      "destination_ip": "string",
      "description": "string",
      "severity": "Critical" | "High" | "Medium" | "Low",
      "confidence": number (0-1),
      "attack_vector": "string",
      "recommended_response": "string"
    }}
  ],
  "traffic_analysis": {{
    "normal_patterns": ["observed normal patterns"],
    "anomalies": ["detected anomalies"],
    "risk_assessment": "low" | "medium" | "high" | "critical"
  }},
  "immediate_actions": ["recommended immediate actions"]
}}
"""

_LOG_ANALYSIS_PROMPT = """\
You are a security analyst reviewing system logs for {target}.

Context: {context}

Analyze the logs for security events and anomalies.  Output a JSON object:
{{
  "summary": "string",
  "findings": [
    {{"event": "string", "severity": "Critical" | "High" | "Medium" | "Low", "evidence": "string"}}
  ],
  "confidence": number (0-1)
}}
"""


def network_monitor_prompt(target: str, traffic: Optional[Dict[str, Any]] = None) -> str:
    return _NETWORK_MONITOR_PROMPT.format(target=target, traffic=_dump(traffic))


def log_analysis_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _LOG_ANALYSIS_PROMPT.format(target=target, context=_dump(context))


# ── Strategy adaptation ───────────────────────────────────────────────

_STRATEGY_ADAPTATION_PROMPT = """\
You are a red team strategy agent responsible for adapting attack tactics.

Current Context: {context}

Your task is to:
1. Analyze the current situation (detections, defenses, progress)
2. Determine if strategy adaptation is needed
3. Recommend new tactics to evade detection and achieve objectives
4. Balance stealth, speed and effectiveness

Output a JSON object with this structure:
{{
  "situation_analysis": "string",
  "adaptation_needed": boolean,
  "reasoning": "string",
  "new_strategy": {{
    "approach": "string",
    "tactics": ["specific tactics"],
    "techniques": ["techniques to use"],
    "priorities": ["prioritized objectives"],
    "stealth_level": "low" | "medium" | "high",
    "expected_effectiveness": number (0-1)
  }},
  "evasion_techniques": [
    {{"technique": "string", "description": "string", "effectiveness": "low" | "medium" | "high"}}
  ],
  "alternative_targets": [
    {{"target": "string", "rationale": "string", "priority": number (1-10)}}
  ],
  "confidence": number (0-1),
  "next_actions": ["immediate next steps"]
}}
"""


def strategy_adaptation_prompt(context: Dict[str, Any]) -> str:
    return _STRATEGY_ADAPTATION_PROMPT.format(context=_dump(context))


# ── Threat hunting ────────────────────────────────────────────────────

_THREAT_HUNT_IOC_PROMPT = """\
You are a purple team threat hunter performing IOC-based threat hunting.

Target Network: {target}
Context: {context}

Your task is to:
1. Formulate a threat hunting hypothesis based on available indicators
2. Identify relevant data sources to query
3. Search for indicators of compromise across the network
4. Map findings to the MITRE ATT&CK framework

Output a JSON object with this structure:
{{
  "hypothesis": "string",
  "indicators_checked": ["IOCs searched for"],
  "data_sources": ["data sources queried"],
  "findings": [
    {{
      "type": "IOC_MATCH" | "BEHAVIORAL_ANOMALY" | "TTP_DETECTED" | "LATERAL_MOVEMENT" | "PERSISTENCE",
      "description": "string",
      "severity": "Critical" | "High" | "Medium" | "Low",
      "confidence": number (0-1),
      "evidence": ["evidence items"],
      "mitre_technique_id": "string (e.g., T1059.001)"
    }}
  ],
  "mitre_techniques": ["technique IDs"],
  "confidence": number (0-1),
  "recommendations": ["next steps"]
}}
"""

_THREAT_HUNT_TTP_PROMPT = """\
You are a purple team threat hunter performing TTP-based threat hunting with MITRE ATT&CK.

Target Network: {target}
Context: {context}

Your task is to:
1. Identify relevant MITRE ATT&CK techniques to hunt for
2. Map observed activities to kill chain phases
3. Detect technique chaining and attack progressions

Output a JSON object with this structure:
{{
  "hypothesis": "string",
  "techniques_analyzed": [
    {{"technique_id": "string", "technique_name": "string", "tactic": "string",
      "indicators_found": boolean, "evidence": ["evidence"]}}
  ],
  "kill_chain_phases": ["observed phases"],
  "attack_chain_detected": boolean,
  "findings": [
    {{"type": "TTP_DETECTED" | "LATERAL_MOVEMENT" | "PERSISTENCE", "description": "string",
      "severity": "Critical" | "High" | "Medium" | "Low", "confidence": number (0-1),
      "evidence": ["evidence"], "mitre_technique_id": "string"}}
  ],
  "indicators": ["indicators discovered"],
  "data_sources": ["data sources used"],
  "confidence": number (0-1)
}}
"""

_THREAT_HUNT_ANOMALY_PROMPT = """\
You are a purple team threat hunter performing anomaly-based threat hunting.

Target Network: {target}
Context: {context}

Your task is to:
1. Establish behavioral baselines for network activity
2. Identify statistical anomalies and deviations
3. Classify anomalies as potential threats or benign activity

Output a JSON object with this structure:
{{
  "hypothesis": "string",
  "baselines": [{{"metric": "string", "normal_range": "string", "current_value": "string"}}],
  "anomalies": [
    {{"description": "string", "severity": "Critical" | "High" | "Medium" | "Low",
      "confidence": number (0-1), "evidence": ["evidence"], "deviation_score": number (0-10),
      "mitre_technique_id": "string"}}
  ],
  "data_sources": ["data sources analyzed"],
  "mitre_techniques": ["technique IDs"],
  "confidence": number (0-1)
}}
"""

_THREAT_HUNT_VALIDATE_PROMPT = """\
You are a purple team analyst validating detection capabilities against known attack techniques.

Target Network: {target}
Context: {context}

Your task is to:
1. Test detection rules against simulated attack patterns
2. Measure detection rate and coverage
3. Identify blind spots and recommend improvements

Output a JSON object with this structure:
{{
  "techniques_tested": [
    {{"technique_id": "string", "technique_name": "string", "detected": boolean,
      "detection_method": "string", "detection_latency": "string"}}
  ],
  "detection_rate": number (0-100),
  "detection_gaps": [
    {{"technique_id": "string", "technique_name": "string", "gap_reason": "string",
      "risk_level": "Critical" | "High" | "Medium" | "Low", "remediation": "string"}}
  ],
  "recommendations": [{{"priority": number (1-10), "recommendation": "string"}}],
  "confidence": number (0-1)
}}
"""


def threat_hunt_ioc_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _THREAT_HUNT_IOC_PROMPT.format(target=target, context=_dump(context))


def threat_hunt_ttp_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _THREAT_HUNT_TTP_PROMPT.format(target=target, context=_dump(context))


def threat_hunt_anomaly_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _THREAT_HUNT_ANOMALY_PROMPT.format(target=target, context=_dump(context))


def threat_hunt_validate_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _THREAT_HUNT_VALIDATE_PROMPT.format(target=target, context=_dump(context))


# ── Incident response ─────────────────────────────────────────────────

_INCIDENT_TRIAGE_PROMPT = """\
You are an incident response analyst performing initial triage of a security alert.

Target: {target}
Alert Data: {context}

Your task is to:
1. Classify the incident (true positive, false positive, benign positive)
2. Assess severity and determine the scope of affected assets
3. Recommend immediate response actions

Output a JSON object with this structure:
{{
  "classification": "TRUE_POSITIVE" | "FALSE_POSITIVE" | "BENIGN_POSITIVE",
  "severity": "Critical" | "High" | "Medium" | "Low",
  "summary": "string",
  "attack_vector": "string",
  "affected_assets": ["affected IPs/systems"],
  "priority": number (1-10),
  "escalation_required": boolean,
  "immediate_actions": ["actions"],
  "recommended_actions": [{{"action": "string", "priority": number (1-10), "rationale": "string"}}],
  "ioc_indicators": ["IOCs found"],
  "confidence": number (0-1)
}}
"""

_INCIDENT_CONTAIN_PROMPT = """\
You are an incident response analyst executing containment procedures.

Target: {target}
Incident Data: {context}

Your task is to:
1. Develop a containment strategy (isolation, blocking, throttling)
2. Define the isolation scope to prevent lateral movement
3. Verify containment effectiveness while preserving evidence

Output a JSON object with this structure:
{{
  "containment_strategy": "string",
  "reasoning": "string",
  "isolation_scope": {{"network_segments": ["segments"], "systems": ["systems"], "accounts": ["accounts"]}},
  "containment_steps": [
    {{"action": "string", "target": "string", "command": "string", "expected_outcome": "string",
      "evidence_preserved": boolean}}
  ],
  "containment_verified": boolean,
  "next_steps": ["follow-up actions"],
  "confidence": number (0-1)
}}
"""

_INCIDENT_ERADICATE_PROMPT = """\
You are an incident response analyst performing threat eradication.

Target: {target}
Incident Data: {context}

Your task is to:
1. Identify all threat artifacts and persistence mechanisms
2. Remove all threat components
3. Verify a clean system state

Output a JSON object with this structure:
{{
  "reasoning": "string",
  "artifacts": [{{"type": "string", "location": "string", "description": "string", "removed": boolean}}],
  "persistence_mechanisms": [{{"type": "string", "location": "string", "cleared": boolean}}],
  "eradication_steps": [
    {{"action": "string", "description": "string", "target": "string", "verification": "string"}}
  ],
  "clean_scan": boolean,
  "residual_risk": "low" | "medium" | "high",
  "confidence": number (0-1)
}}
"""

_INCIDENT_RECOVER_PROMPT = """\
You are an incident response analyst performing system recovery after threat eradication.

Target: {target}
Incident Data: {context}

Your task is to:
1. Plan system restoration and service recovery
2. Validate system integrity before restoring services
3. Document lessons learned

Output a JSON object with this structure:
{{
  "reasoning": "string",
  "recovery_strategy": "string",
  "recovery_steps": [
    {{"action": "string", "description": "string", "target": "string", "verification": "string"}}
  ],
  "services_to_restore": ["services"],
  "services_restored": ["services restored"],
  "validation_steps": ["validation steps"],
  "recovery_validated": boolean,
  "hardening_applied": [{{"measure": "string", "target": "string", "status": "applied" | "pending"}}],
  "lessons_learned": [{{"finding": "string", "recommendation": "string", "priority": number (1-10)}}],
  "confidence": number (0-1)
}}
"""


def incident_triage_prompt(target: str, alert: Optional[Dict[str, Any]] = None) -> str:
    return _INCIDENT_TRIAGE_PROMPT.format(target=target, context=_dump(alert))


def incident_contain_prompt(target: str, incident: Optional[Dict[str, Any]] = None) -> str:
    return _INCIDENT_CONTAIN_PROMPT.format(target=target, context=_dump(incident))


def incident_eradicate_prompt(target: str, incident: Optional[Dict[str, Any]] = None) -> str:
    return _INCIDENT_ERADICATE_PROMPT.format(target=target, context=_dump(incident))


def incident_recover_prompt(target: str, incident: Optional[Dict[str, Any]] = None) -> str:
    return _INCIDENT_RECOVER_PROMPT.format(target=target, context=_dump(incident))


# ── Posture assessment ────────────────────────────────────────────────

_TACTIC_SCORES = """\
{{
    "initial_access": number (0-100), "execution": number (0-100),
    "persistence": number (0-100), "privilege_escalation": number (0-100),
    "defense_evasion": number (0-100), "credential_access": number (0-100),
    "discovery": number (0-100), "lateral_movement": number (0-100),
    "collection": number (0-100), "exfiltration": number (0-100),
    "command_and_control": number (0-100), "impact": number (0-100)
  }}"""

_POSTURE_ASSESSMENT_PROMPT = """\
You are a purple team security analyst performing a comprehensive security posture assessment.

Target Network: {target}
Context: {context}

Your task is to:
1. Evaluate overall security posture across all domains
2. Score detection, prevention and response capabilities
3. Identify gaps in security coverage mapped to MITRE ATT&CK

Output a JSON object with this structure:
{{
  "overall_score": number (0-100),
  "detection_coverage": number (0-100),
  "response_readiness": number (0-100),
  "category_scores": {{"network_security": number, "endpoint_security": number,
                      "identity_access": number, "incident_response": number}},
  "gaps": [
    {{"area": "string", "severity": "Critical" | "High" | "Medium" | "Low", "description": "string",
      "mitre_techniques_uncovered": ["technique IDs"], "remediation": "string"}}
  ],
  "recommendations": [{{"priority": number (1-10), "category": "string", "recommendation": "string"}}],
  "mitre_coverage": """ + _TACTIC_SCORES + """,
  "confidence": number (0-1)
}}
"""

_POSTURE_CONTROLS_PROMPT = """\
You are a purple team analyst evaluating security control effectiveness.

Target: {target}
Context: {context}

Evaluate deployed security controls for effectiveness. Output a JSON object with:
{{
  "controls_evaluated": [
    {{"control_name": "string", "category": "string", "effectiveness": number (0-100),
      "status": "effective" | "degraded" | "failing", "findings": ["issues"]}}
  ],
  "average_effectiveness": number (0-100),
  "failing_controls": ["control names"],
  "recommendations": [{{"control": "string", "recommendation": "string", "priority": number (1-10)}}],
  "confidence": number (0-1)
}}
"""

_POSTURE_MITRE_PROMPT = """\
You are a purple team analyst mapping detection capabilities to MITRE ATT&CK coverage.

Target: {target}
Context: {context}

Map detection and prevention capabilities to MITRE ATT&CK. Output a JSON object with:
{{
  "techniques_mapped": [
    {{"technique_id": "string", "technique_name": "string", "tactic": "string",
      "coverage": "full" | "partial" | "none", "detection_method": "string"}}
  ],
  "coverage_by_tactic": """ + _TACTIC_SCORES + """,
  "uncovered_techniques": [{{"technique_id": "string", "technique_name": "string", "risk": "string"}}],
  "overall_coverage": number (0-100),
  "priority_gaps": [{{"technique_id": "string", "tactic": "string", "recommendation": "string"}}],
  "recommendations": ["improvements"],
  "confidence": number (0-1)
}}
"""

_POSTURE_SCORECARD_PROMPT = """\
You are a purple team analyst generating a security scorecard.

Target: {target}
Context: {context}

Generate a comprehensive security scorecard. Output a JSON object with:
{{
  "overall_grade": "A" | "B" | "C" | "D" | "F",
  "overall_score": number (0-100),
  "categories": [
    {{"name": "string", "score": number (0-100), "grade": "string", "key_findings": ["findings"],
      "trend": "improving" | "stable" | "declining"}}
  ],
  "trend": "improving" | "stable" | "declining",
  "executive_summary": "string",
  "top_risks": ["risks"],
  "confidence": number (0-1)
}}
"""


def posture_assessment_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _POSTURE_ASSESSMENT_PROMPT.format(target=target, context=_dump(context))


def posture_controls_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _POSTURE_CONTROLS_PROMPT.format(target=target, context=_dump(context))


def posture_mitre_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _POSTURE_MITRE_PROMPT.format(target=target, context=_dump(context))


def posture_scorecard_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _POSTURE_SCORECARD_PROMPT.format(target=target, context=_dump(context))


# ── Threat intelligence ───────────────────────────────────────────────

_INTEL_CORRELATE_PROMPT = """\
You are a threat intelligence analyst correlating indicators of compromise.

Target Network: {target}
Context: {context}

Correlate IOCs across multiple intelligence sources. Output a JSON object with:
{{
  "total_iocs": number,
  "correlated_iocs": [
    {{"type": "IP" | "DOMAIN" | "HASH" | "URL" | "EMAIL" | "FILE_PATH", "value": "string",
      "source": "string", "correlation_score": number (0-1), "related_campaigns": ["campaigns"]}}
  ],
  "high_confidence_matches": number,
  "campaigns_identified": ["campaign names"],
  "threat_attribution": "string",
  "attribution_confidence": number (0-100),
  "risk_assessment": "string",
  "recommendations": ["actions"],
  "confidence": number (0-1)
}}
"""

_INTEL_PROFILE_PROMPT = """\
You are a threat intelligence analyst building a threat actor profile.

Context: {context}

Build a comprehensive threat actor profile. Output a JSON object with:
{{
  "primary_actor": "string",
  "aliases": ["aliases"],
  "motivation": "string (financial, espionage, hacktivism, destruction)",
  "capability_level": "basic" | "intermediate" | "advanced" | "nation_state",
  "associated_ttps": [{{"technique_id": "string", "technique_name": "string",
                       "frequency": "common" | "occasional" | "rare"}}],
  "predicted_actions": ["likely next actions"],
  "defensive_priorities": ["priorities"],
  "historical_campaigns": [{{"name": "string", "date": "string", "outcome": "string"}}],
  "confidence": number (0-1)
}}
"""

_INTEL_CAMPAIGN_PROMPT = """\
You are a threat intelligence analyst mapping an attack campaign.

Target Network: {target}
Context: {context}

Map observed activities to attack campaigns. Output a JSON object with:
{{
  "campaign_name": "string",
  "kill_chain_phase": "string",
  "mitre_mappings": [
    {{"technique_id": "string", "technique_name": "string", "tactic": "string", "observed": boolean,
      "detection_status": "DETECTED" | "MISSED" | "PARTIAL"}}
  ],
  "attack_timeline": [{{"phase": "string", "timestamp": "string", "activity": "string"}}],
  "overall_risk": "low" | "medium" | "high" | "critical",
  "countermeasures": [{{"technique_id": "string", "countermeasure": "string", "priority": number}}],
  "confidence": number (0-1)
}}
"""

_INTEL_ENRICH_PROMPT = """\
You are a threat intelligence analyst enriching indicators with additional context.

Context: {context}

Enrich the provided indicators with threat intelligence. Output a JSON object with:
{{
  "indicators_enriched": number,
  "enriched_indicators": [
    {{"original_value": "string", "type": "string", "risk_score": number (0-100), "context": "string",
      "mitre_techniques": ["technique IDs"], "tags": ["tags"]}}
  ],
  "sources": ["intelligence sources"],
  "new_context_items": number,
  "risk_adjustments": number,
  "mitre_mappings": [{{"technique_id": "string", "technique_name": "string", "relevance": "string"}}],
  "risk_summary": {{"overall_risk": "low" | "medium" | "high" | "critical", "key_findings": ["findings"]}},
  "actionable_intelligence": ["actionable items"],
  "confidence": number (0-1)
}}
"""


def intel_correlate_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _INTEL_CORRELATE_PROMPT.format(target=target, context=_dump(context))


def intel_profile_prompt(context: Optional[Dict[str, Any]] = None) -> str:
    return _INTEL_PROFILE_PROMPT.format(context=_dump(context))


def intel_campaign_prompt(target: str, context: Optional[Dict[str, Any]] = None) -> str:
    return _INTEL_CAMPAIGN_PROMPT.format(target=target, context=_dump(context))


def intel_enrich_prompt(context: Optional[Dict[str, Any]] = None) -> str:
    return _INTEL_ENRICH_PROMPT.format(context=_dump(context))
