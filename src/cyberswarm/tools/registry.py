"""
tools.registry — Read-only catalog of named security capabilities.

Agents consult the registry for descriptive and audit context only;
nothing in here invokes a real tool.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from ..core.log import get_logger
from ..core.models import SecurityTool

logger = get_logger("tools")

# Which tool categories each agent type draws from.
AGENT_TOOL_CATEGORIES: Dict[str, List[str]] = {
    "DiscoveryAgent": ["reconnaissance"],
    "VulnerabilityScannerAgent": ["vulnerability_scanning"],
    "PatchManagementAgent": ["incident_response", "defense_evasion"],
    "NetworkMonitorAgent": ["network_monitoring", "detection_engineering"],
    "StrategyAdaptationAgent": [
        "exploitation",
        "post_exploitation",
        "defense_evasion",
        "lateral_movement",
    ],
    "ThreatHunterAgent": [
        "threat_hunting",
        "forensics",
        "detection_engineering",
        "network_monitoring",
    ],
    "IncidentResponseAgent": ["incident_response", "forensics", "network_monitoring"],
    "PostureAssessmentAgent": [
        "vulnerability_scanning",
        "detection_engineering",
        "network_monitoring",
    ],
    "ThreatIntelligenceAgent": ["threat_intelligence", "threat_hunting"],
}


class SecurityToolRegistry:
    """
    Lookup table of ``SecurityTool`` entries keyed by tool id.

    Registration order is preserved so listings are stable.
    """

    def __init__(self, tools: Optional[Iterable[SecurityTool]] = None) -> None:
        self._tools: Dict[str, SecurityTool] = {}
        for tool in tools or ():
            self.register_tool(tool)

    def register_tool(self, tool: SecurityTool) -> None:
        if tool.id in self._tools:
            logger.debug("Replacing tool definition %s", tool.id)
        self._tools[tool.id] = tool

    def get_tool(self, tool_id: str) -> Optional[SecurityTool]:
        return self._tools.get(tool_id)

    def tools_by_category(self, category: str) -> List[SecurityTool]:
        return [t for t in self._tools.values() if t.category == category]

    def tools_for_technique(self, technique_id: str) -> List[SecurityTool]:
        """Tools whose MITRE ATT&CK coverage includes *technique_id*."""
        return [t for t in self._tools.values() if technique_id in t.mitre_techniques]

    def tools_for_agent(self, agent_type: str) -> List[SecurityTool]:
        categories = AGENT_TOOL_CATEGORIES.get(agent_type, [])
        return [t for t in self._tools.values() if t.category in categories]

    def all_tools(self) -> List[SecurityTool]:
        return list(self._tools.values())

    def categories(self) -> List[str]:
        return sorted({t.category for t in self._tools.values()})

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools


# ── Default catalog ───────────────────────────────────────────────────


def _tool(
    tool_id: str,
    name: str,
    category: str,
    description: str,
    *,
    techniques: Iterable[str] = (),
    capabilities: Iterable[str] = (),
    subcategories: Iterable[str] = (),
    platforms: Iterable[str] = ("linux", "cross_platform"),
    options: Optional[Dict[str, Any]] = None,
    output_format: str = "text",
    risk: str = "low",
    privileged: bool = False,
) -> SecurityTool:
    return SecurityTool(
        id=tool_id,
        name=name,
        description=description,
        category=category,
        subcategories=list(subcategories),
        capabilities=list(capabilities),
        mitre_techniques=list(techniques),
        platforms=list(platforms),
        default_options=options or {},
        output_format=output_format,
        risk_level=risk,
        requires_privilege=privileged,
    )


_DEFAULT_TOOLS: List[SecurityTool] = [
    # reconnaissance
    _tool(
        "nmap", "Nmap", "reconnaissance",
        "Network exploration and security auditing: host discovery, service and OS fingerprinting.",
        techniques=("T1046", "T1595", "T1590", "T1018"),
        capabilities=("tcp_syn_scan", "udp_scan", "ping_sweep", "service_version_detection", "os_detection"),
        subcategories=("port_scanning", "host_discovery", "service_detection"),
        platforms=("linux", "windows", "macos", "cross_platform"),
        options={"scanType": "-sS", "timing": "-T3", "ports": "--top-ports 1000"},
        output_format="xml", risk="medium", privileged=True,
    ),
    _tool(
        "masscan", "Masscan", "reconnaissance",
        "High-speed asynchronous TCP port scanner.",
        techniques=("T1046", "T1595"),
        capabilities=("high_speed_scan", "banner_grabbing", "syn_scan"),
        options={"rate": "--rate 1000", "ports": "-p1-65535"},
        output_format="json", risk="high", privileged=True,
    ),
    _tool(
        "amass", "OWASP Amass", "reconnaissance",
        "In-depth attack surface mapping and external asset discovery.",
        techniques=("T1590", "T1593", "T1596"),
        capabilities=("subdomain_enumeration", "dns_enumeration", "asn_discovery"),
        output_format="json",
    ),
    # vulnerability scanning
    _tool(
        "nessus", "Nessus", "vulnerability_scanning",
        "Vulnerability scanner for network, web application and compliance auditing.",
        capabilities=("vulnerability_scan", "compliance_audit"),
        options={"policy": "basic_network"},
    ),
    _tool(
        "openvas", "OpenVAS", "vulnerability_scanning",
        "Full-featured vulnerability scanner with a continuously updated feed of network tests.",
        techniques=("T1595.002",),
        capabilities=("authenticated_scan", "cve_detection", "compliance_checks"),
        output_format="xml", risk="medium",
    ),
    _tool(
        "nuclei", "Nuclei", "vulnerability_scanning",
        "Template-based scanner for known CVEs and misconfigurations.",
        techniques=("T1595.002", "T1190"),
        capabilities=("template_scanning", "cve_detection", "misconfiguration_detection"),
        options={"severity": "-severity critical,high,medium"},
        output_format="json", risk="medium",
    ),
    _tool(
        "nikto", "Nikto", "vulnerability_scanning",
        "Web server scanner for dangerous files, outdated software and server misconfiguration.",
        techniques=("T1595.002", "T1190"),
        capabilities=("web_server_scan", "outdated_software_detection"),
        risk="medium",
    ),
    _tool(
        "lynis", "Lynis", "vulnerability_scanning",
        "Host-based security auditing and configuration compliance checks.",
        capabilities=("config_audit", "hardening_index", "compliance_checks"),
        platforms=("linux", "macos"),
        privileged=True,
    ),
    # exploitation
    _tool(
        "metasploit", "Metasploit Framework", "exploitation",
        "Exploit development and delivery framework with a large module library.",
        techniques=("T1190", "T1203", "T1059", "T1210"),
        capabilities=("exploit_delivery", "payload_generation", "session_management"),
        platforms=("linux", "windows", "macos", "cross_platform"),
        risk="critical", privileged=True,
    ),
    _tool(
        "sqlmap", "sqlmap", "exploitation",
        "Automated SQL injection detection and exploitation.",
        techniques=("T1190", "T1059"),
        capabilities=("sqli_detection", "database_enumeration", "data_extraction"),
        risk="high",
    ),
    # post exploitation / lateral movement
    _tool(
        "bloodhound", "BloodHound", "post_exploitation",
        "Active Directory attack path mapping via graph analysis.",
        techniques=("T1087", "T1069", "T1482", "T1615"),
        capabilities=("ad_enumeration", "attack_path_analysis"),
        platforms=("windows", "linux", "cross_platform"),
        risk="high",
    ),
    _tool(
        "impacket", "Impacket", "lateral_movement",
        "Network protocol toolkit used for remote execution and credential relay.",
        techniques=("T1021.002", "T1047", "T1557"),
        capabilities=("smb_exec", "wmi_exec", "ntlm_relay"),
        risk="critical", privileged=True,
    ),
    _tool(
        "sliver", "Sliver", "defense_evasion",
        "Adversary emulation framework with obfuscated implants.",
        techniques=("T1027", "T1071", "T1573"),
        capabilities=("implant_generation", "encrypted_c2", "process_injection"),
        risk="critical", privileged=True,
    ),
    # network monitoring / detection
    _tool(
        "suricata", "Suricata", "network_monitoring",
        "Network IDS/IPS with signature and protocol anomaly detection.",
        capabilities=("signature_detection", "protocol_analysis", "inline_prevention"),
        output_format="json", privileged=True,
    ),
    _tool(
        "zeek", "Zeek", "network_monitoring",
        "Network security monitor producing rich connection and protocol logs.",
        capabilities=("connection_logging", "protocol_analysis", "scripted_detection"),
        platforms=("linux", "macos", "cross_platform"),
        privileged=True,
    ),
    _tool(
        "wireshark", "Wireshark", "network_monitoring",
        "Packet capture and protocol analyser.",
        techniques=("T1040",),
        capabilities=("packet_capture", "protocol_dissection"),
        platforms=("linux", "windows", "macos", "cross_platform"),
        privileged=True,
    ),
    _tool(
        "sigma", "Sigma", "detection_engineering",
        "Generic signature format for SIEM detection rules.",
        capabilities=("rule_conversion", "log_detection"),
        platforms=("cross_platform",),
    ),
    _tool(
        "atomic-red-team", "Atomic Red Team", "detection_engineering",
        "Library of small ATT&CK-mapped tests used to validate detections.",
        techniques=("T1059", "T1003", "T1547"),
        capabilities=("detection_validation", "technique_emulation"),
        risk="high", privileged=True,
    ),
    _tool(
        "caldera", "MITRE Caldera", "detection_engineering",
        "Automated adversary emulation mapped to MITRE ATT&CK.",
        capabilities=("adversary_emulation", "detection_validation"),
        risk="medium",
    ),
    # incident response / remediation
    _tool(
        "ansible", "Ansible", "incident_response",
        "Agentless automation used to roll out patches and configuration baselines.",
        capabilities=("patch_deployment", "config_management", "rollback"),
        options={"become": True, "check": False},
        risk="medium", privileged=True,
    ),
    _tool(
        "osquery", "osquery", "incident_response",
        "SQL-powered endpoint instrumentation for state verification.",
        capabilities=("endpoint_query", "state_verification", "fim"),
        platforms=("linux", "windows", "macos", "cross_platform"),
        privileged=True,
    ),
    _tool(
        "thehive", "TheHive", "incident_response",
        "Security incident response case management platform.",
        capabilities=("case_management", "alert_triage"),
    ),
    _tool(
        "velociraptor", "Velociraptor", "forensics",
        "Endpoint visibility and digital forensics collection.",
        capabilities=("artifact_collection", "live_response"),
        platforms=("linux", "windows", "macos", "cross_platform"),
        privileged=True,
    ),
    _tool(
        "cortex", "Cortex", "incident_response",
        "Observable analysis and active response engine for IOC enrichment.",
        capabilities=("ioc_enrichment", "active_response"),
    ),
    _tool(
        "grr", "GRR Rapid Response", "incident_response",
        "Remote live forensics and incident response at scale.",
        capabilities=("endpoint_isolation", "remote_forensics"),
        platforms=("linux", "windows", "macos", "cross_platform"),
        risk="medium", privileged=True,
    ),
    # forensics
    _tool(
        "volatility", "Volatility 3", "forensics",
        "Memory forensics framework for analyzing RAM dumps.",
        techniques=("T1055", "T1003"),
        capabilities=("memory_analysis", "malware_artifacts"),
    ),
    _tool(
        "autopsy", "Autopsy / Sleuth Kit", "forensics",
        "Disk image analysis, file recovery and timeline reconstruction.",
        capabilities=("disk_forensics", "timeline_analysis", "integrity_validation"),
    ),
    # threat hunting
    _tool(
        "yara", "YARA", "threat_hunting",
        "Rule-based pattern matching for malware identification.",
        techniques=("T1027", "T1204"),
        capabilities=("signature_matching", "malware_classification"),
    ),
    _tool(
        "elastic-siem", "Elastic Security (SIEM)", "threat_hunting",
        "SIEM with detection rules, timeline investigation and case management.",
        capabilities=("log_search", "baselining", "timeline_investigation"),
        output_format="json",
    ),
    # threat intelligence
    _tool(
        "misp", "MISP", "threat_intelligence",
        "Threat intelligence sharing platform for cybersecurity indicators.",
        capabilities=("ioc_sharing", "correlation"),
        output_format="json",
    ),
    _tool(
        "opencti", "OpenCTI", "threat_intelligence",
        "Cyber threat intelligence platform built on STIX 2.1.",
        capabilities=("indicator_management", "relationship_mapping", "mitre_integration"),
        output_format="json",
    ),
]


def default_registry() -> SecurityToolRegistry:
    """Registry pre-populated with the built-in tool catalog."""
    registry = SecurityToolRegistry(_DEFAULT_TOOLS)
    logger.debug("Security tool registry initialised with %d tools", len(registry))
    return registry
