from cyberswarm.core.models import SecurityTool
from cyberswarm.tools import AGENT_TOOL_CATEGORIES, SecurityToolRegistry, default_registry


def test_default_catalog():
    reg = default_registry()
    assert "nmap" in reg
    assert reg.get_tool("nmap").category == "reconnaissance"
    assert reg.get_tool("does-not-exist") is None
    assert len(reg) == len(reg.all_tools())
    assert "network_monitoring" in reg.categories()


def test_tools_by_category_and_technique():
    reg = default_registry()
    recon = {t.id for t in reg.tools_by_category("reconnaissance")}
    assert {"nmap", "masscan"} <= recon
    assert all("T1046" in t.mitre_techniques for t in reg.tools_for_technique("T1046"))


def test_tools_for_agent_follows_category_map():
    reg = default_registry()
    for agent_type, categories in AGENT_TOOL_CATEGORIES.items():
        for tool in reg.tools_for_agent(agent_type):
            assert tool.category in categories
    assert reg.tools_for_agent("UnknownAgent") == []


def test_register_replaces_and_keeps_order():
    first = SecurityTool(id="a", name="A", description="", category="x")
    second = SecurityTool(id="b", name="B", description="", category="x")
    reg = SecurityToolRegistry([first, second])
    reg.register_tool(SecurityTool(id="a", name="A2", description="", category="y"))
    assert [t.id for t in reg.all_tools()] == ["a", "b"]
    assert reg.get_tool("a").name == "A2"
