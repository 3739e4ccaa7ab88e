import importlib
import json

import pytest
from typer.testing import CliRunner

from cyberswarm.core.reporting import save_simulation_results

from .fakes import FakeOracle

app_mod = importlib.import_module("cyberswarm.cli.app")

runner = CliRunner()
ENV = {"COLUMNS": "200", "CYBERSWARM_DELAY_SCALE": "0", "GEMINI_API_KEY": "test-key"}


@pytest.fixture(autouse=True)
def fake_oracle(monkeypatch):
    monkeypatch.setattr(app_mod, "_build_oracle", lambda cfg: FakeOracle())


def test_help_lists_commands():
    result = runner.invoke(app_mod.app, ["--help"], env=ENV)
    assert result.exit_code == 0
    for command in ("start", "report", "scenarios", "validate", "tools", "agents"):
        assert command in result.output


def test_start_writes_results_and_report(tmp_path):
    out = tmp_path / "out"
    result = runner.invoke(
        app_mod.app,
        ["start", "--target", "10.0.0.0/24", "--output", str(out), "--quiet", "--delay-scale", "0"],
        env=ENV,
    )
    assert result.exit_code == 0, result.output
    assert "Simulation Statistics" in result.output

    exports = list((out / "exports").glob("simulation-*.json"))
    reports = list((out / "reports").glob("report-*.md"))
    assert len(exports) == 1
    assert len(reports) == 1
    envelope = json.loads(exports[0].read_text())
    assert envelope["metadata"]["target_network"] == "10.0.0.0/24"
    assert envelope["data"]["summary"]["total_events"] == 4


def test_start_with_scenario(tmp_path, monkeypatch):
    scenarios = tmp_path / "config" / "scenarios"
    scenarios.mkdir(parents=True)
    (scenarios / "drill.yaml").write_text(
        "name: Drill\n"
        "description: quick drill\n"
        "target: 172.16.0.0/24\n"
        "tasks:\n"
        "  - agent_type: NetworkMonitorAgent\n"
        "    task_name: analyze_logs\n"
        "    priority: 3\n"
    )
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app_mod.app, ["start", "-s", "drill", "-o", str(tmp_path / "out")], env=ENV)
    assert result.exit_code == 0, result.output
    assert "Drill" in result.output
    assert "DEFENSE_ANALYSIS_COMPLETE" in result.output

    envelope = json.loads(next((tmp_path / "out" / "exports").glob("*.json")).read_text())
    assert envelope["metadata"]["target_network"] == "172.16.0.0/24"
    assert envelope["metadata"]["scenario"] == "drill"


def test_start_unknown_scenario(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app_mod.app, ["start", "-s", "missing"], env=ENV)
    assert result.exit_code == 1
    assert "Scenario not found" in result.output


def test_report_markdown_and_json(tmp_path):
    path = save_simulation_results([], [], {"target_network": "10.0.0.0/24"}, tmp_path / "r.json")

    md = runner.invoke(app_mod.app, ["report", str(path)], env=ENV)
    assert md.exit_code == 0
    assert "# CyberSwarm Simulation Report" in md.output

    out = tmp_path / "summary.json"
    js = runner.invoke(app_mod.app, ["report", str(path), "--format", "json", "--output", str(out)], env=ENV)
    assert js.exit_code == 0
    assert json.loads(out.read_text())["total_events"] == 0

    bad = runner.invoke(app_mod.app, ["report", str(path), "--format", "pdf"], env=ENV)
    assert bad.exit_code == 1


def test_report_missing_file(tmp_path):
    result = runner.invoke(app_mod.app, ["report", str(tmp_path / "nope.json")], env=ENV)
    assert result.exit_code == 1


def test_scenarios_listing(tmp_path):
    (tmp_path / "alpha.yaml").write_text("name: Alpha\ndescription: first one\n")
    result = runner.invoke(app_mod.app, ["scenarios", "--dir", str(tmp_path)], env=ENV)
    assert result.exit_code == 0
    assert "alpha" in result.output
    assert "first one" in result.output

    empty = runner.invoke(app_mod.app, ["scenarios", "--dir", str(tmp_path / "none")], env=ENV)
    assert "No scenarios found" in empty.output


def test_validate(tmp_path):
    ok = runner.invoke(app_mod.app, ["validate"], env=ENV)
    assert ok.exit_code == 0
    assert "Configuration is valid" in ok.output

    bad_cfg = tmp_path / "bad.yaml"
    bad_cfg.write_text("simulation:\n  assignmentPolicy: random\n")
    bad = runner.invoke(app_mod.app, ["validate", "-c", str(bad_cfg)], env=ENV)
    assert bad.exit_code == 1
    assert "assignment_policy" in bad.output


def test_tools_and_agents():
    tools = runner.invoke(app_mod.app, ["tools", "--agent-type", "DiscoveryAgent"], env=ENV)
    assert tools.exit_code == 0
    assert "nmap" in tools.output
    assert "suricata" not in tools.output

    agents = runner.invoke(app_mod.app, ["agents"], env=ENV)
    assert agents.exit_code == 0
    assert "discovery-01" in agents.output
    assert "threat-hunter-01" in agents.output
    assert "strategy-adapt-01" in agents.output
