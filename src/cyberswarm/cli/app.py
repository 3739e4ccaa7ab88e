"""
cli.app — Main Typer application.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console

from ..core.config import Config, list_scenarios, load_config, load_scenario, validate_config
from ..core.log import setup_logging
from ..core.oracle import DecisionOracle, LiteLLMOracle
from ..core.reporting import (
    generate_markdown_report,
    load_simulation_results,
    save_markdown_report,
    save_simulation_results,
)
from .formatting import (
    agents_table,
    event_line,
    events_table,
    stats_table,
    tasks_table,
    thought_line,
    tools_table,
)

app = typer.Typer(
    name="cyberswarm",
    help="Multi-agent red/blue/purple cybersecurity simulation driven by an LLM decision oracle.",
    no_args_is_help=True,
)
console = Console()


# ── Shared helpers ────────────────────────────────────────────────────


def _build_config(config_path: Optional[str] = None, **cli_overrides: object) -> Config:
    """Build a ``Config`` from .env, an optional file and CLI overrides."""
    return load_config(config_path, **{k: v for k, v in cli_overrides.items() if v is not None})


def _build_oracle(cfg: Config) -> DecisionOracle:
    return LiteLLMOracle(cfg)


def _scenario_tasks(scenario: Dict[str, Any]) -> List[Dict[str, Any]]:
    tasks = []
    for entry in scenario.get("tasks") or []:
        if not isinstance(entry, dict) or "agent_type" not in entry or "task_name" not in entry:
            raise typer.BadParameter(f"Invalid scenario task entry: {entry!r}")
        tasks.append(
            {
                "agent_type": entry["agent_type"],
                "task_name": entry["task_name"],
                "target": entry.get("target"),
                "details": entry.get("details"),
                "priority": int(entry.get("priority", 5)),
            }
        )
    return tasks


# ═════════════════════════════════════════════════════════════════════
#  Simulation
# ═════════════════════════════════════════════════════════════════════


@app.command()
def start(
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Target network (CIDR)"),
    scenario: Optional[str] = typer.Option(None, "--scenario", "-s", help="Scenario name under the scenarios directory"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Config file (.yaml / .json)"),
    duration: Optional[float] = typer.Option(None, "--duration", "-d", help="Time limit in seconds (0 = no limit)"),
    output_dir: Optional[str] = typer.Option(None, "--output", "-o", help="Output directory"),
    policy: Optional[str] = typer.Option(None, "--policy", help="Assignment policy (reverse_scan / priority_first)"),
    delay_scale: Optional[float] = typer.Option(None, "--delay-scale", help="Multiplier for simulated delays (0 disables)"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="LLM model (e.g. gemini/gemini-1.5-pro)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not stream events and reasoning steps"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output"),
) -> None:
    """Run a red/blue simulation and write results plus a markdown report."""
    from ..orchestrator.simulation import CyberSecurityOrchestrator

    try:
        cfg = _build_config(
            config_path,
            output_dir=Path(output_dir) if output_dir else None,
            assignment_policy=policy,
            delay_scale=delay_scale,
            llm_model=model,
            debug=debug or None,
        )
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Configuration error:[/] {exc}")
        raise typer.Exit(1)

    setup_logging("DEBUG" if cfg.debug else cfg.log_level, log_to_file=cfg.log_to_file, log_dir=cfg.log_dir)

    extra_tasks: List[Dict[str, Any]] = []
    if scenario:
        try:
            data = load_scenario(scenario, cfg.scenarios_dir)
        except FileNotFoundError as exc:
            console.print(f"[bold red]{exc}[/]")
            raise typer.Exit(1)
        console.print(f"[bold]Scenario:[/] {data.get('name', scenario)}")
        if data.get("description"):
            console.print(f"  [dim]{data['description']}[/]")
        target = target or data.get("target")
        if duration is None and data.get("duration") is not None:
            duration = float(data["duration"])
        extra_tasks = _scenario_tasks(data)

    try:
        orch = CyberSecurityOrchestrator(cfg, oracle=_build_oracle(cfg))
    except ValueError as exc:
        console.print(f"[bold red]Configuration error:[/] {exc}")
        raise typer.Exit(1)

    if not quiet:
        orch.add_event_listener(lambda e: console.print(event_line(e)))
        orch.add_thought_listener(lambda t: console.print(thought_line(t)))

    run_target = target or cfg.target_network
    console.print(f"[bold green]🚀 Starting simulation[/] against [cyan]{run_target}[/]")
    try:
        finished = asyncio.run(orch.run(duration=duration, target=run_target, extra_tasks=extra_tasks))
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/]")
        finished = False
    except Exception as exc:
        console.print(f"[bold red]Simulation failed:[/] {exc}")
        raise typer.Exit(1)

    if not finished:
        console.print("[yellow]Time limit reached before all tasks finished[/]")

    console.print()
    console.print(stats_table(orch.get_stats()))
    console.print(agents_table([a.get_agent_info() for a in orch.scheduler.agents]))
    console.print(events_table(orch.get_event_history()))

    failed = [t for t in orch.scheduler.get_finished_tasks() if t.error]
    if failed:
        console.print(tasks_table(failed, title="Failed Tasks"))

    metadata = {
        "target_network": orch.target_network,
        "duration": f"{orch.duration_seconds():.2f}s",
        "scenario": scenario,
        "finished": finished,
    }
    events = orch.get_event_history()
    thoughts = orch.get_chain_of_thought_history()
    save_simulation_results(events, thoughts, metadata, output_dir=cfg.output_dir)
    report = generate_markdown_report(events, thoughts, metadata)
    save_markdown_report(report, output_dir=cfg.output_dir)


# ═════════════════════════════════════════════════════════════════════
#  Reports
# ═════════════════════════════════════════════════════════════════════


@app.command()
def report(
    input_path: str = typer.Argument(help="Simulation results JSON file"),
    fmt: str = typer.Option("markdown", "--format", "-f", help="Output format (markdown / json)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file (default: stdout)"),
) -> None:
    """Render a saved simulation results file as markdown or a JSON summary."""
    try:
        envelope = load_simulation_results(input_path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]{exc}[/]")
        raise typer.Exit(1)

    data = envelope.get("data", {})
    events = data.get("events", [])
    thoughts = data.get("chain_of_thoughts", [])

    if fmt == "markdown":
        content = generate_markdown_report(events, thoughts, envelope.get("metadata"))
    elif fmt == "json":
        content = json.dumps(data.get("summary", {}), indent=2)
    else:
        console.print(f"[bold red]Unknown format:[/] {fmt} (use markdown or json)")
        raise typer.Exit(1)

    if output:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        Path(output).write_text(content)
        console.print(f"[green]Report written to {output}[/]")
    else:
        console.print(content, markup=False, highlight=False)


# ═════════════════════════════════════════════════════════════════════
#  Inspection
# ═════════════════════════════════════════════════════════════════════


@app.command()
def scenarios(
    scenarios_dir: Optional[str] = typer.Option(None, "--dir", help="Scenarios directory"),
) -> None:
    """List available simulation scenarios."""
    base = Path(scenarios_dir) if scenarios_dir else _build_config().scenarios_dir
    names = list_scenarios(base)
    if not names:
        console.print(f"[yellow]No scenarios found in {base}[/]")
        return
    console.print("[bold]Available scenarios:[/]")
    for name in names:
        data = load_scenario(name, base)
        console.print(f"  [cyan]{name}[/]  {data.get('description', '')}")


@app.command()
def validate(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Config file (.yaml / .json)"),
) -> None:
    """Check configuration and report any problems."""
    try:
        cfg = _build_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Configuration error:[/] {exc}")
        raise typer.Exit(1)

    problems = validate_config(cfg)
    if problems:
        console.print("[bold red]Configuration invalid:[/]")
        for problem in problems:
            console.print(f"  • {problem}")
        raise typer.Exit(1)

    console.print("[bold green]✓ Configuration is valid[/]")
    console.print(f"  Model:  {cfg.llm_model}")
    console.print(f"  Target: {cfg.target_network}")
    console.print(f"  Policy: {cfg.assignment_policy}")


@app.command()
def tools(
    agent_type: Optional[str] = typer.Option(None, "--agent-type", "-a", help="Only tools usable by this agent type"),
    category: Optional[str] = typer.Option(None, "--category", help="Only tools in this category"),
) -> None:
    """List the security tool catalog."""
    from ..tools.registry import default_registry

    registry = default_registry()
    if agent_type:
        selected = registry.tools_for_agent(agent_type)
    elif category:
        selected = registry.tools_by_category(category)
    else:
        selected = registry.all_tools()
    console.print(tools_table(selected))


@app.command()
def agents() -> None:
    """List the built-in agents and the tasks they support."""
    from ..agents import build_default_agents

    roster = build_default_agents(oracle=_build_oracle(_build_config()))
    console.print(agents_table([a.get_agent_info() for a in roster]))


def main() -> None:
    """Entry-point registered in pyproject.toml."""
    app()
