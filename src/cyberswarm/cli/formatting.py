"""
cli.formatting — Rich renderables for agents, tasks, events and stats.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Sequence

from rich.table import Table

from ..core.models import AgentInfo, AgentStatus, ChainOfThought, CyberEvent, SecurityTool, Task

_SEVERITY_STYLE = {
    "Critical": "bold red",
    "High": "red",
    "Medium": "yellow",
    "Low": "green",
}

_STATUS_STYLE = {
    AgentStatus.IDLE: "green",
    AgentStatus.BUSY: "yellow",
    AgentStatus.ERROR: "bold red",
    AgentStatus.OFFLINE: "dim",
}


def severity_markup(severity: Any) -> str:
    label = getattr(severity, "value", severity) or "-"
    style = _SEVERITY_STYLE.get(label, "white")
    return f"[{style}]{label}[/]"


def agents_table(agents: Iterable[AgentInfo], title: str = "Agents") -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Tasks")
    for info in agents:
        style = _STATUS_STYLE.get(info.status, "white")
        table.add_row(
            info.agent_id,
            info.agent_type,
            f"[{style}]{info.status.value}[/]",
            ", ".join(info.supported_tasks),
        )
    return table


def tasks_table(tasks: Sequence[Task], title: str = "Tasks") -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Task", style="dim", no_wrap=True)
    table.add_column("Agent type")
    table.add_column("Name")
    table.add_column("Pri", justify="right", width=4)
    table.add_column("Status")
    table.add_column("Error", max_width=40)
    for task in tasks:
        table.add_row(
            task.task_id,
            task.agent_type,
            task.task_name,
            str(task.priority),
            task.status.value,
            task.error or "",
        )
    return table


def events_table(events: Sequence[CyberEvent], limit: int = 10, title: str = "Recent Events") -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Time", style="dim", no_wrap=True)
    table.add_column("Type", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Target")
    table.add_column("Agent", style="cyan")
    for event in list(events)[-limit:]:
        table.add_row(
            event.timestamp.strftime("%H:%M:%S"),
            event.event_type,
            severity_markup(event.severity),
            event.target or "-",
            event.agent_id or "-",
        )
    return table


def tools_table(tools: Sequence[SecurityTool], title: str = "Security Tools") -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Risk")
    table.add_column("MITRE", max_width=30)
    for tool in tools:
        table.add_row(
            tool.id,
            tool.name,
            tool.category,
            tool.risk_level,
            ", ".join(tool.mitre_techniques) or "-",
        )
    return table


def stats_table(stats: Dict[str, Any], title: str = "Simulation Statistics") -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    sim = stats.get("simulation", {})
    agents = stats.get("agents", {})
    events = stats.get("events", {})
    tasks = stats.get("tasks", {})
    pipe = stats.get("logic_pipe", {})

    table.add_row("Duration", f"{sim.get('duration_s', 0):.2f}s")
    table.add_row("Agents (idle/busy/error/offline)", "{idle}/{busy}/{error}/{offline}".format(
        **{k: agents.get(k, 0) for k in ("idle", "busy", "error", "offline")}
    ))
    table.add_row("Events", str(events.get("total", 0)))
    for severity, count in events.get("by_severity", {}).items():
        table.add_row(f"  {severity_markup(severity)}", str(count))
    table.add_row("Chain-of-thought steps", str(stats.get("chain_of_thoughts", {}).get("total", 0)))
    table.add_row("Tasks finished / failed", f"{tasks.get('finished', 0)} / {tasks.get('failed', 0)}")
    table.add_row("Logic pipe executions", str(pipe.get("total_executions", 0)))
    return table


def event_line(event: CyberEvent) -> str:
    return (
        f"  [bold]⚡ {event.event_type}[/] {severity_markup(event.severity)} "
        f"[dim]{event.agent_id or '-'} → {event.target or '-'}[/]"
    )


def thought_line(thought: ChainOfThought) -> str:
    conf = f" [dim]({thought.confidence:.0%})[/]" if thought.confidence is not None else ""
    return (
        f"  [cyan]{thought.agent_id}[/] [dim]#{thought.step_number} {thought.step_type}[/] "
        f"{thought.description}{conf}"
    )
