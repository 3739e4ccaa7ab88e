"""
core.reporting — Simulation result persistence and Markdown reports.

Results are written inside a standard JSON *envelope*::

    {
        "cyberswarm_report": true,
        "version": "1.0",
        "stage": "simulation",
        "generated_at": "2025-…",
        "metadata": { … },
        "data": {
            "events": [ … ],
            "chain_of_thoughts": [ … ],
            "summary": { … }
        }
    }
"""

from __future__ import annotations

import json
from collections import Counter, defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel

from .log import console, get_logger

logger = get_logger("reporting")

Record = Union[BaseModel, Dict[str, Any]]


# ── Envelope builder ──────────────────────────────────────────────────


def _as_dict(item: Record) -> Dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json")
    return dict(item)


def _report_envelope(
    stage: str,
    data: Any,
    *,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Wrap *data* in the standard envelope with timestamp + metadata."""
    envelope: Dict[str, Any] = {
        "cyberswarm_report": True,
        "version": "1.0",
        "stage": stage,
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }
    if metadata:
        envelope["metadata"] = metadata
    envelope["data"] = data
    return envelope


def _count_by(items: Iterable[Dict[str, Any]], field: str) -> Dict[str, int]:
    return dict(Counter(str(item.get(field) or "Unknown") for item in items))


def _timestamp_slug() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")


def summarize_events(events: Sequence[Record], thoughts: Sequence[Record] = ()) -> Dict[str, Any]:
    """Counts by event type and severity."""
    ev = [_as_dict(e) for e in events]
    return {
        "total_events": len(ev),
        "total_thoughts": len(thoughts),
        "events_by_type": _count_by(ev, "event_type"),
        "events_by_severity": _count_by(ev, "severity"),
    }


# ── Simulation results ────────────────────────────────────────────────


def save_simulation_results(
    events: Sequence[Record],
    thoughts: Sequence[Record],
    metadata: Optional[Dict[str, Any]] = None,
    output_path: Optional[Union[str, Path]] = None,
    *,
    output_dir: Optional[Path] = None,
) -> Path:
    """
    Save events and chain-of-thought history as a JSON envelope.

    Parameters
    ----------
    events, thoughts:
        Pydantic models or plain dicts.
    metadata:
        Free-form run metadata (target network, duration, …).
    output_path:
        Explicit file.  Defaults to
        ``<output_dir>/exports/simulation-<timestamp>.json``.
    """
    if output_path is not None:
        path = Path(output_path)
    else:
        base = Path(output_dir) if output_dir else Path.cwd() / "output"
        path = base / "exports" / f"simulation-{_timestamp_slug()}.json"
    path.parent.mkdir(parents=True, exist_ok=True)

    ev = [_as_dict(e) for e in events]
    th = [_as_dict(t) for t in thoughts]
    data = {
        "events": ev,
        "chain_of_thoughts": th,
        "summary": summarize_events(ev, th),
    }
    envelope = _report_envelope("simulation", data, metadata=metadata or {})
    path.write_text(json.dumps(envelope, indent=2, default=str))

    logger.info("Saved simulation results to %s", path)
    console.print(f"  [dim]📄 Results saved: {path}[/]")
    return path


def load_simulation_results(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a file written by :func:`save_simulation_results`."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Simulation results not found: {path}")
    envelope = json.loads(path.read_text())
    if not isinstance(envelope, dict) or not envelope.get("cyberswarm_report"):
        raise ValueError(f"{path} is not a cyberswarm simulation report")
    return envelope


# ── Markdown report ───────────────────────────────────────────────────


def generate_markdown_report(
    events: Sequence[Record],
    thoughts: Sequence[Record],
    metadata: Optional[Dict[str, Any]] = None,
    *,
    max_findings: int = 10,
    max_steps_per_agent: int = 5,
) -> str:
    metadata = metadata or {}
    ev = [_as_dict(e) for e in events]
    th = [_as_dict(t) for t in thoughts]

    lines: List[str] = [
        "# CyberSwarm Simulation Report",
        "",
        f"**Generated:** {datetime.now(timezone.utc).isoformat()}",
        "",
        f"**Target:** {metadata.get('target_network') or 'N/A'}",
        f"**Duration:** {metadata.get('duration') or 'N/A'}",
        "",
        "## Executive Summary",
        "",
        f"- Total Events: {len(ev)}",
        f"- Total Chain of Thought Steps: {len(th)}",
        f"- Critical Events: {sum(1 for e in ev if e.get('severity') == 'Critical')}",
        f"- High Severity Events: {sum(1 for e in ev if e.get('severity') == 'High')}",
        "",
        "## Events by Type",
        "",
    ]
    for event_type, count in _count_by(ev, "event_type").items():
        lines.append(f"- {event_type}: {count}")
    lines += ["", "## Critical Findings", ""]

    findings = [e for e in ev if e.get("severity") in ("Critical", "High")]
    if not findings:
        lines += ["No critical findings.", ""]
    for event in findings[:max_findings]:
        lines += [
            f"### {event.get('event_type')}",
            f"- **Severity:** {event.get('severity')}",
            f"- **Target:** {event.get('target') or 'N/A'}",
            f"- **Timestamp:** {event.get('timestamp')}",
            "- **Details:**",
            "",
            "```json",
            json.dumps(event.get("payload", {}), indent=2, default=str),
            "```",
            "",
        ]

    lines += ["## Agent Reasoning", ""]
    by_agent: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for thought in th:
        by_agent[str(thought.get("agent_id") or "Unknown")].append(thought)
    for agent_id, agent_thoughts in by_agent.items():
        lines += [f"### {agent_id}", ""]
        for thought in agent_thoughts[:max_steps_per_agent]:
            lines.append(
                f"**Step {thought.get('step_number')} ({thought.get('step_type')}):** "
                f"{thought.get('description')}"
            )
            lines += [f"> {thought.get('reasoning')}", ""]

    return "\n".join(lines) + "\n"


def save_markdown_report(
    report: str,
    output_path: Optional[Union[str, Path]] = None,
    *,
    output_dir: Optional[Path] = None,
) -> Path:
    if output_path is not None:
        path = Path(output_path)
    else:
        base = Path(output_dir) if output_dir else Path.cwd() / "output"
        path = base / "reports" / f"report-{_timestamp_slug()}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report)

    logger.info("Saved markdown report to %s", path)
    console.print(f"  [dim]📄 Report saved: {path}[/]")
    return path
