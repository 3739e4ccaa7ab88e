"""
core.log — Structured logging for cyberswarm.

Provides a ``console`` (rich.Console) shared across all modules, a
``setup_logging`` helper that routes the ``cyberswarm`` logger tree
through rich, and ``SimulationEventLog``, a JSON-lines sink for
simulation events.
"""

from __future__ import annotations

import json
import logging
import time
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Deque, Dict, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

console = Console(stderr=True)

LOGGER_NAME = "cyberswarm"


def get_logger(name: str = "") -> logging.Logger:
    """Return a logger under the ``cyberswarm`` tree."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def setup_logging(
    level: Union[str, int] = "INFO",
    *,
    log_to_file: bool = False,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configure the ``cyberswarm`` logger.

    Console output goes through ``RichHandler``.  With *log_to_file*,
    ``combined.log`` and ``error.log`` are written under *log_dir*.
    Calling this twice replaces the handlers installed the first time.
    """
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level if isinstance(level, int) else level.upper())
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.addHandler(RichHandler(console=console, show_path=False, rich_tracebacks=True))

    if log_to_file:
        directory = Path(log_dir or "./output/logs")
        directory.mkdir(parents=True, exist_ok=True)
        fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        combined = logging.FileHandler(directory / "combined.log")
        combined.setFormatter(fmt)
        errors = logging.FileHandler(directory / "error.log")
        errors.setLevel(logging.ERROR)
        errors.setFormatter(fmt)
        root.addHandler(combined)
        root.addHandler(errors)

    root.propagate = False
    return root


class SimulationEventLog:
    """Append-only JSON-lines record of simulation events.

    Every call to :meth:`record` writes one line::

        {"timestamp": "...", "eventType": "task_complete", ...}

    When no path is given the most recent *max_records* entries are kept
    in memory instead; with a path, ``records`` stays empty.
    """

    def __init__(self, path: Optional[Path] = None, max_records: int = 10_000) -> None:
        self.path = Path(path) if path else None
        self.records: Deque[Dict[str, Any]] = deque(maxlen=max_records)
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def in_dir(cls, log_dir: Path) -> "SimulationEventLog":
        return cls(Path(log_dir) / f"simulation-{int(time.time() * 1000)}.jsonl")

    def record(self, event_type: str, /, **data: Any) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "eventType": event_type,
            **data,
        }
        if self.path is None:
            self.records.append(entry)
        else:
            with self.path.open("a") as fh:
                fh.write(json.dumps(entry, default=str) + "\n")
        return entry
