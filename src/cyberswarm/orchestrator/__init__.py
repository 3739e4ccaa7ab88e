"""
orchestrator — Scheduling, event-driven follow-up rules and the simulation driver.
"""

from .logic_pipe import DEFAULT_RULES, LogicPipe
from .scheduler import (
    POLICIES,
    TaskScheduler,
    priority_first,
    resolve_policy,
    reverse_scan,
)
from .simulation import CyberSecurityOrchestrator

__all__ = [
    "CyberSecurityOrchestrator",
    "DEFAULT_RULES",
    "LogicPipe",
    "POLICIES",
    "TaskScheduler",
    "priority_first",
    "resolve_policy",
    "reverse_scan",
]
