"""
core.errors — Exception hierarchy shared by agents, oracle and scheduler.
"""

from __future__ import annotations


class CyberSwarmError(Exception):
    """Base class for all cyberswarm errors."""


class OracleError(CyberSwarmError):
    """The decision oracle call itself failed (transport / service)."""


class OracleParseError(OracleError):
    """The oracle answered, but not with the structured data we expected."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class TaskExecutionError(CyberSwarmError):
    """A task could not be executed by the agent it was assigned to."""


class UnsupportedTaskError(TaskExecutionError):
    """The agent's executor has no handler for the requested task name."""

    def __init__(self, agent_id: str, task_name: str) -> None:
        super().__init__(f"Unsupported task: {task_name} (agent {agent_id})")
        self.agent_id = agent_id
        self.task_name = task_name


class InvalidTransitionError(CyberSwarmError):
    """A task lifecycle transition outside PENDING→ASSIGNED→EXECUTING→terminal."""
