"""
agents.base — Agent state machine and audit emission.

An ``Agent`` is a long-lived worker bound to one ``AgentKind``.  The kind
owns the table of task handlers; the agent owns status, the private
tool-execution log, the chain-of-thought history and the three
single-slot callbacks.

Status transitions::

    IDLE ──execute──▶ BUSY ──success──▶ IDLE
                       │
                       ├─ UnsupportedTaskError ──▶ IDLE
                       └─ any other error ───────▶ ERROR  (sticky until restart)

    any ──stop()──▶ OFFLINE ──start()──▶ IDLE  (BUSY while a task is still running)
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Union,
)

from ..core.config import Config
from ..core.errors import OracleParseError, TaskExecutionError, UnsupportedTaskError
from ..core.log import get_logger
from ..core.models import (
    AgentInfo,
    AgentStatus,
    ChainOfThought,
    CyberEvent,
    SecurityTool,
    Severity,
    Task,
    ToolExecution,
    utcnow,
)
from ..core.oracle import DecisionOracle, parse_decision
from ..tools.registry import SecurityToolRegistry

_logger = get_logger("agents")

Handler = Callable[["Agent", Task], Awaitable[CyberEvent]]
EventCallback = Callable[[CyberEvent], Any]
ThoughtCallback = Callable[[ChainOfThought], Any]
StatusCallback = Callable[[str, AgentStatus], Any]


def _enum_value(value: Union[str, Enum]) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def expect_keys(decision: Dict[str, Any], *keys: str, context: str = "decision") -> Dict[str, Any]:
    """Raise ``OracleParseError`` unless every key is present in *decision*."""
    missing = [k for k in keys if k not in decision]
    if missing:
        raise OracleParseError(f"{context}: missing key(s) {', '.join(missing)}")
    return decision


def as_confidence(value: Any, default: Optional[float] = None) -> Optional[float]:
    """Coerce an oracle-supplied confidence into [0, 1]."""
    try:
        return min(1.0, max(0.0, float(value)))
    except (TypeError, ValueError):
        return default


# ── Agent kinds ───────────────────────────────────────────────────────


class AgentKind:
    """
    Static description of one agent type plus its task handlers.

    Handlers are registered with the decorator::

        discovery = AgentKind("DiscoveryAgent", "Network Discovery Agent",
                              "discovery-01", ["network_scan"])

        @discovery.handler("network_scan")
        async def network_scan(agent: Agent, task: Task) -> CyberEvent:
            ...
    """

    def __init__(
        self,
        agent_type: str,
        agent_name: str,
        default_id: str,
        supported_tasks: Sequence[str],
        *,
        team: str = "red",
        description: str = "",
    ) -> None:
        self.agent_type = agent_type
        self.agent_name = agent_name
        self.default_id = default_id
        self.supported_tasks = list(supported_tasks)
        self.team = team
        self.description = description
        self._handlers: Dict[str, Handler] = {}

    def handler(self, task_name: str) -> Callable[[Handler], Handler]:
        """Decorator to register *fn* as the handler for *task_name*."""

        def decorator(fn: Handler) -> Handler:
            self._handlers[task_name] = fn
            return fn

        return decorator

    def get_handler(self, task_name: str) -> Optional[Handler]:
        return self._handlers.get(task_name)

    @property
    def handled_tasks(self) -> List[str]:
        return list(self._handlers)

    def create(self, oracle: DecisionOracle, **kwargs: Any) -> "Agent":
        return Agent(self, oracle, **kwargs)

    def __repr__(self) -> str:
        return f"AgentKind({self.agent_type!r}, tasks={self.supported_tasks})"


# ── Agent ─────────────────────────────────────────────────────────────


class Agent:
    """A typed worker that executes tasks through its kind's handlers."""

    def __init__(
        self,
        kind: AgentKind,
        oracle: DecisionOracle,
        *,
        agent_id: Optional[str] = None,
        supported_tasks: Optional[Sequence[str]] = None,
        registry: Optional[SecurityToolRegistry] = None,
        config: Optional[Config] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.kind = kind
        self.agent_id = agent_id or kind.default_id
        self.agent_name = kind.agent_name
        self.agent_type = kind.agent_type
        self.supported_tasks: List[str] = list(
            supported_tasks if supported_tasks is not None else kind.supported_tasks
        )
        self.oracle = oracle
        self.registry = registry
        self.config = config or Config()
        self.logger = logger or _logger

        self._status = AgentStatus.IDLE
        self._current_task: Optional[Task] = None
        self.registered_at = utcnow()
        self.last_seen = self.registered_at

        self._thoughts: List[ChainOfThought] = []
        self._tool_executions: List[ToolExecution] = []

        self._event_callback: Optional[EventCallback] = None
        self._thought_callback: Optional[ThoughtCallback] = None
        self._status_callback: Optional[StatusCallback] = None

    # ── Status ────────────────────────────────────────────────────────

    @property
    def status(self) -> AgentStatus:
        return self._status

    def _set_status(self, status: AgentStatus) -> None:
        self.last_seen = utcnow()
        if status == self._status:
            return
        self.logger.debug("[%s] %s → %s", self.agent_id, self._status.value, status.value)
        self._status = status
        self._dispatch(self._status_callback, "status", self.agent_id, status)

    @property
    def current_task(self) -> Optional[Task]:
        return self._current_task

    def reserve(self, task: Optional[Task] = None) -> None:
        """Mark the agent BUSY ahead of execution (called by the scheduler)."""
        if self._status != AgentStatus.IDLE:
            raise TaskExecutionError(
                f"Agent {self.agent_id} cannot be reserved while {self._status.value}"
            )
        self._current_task = task
        self._set_status(AgentStatus.BUSY)

    def _resume_status(self) -> AgentStatus:
        # A task stopped mid-flight still owns the agent until it finishes.
        return AgentStatus.BUSY if self._current_task is not None else AgentStatus.IDLE

    def start(self) -> None:
        """
        OFFLINE → IDLE, or back to BUSY if a task is still running.

        An agent in ERROR stays there until :meth:`restart`.
        """
        if self._status == AgentStatus.ERROR:
            self.logger.warning("[%s] In ERROR; use restart() to recover", self.agent_id)
            return
        if self._status == AgentStatus.BUSY:
            return
        self._set_status(self._resume_status())

    def stop(self) -> None:
        self._set_status(AgentStatus.OFFLINE)

    def restart(self) -> None:
        """Clear a sticky ERROR (or OFFLINE) and return to IDLE, or BUSY mid-task."""
        self.logger.info("[%s] Restarting agent", self.agent_id)
        self._set_status(self._resume_status())

    def can_handle_task(self, task_name: str) -> bool:
        return task_name in self.supported_tasks

    # ── Execution ─────────────────────────────────────────────────────

    async def execute_task(self, task: Task) -> CyberEvent:
        """
        Run *task* through this kind's handler and return its terminal event.

        Raises ``UnsupportedTaskError`` when the kind has no handler for the
        task name (the agent goes back to IDLE), and re-raises anything the
        handler raised after putting the agent into ERROR.
        """
        self._set_status(AgentStatus.BUSY)
        self._current_task = task
        try:
            self.log_chain_of_thought(
                1,
                "analysis",
                "Analyzing task requirements",
                f"Received {task.task_name} task for target {task.target or 'default'}. "
                f"Preparing {self.kind.team}-team approach.",
                {"task_name": task.task_name, "target": task.target},
                task_id=task.task_id,
            )
            handler = self.kind.get_handler(task.task_name)
            if handler is None:
                raise UnsupportedTaskError(self.agent_id, task.task_name)
            return await handler(self, task)
        except UnsupportedTaskError as exc:
            self.logger.warning("[%s] %s", self.agent_id, exc)
            raise
        except Exception as exc:
            self.logger.error("[%s] Task execution failed: %s", self.agent_id, exc)
            self._set_status(AgentStatus.ERROR)
            raise
        finally:
            self._current_task = None
            if self._status == AgentStatus.BUSY:
                self._set_status(AgentStatus.IDLE)

    # ── Audit emission ────────────────────────────────────────────────

    def log_chain_of_thought(
        self,
        step: int,
        kind: str,
        description: str,
        reasoning: str,
        data: Optional[Dict[str, Any]] = None,
        confidence: Optional[float] = None,
        task_id: Optional[str] = None,
    ) -> ChainOfThought:
        """Record one reasoning step.  Step order is the caller's responsibility."""
        thought = ChainOfThought(
            id=f"{self.agent_id}-cot-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}",
            step_number=step,
            step_type=kind,
            description=description,
            reasoning=reasoning,
            data=data,
            confidence=confidence,
            agent_id=self.agent_id,
            task_id=task_id or (self._current_task.task_id if self._current_task else None),
        )
        self._thoughts.append(thought)
        self.logger.debug("[%s] Step %d (%s): %s", self.agent_id, step, kind, description)
        self._dispatch(self._thought_callback, "chain-of-thought", thought)
        return thought

    def emit_event(
        self,
        kind: Union[str, Enum],
        payload: Dict[str, Any],
        severity: Optional[Union[str, Severity]] = None,
        target: Optional[str] = None,
        task_id: Optional[str] = None,
    ) -> CyberEvent:
        event = CyberEvent(
            id=f"{self.agent_id}-evt-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}",
            event_type=_enum_value(kind),
            payload=payload,
            severity=severity if isinstance(severity, Severity) else Severity.from_str(severity),
            target=target,
            agent_id=self.agent_id,
            task_id=task_id or (self._current_task.task_id if self._current_task else None),
            category=self.kind.team,
        )
        self.logger.info(
            "[%s] Event %s (%s)",
            self.agent_id, event.event_type, event.severity.value if event.severity else "-",
        )
        self._dispatch(self._event_callback, "event", event)
        return event

    def log_tool_usage(
        self,
        tool_id: str,
        command: str,
        target: str,
        options: Optional[Dict[str, Any]] = None,
        task_id: Optional[str] = None,
    ) -> ToolExecution:
        """Append a simulated tool invocation to this agent's private log."""
        if self.registry is not None and tool_id not in self.registry:
            self.logger.debug("[%s] Tool %s is not in the registry", self.agent_id, tool_id)
        record = ToolExecution(
            tool_id=tool_id,
            command=command,
            target=target,
            options=dict(options or {}),
            agent_id=self.agent_id,
            task_id=task_id or (self._current_task.task_id if self._current_task else None),
        )
        self._tool_executions.append(record)
        self.logger.debug("[%s] Tool %s: %s", self.agent_id, tool_id, command)
        return record

    def complete_tool_execution(self, record: ToolExecution, exit_code: int, output: str) -> ToolExecution:
        if not any(r is record for r in self._tool_executions):
            raise ValueError(f"Tool execution {record.id} does not belong to agent {self.agent_id}")
        record.completed_at = utcnow()
        record.exit_code = exit_code
        record.output = output
        return record

    async def run_tool(
        self,
        tool_id: str,
        command: str,
        target: str,
        *,
        options: Optional[Dict[str, Any]] = None,
        output: str = "",
        exit_code: int = 0,
        duration: tuple[float, float] = (0.5, 1.5),
    ) -> ToolExecution:
        """Record a simulated tool run: log, wait, then complete the same record."""
        record = self.log_tool_usage(tool_id, command, target, options)
        await self.delay(*duration)
        return self.complete_tool_execution(record, exit_code, output)

    # ── Callbacks ─────────────────────────────────────────────────────

    def set_event_callback(self, callback: Optional[EventCallback]) -> None:
        self._event_callback = callback

    def set_chain_of_thought_callback(self, callback: Optional[ThoughtCallback]) -> None:
        self._thought_callback = callback

    def set_status_change_callback(self, callback: Optional[StatusCallback]) -> None:
        self._status_callback = callback

    def _dispatch(self, callback: Optional[Callable[..., Any]], label: str, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            self.logger.exception("[%s] %s callback raised", self.agent_id, label)

    # ── Decision oracle ───────────────────────────────────────────────

    async def get_decision(self, prompt: str) -> Dict[str, Any]:
        self.logger.debug("[%s] Requesting decision", self.agent_id)
        return parse_decision(await self.oracle.submit(prompt))

    async def get_decision_with_files(self, prompt: str, files: Sequence[str]) -> Dict[str, Any]:
        self.logger.debug("[%s] Requesting decision with %d file(s)", self.agent_id, len(files))
        return parse_decision(await self.oracle.submit_with_files(prompt, files))

    async def delay(self, min_s: float, max_s: float) -> None:
        """Simulated processing time, scaled by ``config.delay_scale``."""
        scale = self.config.delay_scale
        if scale <= 0:
            await asyncio.sleep(0)
            return
        await asyncio.sleep(random.uniform(min_s, max(min_s, max_s)) * scale)

    # ── Read-only views ───────────────────────────────────────────────

    def get_tool(self, tool_id: str) -> Optional[SecurityTool]:
        return self.registry.get_tool(tool_id) if self.registry else None

    def tools(self) -> List[SecurityTool]:
        return self.registry.tools_for_agent(self.agent_type) if self.registry else []

    @property
    def tool_executions(self) -> List[ToolExecution]:
        return list(self._tool_executions)

    @property
    def thoughts(self) -> List[ChainOfThought]:
        return list(self._thoughts)

    def get_agent_info(self) -> AgentInfo:
        return AgentInfo(
            agent_id=self.agent_id,
            agent_name=self.agent_name,
            agent_type=self.agent_type,
            supported_tasks=list(self.supported_tasks),
            status=self._status,
            last_seen=self.last_seen,
            registered_at=self.registered_at,
        )

    def __repr__(self) -> str:
        return f"Agent({self.agent_id!r}, {self.agent_type}, {self._status.value})"
