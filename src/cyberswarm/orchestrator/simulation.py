"""
orchestrator.simulation — Red/blue simulation wiring.

``CyberSecurityOrchestrator`` builds the five default agents, registers
them with a ``TaskScheduler``, fans their events and reasoning steps into
its own history (and any extra listeners), and routes unprocessed events
through the ``LogicPipe`` so each side reacts to the other.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..agents import build_default_agents
from ..core.config import Config, load_config
from ..core.log import SimulationEventLog, get_logger
from ..core.models import ChainOfThought, CyberEvent, SimulationState, Task, TaskStatus, utcnow
from ..core.oracle import DecisionOracle, LiteLLMOracle
from ..tools.registry import SecurityToolRegistry, default_registry
from .logic_pipe import LogicPipe
from .scheduler import TaskScheduler

_logger = get_logger("simulation")


class CyberSecurityOrchestrator:
    """
    Owns one scheduler, one logic pipe and the default agent roster.

    Usage::

        orch = CyberSecurityOrchestrator(load_config())
        await orch.run(duration=120)
        events = orch.get_event_history()
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        oracle: Optional[DecisionOracle] = None,
        registry: Optional[SecurityToolRegistry] = None,
        event_log: Optional[SimulationEventLog] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or load_config()
        self.logger = logger or _logger
        self.oracle = oracle or LiteLLMOracle(self.config)
        self.registry = registry or default_registry()
        if event_log is None:
            event_log = (
                SimulationEventLog.in_dir(self.config.log_dir)
                if self.config.log_to_file
                else SimulationEventLog()
            )
        self.event_log = event_log

        self.scheduler = TaskScheduler(self.config.assignment_policy)
        self.logic_pipe = LogicPipe()

        self.is_running = False
        self.start_time = None
        self.end_time = None
        self.target_network: Optional[str] = None

        self._events: List[CyberEvent] = []
        self._thoughts: List[ChainOfThought] = []
        self._event_listeners: List[Callable[[CyberEvent], Any]] = []
        self._thought_listeners: List[Callable[[ChainOfThought], Any]] = []

        for agent in build_default_agents(self.oracle, self.registry, self.config):
            self.scheduler.register_agent(agent)
            agent.set_event_callback(self._handle_event)
            agent.set_chain_of_thought_callback(self._handle_thought)

        self.scheduler.set_task_complete_callback(self._handle_task_complete)
        self.logic_pipe.set_task_created_callback(self.scheduler.enqueue)
        self.logger.info("Orchestrator initialised with %d agents", len(self.scheduler.agents))

    # ── Listeners ─────────────────────────────────────────────────────

    def add_event_listener(self, listener: Callable[[CyberEvent], Any]) -> None:
        self._event_listeners.append(listener)

    def add_thought_listener(self, listener: Callable[[ChainOfThought], Any]) -> None:
        self._thought_listeners.append(listener)

    def _notify(self, listeners: List[Callable[[Any], Any]], item: Any) -> None:
        for listener in listeners:
            try:
                listener(item)
            except Exception:
                self.logger.exception("Simulation listener raised")

    # ── Agent / scheduler callbacks ───────────────────────────────────

    def _handle_event(self, event: CyberEvent) -> None:
        self._events.append(event)
        self.event_log.record(
            "event_created",
            event_type=event.event_type,
            severity=event.severity.value if event.severity else None,
            target=event.target,
            agent_id=event.agent_id,
        )
        self._notify(self._event_listeners, event)

        if self.is_running and not event.processed:
            event.processed = True
            self.logic_pipe.process_event(event)

    def _handle_thought(self, thought: ChainOfThought) -> None:
        self._thoughts.append(thought)
        self.event_log.record(
            "chain_of_thought",
            agent_id=thought.agent_id,
            step_number=thought.step_number,
            step_type=thought.step_type,
            description=thought.description,
        )
        self._notify(self._thought_listeners, thought)

    def _handle_task_complete(self, task: Task, event: CyberEvent) -> None:
        self.event_log.record(
            "task_complete",
            task_id=task.task_id,
            agent_type=task.agent_type,
            task_name=task.task_name,
            status=task.status.value,
            duration_ms=task.duration_ms(),
            event_type=event.event_type,
        )

    # ── Lifecycle ─────────────────────────────────────────────────────

    async def start_simulation(self, target: Optional[str] = None) -> Optional[Task]:
        """Start all agents and queue the initial network scan."""
        if self.is_running:
            self.logger.warning("Simulation already running")
            return None

        self.is_running = True
        self.start_time = utcnow()
        self.end_time = None
        self.target_network = target or self.config.target_network
        self._events = []
        self._thoughts = []

        self.logger.info("🚀 Starting simulation against %s", self.target_network)
        self.event_log.record("simulation_start", target=self.target_network)

        self.scheduler.start_all()
        initial = self.scheduler.create_and_enqueue(
            "DiscoveryAgent", "network_scan", self.target_network, {"initial_scan": True}, 10
        )
        self.logger.info("Initial task created: %s", initial.task_id)
        return initial

    def stop_simulation(self) -> None:
        if not self.is_running:
            self.logger.warning("Simulation not running")
            return
        self.is_running = False
        self.end_time = utcnow()
        self.scheduler.stop_all()

        duration = self.duration_seconds()
        self.logger.info(
            "🛑 Simulation stopped after %.2fs (%d events, %d thoughts)",
            duration, len(self._events), len(self._thoughts),
        )
        self.event_log.record(
            "simulation_stop",
            duration_s=duration,
            total_events=len(self._events),
            total_thoughts=len(self._thoughts),
        )

    async def run(
        self,
        duration: Optional[float] = None,
        target: Optional[str] = None,
        extra_tasks: Sequence[Dict[str, Any]] = (),
    ) -> bool:
        """
        Start, wait until the task graph drains or *duration* elapses, stop.

        *duration* defaults to ``config.simulation_timeout`` (0 means no
        limit).  *extra_tasks* are ``inject_task`` keyword dicts queued
        right after the initial scan.  Returns ``True`` when all work
        finished in time.
        """
        limit = self.config.simulation_timeout if duration is None else duration
        await self.start_simulation(target)
        try:
            for entry in extra_tasks:
                self.inject_task(**entry)
            finished = await self.scheduler.wait_until_idle(timeout=limit or None)
            if not finished:
                self.logger.info("Simulation timeout reached")
            return finished
        finally:
            self.stop_simulation()

    def inject_task(
        self,
        agent_type: str,
        task_name: str,
        target: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        priority: int = 5,
    ) -> Task:
        self.logger.info("Injecting task %s.%s", agent_type, task_name)
        task = self.scheduler.create_and_enqueue(agent_type, task_name, target, details, priority)
        self.event_log.record(
            "task_injected", task_id=task.task_id, agent_type=agent_type, task_name=task_name
        )
        return task

    # ── Views ─────────────────────────────────────────────────────────

    def duration_seconds(self) -> float:
        if self.start_time is None:
            return 0.0
        end = self.end_time or utcnow()
        return (end - self.start_time).total_seconds()

    def get_event_history(self, limit: Optional[int] = None) -> List[CyberEvent]:
        return self._events[-limit:] if limit else list(self._events)

    def get_chain_of_thought_history(self, limit: Optional[int] = None) -> List[ChainOfThought]:
        return self._thoughts[-limit:] if limit else list(self._thoughts)

    def get_simulation_state(self) -> SimulationState:
        return SimulationState(
            is_running=self.is_running,
            start_time=self.start_time,
            end_time=self.end_time,
            agents=[a.get_agent_info() for a in self.scheduler.agents],
            task_queue=self.scheduler.get_all_tasks(),
            event_history=list(self._events),
            chain_of_thoughts=list(self._thoughts),
            logic_pipe_executions=self.logic_pipe.get_execution_history(),
            target_network=self.target_network,
        )

    def get_stats(self) -> Dict[str, Any]:
        by_severity = Counter(e.severity.value for e in self._events if e.severity)
        return {
            "simulation": {"is_running": self.is_running, "duration_s": self.duration_seconds()},
            "agents": self.scheduler.get_agent_stats(),
            "events": {
                "total": len(self._events),
                "by_severity": {s: by_severity.get(s, 0) for s in ("Critical", "High", "Medium", "Low")},
                "by_type": dict(Counter(e.event_type for e in self._events)),
            },
            "chain_of_thoughts": {"total": len(self._thoughts)},
            "logic_pipe": self.logic_pipe.get_stats(),
            "tasks": {
                "pending": len(self.scheduler.get_task_queue()),
                "active": len(self.scheduler.get_active_tasks()),
                "finished": len(self.scheduler.get_finished_tasks()),
                "failed": sum(
                    1 for t in self.scheduler.get_finished_tasks() if t.status == TaskStatus.FAILED
                ),
            },
        }
