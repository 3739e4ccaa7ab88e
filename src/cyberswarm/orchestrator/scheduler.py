"""
orchestrator.scheduler — Task queue, assignment pass and lifecycle driver.

The scheduler owns the pending queue, the in-flight map and the agent
roster.  Every mutation happens synchronously inside ``enqueue``, the
assignment pass, or the completion handler of an execution, so no
locking is needed on a single event loop.

Assignment pass:

    1. sort the queue by priority, highest first (stable)
    2. ask the selection policy in which order to visit queue indices
    3. give each visited task the first IDLE agent of the right type
       that supports the task name; reserve it immediately

The default policy, ``reverse_scan``, visits the sorted queue from the
lowest-priority end, so under contention low-priority tasks win the
agent.  ``priority_first`` visits highest priority first.
"""

from __future__ import annotations

import asyncio
import logging
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Union,
)

from ..agents.base import Agent
from ..core.log import get_logger
from ..core.models import AgentStatus, CyberEvent, Task, TaskStatus

_logger = get_logger("scheduler")

SelectionPolicy = Callable[[Sequence[Task]], Iterable[int]]
TaskCompleteCallback = Callable[[Task, CyberEvent], Any]


# ── Selection policies ────────────────────────────────────────────────


def reverse_scan(queue: Sequence[Task]) -> Iterable[int]:
    """Visit the priority-sorted queue from its tail (lowest priority first)."""
    return range(len(queue) - 1, -1, -1)


def priority_first(queue: Sequence[Task]) -> Iterable[int]:
    """Visit the priority-sorted queue from its head (highest priority first)."""
    return range(len(queue))


POLICIES: Dict[str, SelectionPolicy] = {
    "reverse_scan": reverse_scan,
    "priority_first": priority_first,
}


def resolve_policy(policy: Union[str, SelectionPolicy, None]) -> SelectionPolicy:
    if policy is None:
        return reverse_scan
    if callable(policy):
        return policy
    try:
        return POLICIES[policy]
    except KeyError:
        raise ValueError(
            f"Unknown assignment policy {policy!r}; choose from {', '.join(POLICIES)}"
        ) from None


# ── Scheduler ─────────────────────────────────────────────────────────


class TaskScheduler:
    """Matches queued tasks to idle, capable agents and drives execution."""

    def __init__(
        self,
        policy: Union[str, SelectionPolicy, None] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.policy = resolve_policy(policy)
        self.logger = logger or _logger

        self._agents: Dict[str, Agent] = {}
        self._queue: List[Task] = []
        self._active: Dict[str, Task] = {}
        self._finished: List[Task] = []
        self._inflight: Set["asyncio.Task[None]"] = set()
        self._on_task_complete: Optional[TaskCompleteCallback] = None

    # ── Agents ────────────────────────────────────────────────────────

    def register_agent(self, agent: Agent) -> None:
        self._agents[agent.agent_id] = agent
        self.logger.info("Agent registered: %s (%s)", agent.agent_id, agent.agent_type)
        self._assignment_pass()

    @property
    def agents(self) -> List[Agent]:
        return list(self._agents.values())

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def start_all(self) -> None:
        for agent in self._agents.values():
            agent.start()
        self.logger.info("All agents started")
        self._assignment_pass()

    def stop_all(self) -> None:
        for agent in self._agents.values():
            agent.stop()
        self.logger.info("All agents stopped")

    def restart_agent(self, agent_id: str) -> Agent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise KeyError(f"Unknown agent: {agent_id}")
        agent.restart()
        self._assignment_pass()
        return agent

    # ── Tasks ─────────────────────────────────────────────────────────

    def create_task(
        self,
        agent_type: str,
        task_name: str,
        target: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        priority: int = 5,
    ) -> Task:
        """Build a PENDING task.  It is not queued until :meth:`enqueue`."""
        task = Task(
            agent_type=agent_type,
            task_name=task_name,
            target=target,
            details=details,
            priority=priority,
        )
        self.logger.debug(
            "Task created: %s %s.%s (priority %d)", task.task_id, agent_type, task_name, priority
        )
        return task

    def enqueue(self, task: Task) -> bool:
        """
        Queue *task* and immediately run an assignment pass.

        Only fresh PENDING tasks are accepted.  A task that is already
        queued, in flight or finished is logged and ignored, and ``False``
        is returned.
        """
        if task.status != TaskStatus.PENDING:
            self.logger.warning(
                "Rejected task %s: status is %s, not PENDING", task.task_id, task.status.value
            )
            return False
        if task.task_id in self._active or any(q.task_id == task.task_id for q in self._queue):
            self.logger.warning("Rejected task %s: already queued", task.task_id)
            return False
        self._queue.append(task)
        self.logger.debug("Task queued: %s (queue length %d)", task.task_id, len(self._queue))
        self._assignment_pass()
        return True

    def create_and_enqueue(
        self,
        agent_type: str,
        task_name: str,
        target: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        priority: int = 5,
    ) -> Task:
        task = self.create_task(agent_type, task_name, target, details, priority)
        self.enqueue(task)
        return task

    def set_task_complete_callback(self, callback: Optional[TaskCompleteCallback]) -> None:
        self._on_task_complete = callback

    # ── Assignment ────────────────────────────────────────────────────

    def _find_available_agent(self, task: Task) -> Optional[Agent]:
        for agent in self._agents.values():
            if (
                agent.agent_type == task.agent_type
                and agent.status == AgentStatus.IDLE
                and agent.can_handle_task(task.task_name)
            ):
                return agent
        return None

    def _assignment_pass(self) -> None:
        self._queue.sort(key=lambda t: t.priority, reverse=True)
        assigned: Set[int] = set()
        for index in self.policy(self._queue):
            task = self._queue[index]
            agent = self._find_available_agent(task)
            if agent is None:
                continue
            self._assign(task, agent)
            assigned.add(index)
        if assigned:
            self._queue = [t for i, t in enumerate(self._queue) if i not in assigned]

    def _assign(self, task: Task, agent: Agent) -> None:
        loop = asyncio.get_running_loop()
        task.advance(TaskStatus.ASSIGNED)
        task.agent_id = agent.agent_id
        agent.reserve(task)
        self._active[task.task_id] = task
        self.logger.info("Task assigned: %s → %s", task.task_id, agent.agent_id)

        running = loop.create_task(self._execute(agent, task), name=f"cyberswarm:{task.task_id}")
        self._inflight.add(running)
        running.add_done_callback(self._inflight.discard)

    async def _execute(self, agent: Agent, task: Task) -> None:
        task.advance(TaskStatus.EXECUTING)
        self.logger.info("Task executing: %s", task.task_id)
        try:
            event = await agent.execute_task(task)
        except Exception as exc:
            task.error = str(exc) or type(exc).__name__
            task.advance(TaskStatus.FAILED)
            self._retire(task)
            self.logger.error("Task failed: %s: %s", task.task_id, task.error)
        else:
            task.advance(TaskStatus.COMPLETED)
            self._retire(task)
            self.logger.info(
                "Task completed: %s (%.0f ms)", task.task_id, task.duration_ms() or 0.0
            )
            if self._on_task_complete is not None:
                try:
                    self._on_task_complete(task, event)
                except Exception:
                    self.logger.exception("Task completion callback raised for %s", task.task_id)
        self._assignment_pass()

    def _retire(self, task: Task) -> None:
        self._active.pop(task.task_id, None)
        self._finished.append(task)

    async def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for every in-flight execution, including ones started meanwhile.

        Returns ``False`` if *timeout* elapsed first.  Nothing is cancelled.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._inflight:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                return False
            await asyncio.wait(set(self._inflight), timeout=remaining)
        return True

    # ── Accessors ─────────────────────────────────────────────────────

    def get_task_queue(self) -> List[Task]:
        return list(self._queue)

    def get_active_tasks(self) -> List[Task]:
        return list(self._active.values())

    def get_all_tasks(self) -> List[Task]:
        return self.get_task_queue() + self.get_active_tasks()

    def get_finished_tasks(self) -> List[Task]:
        return list(self._finished)

    def get_agent_stats(self) -> Dict[str, int]:
        stats = {"total": len(self._agents), "idle": 0, "busy": 0, "error": 0, "offline": 0}
        for agent in self._agents.values():
            stats[agent.status.value.lower()] += 1
        return stats

    @property
    def in_flight(self) -> int:
        return len(self._inflight)
