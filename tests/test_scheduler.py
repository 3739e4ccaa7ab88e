import asyncio

import pytest

from cyberswarm.agents.base import AgentKind
from cyberswarm.core.config import Config
from cyberswarm.core.models import AgentStatus, Task, TaskStatus
from cyberswarm.orchestrator.scheduler import (
    TaskScheduler,
    priority_first,
    resolve_policy,
    reverse_scan,
)

from .fakes import FakeOracle

ECHO = AgentKind("EchoAgent", "Echo Agent", "echo-01", ["echo", "fail", "slow"], team="blue")
RAN = []


@ECHO.handler("echo")
async def _echo(agent, task):
    RAN.append(task.task_id)
    await asyncio.sleep(0)
    return agent.emit_event("ECHO", {"priority": task.priority}, "Low", task.target, task.task_id)


@ECHO.handler("fail")
async def _fail(agent, task):
    raise RuntimeError("handler exploded")


@ECHO.handler("slow")
async def _slow(agent, task):
    await asyncio.sleep(0.5)
    return agent.emit_event("ECHO", {}, "Low")


@pytest.fixture(autouse=True)
def reset_ran():
    RAN.clear()


def _agent(agent_id="echo-01", supported=None):
    return ECHO.create(FakeOracle(), agent_id=agent_id, supported_tasks=supported, config=Config(delay_scale=0))


def _echo_task(priority=5, name="echo"):
    return Task(agent_type="EchoAgent", task_name=name, priority=priority)


def test_policies():
    queue = [_echo_task(p) for p in (9, 5, 1)]
    assert list(reverse_scan(queue)) == [2, 1, 0]
    assert list(priority_first(queue)) == [0, 1, 2]
    assert resolve_policy(None) is reverse_scan
    assert resolve_policy("priority_first") is priority_first
    with pytest.raises(ValueError):
        resolve_policy("round_robin")


async def test_single_task_runs_to_completion():
    sched = TaskScheduler()
    agent = _agent()
    sched.register_agent(agent)
    done = []
    sched.set_task_complete_callback(lambda task, event: done.append((task, event)))

    task = sched.create_and_enqueue("EchoAgent", "echo", "10.0.0.1", priority=3)
    assert task.status == TaskStatus.ASSIGNED
    assert task.agent_id == "echo-01"
    assert agent.status == AgentStatus.BUSY
    assert sched.get_task_queue() == []

    assert await sched.wait_until_idle(timeout=5)
    assert task.status == TaskStatus.COMPLETED
    assert task.history == [
        TaskStatus.PENDING,
        TaskStatus.ASSIGNED,
        TaskStatus.EXECUTING,
        TaskStatus.COMPLETED,
    ]
    assert done[0][0] is task
    assert done[0][1].event_type == "ECHO"
    assert agent.status == AgentStatus.IDLE
    assert sched.get_active_tasks() == []
    assert sched.get_finished_tasks() == [task]


async def test_no_agent_of_type_keeps_task_pending():
    sched = TaskScheduler()
    sched.register_agent(_agent())
    task = sched.create_and_enqueue("GhostAgent", "echo")
    assert task.status == TaskStatus.PENDING
    assert sched.get_task_queue() == [task]
    assert await sched.wait_until_idle(timeout=1)


async def test_capability_mismatch_is_not_assigned():
    sched = TaskScheduler()
    sched.register_agent(_agent(supported=["echo"]))
    task = sched.create_and_enqueue("EchoAgent", "slow")
    assert task.status == TaskStatus.PENDING


async def test_one_task_per_agent():
    sched = TaskScheduler()
    sched.register_agent(_agent())
    first = sched.create_and_enqueue("EchoAgent", "echo", priority=5)
    second = sched.create_and_enqueue("EchoAgent", "echo", priority=5)
    assert first.status == TaskStatus.ASSIGNED
    assert second.status == TaskStatus.PENDING
    assert len(sched.get_active_tasks()) == 1

    assert await sched.wait_until_idle(timeout=5)
    assert second.status == TaskStatus.COMPLETED
    assert RAN == [first.task_id, second.task_id]


async def test_two_agents_share_the_queue():
    sched = TaskScheduler()
    sched.register_agent(_agent("echo-01"))
    sched.register_agent(_agent("echo-02"))
    tasks = [sched.create_and_enqueue("EchoAgent", "echo") for _ in range(3)]
    assert {t.agent_id for t in tasks[:2]} == {"echo-01", "echo-02"}
    assert tasks[2].status == TaskStatus.PENDING
    assert await sched.wait_until_idle(timeout=5)
    assert all(t.status == TaskStatus.COMPLETED for t in tasks)


async def _run_backlog(policy):
    sched = TaskScheduler(policy)
    agent = _agent()
    sched.register_agent(agent)
    agent.stop()
    tasks = {p: sched.create_and_enqueue("EchoAgent", "echo", priority=p) for p in (5, 9, 1)}
    assert all(t.status == TaskStatus.PENDING for t in tasks.values())
    sched.start_all()
    assert await sched.wait_until_idle(timeout=5)
    by_id = {t.task_id: p for p, t in tasks.items()}
    return [by_id[task_id] for task_id in RAN]


async def test_reverse_scan_runs_lowest_priority_first():
    assert await _run_backlog("reverse_scan") == [1, 5, 9]


async def test_priority_first_runs_highest_priority_first():
    assert await _run_backlog("priority_first") == [9, 5, 1]


async def test_registering_an_agent_drains_backlog():
    sched = TaskScheduler()
    task = sched.create_and_enqueue("EchoAgent", "echo")
    assert task.status == TaskStatus.PENDING
    sched.register_agent(_agent())
    assert task.status == TaskStatus.ASSIGNED
    assert await sched.wait_until_idle(timeout=5)


async def test_failure_marks_task_and_agent():
    sched = TaskScheduler()
    agent = _agent()
    sched.register_agent(agent)
    completed = []
    sched.set_task_complete_callback(lambda task, event: completed.append(task))

    failing = sched.create_and_enqueue("EchoAgent", "fail")
    waiting = sched.create_and_enqueue("EchoAgent", "echo")
    assert await sched.wait_until_idle(timeout=5)

    assert failing.status == TaskStatus.FAILED
    assert failing.error == "handler exploded"
    assert agent.status == AgentStatus.ERROR
    assert completed == []
    assert waiting.status == TaskStatus.PENDING
    assert sched.get_agent_stats()["error"] == 1

    sched.restart_agent("echo-01")
    assert waiting.status == TaskStatus.ASSIGNED
    assert await sched.wait_until_idle(timeout=5)
    assert waiting.status == TaskStatus.COMPLETED


async def test_completion_callback_exception_is_isolated():
    sched = TaskScheduler()
    sched.register_agent(_agent())

    def boom(task, event):
        raise RuntimeError("callback broke")

    sched.set_task_complete_callback(boom)
    first = sched.create_and_enqueue("EchoAgent", "echo")
    second = sched.create_and_enqueue("EchoAgent", "echo")
    assert await sched.wait_until_idle(timeout=5)
    assert first.status == second.status == TaskStatus.COMPLETED


async def test_wait_until_idle_times_out_without_cancelling():
    sched = TaskScheduler()
    sched.register_agent(_agent())
    task = sched.create_and_enqueue("EchoAgent", "slow")
    assert not await sched.wait_until_idle(timeout=0.05)
    assert task.status == TaskStatus.EXECUTING
    assert sched.in_flight == 1
    assert await sched.wait_until_idle(timeout=5)
    assert task.status == TaskStatus.COMPLETED


def test_restart_unknown_agent():
    with pytest.raises(KeyError):
        TaskScheduler().restart_agent("nobody")


def test_create_task_does_not_queue():
    sched = TaskScheduler()
    task = sched.create_task("EchoAgent", "echo", priority=7)
    assert task.status == TaskStatus.PENDING
    assert sched.get_task_queue() == []


async def test_agent_stats_and_all_tasks():
    sched = TaskScheduler()
    sched.register_agent(_agent("echo-01"))
    sched.register_agent(_agent("echo-02"))
    sched.get_agent("echo-02").stop()
    sched.create_and_enqueue("EchoAgent", "slow")
    pending = sched.create_and_enqueue("EchoAgent", "slow")
    stats = sched.get_agent_stats()
    assert stats == {"total": 2, "idle": 0, "busy": 1, "error": 0, "offline": 1}
    assert len(sched.get_all_tasks()) == 2
    assert pending in sched.get_task_queue()
    sched.start_all()
    assert await sched.wait_until_idle(timeout=5)


async def test_unsupported_task_fails_but_agent_stays_available():
    sched = TaskScheduler()
    agent = _agent(supported=["echo", "ghost"])
    sched.register_agent(agent)

    ghost = sched.create_and_enqueue("EchoAgent", "ghost", priority=9)
    follow_up = sched.create_and_enqueue("EchoAgent", "echo", priority=1)
    assert await sched.wait_until_idle(timeout=5)

    assert ghost.status == TaskStatus.FAILED
    assert "Unsupported task" in ghost.error
    assert agent.status == AgentStatus.IDLE
    assert follow_up.status == TaskStatus.COMPLETED


async def test_oracle_failure_fails_task_and_keeps_audit_trail():
    from cyberswarm.agents import DISCOVERY
    from cyberswarm.core.errors import OracleError

    sched = TaskScheduler()
    agent = DISCOVERY.create(FakeOracle(error=OracleError("quota exhausted")), config=Config(delay_scale=0))
    sched.register_agent(agent)
    events, completed = [], []
    agent.set_event_callback(events.append)
    sched.set_task_complete_callback(lambda task, event: completed.append(task))

    task = sched.create_and_enqueue("DiscoveryAgent", "network_scan", "10.0.0.0/24")
    assert await sched.wait_until_idle(timeout=5)

    assert task.status == TaskStatus.FAILED
    assert "quota exhausted" in task.error
    assert events == []
    assert completed == []
    steps = [t.step_number for t in agent.thoughts if t.task_id == task.task_id]
    assert steps == [1, 2]
    assert agent.status == AgentStatus.ERROR


@pytest.mark.parametrize("started", [False, True])
async def test_restarting_agents_mid_task_does_not_double_book(started):
    sched = TaskScheduler()
    agent = _agent()
    sched.register_agent(agent)
    slow = sched.create_and_enqueue("EchoAgent", "slow")
    if started:
        await asyncio.sleep(0)
        assert slow.status == TaskStatus.EXECUTING

    sched.stop_all()
    sched.start_all()
    assert agent.status == AgentStatus.BUSY

    follow_up = sched.create_and_enqueue("EchoAgent", "echo")
    assert follow_up.status == TaskStatus.PENDING
    assert sched.get_task_queue() == [follow_up]

    assert await sched.wait_until_idle(timeout=5)
    assert slow.status == follow_up.status == TaskStatus.COMPLETED
    assert agent.status == AgentStatus.IDLE


async def test_enqueue_rejects_tasks_that_are_not_pending():
    sched = TaskScheduler()
    sched.register_agent(_agent())
    task = sched.create_and_enqueue("EchoAgent", "echo")
    assert task.status == TaskStatus.ASSIGNED
    assert sched.enqueue(task) is False
    assert sched.get_task_queue() == []

    assert await sched.wait_until_idle(timeout=5)
    assert task.status == TaskStatus.COMPLETED
    assert sched.enqueue(task) is False
    assert sched.get_task_queue() == []
    assert RAN == [task.task_id]

    fresh = _echo_task()
    assert sched.enqueue(fresh) is True
    assert await sched.wait_until_idle(timeout=5)
    assert fresh.status == TaskStatus.COMPLETED


def test_enqueue_rejects_a_task_already_queued():
    sched = TaskScheduler()
    task = Task(agent_type="GhostAgent", task_name="haunt")
    assert sched.enqueue(task) is True
    assert sched.enqueue(task) is False
    assert sched.get_task_queue() == [task]
