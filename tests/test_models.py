import pytest

from cyberswarm.core.errors import InvalidTransitionError
from cyberswarm.core.models import ChainOfThought, Severity, Task, TaskStatus


def test_task_defaults():
    task = Task(agent_type="DiscoveryAgent", task_name="network_scan")
    assert task.status == TaskStatus.PENDING
    assert task.priority == 5
    assert task.history == [TaskStatus.PENDING]
    assert task.task_id.startswith("task-")
    assert task.agent_id is None


def test_task_ids_are_unique():
    ids = {Task(agent_type="A", task_name="t").task_id for _ in range(50)}
    assert len(ids) == 50


def test_task_lifecycle_success():
    task = Task(agent_type="A", task_name="t")
    task.advance(TaskStatus.ASSIGNED)
    assert task.assigned_at is not None
    task.advance(TaskStatus.EXECUTING)
    task.advance(TaskStatus.COMPLETED)
    assert task.completed_at is not None
    assert task.history == [
        TaskStatus.PENDING,
        TaskStatus.ASSIGNED,
        TaskStatus.EXECUTING,
        TaskStatus.COMPLETED,
    ]
    assert task.duration_ms() >= 0


@pytest.mark.parametrize(
    "path, bad",
    [
        ([], TaskStatus.EXECUTING),
        ([], TaskStatus.COMPLETED),
        ([TaskStatus.ASSIGNED], TaskStatus.FAILED),
        ([TaskStatus.ASSIGNED, TaskStatus.EXECUTING, TaskStatus.FAILED], TaskStatus.COMPLETED),
        ([TaskStatus.ASSIGNED, TaskStatus.EXECUTING, TaskStatus.COMPLETED], TaskStatus.PENDING),
    ],
)
def test_task_rejects_illegal_transitions(path, bad):
    task = Task(agent_type="A", task_name="t")
    for status in path:
        task.advance(status)
    with pytest.raises(InvalidTransitionError):
        task.advance(bad)
    assert task.history[-1] == task.status


def test_terminal_statuses():
    assert TaskStatus.COMPLETED.is_terminal
    assert TaskStatus.FAILED.is_terminal
    assert not TaskStatus.EXECUTING.is_terminal


def test_severity_from_str():
    assert Severity.from_str("critical") == Severity.CRITICAL
    assert Severity.from_str("High") == Severity.HIGH
    assert Severity.from_str("bogus") is None
    assert Severity.from_str(None, Severity.LOW) == Severity.LOW


def test_chain_of_thought_confidence_bounds():
    with pytest.raises(ValueError):
        ChainOfThought(
            id="x", step_number=1, step_type="analysis", description="d",
            reasoning="r", confidence=1.5, agent_id="a",
        )
