"""
core.models — Canonical data models for the cyberswarm engine.

Every component speaks the same language through these Pydantic
models: tasks and their lifecycle, agent snapshots, the audit records
(chain-of-thought, events, tool executions) and the registry entries.
"""

from __future__ import annotations

import random
import string
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidTransitionError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_task_id() -> str:
    """Human-readable task id: ``task-<epoch ms>-<9 random chars>``."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"task-{int(time.time() * 1000)}-{suffix}"


# ── Enumerations ──────────────────────────────────────────────────────


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    EXECUTING = "EXECUTING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class AgentStatus(str, Enum):
    IDLE = "IDLE"
    BUSY = "BUSY"
    ERROR = "ERROR"
    OFFLINE = "OFFLINE"


class Severity(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def from_str(cls, s: Optional[str], default: Optional["Severity"] = None) -> Optional["Severity"]:
        """Case-insensitive parse; unknown values map to *default*."""
        if not s:
            return default
        s_lower = str(s).strip().lower()
        for member in cls:
            if member.value.lower() == s_lower:
                return member
        return default


class StepType(str, Enum):
    ANALYSIS = "analysis"
    DECISION = "decision"
    ACTION = "action"
    EVALUATION = "evaluation"


class EventType(str, Enum):
    RECON_DATA = "RECON_DATA"
    VULNERABILITY_FOUND = "VULNERABILITY_FOUND"
    INTRUSION_DETECTED = "INTRUSION_DETECTED"
    DEFENSE_ACTION = "DEFENSE_ACTION"
    ATTACK_ADAPTATION = "ATTACK_ADAPTATION"
    TARGET_REEVALUATION = "TARGET_REEVALUATION"
    SCAN_COMPLETE = "SCAN_COMPLETE"
    CONFIG_AUDIT_COMPLETE = "CONFIG_AUDIT_COMPLETE"
    WEBAPP_SCAN_COMPLETE = "WEBAPP_SCAN_COMPLETE"
    MONITORING_COMPLETE = "MONITORING_COMPLETE"
    DEFENSE_ANALYSIS_COMPLETE = "DEFENSE_ANALYSIS_COMPLETE"
    TASK_ERROR = "TASK_ERROR"
    # purple team
    THREAT_HUNT_FINDING = "THREAT_HUNT_FINDING"
    THREAT_HUNT_COMPLETE = "THREAT_HUNT_COMPLETE"
    DETECTION_GAP_FOUND = "DETECTION_GAP_FOUND"
    INCIDENT_DETECTED = "INCIDENT_DETECTED"
    INCIDENT_CONTAINED = "INCIDENT_CONTAINED"
    INCIDENT_ERADICATED = "INCIDENT_ERADICATED"
    INCIDENT_RECOVERED = "INCIDENT_RECOVERED"
    POSTURE_ASSESSMENT_COMPLETE = "POSTURE_ASSESSMENT_COMPLETE"
    MITRE_MAPPING_COMPLETE = "MITRE_MAPPING_COMPLETE"
    IOC_CORRELATED = "IOC_CORRELATED"
    THREAT_INTEL_REPORT = "THREAT_INTEL_REPORT"


class LogicPipeRule(str, Enum):
    RED_DISCOVERS_BLUE_REACTS = "RED_DISCOVERS_BLUE_REACTS"
    BLUE_DETECTS_RED_ADAPTS = "BLUE_DETECTS_RED_ADAPTS"
    BLUE_DEFENDS_RED_REEVALUATES = "BLUE_DEFENDS_RED_REEVALUATES"
    NO_RULE = "NO_RULE"


# ── Tasks ─────────────────────────────────────────────────────────────

# Only legal forward edges of the task lifecycle.
_TRANSITIONS: Dict[TaskStatus, tuple[TaskStatus, ...]] = {
    TaskStatus.PENDING: (TaskStatus.ASSIGNED,),
    TaskStatus.ASSIGNED: (TaskStatus.EXECUTING,),
    TaskStatus.EXECUTING: (TaskStatus.COMPLETED, TaskStatus.FAILED),
    TaskStatus.COMPLETED: (),
    TaskStatus.FAILED: (),
}


class Task(BaseModel):
    """A unit of work requested of one agent type."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    task_id: str = Field(default_factory=new_task_id)
    agent_type: str
    task_name: str
    target: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    priority: int = 5
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    agent_id: Optional[str] = None
    error: Optional[str] = None

    # Every status the task has been in, oldest first.
    history: List[TaskStatus] = Field(default_factory=lambda: [TaskStatus.PENDING])

    def advance(self, status: TaskStatus) -> None:
        """Move to *status*, enforcing PENDING→ASSIGNED→EXECUTING→terminal."""
        if status not in _TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Task {self.task_id}: illegal transition {self.status.value} → {status.value}"
            )
        self.status = status
        self.history.append(status)
        if status == TaskStatus.ASSIGNED:
            self.assigned_at = utcnow()
        elif status.is_terminal:
            self.completed_at = utcnow()

    def duration_ms(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.created_at).total_seconds() * 1000


# ── Agents ────────────────────────────────────────────────────────────


class AgentInfo(BaseModel):
    """Read-only snapshot of an agent."""

    agent_id: str
    agent_name: str
    agent_type: str
    supported_tasks: List[str] = Field(default_factory=list)
    status: AgentStatus = AgentStatus.IDLE
    last_seen: datetime = Field(default_factory=utcnow)
    registered_at: datetime = Field(default_factory=utcnow)


# ── Audit records ─────────────────────────────────────────────────────


class ChainOfThought(BaseModel):
    """One immutable reasoning step emitted during a task execution."""

    model_config = ConfigDict(frozen=True)

    id: str
    step_number: int
    step_type: str
    description: str
    reasoning: str
    data: Optional[Dict[str, Any]] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=utcnow)
    agent_id: str
    task_id: Optional[str] = None


class CyberEvent(BaseModel):
    """Outcome (terminal or intermediate) reported by an agent."""

    id: str
    event_type: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    severity: Optional[Severity] = None
    target: Optional[str] = None
    processed: bool = False
    timestamp: datetime = Field(default_factory=utcnow)
    agent_id: Optional[str] = None
    task_id: Optional[str] = None
    category: Optional[str] = None


class ToolExecution(BaseModel):
    """Audit record of a simulated security-tool invocation."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tool_id: str
    command: str
    target: str
    options: Dict[str, Any] = Field(default_factory=dict)
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    exit_code: Optional[int] = None
    output: Optional[str] = None
    agent_id: str = ""
    task_id: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.completed_at is not None


# ── Capability registry entries ───────────────────────────────────────


class SecurityTool(BaseModel):
    """Descriptive metadata for a named security capability."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    category: str
    subcategories: List[str] = Field(default_factory=list)
    capabilities: List[str] = Field(default_factory=list)
    mitre_techniques: List[str] = Field(default_factory=list)
    platforms: List[str] = Field(default_factory=list)
    default_options: Dict[str, Any] = Field(default_factory=dict)
    output_format: str = "text"
    risk_level: str = "low"
    requires_privilege: bool = False


# ── Orchestration records ─────────────────────────────────────────────


class LogicPipeExecution(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    trigger_event: str
    rule_applied: str
    input_data: Dict[str, Any] = Field(default_factory=dict)
    output_tasks: List[Dict[str, Any]] = Field(default_factory=list)
    execution_time_ms: Optional[float] = None
    success: bool = True
    error_message: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)


class SimulationState(BaseModel):
    is_running: bool = False
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    agents: List[AgentInfo] = Field(default_factory=list)
    task_queue: List[Task] = Field(default_factory=list)
    event_history: List[CyberEvent] = Field(default_factory=list)
    chain_of_thoughts: List[ChainOfThought] = Field(default_factory=list)
    logic_pipe_executions: List[LogicPipeExecution] = Field(default_factory=list)
    target_network: Optional[str] = None
