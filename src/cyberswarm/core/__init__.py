"""
core — Shared infrastructure: config, logging, errors, models, oracle, reporting.
"""

from .config import Config, load_config, validate_config
from .errors import (
    CyberSwarmError,
    InvalidTransitionError,
    OracleError,
    OracleParseError,
    TaskExecutionError,
    UnsupportedTaskError,
)
from .log import SimulationEventLog, console, get_logger, setup_logging
from .models import (
    AgentInfo,
    AgentStatus,
    ChainOfThought,
    CyberEvent,
    EventType,
    SecurityTool,
    Severity,
    Task,
    TaskStatus,
    ToolExecution,
)
from .oracle import DecisionOracle, LiteLLMOracle, decide, extract_json

__all__ = [
    "AgentInfo",
    "AgentStatus",
    "ChainOfThought",
    "Config",
    "CyberEvent",
    "CyberSwarmError",
    "DecisionOracle",
    "EventType",
    "InvalidTransitionError",
    "LiteLLMOracle",
    "OracleError",
    "OracleParseError",
    "SecurityTool",
    "Severity",
    "SimulationEventLog",
    "Task",
    "TaskExecutionError",
    "TaskStatus",
    "ToolExecution",
    "UnsupportedTaskError",
    "console",
    "decide",
    "extract_json",
    "get_logger",
    "load_config",
    "setup_logging",
    "validate_config",
]
