"""
orchestrator.logic_pipe — Event-driven rules that turn one team's events
into the other team's follow-up tasks.

    RECON_DATA           → VulnerabilityScannerAgent.vuln_scan         (priority 8)
    VULNERABILITY_FOUND  → PatchManagementAgent.remediate_vuln         (priority 9)
    INTRUSION_DETECTED   → StrategyAdaptationAgent.adapt_strategy      (priority 7)
    DEFENSE_ACTION       → StrategyAdaptationAgent.reevaluate_targets  (priority 6)
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.log import get_logger
from ..core.models import CyberEvent, EventType, LogicPipeExecution, LogicPipeRule, Task

_logger = get_logger("logic_pipe")

RuleFn = Callable[[CyberEvent], List[Task]]


# ── Rules ─────────────────────────────────────────────────────────────


def _recon_to_vuln_scan(event: CyberEvent) -> List[Task]:
    payload = event.payload
    return [
        Task(
            agent_type="VulnerabilityScannerAgent",
            task_name="vuln_scan",
            target=payload.get("target_ip") or event.target,
            details={
                "services": payload.get("services") or {},
                "recon": payload,
                "triggered_by": event.id,
            },
            priority=8,
        )
    ]


def _vuln_to_remediation(event: CyberEvent) -> List[Task]:
    return [
        Task(
            agent_type="PatchManagementAgent",
            task_name="remediate_vuln",
            target=event.target,
            details={"vulnerability": event.payload, "triggered_by": event.id},
            priority=9,
        )
    ]


def _intrusion_to_adaptation(event: CyberEvent) -> List[Task]:
    return [
        Task(
            agent_type="StrategyAdaptationAgent",
            task_name="adapt_strategy",
            details={
                "detected_by": event.payload,
                "triggered_by": event.id,
                "reason": "intrusion_detected",
            },
            priority=7,
        )
    ]


def _defense_to_reevaluation(event: CyberEvent) -> List[Task]:
    return [
        Task(
            agent_type="StrategyAdaptationAgent",
            task_name="reevaluate_targets",
            details={
                "defense_action": event.payload,
                "triggered_by": event.id,
                "reason": "defense_action_detected",
            },
            priority=6,
        )
    ]


DEFAULT_RULES: Dict[str, Tuple[LogicPipeRule, RuleFn]] = {
    EventType.RECON_DATA.value: (LogicPipeRule.RED_DISCOVERS_BLUE_REACTS, _recon_to_vuln_scan),
    EventType.VULNERABILITY_FOUND.value: (LogicPipeRule.RED_DISCOVERS_BLUE_REACTS, _vuln_to_remediation),
    EventType.INTRUSION_DETECTED.value: (LogicPipeRule.BLUE_DETECTS_RED_ADAPTS, _intrusion_to_adaptation),
    EventType.DEFENSE_ACTION.value: (LogicPipeRule.BLUE_DEFENDS_RED_REEVALUATES, _defense_to_reevaluation),
}


# ── Pipe ──────────────────────────────────────────────────────────────


class LogicPipe:
    """Applies the rule for an event's type and records every execution."""

    def __init__(
        self,
        rules: Optional[Dict[str, Tuple[LogicPipeRule, RuleFn]]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.rules = dict(DEFAULT_RULES if rules is None else rules)
        self.logger = logger or _logger
        self._history: List[LogicPipeExecution] = []
        self._on_task_created: Optional[Callable[[Task], Any]] = None

    def set_task_created_callback(self, callback: Optional[Callable[[Task], Any]]) -> None:
        self._on_task_created = callback

    def rule_for(self, event_type: str) -> LogicPipeRule:
        entry = self.rules.get(event_type)
        return entry[0] if entry else LogicPipeRule.NO_RULE

    def process_event(self, event: CyberEvent) -> List[Task]:
        """Return the PENDING tasks created in response to *event*."""
        started = time.perf_counter()
        rule = self.rule_for(event.event_type)
        entry = self.rules.get(event.event_type)

        try:
            tasks = entry[1](event) if entry else []
        except Exception as exc:
            self.logger.error("Logic pipe error on %s: %s", event.event_type, exc)
            self._history.append(
                LogicPipeExecution(
                    trigger_event=event.event_type,
                    rule_applied=rule.value,
                    input_data=event.payload,
                    execution_time_ms=(time.perf_counter() - started) * 1000,
                    success=False,
                    error_message=str(exc),
                )
            )
            return []

        self._history.append(
            LogicPipeExecution(
                trigger_event=event.event_type,
                rule_applied=rule.value,
                input_data=event.payload,
                output_tasks=[
                    {"task_id": t.task_id, "agent_type": t.agent_type, "task_name": t.task_name}
                    for t in tasks
                ],
                execution_time_ms=(time.perf_counter() - started) * 1000,
            )
        )
        if tasks:
            self.logger.info(
                "Logic pipe: %s via %s created %d task(s)", event.event_type, rule.value, len(tasks)
            )

        for task in tasks:
            if self._on_task_created is None:
                break
            try:
                self._on_task_created(task)
            except Exception:
                self.logger.exception("Task-created callback raised for %s", task.task_id)
        return tasks

    def get_execution_history(self) -> List[LogicPipeExecution]:
        return list(self._history)

    def get_stats(self) -> Dict[str, Any]:
        rule_counts = {
            r.value: sum(1 for e in self._history if e.rule_applied == r.value)
            for r in LogicPipeRule
            if r != LogicPipeRule.NO_RULE
        }
        return {
            "total_executions": len(self._history),
            "successful_executions": sum(1 for e in self._history if e.success),
            "failed_executions": sum(1 for e in self._history if not e.success),
            "rule_executions": rule_counts,
        }
