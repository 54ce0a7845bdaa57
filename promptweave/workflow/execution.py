"""Execution records and the store that tracks them.

A WorkflowExecution is written only by the engine task driving it. Its
status moves forward only (Pending -> Running -> Completed/Failed/Cancelled)
and it stops changing once terminal. Logs are bounded per execution.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from loguru import logger

from promptweave.errors import ExecutionError, NotFoundError
from promptweave.storage import Repository


def _now() -> str:
    return datetime.now(UTC).isoformat()


class ExecutionStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({ExecutionStatus.COMPLETED, ExecutionStatus.FAILED, ExecutionStatus.CANCELLED})

_ALLOWED: dict[ExecutionStatus, frozenset[ExecutionStatus]] = {
    ExecutionStatus.PENDING: frozenset(
        {ExecutionStatus.RUNNING, ExecutionStatus.FAILED, ExecutionStatus.CANCELLED}
    ),
    ExecutionStatus.RUNNING: _TERMINAL,
}


class LogLevel(StrEnum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class StepError:
    step_id: str
    message: str
    timestamp: str = field(default_factory=_now)
    error_type: str = ""


@dataclass(frozen=True, slots=True)
class LogEntry:
    level: LogLevel
    message: str
    timestamp: str = field(default_factory=_now)
    step_id: str | None = None


@dataclass(slots=True)
class WorkflowExecution:
    """State of one run of a workflow."""

    id: str
    workflow_id: str
    status: ExecutionStatus = ExecutionStatus.PENDING
    started_at: str = field(default_factory=_now)
    completed_at: str | None = None
    results: dict[str, Any] = field(default_factory=dict)
    errors: list[StepError] = field(default_factory=list)
    logs: deque[LogEntry] = field(default_factory=lambda: deque(maxlen=500))
    current_steps: list[str] = field(default_factory=list)
    waves: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def transition(self, new_status: ExecutionStatus) -> None:
        """Move to ``new_status``. Backward or post-terminal moves raise."""
        if new_status not in _ALLOWED.get(self.status, frozenset()):
            raise ExecutionError(
                f"Execution {self.id}: illegal transition {self.status} -> {new_status}"
            )
        self.status = new_status
        if new_status.is_terminal:
            self.completed_at = _now()
            self.current_steps = []

    def log(self, level: LogLevel, message: str, step_id: str | None = None) -> None:
        self.logs.append(LogEntry(level=level, message=message, step_id=step_id))

    def record_error(self, step_id: str, exc: BaseException) -> StepError:
        error = StepError(
            step_id=step_id,
            message=str(exc) or type(exc).__name__,
            error_type=type(exc).__name__,
        )
        self.errors.append(error)
        return error

    @property
    def duration_seconds(self) -> float:
        if not self.completed_at:
            return 0.0
        start = datetime.fromisoformat(self.started_at)
        end = datetime.fromisoformat(self.completed_at)
        return (end - start).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "status": self.status.value,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "results": self.results,
            "errors": [
                {
                    "step_id": e.step_id,
                    "message": e.message,
                    "timestamp": e.timestamp,
                    "error_type": e.error_type,
                }
                for e in self.errors
            ],
            "logs": [
                {
                    "level": entry.level.value,
                    "message": entry.message,
                    "timestamp": entry.timestamp,
                    "step_id": entry.step_id,
                }
                for entry in self.logs
            ],
            "waves": self.waves,
        }


class ExecutionStore:
    """Live and historical executions, newest first on listing.

    Terminal executions are optionally archived to a Repository and pruned
    from memory beyond ``max_retained`` (0 = keep all).
    """

    def __init__(
        self,
        max_log_entries: int = 500,
        max_retained: int = 0,
        archive: Repository | None = None,
    ) -> None:
        self._executions: dict[str, WorkflowExecution] = {}
        self._max_log_entries = max_log_entries
        self._max_retained = max_retained
        self._archive = archive

    def new(self, execution_id: str, workflow_id: str, results: dict[str, Any]) -> WorkflowExecution:
        """Create and register a Pending execution."""
        execution = WorkflowExecution(
            id=execution_id,
            workflow_id=workflow_id,
            results=results,
            logs=deque(maxlen=self._max_log_entries),
        )
        self._executions[execution_id] = execution
        return execution

    def find(self, execution_id: str) -> WorkflowExecution | None:
        return self._executions.get(execution_id)

    def get(self, execution_id: str) -> WorkflowExecution:
        execution = self.find(execution_id)
        if execution is None:
            raise NotFoundError("Execution", execution_id)
        return execution

    def list(
        self,
        workflow_id: str | None = None,
        status: ExecutionStatus | None = None,
    ) -> list[WorkflowExecution]:
        executions = [
            e
            for e in self._executions.values()
            if (workflow_id is None or e.workflow_id == workflow_id)
            and (status is None or e.status == status)
        ]
        return sorted(executions, key=lambda e: e.started_at, reverse=True)

    def active(self) -> list[WorkflowExecution]:
        return [e for e in self._executions.values() if not e.is_terminal]

    def cancel(self, execution_id: str) -> bool:
        """Cancel a Running execution. Anything else is left alone.

        In-flight step calls are not interrupted; the engine discards their
        results when it sees the Cancelled status.
        """
        execution = self.get(execution_id)
        if execution.status != ExecutionStatus.RUNNING:
            return False
        execution.transition(ExecutionStatus.CANCELLED)
        execution.log(LogLevel.WARN, "Execution cancelled")
        logger.info("Workflow execution cancelled: {}", execution_id)
        self.finished(execution)
        return True

    def finished(self, execution: WorkflowExecution) -> None:
        """Archive a terminal execution and prune old ones."""
        if self._archive is not None:
            self._archive.put(execution.id, execution.to_dict())
        self.prune()

    def archived(self, workflow_id: str | None = None) -> list[dict[str, Any]]:
        """Serialized terminal executions from the archive, newest first."""
        if self._archive is None:
            return []
        records = self._archive.list(
            lambda r: workflow_id is None or r.get("workflow_id") == workflow_id
        )
        return sorted(records, key=lambda r: r.get("started_at", ""), reverse=True)

    def prune(self) -> int:
        """Drop the oldest terminal executions beyond the retention limit."""
        if not self._max_retained:
            return 0
        terminal = sorted(
            (e for e in self._executions.values() if e.is_terminal),
            key=lambda e: e.started_at,
        )
        excess = len(terminal) - self._max_retained
        for execution in terminal[: max(excess, 0)]:
            del self._executions[execution.id]
        return max(excess, 0)

    def __len__(self) -> int:
        return len(self._executions)
