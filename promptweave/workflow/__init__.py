"""Workflow engine: DAG definitions, step execution, and execution tracking."""

from promptweave.workflow.engine import WorkflowEngine
from promptweave.workflow.execution import ExecutionStatus, ExecutionStore, WorkflowExecution
from promptweave.workflow.executor import StepExecutor
from promptweave.workflow.models import ErrorPolicy, StepDef, StepKind, WorkflowDef
from promptweave.workflow.store import WorkflowStore

__all__ = [
    "ErrorPolicy",
    "ExecutionStatus",
    "ExecutionStore",
    "StepDef",
    "StepExecutor",
    "StepKind",
    "WorkflowDef",
    "WorkflowEngine",
    "WorkflowExecution",
    "WorkflowStore",
]
