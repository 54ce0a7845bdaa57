"""Workflow definition store: validated CRUD over workflow records.

Definitions are validated before they touch the repository, so a cyclic or
dangling definition is never persisted.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from promptweave.errors import NotFoundError, ValidationError
from promptweave.storage import Repository
from promptweave.workflow.models import (
    AgentStepConfig,
    ApiCallConfig,
    LoopConfig,
    StepDef,
    WorkflowDef,
)
from promptweave.workflow.templates import template_variables


def _check(workflow: WorkflowDef) -> None:
    errors = workflow.validate()
    if errors:
        raise ValidationError(f"Invalid workflow '{workflow.name}': {'; '.join(errors)}", errors=errors)
    undeclared = undeclared_variables(workflow)
    if undeclared:
        logger.warning(
            "Workflow '{}' references undeclared variables (pass them at start): {}",
            workflow.name,
            ", ".join(undeclared),
        )


def undeclared_variables(workflow: WorkflowDef) -> list[str]:
    """Template names that are neither workflow variables nor step outputs."""
    known = set(workflow.variables) | {s.output_name for s in workflow.steps}
    found: dict[str, None] = {}

    def visit(step: StepDef, scope: set[str]) -> None:
        match step.config:
            case AgentStepConfig(prompt=prompt):
                templates = [prompt]
            case ApiCallConfig(url=url, headers=headers):
                templates = [url, *headers.values()]
            case LoopConfig(item_variable=item_variable):
                scope = scope | {item_variable}
                templates = []
            case _:
                templates = []
        for template in templates:
            for name in template_variables(template):
                if name.partition(".")[0] not in scope:
                    found.setdefault(name, None)
        for sub in step.nested_steps():
            visit(sub, scope)

    for step in workflow.steps:
        visit(step, known)
    return list(found)


class WorkflowStore:
    """Stores workflow definitions in a Repository."""

    def __init__(self, repository: Repository) -> None:
        self._repo = repository

    def create(self, workflow: WorkflowDef | dict[str, Any]) -> WorkflowDef:
        """Validate and store a new workflow. An id is generated when absent."""
        wf = workflow if isinstance(workflow, WorkflowDef) else WorkflowDef.from_dict(workflow)
        if not wf.id:
            wf.id = f"wf_{uuid.uuid4().hex[:12]}"
        if wf.id in self._repo:
            raise ValidationError(f"Workflow '{wf.id}' already exists")
        _check(wf)

        now = datetime.now(UTC).isoformat()
        wf.created_at = now
        wf.updated_at = now
        self._repo.put(wf.id, wf.to_dict())
        logger.info("Workflow created: {} ({} steps)", wf.id, len(wf.steps))
        return wf

    def update(self, workflow_id: str, **changes: Any) -> WorkflowDef:
        """Apply changes, re-validate, and store. The old record stays if invalid."""
        current = self.get(workflow_id)
        data = current.to_dict()
        changes.pop("id", None)
        changes.pop("created_at", None)
        if "steps" in changes:
            changes["steps"] = [
                s.to_dict() if hasattr(s, "to_dict") else s for s in changes["steps"]
            ]
        data.update(changes)
        data["updated_at"] = datetime.now(UTC).isoformat()

        wf = WorkflowDef.from_dict(data)
        _check(wf)
        self._repo.put(workflow_id, wf.to_dict())
        logger.info("Workflow updated: {}", workflow_id)
        return wf

    def delete(self, workflow_id: str) -> bool:
        deleted = self._repo.delete(workflow_id)
        if deleted:
            logger.info("Workflow deleted: {}", workflow_id)
        return deleted

    def find(self, workflow_id: str) -> WorkflowDef | None:
        data = self._repo.get(workflow_id)
        if data is None:
            return None
        try:
            return WorkflowDef.from_dict(data)
        except ValidationError as exc:
            logger.error("Failed to load workflow '{}': {}", workflow_id, exc)
            return None

    def get(self, workflow_id: str) -> WorkflowDef:
        wf = self.find(workflow_id)
        if wf is None:
            raise NotFoundError("Workflow", workflow_id)
        return wf

    def list(self, active_only: bool = False) -> list[WorkflowDef]:
        workflows = []
        for record in self._repo.list():
            if active_only and not record.get("is_active", True):
                continue
            try:
                workflows.append(WorkflowDef.from_dict(record))
            except ValidationError as exc:
                logger.error("Skipping unreadable workflow '{}': {}", record.get("id"), exc)
        return workflows
