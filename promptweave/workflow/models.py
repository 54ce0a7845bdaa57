"""Workflow data models: definitions, steps, and step configurations.

A workflow is a DAG of steps. Each step carries exactly one config variant
from a closed set (agent call, data processing, API call, condition, loop,
parallel); the variant determines the step's kind. Condition, loop, and
parallel steps nest further steps that have no dependencies of their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from promptweave.errors import ValidationError


class StepKind(StrEnum):
    AI_AGENT = "ai_agent"
    DATA_PROCESSING = "data_processing"
    API_CALL = "api_call"
    CONDITION = "condition"
    LOOP = "loop"
    PARALLEL = "parallel"


class ErrorPolicy(StrEnum):
    """What the engine does when a step fails."""

    STOP = "stop"
    CONTINUE = "continue"
    RETRY = "retry"


class TriggerType(StrEnum):
    MANUAL = "manual"
    SCHEDULE = "schedule"
    WEBHOOK = "webhook"
    EVENT = "event"


class DataOperation(StrEnum):
    VALIDATE = "validate"
    TRANSFORM = "transform"
    FILTER = "filter"


@dataclass(slots=True)
class AgentStepConfig:
    """Run a prompt through an agent. ``prompt`` may contain {{name}} placeholders."""

    agent_id: str
    prompt: str


@dataclass(slots=True)
class DataProcessingConfig:
    operation: DataOperation
    input_variable: str
    transformations: list[dict[str, Any]] = field(default_factory=list)
    filters: list[dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class ApiCallConfig:
    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None


@dataclass(slots=True)
class ConditionConfig:
    """Evaluate ``condition`` and run ``if_true`` or ``if_false``.

    A missing ``if_false`` makes the step output None when the predicate fails.
    """

    condition: Any
    if_true: StepDef
    if_false: StepDef | None = None


@dataclass(slots=True)
class LoopConfig:
    items_variable: str
    body: StepDef
    item_variable: str = "item"


@dataclass(slots=True)
class ParallelConfig:
    steps: list[StepDef] = field(default_factory=list)


StepConfig = (
    AgentStepConfig
    | DataProcessingConfig
    | ApiCallConfig
    | ConditionConfig
    | LoopConfig
    | ParallelConfig
)

_KIND_BY_CONFIG: dict[type, StepKind] = {
    AgentStepConfig: StepKind.AI_AGENT,
    DataProcessingConfig: StepKind.DATA_PROCESSING,
    ApiCallConfig: StepKind.API_CALL,
    ConditionConfig: StepKind.CONDITION,
    LoopConfig: StepKind.LOOP,
    ParallelConfig: StepKind.PARALLEL,
}


@dataclass(slots=True)
class StepDef:
    """Definition of a single workflow step.

    depends_on lists step ids that must complete before this step runs.
    The step's output is written to ``output_variable`` (the step id when
    empty). retry_count is the definition's budget; executions copy it and
    never write back.
    """

    id: str
    config: StepConfig
    depends_on: list[str] = field(default_factory=list)
    timeout_seconds: float | None = None
    retry_count: int = 0
    on_error: ErrorPolicy = ErrorPolicy.STOP
    output_variable: str = ""

    @property
    def kind(self) -> StepKind:
        return _KIND_BY_CONFIG[type(self.config)]

    @property
    def output_name(self) -> str:
        return self.output_variable or self.id

    def nested_steps(self) -> list[StepDef]:
        """Sub-steps carried directly by this step's config."""
        match self.config:
            case ConditionConfig(if_true=if_true, if_false=if_false):
                return [s for s in (if_true, if_false) if s is not None]
            case LoopConfig(body=body):
                return [body]
            case ParallelConfig(steps=steps):
                return list(steps)
            case _:
                return []

    def agent_ids(self) -> set[str]:
        """Agent ids referenced by this step and any nested steps."""
        ids = {self.config.agent_id} if isinstance(self.config, AgentStepConfig) else set()
        for sub in self.nested_steps():
            ids |= sub.agent_ids()
        return ids

    def validate(self, path: str = "") -> list[str]:
        """Return config problems for this step and its nested steps."""
        where = path or f"Step '{self.id}'"
        errors: list[str] = []
        if self.retry_count < 0:
            errors.append(f"{where}: retry_count must be >= 0")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            errors.append(f"{where}: timeout_seconds must be > 0")

        match self.config:
            case AgentStepConfig(agent_id=agent_id):
                if not agent_id:
                    errors.append(f"{where}: ai_agent step requires agent_id")
            case DataProcessingConfig(input_variable=input_variable):
                if not input_variable:
                    errors.append(f"{where}: data_processing step requires input_variable")
            case ApiCallConfig(url=url):
                if not url:
                    errors.append(f"{where}: api_call step requires url")
            case LoopConfig(items_variable=items_variable):
                if not items_variable:
                    errors.append(f"{where}: loop step requires items_variable")
            case ParallelConfig(steps=steps):
                if not steps:
                    errors.append(f"{where}: parallel step requires at least one sub-step")

        for sub in self.nested_steps():
            if sub.depends_on:
                errors.append(f"{where}: nested step '{sub.id}' cannot declare dependencies")
            errors.extend(sub.validate(f"{where} > '{sub.id}'"))
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "config": _config_to_dict(self.config),
            "depends_on": list(self.depends_on),
            "timeout_seconds": self.timeout_seconds,
            "retry_count": self.retry_count,
            "on_error": self.on_error.value,
            "output_variable": self.output_variable,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_id: str = "") -> StepDef:
        if not isinstance(data, dict):
            raise ValidationError(f"Step definition must be an object, got {type(data).__name__}")
        step_id = data.get("id") or default_id
        if not step_id:
            raise ValidationError("Step is missing an id")
        if not isinstance(step_id, str):
            raise ValidationError(f"Step id must be a string, got {step_id!r}")
        try:
            kind = StepKind(data["kind"])
        except KeyError as exc:
            raise ValidationError(f"Step '{step_id}' is missing a kind") from exc
        except ValueError as exc:
            raise ValidationError(f"Step '{step_id}' has unknown kind '{data['kind']}'") from exc
        try:
            on_error = ErrorPolicy(data.get("on_error", ErrorPolicy.STOP))
        except ValueError as exc:
            raise ValidationError(
                f"Step '{step_id}' has unknown error policy '{data.get('on_error')}'"
            ) from exc

        config = data.get("config")
        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ValidationError(f"Step '{step_id}': config must be an object")

        depends_on = data.get("depends_on") or []
        if not isinstance(depends_on, list) or not all(isinstance(d, str) for d in depends_on):
            raise ValidationError(f"Step '{step_id}': depends_on must be a list of step ids")

        retry_count = data.get("retry_count", 0)
        if isinstance(retry_count, bool) or not isinstance(retry_count, int):
            raise ValidationError(f"Step '{step_id}': retry_count must be an integer")

        timeout_seconds = data.get("timeout_seconds")
        if timeout_seconds is not None and (
            isinstance(timeout_seconds, bool) or not isinstance(timeout_seconds, (int, float))
        ):
            raise ValidationError(f"Step '{step_id}': timeout_seconds must be a number")

        output_variable = data.get("output_variable") or ""
        if not isinstance(output_variable, str):
            raise ValidationError(f"Step '{step_id}': output_variable must be a string")

        return cls(
            id=step_id,
            config=_config_from_dict(kind, config, step_id),
            depends_on=list(depends_on),
            timeout_seconds=timeout_seconds,
            retry_count=retry_count,
            on_error=on_error,
            output_variable=output_variable,
        )


def _config_to_dict(config: StepConfig) -> dict[str, Any]:
    match config:
        case AgentStepConfig():
            return {"agent_id": config.agent_id, "prompt": config.prompt}
        case DataProcessingConfig():
            return {
                "operation": config.operation.value,
                "input_variable": config.input_variable,
                "transformations": config.transformations,
                "filters": config.filters,
            }
        case ApiCallConfig():
            return {
                "method": config.method,
                "url": config.url,
                "headers": config.headers,
                "body": config.body,
            }
        case ConditionConfig():
            return {
                "condition": config.condition,
                "if_true": config.if_true.to_dict(),
                "if_false": config.if_false.to_dict() if config.if_false else None,
            }
        case LoopConfig():
            return {
                "items_variable": config.items_variable,
                "item_variable": config.item_variable,
                "body": config.body.to_dict(),
            }
        case ParallelConfig():
            return {"steps": [s.to_dict() for s in config.steps]}


def _config_from_dict(kind: StepKind, data: dict[str, Any], step_id: str) -> StepConfig:
    try:
        match kind:
            case StepKind.AI_AGENT:
                return AgentStepConfig(agent_id=data.get("agent_id", ""), prompt=data["prompt"])
            case StepKind.DATA_PROCESSING:
                return DataProcessingConfig(
                    operation=DataOperation(data["operation"]),
                    input_variable=data.get("input_variable", ""),
                    transformations=list(data.get("transformations", [])),
                    filters=list(data.get("filters", [])),
                )
            case StepKind.API_CALL:
                return ApiCallConfig(
                    url=data.get("url", ""),
                    method=data.get("method", "GET"),
                    headers=dict(data.get("headers", {})),
                    body=data.get("body"),
                )
            case StepKind.CONDITION:
                if_false = data.get("if_false")
                return ConditionConfig(
                    condition=data.get("condition", True),
                    if_true=StepDef.from_dict(data["if_true"], f"{step_id}.if_true"),
                    if_false=(
                        StepDef.from_dict(if_false, f"{step_id}.if_false") if if_false else None
                    ),
                )
            case StepKind.LOOP:
                return LoopConfig(
                    items_variable=data.get("items_variable", ""),
                    item_variable=data.get("item_variable", "item"),
                    body=StepDef.from_dict(data["body"], f"{step_id}.body"),
                )
            case StepKind.PARALLEL:
                return ParallelConfig(
                    steps=[
                        StepDef.from_dict(s, f"{step_id}.{i}")
                        for i, s in enumerate(data.get("steps", []))
                    ]
                )
    except KeyError as exc:
        raise ValidationError(f"Step '{step_id}' ({kind}) config is missing {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Step '{step_id}' ({kind}) config is invalid: {exc}") from exc


@dataclass(slots=True)
class Trigger:
    """How a workflow gets started. Opaque to the engine."""

    type: TriggerType = TriggerType.MANUAL
    config: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class WorkflowDef:
    """Complete workflow definition: a named DAG of steps.

    validate() checks for:
      - Duplicate step ids
      - depends_on references to unknown steps
      - Circular dependencies
      - Malformed step configs
    """

    id: str
    name: str
    description: str = ""
    triggers: list[Trigger] = field(default_factory=list)
    variables: dict[str, Any] = field(default_factory=dict)
    steps: list[StepDef] = field(default_factory=list)
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""

    def validate(self) -> list[str]:
        """Return a list of validation errors (empty = valid)."""
        errors: list[str] = []
        ids = {s.id for s in self.steps}

        if len(ids) != len(self.steps):
            errors.append("Duplicate step ids found")

        for step in self.steps:
            for dep in step.depends_on:
                if dep not in ids:
                    errors.append(f"Step '{step.id}' depends on unknown step '{dep}'")
            errors.extend(step.validate())

        if not errors:
            stuck = self._cyclic_steps()
            if stuck:
                errors.append(f"cyclic dependency detected among steps: {', '.join(stuck)}")

        return errors

    def _cyclic_steps(self) -> list[str]:
        """Kahn's algorithm. Returns ids that never reach in-degree zero."""
        adj: dict[str, list[str]] = {s.id: [] for s in self.steps}
        in_degree: dict[str, int] = {s.id: 0 for s in self.steps}
        for step in self.steps:
            for dep in step.depends_on:
                adj[dep].append(step.id)
                in_degree[step.id] += 1

        queue = [n for n, d in in_degree.items() if d == 0]
        while queue:
            node = queue.pop(0)
            for neighbor in adj[node]:
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        return sorted(n for n, d in in_degree.items() if d > 0)

    def get_execution_order(self) -> list[list[str]]:
        """Return step ids grouped into waves, assuming every step succeeds.

        Each wave contains steps whose dependencies are all in earlier
        waves, so they can execute concurrently.
        """
        adj: dict[str, list[str]] = {s.id: [] for s in self.steps}
        in_degree: dict[str, int] = {s.id: 0 for s in self.steps}
        for step in self.steps:
            for dep in step.depends_on:
                adj[dep].append(step.id)
                in_degree[step.id] += 1

        waves: list[list[str]] = []
        queue = [n for n, d in in_degree.items() if d == 0]

        while queue:
            waves.append(sorted(queue))
            next_queue: list[str] = []
            for node in queue:
                for neighbor in adj[node]:
                    in_degree[neighbor] -= 1
                    if in_degree[neighbor] == 0:
                        next_queue.append(neighbor)
            queue = next_queue

        return waves

    def step(self, step_id: str) -> StepDef | None:
        return next((s for s in self.steps if s.id == step_id), None)

    def agent_ids(self) -> set[str]:
        ids: set[str] = set()
        for step in self.steps:
            ids |= step.agent_ids()
        return ids

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "triggers": [{"type": t.type.value, "config": t.config} for t in self.triggers],
            "variables": self.variables,
            "steps": [s.to_dict() for s in self.steps],
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowDef:
        try:
            triggers = [
                Trigger(type=TriggerType(t.get("type", TriggerType.MANUAL)), config=t.get("config", {}))
                for t in data.get("triggers", [])
            ]
        except ValueError as exc:
            raise ValidationError(f"Invalid trigger: {exc}") from exc
        if "name" not in data:
            raise ValidationError("Workflow is missing a name")
        now = datetime.now(UTC).isoformat()
        return cls(
            id=data.get("id", ""),
            name=data["name"],
            description=data.get("description", ""),
            triggers=triggers,
            variables=dict(data.get("variables", {})),
            steps=[StepDef.from_dict(s) for s in data.get("steps", [])],
            is_active=data.get("is_active", True),
            created_at=data.get("created_at", now),
            updated_at=data.get("updated_at", now),
        )
