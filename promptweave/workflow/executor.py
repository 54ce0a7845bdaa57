"""Step executor: runs one step of any kind and returns its output.

Every kind follows the same contract: take the step and a read-only view of
the execution's results, return a value or raise. The engine applies error
policies uniformly on top of that, so handlers never touch execution state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from loguru import logger

from promptweave.agents.models import Agent
from promptweave.errors import ExecutionError, NotFoundError, StepTimeoutError
from promptweave.http import ApiCaller
from promptweave.providers.types import GenerationOptions, TextGenerator
from promptweave.workflow.conditions import evaluate_condition
from promptweave.workflow.data_ops import filter_data, transform_data, validate_data
from promptweave.workflow.models import (
    AgentStepConfig,
    ApiCallConfig,
    ConditionConfig,
    DataOperation,
    DataProcessingConfig,
    LoopConfig,
    ParallelConfig,
    StepDef,
)
from promptweave.workflow.templates import lookup_variable, render_template


def _render_value(value: Any, results: Mapping[str, Any]) -> Any:
    """Render placeholders in every string inside a JSON-like value."""
    if isinstance(value, str):
        return render_template(value, results)
    if isinstance(value, dict):
        return {k: _render_value(v, results) for k, v in value.items()}
    if isinstance(value, list):
        return [_render_value(v, results) for v in value]
    return value


class StepExecutor:
    """Dispatches steps by kind.

    ``agents`` is the set of agent records captured when the execution
    started; later registry updates do not reach a running execution.
    """

    def __init__(
        self,
        generator: TextGenerator,
        api_caller: ApiCaller,
        agents: Mapping[str, Agent],
    ) -> None:
        self._generator = generator
        self._api = api_caller
        self._agents = agents

    async def run(self, step: StepDef, results: Mapping[str, Any], timeout: float | None) -> Any:
        """Execute ``step`` bounded by ``timeout`` seconds (None = unbounded)."""
        if timeout is None:
            return await self.execute(step, results)
        try:
            return await asyncio.wait_for(self.execute(step, results), timeout=timeout)
        except TimeoutError as exc:
            if isinstance(exc, StepTimeoutError):
                raise
            raise StepTimeoutError(f"Timed out after {timeout}s", step_id=step.id) from exc

    async def execute(self, step: StepDef, results: Mapping[str, Any]) -> Any:
        logger.debug("Executing step '{}' ({})", step.id, step.kind)
        match step.config:
            case AgentStepConfig():
                return await self._run_agent(step, step.config, results)
            case DataProcessingConfig():
                return self._run_data_processing(step.config, results)
            case ApiCallConfig():
                return await self._run_api_call(step.config, results)
            case ConditionConfig():
                return await self._run_condition(step.config, results)
            case LoopConfig():
                return await self._run_loop(step, step.config, results)
            case ParallelConfig():
                return await self._run_parallel(step.config, results)

    async def _run_nested(self, step: StepDef, results: Mapping[str, Any]) -> Any:
        return await self.run(step, results, step.timeout_seconds)

    async def _run_agent(
        self, step: StepDef, config: AgentStepConfig, results: Mapping[str, Any]
    ) -> str:
        agent = self._agents.get(config.agent_id)
        if agent is None:
            raise NotFoundError("Agent", config.agent_id, step_id=step.id)
        if not agent.is_active:
            raise ExecutionError(f"Agent '{agent.id}' is inactive", step_id=step.id)

        prompt = render_template(config.prompt, results)
        options = GenerationOptions(
            temperature=agent.temperature,
            max_output_length=agent.max_output_length,
            system_instructions=agent.system_instructions,
        )
        return await self._generator.generate(agent.model, prompt, options)

    @staticmethod
    def _run_data_processing(config: DataProcessingConfig, results: Mapping[str, Any]) -> Any:
        data = lookup_variable(results, config.input_variable)
        match config.operation:
            case DataOperation.VALIDATE:
                return validate_data(data)
            case DataOperation.TRANSFORM:
                return transform_data(data, config.transformations)
            case DataOperation.FILTER:
                return filter_data(data, config.filters)

    async def _run_api_call(self, config: ApiCallConfig, results: Mapping[str, Any]) -> Any:
        url = render_template(config.url, results)
        headers = {k: render_template(v, results) for k, v in config.headers.items()}
        body = _render_value(config.body, results)
        return await self._api.call(config.method, url, headers, body)

    async def _run_condition(self, config: ConditionConfig, results: Mapping[str, Any]) -> Any:
        if evaluate_condition(config.condition, results):
            return await self._run_nested(config.if_true, results)
        if config.if_false is None:
            return None
        return await self._run_nested(config.if_false, results)

    async def _run_loop(self, step: StepDef, config: LoopConfig, results: Mapping[str, Any]) -> list[Any]:
        items = lookup_variable(results, config.items_variable)
        if not isinstance(items, list):
            raise ExecutionError(
                f"Loop variable '{config.items_variable}' is not a list",
                step_id=step.id,
            )

        outputs: list[Any] = []
        for item in items:
            scope = {**results, config.item_variable: item}
            outputs.append(await self._run_nested(config.body, scope))
        return outputs

    async def _run_parallel(self, config: ParallelConfig, results: Mapping[str, Any]) -> list[Any]:
        return list(await asyncio.gather(*(self._run_nested(s, results) for s in config.steps)))
