"""Composition root: builds every component once and wires them together.

Callers construct one PromptweaveService per process and pass it (or the
components it exposes) by reference. Nothing in the package keeps
module-level registries.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger

from promptweave.agents.registry import AgentRegistry
from promptweave.config.schema import PromptweaveConfig
from promptweave.defaults import seed_defaults
from promptweave.http import ApiCaller, ConnectionPool, HttpApiCaller
from promptweave.orchestration.coordinator import OrchestrationCoordinator
from promptweave.providers.litellm_provider import LiteLLMGenerator
from promptweave.providers.types import TextGenerator
from promptweave.storage import InMemoryRepository, JsonFileRepository, Repository
from promptweave.workflow.engine import WorkflowEngine
from promptweave.workflow.execution import ExecutionStore, WorkflowExecution
from promptweave.workflow.store import WorkflowStore


def _repository(config: PromptweaveConfig, kind: str) -> Repository:
    if config.storage.backend == "json":
        return JsonFileRepository(Path(config.storage.data_dir).expanduser() / kind)
    return InMemoryRepository()


class PromptweaveService:
    """Holds the registries, stores, engine, and coordinator for one process."""

    def __init__(
        self,
        *,
        agents: AgentRegistry,
        workflows: WorkflowStore,
        executions: ExecutionStore,
        engine: WorkflowEngine,
        orchestrations: OrchestrationCoordinator,
        generator: TextGenerator,
        api_caller: ApiCaller,
    ) -> None:
        self.agents = agents
        self.workflows = workflows
        self.executions = executions
        self.engine = engine
        self.orchestrations = orchestrations
        self.generator = generator
        self.api_caller = api_caller

    @classmethod
    def from_config(
        cls,
        config: PromptweaveConfig | None = None,
        *,
        generator: TextGenerator | None = None,
        api_caller: ApiCaller | None = None,
    ) -> PromptweaveService:
        config = config or PromptweaveConfig()
        generator = generator or LiteLLMGenerator(config.generation, config.providers)
        api_caller = api_caller or HttpApiCaller(
            ConnectionPool(
                max_connections=config.http.max_connections,
                max_keepalive=config.http.max_keepalive,
                timeout=config.http.timeout,
            )
        )

        agents = AgentRegistry(_repository(config, "agents"), generator)
        workflows = WorkflowStore(_repository(config, "workflows"))
        executions = ExecutionStore(
            max_log_entries=config.engine.max_log_entries,
            max_retained=config.engine.max_retained_executions,
            archive=(
                _repository(config, "executions") if config.storage.backend == "json" else None
            ),
        )
        engine = WorkflowEngine(
            workflows, agents, executions, generator, api_caller, config.engine
        )
        orchestrations = OrchestrationCoordinator(
            _repository(config, "orchestrations"), agents, generator
        )

        if config.seed_defaults:
            seed_defaults(agents, workflows)

        logger.debug("Service ready (storage={})", config.storage.backend)
        return cls(
            agents=agents,
            workflows=workflows,
            executions=executions,
            engine=engine,
            orchestrations=orchestrations,
            generator=generator,
            api_caller=api_caller,
        )

    async def start_execution(self, workflow_id: str, variables: dict[str, Any] | None = None) -> str:
        return await self.engine.start_execution(workflow_id, variables)

    async def run_execution(
        self, workflow_id: str, variables: dict[str, Any] | None = None
    ) -> WorkflowExecution:
        return await self.engine.run_execution(workflow_id, variables)

    def cancel_execution(self, execution_id: str) -> bool:
        return self.engine.cancel(execution_id)

    def system_metrics(self) -> dict[str, int]:
        agents = self.agents.list()
        workflows = self.workflows.list()
        orchestrations = self.orchestrations.list()
        return {
            "total_agents": len(agents),
            "active_agents": sum(1 for a in agents if a.is_active),
            "total_workflows": len(workflows),
            "active_workflows": sum(1 for w in workflows if w.is_active),
            "total_executions": len(self.executions),
            "active_executions": len(self.executions.active()),
            "total_orchestrations": len(orchestrations),
            "active_orchestrations": sum(1 for o in orchestrations if o.is_active),
        }

    async def aclose(self) -> None:
        """Stop background executions and release collaborator connections."""
        await self.engine.shutdown()
        await self.api_caller.close()
        await self.generator.close()
