"""Orchestration coordinator: CRUD over orchestrations and their execution."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from promptweave.agents.registry import AgentRegistry
from promptweave.errors import ExecutionError, NotFoundError, ValidationError
from promptweave.orchestration.models import Orchestration
from promptweave.orchestration.strategies import CoordinationStrategy, default_strategies
from promptweave.providers.types import TextGenerator
from promptweave.storage import Repository


class OrchestrationCoordinator:
    """Stores orchestrations and runs them through their named strategy."""

    def __init__(
        self,
        repository: Repository,
        agents: AgentRegistry,
        generator: TextGenerator,
        strategies: dict[str, CoordinationStrategy] | None = None,
    ) -> None:
        self._repo = repository
        self._agents = agents
        self._generator = generator
        self._strategies = strategies if strategies is not None else default_strategies()

    def register_strategy(self, name: str, strategy: CoordinationStrategy) -> None:
        if name in self._strategies:
            logger.warning("Overwriting coordination strategy: {}", name)
        self._strategies[name] = strategy

    @property
    def strategies(self) -> list[str]:
        return sorted(self._strategies)

    def create(self, orchestration: Orchestration | dict[str, Any]) -> Orchestration:
        try:
            orch = (
                orchestration
                if isinstance(orchestration, Orchestration)
                else Orchestration.from_dict(orchestration)
            )
        except (KeyError, ValueError) as exc:
            raise ValidationError(f"Invalid orchestration: {exc}") from exc
        if orch.strategy not in self._strategies:
            raise ValidationError(
                f"Unknown coordination strategy '{orch.strategy}'",
                hint=f"Available: {', '.join(self.strategies)}",
            )
        if not orch.id:
            orch.id = f"orch_{uuid.uuid4().hex[:12]}"
        if orch.id in self._repo:
            raise ValidationError(f"Orchestration '{orch.id}' already exists")

        now = datetime.now(UTC).isoformat()
        orch.created_at = now
        orch.updated_at = now
        self._repo.put(orch.id, orch.to_dict())
        logger.info("Orchestration created: {} ({} agents, {})", orch.id, len(orch.agent_ids), orch.strategy)
        return orch

    def find(self, orchestration_id: str) -> Orchestration | None:
        data = self._repo.get(orchestration_id)
        return Orchestration.from_dict(data) if data is not None else None

    def get(self, orchestration_id: str) -> Orchestration:
        orch = self.find(orchestration_id)
        if orch is None:
            raise NotFoundError("Orchestration", orchestration_id)
        return orch

    def list(self, active_only: bool = False) -> list[Orchestration]:
        records = self._repo.list(lambda r: r.get("is_active", True) if active_only else True)
        return [Orchestration.from_dict(r) for r in records]

    def delete(self, orchestration_id: str) -> bool:
        deleted = self._repo.delete(orchestration_id)
        if deleted:
            logger.info("Orchestration deleted: {}", orchestration_id)
        return deleted

    async def execute(self, orchestration_id: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run an orchestration's agents on ``payload`` and return merged outputs."""
        orch = self.get(orchestration_id)
        if not orch.is_active:
            raise ExecutionError(f"Orchestration '{orchestration_id}' is inactive")
        strategy = self._strategies.get(orch.strategy)
        if strategy is None:
            raise ExecutionError(f"Unknown coordination strategy '{orch.strategy}'")

        agents = [(agent_id, self._agents.find(agent_id)) for agent_id in orch.agent_ids]
        logger.info("Executing orchestration {} with '{}' strategy", orch.id, orch.strategy)
        return await strategy.run(agents, dict(payload or {}), self._generator)
