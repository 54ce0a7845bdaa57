"""Coordination strategies for running a set of agents on one payload.

A strategy receives the agents already resolved (unknown ids map to None)
and returns a dict of outputs keyed by agent id. New strategies subclass
CoordinationStrategy and are registered on the coordinator by name.
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from promptweave.agents.models import Agent
from promptweave.providers.types import GenerationOptions, TextGenerator

AgentSlot = tuple[str, Agent | None]


def instruction_for(payload: dict[str, Any]) -> str:
    return f"Process the following input: {json.dumps(payload, default=str, ensure_ascii=False)}"


async def ask(agent: Agent, payload: dict[str, Any], generator: TextGenerator) -> str:
    options = GenerationOptions(
        temperature=agent.temperature,
        max_output_length=agent.max_output_length,
        system_instructions=agent.system_instructions,
    )
    return await generator.generate(agent.model, instruction_for(payload), options)


class CoordinationStrategy(ABC):
    """How a set of agents combine their work on one payload."""

    name: str = ""

    @abstractmethod
    async def run(
        self,
        agents: list[AgentSlot],
        payload: dict[str, Any],
        generator: TextGenerator,
    ) -> dict[str, Any]:
        ...


class SequentialStrategy(CoordinationStrategy):
    """Agents run one at a time, each seeing every output produced so far."""

    name = "sequential"

    async def run(
        self,
        agents: list[AgentSlot],
        payload: dict[str, Any],
        generator: TextGenerator,
    ) -> dict[str, Any]:
        results: dict[str, Any] = dict(payload)
        for agent_id, agent in agents:
            if agent is None:
                logger.warning("Skipping unknown agent in sequential orchestration: {}", agent_id)
                continue
            results[agent_id] = await ask(agent, results, generator)
        return results


class ParallelStrategy(CoordinationStrategy):
    """Every agent receives the same payload concurrently."""

    name = "parallel"

    async def run(
        self,
        agents: list[AgentSlot],
        payload: dict[str, Any],
        generator: TextGenerator,
    ) -> dict[str, Any]:
        async def one(agent: Agent | None) -> str | None:
            if agent is None:
                return None
            return await ask(agent, payload, generator)

        outputs = await asyncio.gather(*(one(agent) for _, agent in agents))
        return {agent_id: output for (agent_id, _), output in zip(agents, outputs, strict=True)}


class AdaptiveStrategy(CoordinationStrategy):
    """Chooses a strategy per run. Currently always the sequential one."""

    name = "adaptive"

    def __init__(self, fallback: CoordinationStrategy | None = None) -> None:
        self._fallback = fallback or SequentialStrategy()

    def choose(self, agents: list[AgentSlot], payload: dict[str, Any]) -> CoordinationStrategy:
        return self._fallback

    async def run(
        self,
        agents: list[AgentSlot],
        payload: dict[str, Any],
        generator: TextGenerator,
    ) -> dict[str, Any]:
        strategy = self.choose(agents, payload)
        logger.debug("Adaptive orchestration using '{}' strategy", strategy.name)
        return await strategy.run(agents, payload, generator)


def default_strategies() -> dict[str, CoordinationStrategy]:
    sequential = SequentialStrategy()
    return {
        sequential.name: sequential,
        ParallelStrategy.name: ParallelStrategy(),
        AdaptiveStrategy.name: AdaptiveStrategy(sequential),
    }
