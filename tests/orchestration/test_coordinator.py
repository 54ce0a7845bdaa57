"""Tests for orchestrations and coordination strategies."""

from __future__ import annotations

import pytest

from promptweave.errors import ExecutionError, NotFoundError, ValidationError
from promptweave.orchestration import CoordinationStrategy, OrchestrationCoordinator
from promptweave.storage import InMemoryRepository


@pytest.fixture
def coordinator(agents, generator):
    for agent_id in ("alpha", "beta"):
        agents.create({"id": agent_id, "name": agent_id, "model": agent_id})
    return OrchestrationCoordinator(InMemoryRepository(), agents, generator)


def test_create_and_list(coordinator):
    orch = coordinator.create({"name": "Team", "agent_ids": ["alpha", "beta"], "strategy": "parallel"})
    assert orch.id.startswith("orch_")
    assert [o.id for o in coordinator.list()] == [orch.id]
    assert coordinator.get(orch.id).strategy == "parallel"


def test_unknown_strategy_rejected(coordinator):
    with pytest.raises(ValidationError, match="Unknown coordination strategy"):
        coordinator.create({"name": "Team", "strategy": "democracy"})


def test_invalid_enum_rejected(coordinator):
    with pytest.raises(ValidationError):
        coordinator.create({"name": "Team", "communication": "telepathy"})


def test_delete(coordinator):
    orch = coordinator.create({"id": "team", "name": "Team"})
    assert coordinator.delete(orch.id) is True
    with pytest.raises(NotFoundError):
        coordinator.get("team")


@pytest.mark.asyncio
async def test_sequential_threads_outputs(coordinator, generator):
    generator.responses["alpha"] = "A"
    generator.responses["beta"] = lambda prompt: "saw A" if '"alpha": "A"' in prompt else "missed"
    coordinator.create({"id": "seq", "name": "Seq", "agent_ids": ["alpha", "ghost", "beta"]})

    result = await coordinator.execute("seq", {"task": "go"})

    assert result == {"task": "go", "alpha": "A", "beta": "saw A"}
    assert generator.calls[0][1].startswith("Process the following input: ")


@pytest.mark.asyncio
async def test_parallel_same_payload(coordinator, generator):
    coordinator.create({"id": "par", "name": "Par", "agent_ids": ["alpha", "beta", "ghost"], "strategy": "parallel"})

    result = await coordinator.execute("par", {"task": "go"})

    assert set(result) == {"alpha", "beta", "ghost"}
    assert result["ghost"] is None
    assert result["alpha"] == 'alpha:Process the following input: {"task": "go"}'
    assert len(generator.calls) == 2


@pytest.mark.asyncio
async def test_adaptive_behaves_sequentially(coordinator, generator):
    coordinator.create({"id": "ad", "name": "Ad", "agent_ids": ["alpha", "beta"], "strategy": "adaptive"})

    result = await coordinator.execute("ad", {})

    assert set(result) == {"alpha", "beta"}
    assert "alpha" in generator.calls[1][1]


@pytest.mark.asyncio
async def test_inactive_orchestration(coordinator):
    coordinator.create({"id": "off", "name": "Off", "is_active": False})
    with pytest.raises(ExecutionError, match="inactive"):
        await coordinator.execute("off")


@pytest.mark.asyncio
async def test_custom_strategy(coordinator):
    class Echo(CoordinationStrategy):
        name = "echo"

        async def run(self, agents, payload, generator):
            return {"agents": [agent_id for agent_id, _ in agents], **payload}

    coordinator.register_strategy("echo", Echo())
    coordinator.create({"id": "e", "name": "E", "agent_ids": ["alpha"], "strategy": "echo"})

    assert await coordinator.execute("e", {"x": 1}) == {"agents": ["alpha"], "x": 1}
    assert "echo" in coordinator.strategies
