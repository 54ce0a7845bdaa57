"""Tests for the composition root."""

from __future__ import annotations

import pytest

from promptweave.config import PromptweaveConfig
from promptweave.defaults import DEFAULT_AGENTS, DEFAULT_WORKFLOWS, seed_defaults
from promptweave.errors import NotFoundError
from promptweave.service import PromptweaveService
from promptweave.workflow.execution import ExecutionStatus


@pytest.fixture
def service(generator, api_caller):
    return PromptweaveService.from_config(PromptweaveConfig(), generator=generator, api_caller=api_caller)


def test_defaults_seeded(service):
    metrics = service.system_metrics()
    assert metrics["total_agents"] == len(DEFAULT_AGENTS)
    assert metrics["total_workflows"] == len(DEFAULT_WORKFLOWS)
    assert metrics["active_executions"] == 0
    assert set(metrics) == {
        "total_agents",
        "active_agents",
        "total_workflows",
        "active_workflows",
        "total_executions",
        "active_executions",
        "total_orchestrations",
        "active_orchestrations",
    }


def test_seeding_is_idempotent(service):
    assert seed_defaults(service.agents, service.workflows) == 0


def test_seeding_can_be_disabled(generator, api_caller):
    service = PromptweaveService.from_config(
        PromptweaveConfig(seed_defaults=False), generator=generator, api_caller=api_caller
    )
    assert service.system_metrics()["total_agents"] == 0


def test_json_backend_persists(tmp_path, generator, api_caller):
    config = PromptweaveConfig(storage={"backend": "json", "data_dir": str(tmp_path)})
    PromptweaveService.from_config(config, generator=generator, api_caller=api_caller)

    assert (tmp_path / "agents" / "research-agent.json").exists()
    reloaded = PromptweaveService.from_config(config, generator=generator, api_caller=api_caller)
    assert reloaded.workflows.get("content-creation-workflow").name == "Content Creation Workflow"


@pytest.mark.asyncio
async def test_content_workflow_runs_end_to_end(service, generator):
    generator.responses["gpt-4o"] = lambda prompt: prompt.split(":", 1)[0]

    execution = await service.run_execution("content-creation-workflow", {"topic": "bees"})

    assert execution.status == ExecutionStatus.COMPLETED
    assert execution.results["research_data"] == "Research the topic"
    assert execution.results["content"] == "Create content based on ideas"
    assert execution.waves == 4
    assert service.system_metrics()["total_executions"] == 1
    await service.aclose()


@pytest.mark.asyncio
async def test_data_workflow_requires_raw_data(service):
    execution = await service.run_execution("data-analysis-workflow")

    assert execution.status == ExecutionStatus.FAILED
    assert execution.errors[0].step_id == "data_validation"
    assert "Data is required" in execution.errors[0].message


def test_cancel_unknown_execution(service):
    with pytest.raises(NotFoundError):
        service.cancel_execution("missing")
