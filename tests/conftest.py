"""Shared test fixtures for the promptweave test suite.

The _isolate_config fixture (autouse) prevents PromptweaveConfig from
reading the user's real ~/.promptweave/config.json during tests.

StubGenerator and StubApiCaller stand in for the text-generation and
API-call collaborators. Responses are looked up by model name / URL and may
be a value, an exception instance (raised), or a callable taking the prompt
or body.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from promptweave.agents.registry import AgentRegistry
from promptweave.config.schema import EngineSettings, PromptweaveConfig
from promptweave.http import ApiCaller
from promptweave.providers.types import GenerationOptions, TextGenerator
from promptweave.storage import InMemoryRepository
from promptweave.workflow.engine import WorkflowEngine
from promptweave.workflow.execution import ExecutionStore
from promptweave.workflow.store import WorkflowStore


class StubGenerator(TextGenerator):
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, GenerationOptions]] = []
        self.responses: dict[str, Any] = {}
        self.delays: dict[str, float] = {}

    async def generate(self, model: str, prompt: str, options: GenerationOptions) -> str:
        self.calls.append((model, prompt, options))
        delay = self.delays.get(model)
        if delay:
            await asyncio.sleep(delay)
        response = self.responses.get(model, f"{model}:{prompt}")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(prompt)
        return response


class StubApiCaller(ApiCaller):
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, str] | None, Any]] = []
        self.responses: dict[str, Any] = {}
        self.delays: dict[str, float] = {}

    async def call(self, method, url, headers=None, body=None):
        self.calls.append((method, url, headers, body))
        delay = self.delays.get(url)
        if delay:
            await asyncio.sleep(delay)
        response = self.responses.get(url, {"ok": True})
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(body)
        return response


@pytest.fixture(autouse=True)
def _isolate_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Point PromptweaveConfig's json_file at an empty temp file for every test."""
    empty_config = tmp_path_factory.mktemp("config") / "promptweave_test_config.json"
    empty_config.write_text("{}", encoding="utf-8")
    monkeypatch.setitem(PromptweaveConfig.model_config, "json_file", empty_config)


@pytest.fixture
def generator() -> StubGenerator:
    return StubGenerator()


@pytest.fixture
def api_caller() -> StubApiCaller:
    return StubApiCaller()


@pytest.fixture
def agents(generator: StubGenerator) -> AgentRegistry:
    return AgentRegistry(InMemoryRepository(), generator)


@pytest.fixture
def workflow_repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def workflows(workflow_repo: InMemoryRepository) -> WorkflowStore:
    return WorkflowStore(workflow_repo)


@pytest.fixture
def executions() -> ExecutionStore:
    return ExecutionStore(max_log_entries=50)


@pytest.fixture
def engine(
    workflows: WorkflowStore,
    agents: AgentRegistry,
    executions: ExecutionStore,
    generator: StubGenerator,
    api_caller: StubApiCaller,
) -> WorkflowEngine:
    return WorkflowEngine(
        workflows,
        agents,
        executions,
        generator,
        api_caller,
        EngineSettings(default_step_timeout=5.0, max_log_entries=50),
    )

