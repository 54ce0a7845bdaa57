"""Tests for the agent and workflow CLI commands."""

from __future__ import annotations

import json

import pytest
import typer
from rich.console import Console
from typer.testing import CliRunner

from promptweave.cli import agent_cmd, workflow_cmd
from promptweave.cli.app import app
from promptweave.cli.workflow_cmd import _parse_vars
from promptweave.config import PromptweaveConfig
from promptweave.service import PromptweaveService

runner = CliRunner()


@pytest.fixture
def service(monkeypatch, generator, api_caller):
    svc = PromptweaveService.from_config(PromptweaveConfig(), generator=generator, api_caller=api_caller)
    monkeypatch.setattr("promptweave.cli.app.setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(workflow_cmd, "build_service", lambda: svc)
    monkeypatch.setattr(agent_cmd, "build_service", lambda: svc)
    monkeypatch.setattr(workflow_cmd, "console", Console(width=200))
    monkeypatch.setattr(agent_cmd, "console", Console(width=200))
    return svc


class TestParseVars:
    def test_json_values_decoded(self):
        assert _parse_vars(["n=3", "items=[1,2]", "topic=bees"]) == {"n": 3, "items": [1, 2], "topic": "bees"}

    def test_missing_separator(self):
        with pytest.raises(typer.BadParameter):
            _parse_vars(["novalue"])


class TestWorkflowCommands:
    def test_list(self, service):
        result = runner.invoke(app, ["workflow", "list"])
        assert result.exit_code == 0
        assert "content-creation-workflow" in result.output

    def test_show_waves(self, service):
        result = runner.invoke(app, ["workflow", "show", "content-creation-workflow"])
        assert result.exit_code == 0
        assert "Wave 4" in result.output

    def test_show_unknown(self, service):
        result = runner.invoke(app, ["workflow", "show", "nope"])
        assert result.exit_code == 1

    def test_run(self, service, generator):
        generator.responses["gpt-4o"] = "done"
        result = runner.invoke(app, ["workflow", "run", "content-creation-workflow", "--var", "topic=bees"])
        assert result.exit_code == 0
        assert "completed" in result.output
        assert generator.calls[0][1] == "Research the topic: bees"

    def test_run_failure_exits_nonzero(self, service):
        result = runner.invoke(app, ["workflow", "run", "data-analysis-workflow"])
        assert result.exit_code == 1
        assert "Data is required" in result.output

    def test_create_and_delete(self, service, tmp_path):
        path = tmp_path / "wf.json"
        path.write_text(
            json.dumps(
                {
                    "id": "mine",
                    "name": "Mine",
                    "steps": [{"id": "a", "kind": "api_call", "config": {"url": "https://x"}}],
                }
            ),
            encoding="utf-8",
        )

        assert runner.invoke(app, ["workflow", "create", str(path)]).exit_code == 0
        assert service.workflows.find("mine") is not None
        assert runner.invoke(app, ["workflow", "delete", "mine"]).exit_code == 0
        assert service.workflows.find("mine") is None

    def test_create_rejects_cycle(self, service, tmp_path):
        path = tmp_path / "wf.json"
        path.write_text(
            json.dumps(
                {
                    "name": "Loop",
                    "steps": [
                        {"id": "a", "kind": "api_call", "config": {"url": "https://x"}, "depends_on": ["b"]},
                        {"id": "b", "kind": "api_call", "config": {"url": "https://x"}, "depends_on": ["a"]},
                    ],
                }
            ),
            encoding="utf-8",
        )

        result = runner.invoke(app, ["workflow", "create", str(path)])

        assert result.exit_code == 1
        assert "cyclic dependency" in result.output


class TestAgentCommands:
    def test_list(self, service):
        result = runner.invoke(app, ["agent", "list"])
        assert result.exit_code == 0
        assert "research-agent" in result.output

    def test_show_unknown(self, service):
        assert runner.invoke(app, ["agent", "show", "ghost"]).exit_code == 1
