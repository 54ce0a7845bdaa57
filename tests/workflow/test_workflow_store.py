"""Tests for the validated workflow definition store."""

from __future__ import annotations

import pytest
from loguru import logger

from promptweave.errors import NotFoundError, ValidationError
from promptweave.workflow.models import WorkflowDef
from promptweave.workflow.store import undeclared_variables


def _definition(**extra) -> dict:
    return {
        "name": "Pipeline",
        "steps": [
            {"id": "a", "kind": "ai_agent", "config": {"agent_id": "w", "prompt": "A"}},
            {"id": "b", "kind": "ai_agent", "config": {"agent_id": "w", "prompt": "B"}, "depends_on": ["a"]},
        ],
        **extra,
    }


def test_create_generates_id(workflows):
    wf = workflows.create(_definition())
    assert wf.id.startswith("wf_")
    assert workflows.get(wf.id).name == "Pipeline"


def test_create_rejects_cycle_without_storing(workflows, workflow_repo):
    data = _definition(id="loop")
    data["steps"][0]["depends_on"] = ["b"]

    with pytest.raises(ValidationError) as exc_info:
        workflows.create(data)

    assert "cyclic dependency" in str(exc_info.value)
    assert workflows.find("loop") is None
    assert len(workflow_repo) == 0


def test_create_rejects_duplicate_id(workflows):
    workflows.create(_definition(id="dup"))
    with pytest.raises(ValidationError, match="already exists"):
        workflows.create(_definition(id="dup"))


def test_update_revalidates(workflows):
    wf = workflows.create(_definition(id="wf"))
    steps = [s.to_dict() for s in wf.steps]
    steps[0]["depends_on"] = ["b"]

    with pytest.raises(ValidationError):
        workflows.update("wf", steps=steps)

    assert workflows.get("wf").steps[0].depends_on == []


def test_update_changes_fields(workflows):
    workflows.create(_definition(id="wf"))
    updated = workflows.update("wf", description="new", is_active=False)
    assert updated.description == "new"
    assert workflows.list(active_only=True) == []
    assert len(workflows.list()) == 1


def test_get_unknown(workflows):
    with pytest.raises(NotFoundError, match="Workflow not found: missing"):
        workflows.get("missing")


def test_delete(workflows):
    workflows.create(_definition(id="wf"))
    assert workflows.delete("wf") is True
    assert workflows.delete("wf") is False


@pytest.mark.parametrize(
    ("field", "value", "message"),
    [
        ("retry_count", "2", "retry_count must be an integer"),
        ("timeout_seconds", "fast", "timeout_seconds must be a number"),
        ("depends_on", "a", "depends_on must be a list"),
        ("config", None, "missing 'prompt'"),
        ("config", "prompt", "config must be an object"),
    ],
)
def test_create_rejects_malformed_step_fields(workflows, workflow_repo, field, value, message):
    data = _definition(id="bad")
    data["steps"][1][field] = value

    with pytest.raises(ValidationError, match=message):
        workflows.create(data)

    assert len(workflow_repo) == 0


def test_undeclared_variables_lists_unknown_template_names():
    wf = WorkflowDef.from_dict(
        {
            "name": "Refs",
            "variables": {"topic": "bees"},
            "steps": [
                {"id": "a", "kind": "ai_agent", "config": {"agent_id": "w", "prompt": "{{topic}} {{audience}}"}},
                {
                    "id": "b",
                    "kind": "loop",
                    "depends_on": ["a"],
                    "config": {
                        "items_variable": "a.items",
                        "body": {"kind": "ai_agent", "config": {"agent_id": "w", "prompt": "{{item}} {{a.title}} {{tone}}"}},
                    },
                },
            ],
        }
    )

    assert undeclared_variables(wf) == ["audience", "tone"]


def test_create_warns_about_undeclared_variables(workflows):
    messages: list[str] = []
    sink_id = logger.add(messages.append, level="WARNING", format="{message}")
    try:
        data = _definition(id="warn")
        data["steps"][0]["config"]["prompt"] = "About {{subject}}"
        workflows.create(data)
    finally:
        logger.remove(sink_id)

    assert any("subject" in message for message in messages)
    assert workflows.get("warn") is not None
