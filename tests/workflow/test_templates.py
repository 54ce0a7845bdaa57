"""Tests for {{name}} placeholder rendering."""

from __future__ import annotations

import pytest

from promptweave.errors import ExecutionError
from promptweave.workflow.templates import render_template, template_variables, to_text


def test_replaces_placeholders():
    assert render_template("Research {{topic}} for {{ audience }}", {"topic": "bees", "audience": "kids"}) == (
        "Research bees for kids"
    )


def test_undefined_renders_empty():
    assert render_template("Value: [{{missing}}]", {}) == "Value: []"


def test_undefined_strict_raises():
    with pytest.raises(ExecutionError, match="missing"):
        render_template("{{missing}}", {}, strict=True)


def test_non_string_values_are_json():
    text = render_template("{{data}} / {{n}} / {{none}}", {"data": {"a": [1, 2]}, "n": 3, "none": None})
    assert text == '{"a": [1, 2]} / 3 / '


def test_dotted_names_walk_dicts():
    variables = {"research": {"summary": "short", "meta": {"count": 2}}}
    assert render_template("{{research.summary}} {{research.meta.count}}", variables) == "short 2"
    assert render_template("[{{research.nope}}]", variables) == "[]"


def test_literal_dotted_key_wins():
    assert render_template("{{a.b}}", {"a.b": "flat", "a": {"b": "nested"}}) == "flat"


def test_text_without_placeholders_unchanged():
    assert render_template("plain {text}", {"text": "x"}) == "plain {text}"


def test_template_variables_in_order():
    assert template_variables("{{b}} {{a}} {{b}}") == ["b", "a"]


def test_to_text():
    assert to_text("s") == "s"
    assert to_text(None) == ""
    assert to_text([1, "x"]) == '[1, "x"]'
