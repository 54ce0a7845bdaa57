"""{{name}} placeholder substitution for step prompts.

Placeholders name a key in the execution's results; dotted names walk into
nested dicts ({{research.summary}}). Strings are inserted verbatim, None as
an empty string, and anything else as compact JSON.

Undefined names render as an empty string. Pass strict=True to raise
ExecutionError instead.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from promptweave.errors import ExecutionError

TEMPLATE_PATTERN = re.compile(r"\{\{\s*([\w.-]+)\s*\}\}")
MISSING = object()


def lookup_variable(variables: Mapping[str, Any], name: str) -> Any:
    if name in variables:
        return variables[name]
    head, _, rest = name.partition(".")
    value: Any = variables.get(head, MISSING)
    while rest and value is not MISSING:
        key, _, rest = rest.partition(".")
        value = value.get(key, MISSING) if isinstance(value, Mapping) else MISSING
    return value


def to_text(value: Any) -> str:
    """Textual form of a result value as it appears inside a prompt."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str, ensure_ascii=False)


def render_template(template: str, variables: Mapping[str, Any], *, strict: bool = False) -> str:
    """Replace {{name}} placeholders with values from ``variables``."""

    def replacer(match: re.Match) -> str:
        name = match.group(1)
        value = lookup_variable(variables, name)
        if value is MISSING:
            if strict:
                raise ExecutionError(f"Template variable '{name}' is not defined")
            return ""
        return to_text(value)

    return TEMPLATE_PATTERN.sub(replacer, template)


def template_variables(template: str) -> list[str]:
    """Names referenced by a template, in order of first appearance."""
    seen: dict[str, None] = {}
    for match in TEMPLATE_PATTERN.finditer(template):
        seen.setdefault(match.group(1), None)
    return list(seen)
