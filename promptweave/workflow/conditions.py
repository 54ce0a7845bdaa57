"""Boolean predicates over execution results for condition steps.

Supported forms:
  true / false                                  literal
  {"variable": "x", "op": ">", "value": 3}      comparison
  {"all": [...]}, {"any": [...]}, {"not": {...}} composition
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from promptweave.errors import ExecutionError
from promptweave.workflow.templates import MISSING, lookup_variable

_NUMERIC_OPS = {">", "<", ">=", "<="}


def compare(op: str, actual: Any, expected: Any) -> bool:
    if op == "exists":
        return actual is not MISSING and actual is not None
    if op == "not_exists":
        return actual is MISSING or actual is None
    if actual is MISSING:
        return False
    if op == "truthy":
        return bool(actual)
    if op == "falsy":
        return not actual
    if op == "==":
        return actual == expected
    if op == "!=":
        return actual != expected
    if op == "contains":
        if isinstance(actual, str):
            return str(expected).lower() in actual.lower()
        try:
            return expected in actual
        except TypeError:
            return False
    if op == "in":
        try:
            return actual in expected
        except TypeError:
            return False
    if op in _NUMERIC_OPS:
        try:
            a, b = float(actual), float(expected)
        except (TypeError, ValueError):
            return False
        return {">": a > b, "<": a < b, ">=": a >= b, "<=": a <= b}[op]
    raise ExecutionError(f"Unknown condition operator '{op}'")


def evaluate_condition(condition: Any, variables: Mapping[str, Any]) -> bool:
    """Evaluate a predicate. Malformed predicates raise ExecutionError."""
    if isinstance(condition, bool):
        return condition
    if not isinstance(condition, Mapping):
        raise ExecutionError(f"Unsupported condition: {condition!r}")

    if "all" in condition:
        return all(evaluate_condition(c, variables) for c in condition["all"])
    if "any" in condition:
        return any(evaluate_condition(c, variables) for c in condition["any"])
    if "not" in condition:
        return not evaluate_condition(condition["not"], variables)

    name = condition.get("variable")
    if not name:
        raise ExecutionError(f"Condition is missing 'variable': {condition!r}")
    op = condition.get("op", "truthy")
    return compare(op, lookup_variable(variables, name), condition.get("value"))
