"""Data processing operations: validate, transform, filter.

Operations take an input drawn from execution results and return a new
value; the input is never modified in place. Transform pipelines run their
operations in order, like the data_transform tool's convert/filter/select
chain.
"""

from __future__ import annotations

import copy
from typing import Any

from promptweave.errors import ExecutionError
from promptweave.workflow.conditions import compare
from promptweave.workflow.templates import MISSING


def validate_data(data: Any) -> Any:
    """Return ``data`` unchanged, failing if it is absent."""
    if data is MISSING or data is None:
        raise ExecutionError("Data is required")
    return data


def _sort_key(by: str):
    def key(row: Any) -> tuple[int, Any]:
        val = row.get(by, "") if isinstance(row, dict) else row
        try:
            return (0, float(val))
        except (TypeError, ValueError):
            return (1, str(val).lower())

    return key


def _string_op(value: Any, op: str) -> Any:
    if not isinstance(value, str):
        return value
    if op == "uppercase":
        return value.upper()
    if op == "lowercase":
        return value.lower()
    return value.strip()


def _apply_transform(data: Any, spec: dict[str, Any]) -> Any:
    op = spec.get("op", "")

    if op == "select":
        columns = spec.get("columns", [])
        if isinstance(data, dict):
            return {c: data[c] for c in columns if c in data}
        if isinstance(data, list):
            return [{c: row.get(c) for c in columns if c in row} for row in data if isinstance(row, dict)]
        return data

    if op == "rename":
        mapping: dict[str, str] = spec.get("mapping", {})

        def rename(row: Any) -> Any:
            if not isinstance(row, dict):
                return row
            return {mapping.get(k, k): v for k, v in row.items()}

        return [rename(r) for r in data] if isinstance(data, list) else rename(data)

    if op == "sort":
        if not isinstance(data, list):
            return data
        return sorted(data, key=_sort_key(spec.get("by", "")), reverse=spec.get("reverse", False))

    if op == "limit":
        count = int(spec.get("count", 0))
        return data[:count] if isinstance(data, list) else data

    if op in ("multiply", "add"):
        operand = spec.get("by", 1 if op == "multiply" else 0)
        column = spec.get("column", "")

        def arith(value: Any) -> Any:
            if column and isinstance(value, dict):
                if column in value:
                    return {**value, column: arith(value[column])}
                return value
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ExecutionError(f"Cannot {op} non-numeric value {value!r}")
            return value * operand if op == "multiply" else value + operand

        return [arith(v) for v in data] if isinstance(data, list) else arith(data)

    if op in ("uppercase", "lowercase", "strip"):
        column = spec.get("column", "")

        def apply(value: Any) -> Any:
            if column and isinstance(value, dict):
                if column in value:
                    return {**value, column: _string_op(value[column], op)}
                return value
            return _string_op(value, op)

        return [apply(v) for v in data] if isinstance(data, list) else apply(data)

    raise ExecutionError(f"Unknown transformation '{op}'")


def transform_data(data: Any, transformations: list[dict[str, Any]]) -> Any:
    """Run each transformation in order over a copy of ``data``.

    Absent input yields None.
    """
    if data is MISSING or data is None:
        return None
    result = copy.deepcopy(data)
    for spec in transformations:
        result = _apply_transform(result, spec)
    return result


def _row_matches(row: Any, spec: dict[str, Any]) -> bool:
    column = spec.get("column", "")
    if column:
        target = row.get(column, MISSING) if isinstance(row, dict) else MISSING
    else:
        target = row
    return compare(spec.get("op", "=="), target, spec.get("value"))


def filter_data(data: Any, filters: list[dict[str, Any]]) -> Any:
    """Keep list items matching every filter. Non-list input passes through."""
    if data is MISSING:
        return None
    if not isinstance(data, list):
        return data
    return [row for row in data if all(_row_matches(row, f) for f in filters)]
