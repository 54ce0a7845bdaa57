"""Record persistence: a small repository interface with two backends.

Registries never own global state; each is handed a Repository instance
when the service is composed. Records are plain JSON-compatible dicts
produced by the domain types' to_dict() methods.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any

from loguru import logger

Record = dict[str, Any]


class Repository(ABC):
    """Keyed store for serialized records of a single kind."""

    @abstractmethod
    def get(self, record_id: str) -> Record | None:
        """Return the record with this id, or None."""

    @abstractmethod
    def put(self, record_id: str, record: Record) -> None:
        """Insert or replace a record."""

    @abstractmethod
    def list(self, predicate: Callable[[Record], bool] | None = None) -> list[Record]:
        """Return all records, optionally filtered."""

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Remove a record. Returns False if it did not exist."""

    def __contains__(self, record_id: str) -> bool:
        return self.get(record_id) is not None


class InMemoryRepository(Repository):
    """Dict-backed repository. Records are copied on the way in and out."""

    def __init__(self) -> None:
        self._records: dict[str, Record] = {}

    def get(self, record_id: str) -> Record | None:
        record = self._records.get(record_id)
        return json.loads(json.dumps(record)) if record is not None else None

    def put(self, record_id: str, record: Record) -> None:
        self._records[record_id] = json.loads(json.dumps(record, default=str))

    def list(self, predicate: Callable[[Record], bool] | None = None) -> list[Record]:
        records = [json.loads(json.dumps(r)) for r in self._records.values()]
        if predicate is None:
            return records
        return [r for r in records if predicate(r)]

    def delete(self, record_id: str) -> bool:
        return self._records.pop(record_id, None) is not None

    def __len__(self) -> int:
        return len(self._records)


class JsonFileRepository(Repository):
    """One JSON file per record inside a directory.

    Writes go through a temp file and rename so a crash never leaves a
    half-written record behind.
    """

    def __init__(self, directory: Path) -> None:
        self._dir = directory
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path(self, record_id: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in record_id)
        return self._dir / f"{safe}.json"

    def get(self, record_id: str) -> Record | None:
        path = self._path(record_id)
        if not path.exists():
            return None
        return self._read(path)

    def put(self, record_id: str, record: Record) -> None:
        path = self._path(record_id)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(
            json.dumps(record, indent=2, ensure_ascii=False, default=str),
            encoding="utf-8",
        )
        tmp.rename(path)
        logger.debug("Saved record {} to {}", record_id, path.name)

    def list(self, predicate: Callable[[Record], bool] | None = None) -> list[Record]:
        records = []
        for path in sorted(self._dir.glob("*.json")):
            record = self._read(path)
            if record is None:
                continue
            if predicate is None or predicate(record):
                records.append(record)
        return records

    def delete(self, record_id: str) -> bool:
        path = self._path(record_id)
        if path.exists():
            path.unlink()
            return True
        return False

    @staticmethod
    def _read(path: Path) -> Record | None:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.error("Failed to load record '{}': {}", path.name, exc)
            return None
