"""Orchestration records: a named set of agents under a coordination strategy."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class Communication(StrEnum):
    DIRECT = "direct"
    MEDIATED = "mediated"
    BROADCAST = "broadcast"


class ConflictResolution(StrEnum):
    FIRST_WINS = "first_wins"
    CONSENSUS = "consensus"
    HIERARCHICAL = "hierarchical"


@dataclass(slots=True)
class Orchestration:
    """A composition of agents that runs outside any workflow DAG.

    ``strategy`` names a registered CoordinationStrategy. ``communication``
    and ``conflict_resolution`` are stored for callers; the built-in
    strategies key outputs by agent id, so they never collide.
    """

    id: str
    name: str
    agent_ids: list[str] = field(default_factory=list)
    strategy: str = "sequential"
    description: str = ""
    workflow_id: str = ""
    communication: Communication = Communication.DIRECT
    conflict_resolution: ConflictResolution = ConflictResolution.FIRST_WINS
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "agent_ids": list(self.agent_ids),
            "workflow_id": self.workflow_id,
            "strategy": self.strategy,
            "communication": self.communication.value,
            "conflict_resolution": self.conflict_resolution.value,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Orchestration:
        now = datetime.now(UTC).isoformat()
        return cls(
            id=data.get("id", ""),
            name=data["name"],
            description=data.get("description", ""),
            agent_ids=list(data.get("agent_ids", [])),
            workflow_id=data.get("workflow_id", ""),
            strategy=data.get("strategy", "sequential"),
            communication=Communication(data.get("communication", Communication.DIRECT)),
            conflict_resolution=ConflictResolution(
                data.get("conflict_resolution", ConflictResolution.FIRST_WINS)
            ),
            is_active=data.get("is_active", True),
            created_at=data.get("created_at", now),
            updated_at=data.get("updated_at", now),
        )
