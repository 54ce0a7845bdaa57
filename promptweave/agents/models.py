"""Agent records: a configured persona around a text-generation model.

Agents are frozen. Updating one produces a new record, so an execution that
captured the previous instance keeps running against it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


def utcnow() -> str:
    return datetime.now(UTC).isoformat()


class Tone(StrEnum):
    FORMAL = "formal"
    CASUAL = "casual"
    TECHNICAL = "technical"
    CREATIVE = "creative"


class Verbosity(StrEnum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class MemoryPersistence(StrEnum):
    SESSION = "session"
    CONVERSATION = "conversation"
    GLOBAL = "global"


@dataclass(frozen=True, slots=True)
class AgentTool:
    """A named capability. ``handler`` is resolved by name when invoked."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)
    handler: str = ""

    def to_definition(self) -> dict[str, Any]:
        """Serialize to the OpenAI function-calling schema format."""
        properties: dict[str, Any] = {}
        required: list[str] = []
        for pname, spec in self.parameters.items():
            spec = dict(spec)
            if spec.pop("required", False):
                required.append(pname)
            properties[pname] = spec
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {"type": "object", "properties": properties, "required": required},
            },
        }


@dataclass(frozen=True, slots=True)
class BehaviorProfile:
    personality: str = ""
    tone: Tone = Tone.FORMAL
    verbosity: Verbosity = Verbosity.MEDIUM
    proactivity: float = 0.5


@dataclass(frozen=True, slots=True)
class MemorySettings:
    enabled: bool = False
    max_context: int = 4000
    persistence: MemoryPersistence = MemoryPersistence.SESSION


@dataclass(frozen=True, slots=True)
class Agent:
    """Definition of a single agent."""

    id: str
    name: str
    model: str
    description: str = ""
    role: str = ""
    capabilities: tuple[str, ...] = ()
    tools: dict[str, AgentTool] = field(default_factory=dict)
    temperature: float = 0.7
    max_output_length: int = 4000
    behavior: BehaviorProfile = field(default_factory=BehaviorProfile)
    memory: MemorySettings = field(default_factory=MemorySettings)
    system_instructions: str = ""
    is_active: bool = True
    created_at: str = field(default_factory=utcnow)
    updated_at: str = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "role": self.role,
            "capabilities": list(self.capabilities),
            "tools": [
                {
                    "name": t.name,
                    "description": t.description,
                    "parameters": t.parameters,
                    "handler": t.handler,
                }
                for t in self.tools.values()
            ],
            "model": self.model,
            "temperature": self.temperature,
            "max_output_length": self.max_output_length,
            "behavior": {
                "personality": self.behavior.personality,
                "tone": self.behavior.tone.value,
                "verbosity": self.behavior.verbosity.value,
                "proactivity": self.behavior.proactivity,
            },
            "memory": {
                "enabled": self.memory.enabled,
                "max_context": self.memory.max_context,
                "persistence": self.memory.persistence.value,
            },
            "system_instructions": self.system_instructions,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Agent:
        raw_tools = data.get("tools", [])
        if isinstance(raw_tools, dict):
            raw_tools = [{"name": name, **spec} for name, spec in raw_tools.items()]
        tools = {
            t["name"]: AgentTool(
                name=t["name"],
                description=t.get("description", ""),
                parameters=t.get("parameters", {}),
                handler=t.get("handler", ""),
            )
            for t in raw_tools
        }
        behavior = data.get("behavior", {})
        memory = data.get("memory", {})
        now = utcnow()
        return cls(
            id=data["id"],
            name=data["name"],
            model=data["model"],
            description=data.get("description", ""),
            role=data.get("role", ""),
            capabilities=tuple(data.get("capabilities", ())),
            tools=tools,
            temperature=data.get("temperature", 0.7),
            max_output_length=data.get("max_output_length", 4000),
            behavior=BehaviorProfile(
                personality=behavior.get("personality", ""),
                tone=Tone(behavior.get("tone", Tone.FORMAL)),
                verbosity=Verbosity(behavior.get("verbosity", Verbosity.MEDIUM)),
                proactivity=behavior.get("proactivity", 0.5),
            ),
            memory=MemorySettings(
                enabled=memory.get("enabled", False),
                max_context=memory.get("max_context", 4000),
                persistence=MemoryPersistence(memory.get("persistence", MemoryPersistence.SESSION)),
            ),
            system_instructions=data.get("system_instructions", ""),
            is_active=data.get("is_active", True),
            created_at=data.get("created_at", now),
            updated_at=data.get("updated_at", now),
        )
