"""Agent registry: CRUD over agent records plus tool-handler lookup.

Generation parameters are validated by the TextGenerator the registry is
constructed with, so the accepted ranges follow whichever backend is in use.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from promptweave.agents.models import Agent, utcnow
from promptweave.errors import NotFoundError, ValidationError
from promptweave.providers.types import TextGenerator
from promptweave.storage import Repository

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class AgentRegistry:
    """Stores agents in a Repository and resolves their tools by name."""

    def __init__(self, repository: Repository, generator: TextGenerator) -> None:
        self._repo = repository
        self._generator = generator
        self._handlers: dict[str, ToolHandler] = {}

    def create(self, agent: Agent | dict[str, Any]) -> Agent:
        """Validate and store a new agent. An id is generated when absent."""
        data = agent.to_dict() if isinstance(agent, Agent) else dict(agent)
        if not data.get("id"):
            data["id"] = f"agent_{uuid.uuid4().hex[:12]}"
        if data["id"] in self._repo:
            raise ValidationError(f"Agent '{data['id']}' already exists")

        now = utcnow()
        data["created_at"] = now
        data["updated_at"] = now
        record = self._build(data)
        self._repo.put(record.id, record.to_dict())
        logger.info("Agent created: {} ({})", record.id, record.name)
        return record

    def update(self, agent_id: str, **changes: Any) -> Agent:
        """Apply field changes and store the result as a new record."""
        current = self.get(agent_id)
        data = current.to_dict()
        for key in ("id", "created_at"):
            changes.pop(key, None)
        for key, value in changes.items():
            if key in ("behavior", "memory") and isinstance(value, dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        data["updated_at"] = utcnow()

        record = self._build(data)
        self._repo.put(agent_id, record.to_dict())
        logger.info("Agent updated: {}", agent_id)
        return record

    def delete(self, agent_id: str) -> bool:
        deleted = self._repo.delete(agent_id)
        if deleted:
            logger.info("Agent deleted: {}", agent_id)
        return deleted

    def find(self, agent_id: str) -> Agent | None:
        data = self._repo.get(agent_id)
        return Agent.from_dict(data) if data is not None else None

    def get(self, agent_id: str) -> Agent:
        agent = self.find(agent_id)
        if agent is None:
            raise NotFoundError("Agent", agent_id)
        return agent

    def list(self, active_only: bool = False) -> list[Agent]:
        records = self._repo.list(lambda r: r.get("is_active", True) if active_only else True)
        return [Agent.from_dict(r) for r in records]

    def snapshot(self, agent_ids: set[str]) -> dict[str, Agent]:
        """Capture the current version of each known agent in ``agent_ids``."""
        captured: dict[str, Agent] = {}
        for agent_id in agent_ids:
            agent = self.find(agent_id)
            if agent is not None:
                captured[agent_id] = agent
        return captured

    def register_handler(self, name: str, handler: ToolHandler) -> None:
        if name in self._handlers:
            logger.warning("Overwriting existing tool handler: {}", name)
        self._handlers[name] = handler
        logger.debug("Registered tool handler: {}", name)

    def tool_definitions(self, agent_id: str) -> list[dict[str, Any]]:
        """Return OpenAI function-calling definitions for an agent's tools."""
        return [tool.to_definition() for tool in self.get(agent_id).tools.values()]

    async def invoke_tool(self, agent_id: str, tool_name: str, params: dict[str, Any]) -> Any:
        """Run one of an agent's tools through the handler its reference names."""
        agent = self.get(agent_id)
        tool = agent.tools.get(tool_name)
        if tool is None:
            raise NotFoundError("Tool", f"{agent_id}/{tool_name}")
        handler = self._handlers.get(tool.handler)
        if handler is None:
            raise NotFoundError("Tool handler", tool.handler or tool_name)
        return await handler(params)

    def _build(self, data: dict[str, Any]) -> Agent:
        try:
            agent = Agent.from_dict(data)
        except (KeyError, ValueError, TypeError) as exc:
            raise ValidationError(f"Invalid agent definition: {exc}") from exc

        problems = self._generator.check_parameters(agent.temperature, agent.max_output_length)
        if not 0.0 <= agent.behavior.proactivity <= 1.0:
            problems.append(f"proactivity {agent.behavior.proactivity} outside [0, 1]")
        if problems:
            raise ValidationError(
                f"Invalid agent '{agent.id}': {'; '.join(problems)}",
                errors=problems,
            )
        return agent
