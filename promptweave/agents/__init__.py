"""Agent definitions and the registry that stores them."""

from promptweave.agents.models import Agent, AgentTool, BehaviorProfile, MemorySettings
from promptweave.agents.registry import AgentRegistry

__all__ = ["Agent", "AgentRegistry", "AgentTool", "BehaviorProfile", "MemorySettings"]
