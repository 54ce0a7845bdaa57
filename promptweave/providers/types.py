"""Text-generation collaborator contract.

The engine depends only on TextGenerator, so which provider backs a call
(LiteLLM, a local model, a test stub) is invisible to workflow code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    """Per-call generation parameters taken from an agent's configuration."""

    temperature: float = 0.7
    max_output_length: int = 4000
    system_instructions: str = ""


@dataclass(frozen=True, slots=True)
class ParameterBounds:
    """Inclusive ranges a generator accepts for agent parameters."""

    min_temperature: float = 0.0
    max_temperature: float = 2.0
    max_output_length: int = 200_000


class TextGenerator(ABC):
    """Abstract base class for text-generation backends.

    Implementations raise ExternalServiceError on any backend failure.
    """

    bounds: ParameterBounds = ParameterBounds()

    @abstractmethod
    async def generate(self, model: str, prompt: str, options: GenerationOptions) -> str:
        """Generate text for a prompt and return it."""
        ...

    @property
    def name(self) -> str:
        return type(self).__name__

    def check_parameters(self, temperature: float, max_output_length: int) -> list[str]:
        """Return a list of problems with the given parameters (empty = valid)."""
        problems: list[str] = []
        b = self.bounds
        if not b.min_temperature <= temperature <= b.max_temperature:
            problems.append(
                f"temperature {temperature} outside [{b.min_temperature}, {b.max_temperature}]"
            )
        if not 1 <= max_output_length <= b.max_output_length:
            problems.append(f"max_output_length {max_output_length} outside [1, {b.max_output_length}]")
        return problems

    async def close(self) -> None:
        """Release any held connections."""
        return None
