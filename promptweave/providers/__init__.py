"""Text-generation collaborators."""

from promptweave.providers.litellm_provider import LiteLLMGenerator
from promptweave.providers.types import GenerationOptions, ParameterBounds, TextGenerator

__all__ = ["GenerationOptions", "LiteLLMGenerator", "ParameterBounds", "TextGenerator"]
