"""LiteLLM-based text generator.

Wraps litellm.acompletion() so agents can name any model LiteLLM routes to
(OpenAI, Anthropic, OpenRouter, Gemini, Groq, ...) in provider/model form.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from promptweave.config.schema import GenerationDefaults, ProviderEntry
from promptweave.errors import ExternalServiceError
from promptweave.providers.types import GenerationOptions, ParameterBounds, TextGenerator

_STATUS_HINTS: dict[int, tuple[str, str]] = {
    401: ("Authentication failed, the API key is invalid or missing.", "Check providers.*.api_key."),
    404: ("Model not found.", "Check the agent's model name against the provider's docs."),
    429: ("Rate limit exceeded.", "Wait a moment and try again."),
}


class LiteLLMGenerator(TextGenerator):
    """Multi-provider generator backed by LiteLLM."""

    def __init__(
        self,
        generation: GenerationDefaults | None = None,
        providers: dict[str, ProviderEntry] | None = None,
    ) -> None:
        generation = generation or GenerationDefaults()
        self._default_model = generation.model
        self._providers = providers or {}
        self.bounds = ParameterBounds(
            min_temperature=generation.min_temperature,
            max_temperature=generation.max_temperature,
            max_output_length=generation.max_output_length_limit,
        )

    def _provider_for(self, model: str) -> tuple[str, ProviderEntry | None]:
        prefix = model.split("/", 1)[0] if "/" in model else ""
        return prefix, self._providers.get(prefix)

    async def generate(self, model: str, prompt: str, options: GenerationOptions) -> str:
        import litellm

        litellm.drop_params = True

        resolved_model = model or self._default_model
        provider_name, entry = self._provider_for(resolved_model)

        messages: list[dict[str, str]] = []
        if options.system_instructions:
            messages.append({"role": "system", "content": options.system_instructions})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {
            "model": resolved_model,
            "messages": messages,
            "temperature": options.temperature,
            "max_tokens": options.max_output_length,
        }
        if entry is not None:
            if entry.api_key.get_secret_value():
                kwargs["api_key"] = entry.api_key.get_secret_value()
            if entry.api_base:
                kwargs["api_base"] = entry.api_base

        logger.debug("LiteLLM call: model={}, prompt_chars={}", resolved_model, len(prompt))

        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as exc:
            status = getattr(exc, "status_code", None)
            message, hint = _STATUS_HINTS.get(status, (str(exc), ""))
            if status and status >= 500:
                message, hint = f"Provider server error (HTTP {status}).", "Try again in a moment."
            raise ExternalServiceError(
                f"[{provider_name or 'litellm'}] {message}",
                service=provider_name or "litellm",
                status_code=status,
                hint=hint,
            ) from exc

        content = getattr(response.choices[0].message, "content", None)
        if content is None:
            raise ExternalServiceError(
                f"[{provider_name or 'litellm'}] Model '{resolved_model}' returned no content.",
                service=provider_name or "litellm",
            )
        return content
