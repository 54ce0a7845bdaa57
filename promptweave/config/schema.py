"""Pydantic configuration models for promptweave.

All config is loaded from ~/.promptweave/config.json and can be overridden
via PROMPTWEAVE_ prefixed environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_serializer, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.main import JsonConfigSettingsSource


class GenerationDefaults(BaseModel):
    """Default generation parameters and the bounds the generator accepts.

    The bounds are handed to the text-generation collaborator, which is the
    component that actually validates agent parameters.
    """

    model: str = Field(
        default="openai/gpt-4o",
        description="Model identifier used when an agent does not name one.",
    )
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_length: int = Field(default=4000, ge=1)
    min_temperature: float = Field(default=0.0, ge=0.0)
    max_temperature: float = Field(default=2.0, gt=0.0)
    max_output_length_limit: int = Field(
        default=200_000,
        ge=1,
        description="Largest max_output_length an agent may request.",
    )

    @model_validator(mode="after")
    def _check_bounds(self) -> GenerationDefaults:
        if self.min_temperature > self.max_temperature:
            raise ValueError("min_temperature must not exceed max_temperature")
        return self


class ProviderEntry(BaseModel):
    """Connection details for a single LLM provider."""

    api_key: SecretStr = SecretStr("")
    api_base: str = ""

    @field_serializer("api_key", when_used="json")
    @staticmethod
    def _serialize_api_key(v: SecretStr) -> str:
        return v.get_secret_value()


class EngineSettings(BaseModel):
    """Execution engine limits."""

    max_concurrent_executions: int = Field(
        default=16,
        ge=1,
        le=10_000,
        description="Executions allowed to run at once. Further runs wait in Pending.",
    )
    default_step_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Timeout in seconds for steps that do not declare one.",
    )
    max_log_entries: int = Field(
        default=500,
        ge=10,
        le=100_000,
        description="Per-execution log entries kept; older entries are dropped.",
    )
    max_retained_executions: int = Field(
        default=0,
        ge=0,
        description="Finished executions kept in memory. 0 = unbounded.",
    )


class HTTPSettings(BaseModel):
    """Pooled HTTP client settings for api_call steps."""

    timeout: float = Field(default=30.0, gt=0)
    max_connections: int = Field(default=10, ge=1, le=1000)
    max_keepalive: int = Field(default=20, ge=0, le=1000)


class StorageSettings(BaseModel):
    """Where agent, workflow, and orchestration records live."""

    backend: str = Field(
        default="memory",
        pattern="^(memory|json)$",
        description="'memory' keeps records in-process; 'json' writes one file per record.",
    )
    data_dir: Path = Field(default=Path("~/.promptweave/data"))


class PromptweaveConfig(BaseSettings):
    """Root configuration.

    Loaded from ~/.promptweave/config.json with PROMPTWEAVE_ env var overrides.
    """

    model_config = SettingsConfigDict(
        env_prefix="PROMPTWEAVE_",
        env_nested_delimiter="__",
        json_file=Path("~/.promptweave/config.json").expanduser(),
        json_file_encoding="utf-8",
        extra="ignore",
    )

    generation: GenerationDefaults = Field(default_factory=GenerationDefaults)
    providers: dict[str, ProviderEntry] = Field(default_factory=dict)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    seed_defaults: bool = Field(
        default=True,
        description="Load the built-in agents and workflows at startup.",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Enable JSON file loading alongside env vars and init kwargs."""
        return (
            init_settings,
            env_settings,
            JsonConfigSettingsSource(settings_cls),
        )
