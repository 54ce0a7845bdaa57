"""Tests for the configuration system."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from promptweave.config import PromptweaveConfig, load_config, save_config
from promptweave.config.schema import EngineSettings, GenerationDefaults, StorageSettings


def test_default_config_loads():
    config = PromptweaveConfig()
    assert config.engine.max_concurrent_executions == 16
    assert config.engine.default_step_timeout == 300.0
    assert config.storage.backend == "memory"
    assert config.seed_defaults is True


def test_generation_bounds_defaults():
    gen = GenerationDefaults()
    assert gen.min_temperature == 0.0
    assert gen.max_temperature == 2.0
    assert gen.max_output_length_limit == 200_000


def test_inverted_temperature_bounds_rejected():
    with pytest.raises(ValidationError):
        GenerationDefaults(min_temperature=1.5, max_temperature=1.0)


def test_engine_limits_validated():
    with pytest.raises(ValidationError):
        EngineSettings(max_concurrent_executions=0)
    with pytest.raises(ValidationError):
        EngineSettings(default_step_timeout=0)


def test_unknown_storage_backend_rejected():
    with pytest.raises(ValidationError):
        StorageSettings(backend="postgres")


def test_env_override(monkeypatch):
    monkeypatch.setenv("PROMPTWEAVE_ENGINE__MAX_LOG_ENTRIES", "42")
    config = PromptweaveConfig()
    assert config.engine.max_log_entries == 42


def test_load_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.json")
    assert config.engine.max_concurrent_executions == 16


def test_save_and_load_preserves_values(tmp_path):
    path = tmp_path / "config.json"
    config = PromptweaveConfig(
        engine={"max_concurrent_executions": 4},
        providers={"openai": {"api_key": "sk-test"}},
    )

    saved = save_config(config, path)
    raw = json.loads(saved.read_text(encoding="utf-8"))
    assert raw["providers"]["openai"]["api_key"] == "sk-test"
    assert not path.with_suffix(".tmp").exists()

    loaded = load_config(path)
    assert loaded.engine.max_concurrent_executions == 4
    assert loaded.providers["openai"].api_key.get_secret_value() == "sk-test"


def test_api_key_hidden_in_repr():
    config = PromptweaveConfig(providers={"openai": {"api_key": "sk-secret"}})
    assert "sk-secret" not in repr(config.providers["openai"])
