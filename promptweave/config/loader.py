"""Config file I/O: load from JSON, merge env vars, save back to disk."""

from __future__ import annotations

import json
from pathlib import Path

from promptweave.config.schema import PromptweaveConfig

_DEFAULT_CONFIG_FILE = Path.home() / ".promptweave" / "config.json"


def get_config_path() -> Path:
    return _DEFAULT_CONFIG_FILE


def load_config(path: Path | None = None) -> PromptweaveConfig:
    """Load config from JSON file, falling back to defaults if file is missing.

    Environment variables with PROMPTWEAVE_ prefix override file values.
    Nested keys use __ as delimiter (e.g. PROMPTWEAVE_ENGINE__MAX_LOG_ENTRIES).
    """
    config_path = (path or _DEFAULT_CONFIG_FILE).expanduser().resolve()

    if config_path.exists():
        raw = json.loads(config_path.read_text(encoding="utf-8"))
        return PromptweaveConfig(**raw)

    return PromptweaveConfig()


def save_config(config: PromptweaveConfig, path: Path | None = None) -> Path:
    """Serialize current config to JSON and write to disk atomically."""
    config_path = (path or _DEFAULT_CONFIG_FILE).expanduser().resolve()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")

    tmp_path = config_path.with_suffix(".tmp")
    tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp_path.rename(config_path)
    return config_path
