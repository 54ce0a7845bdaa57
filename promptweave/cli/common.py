"""Helpers shared by CLI subcommands."""

from __future__ import annotations

from promptweave.config import load_config
from promptweave.service import PromptweaveService


def build_service() -> PromptweaveService:
    """Build a service over the JSON storage backend so records persist between runs."""
    from promptweave.cli.app import state

    config = load_config(state.config_path)
    config.storage.backend = "json"
    return PromptweaveService.from_config(config)
