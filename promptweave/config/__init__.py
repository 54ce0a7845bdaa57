from promptweave.config.loader import load_config, save_config
from promptweave.config.schema import PromptweaveConfig

__all__ = ["PromptweaveConfig", "load_config", "save_config"]
