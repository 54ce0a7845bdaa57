"""promptweave: multi-agent workflow orchestration for prompt pipelines."""

__version__ = "0.1.0"
