"""Multi-agent coordination outside of workflow DAGs."""

from promptweave.orchestration.coordinator import OrchestrationCoordinator
from promptweave.orchestration.models import Orchestration
from promptweave.orchestration.strategies import (
    AdaptiveStrategy,
    CoordinationStrategy,
    ParallelStrategy,
    SequentialStrategy,
)

__all__ = [
    "AdaptiveStrategy",
    "CoordinationStrategy",
    "Orchestration",
    "OrchestrationCoordinator",
    "ParallelStrategy",
    "SequentialStrategy",
]
