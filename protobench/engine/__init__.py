"""Core execution engine for protobench."""

from protobench.engine.orchestrator import (
    Orchestrator,
    OrchestratorState,
    run_comparison,
    run_single,
)
from protobench.engine.reporters import EventReporter, JsonLinesReporter, RichEventReporter

__all__ = [
    "EventReporter",
    "JsonLinesReporter",
    "Orchestrator",
    "OrchestratorState",
    "RichEventReporter",
    "run_comparison",
    "run_single",
]
