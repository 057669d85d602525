"""Pydantic models for protobench.

All data models are defined here. Import from this package for all serialization.
"""

from protobench.models.comparison import (
    VARIANT_A,
    VARIANT_B,
    ComparisonMetrics,
    ComparisonResult,
    Protocol,
    ProtocolResult,
    Winner,
)
from protobench.models.config import (
    AnalysisConfig,
    BenchConfig,
    RunnerConfig,
    ServerConfig,
    StoreConfig,
    TargetConfig,
    apply_env_overrides,
    load_config,
)
from protobench.models.events import (
    EndEvent,
    ErrorEvent,
    Event,
    InfoEvent,
    LogEvent,
    PhaseEvent,
    ResultEvent,
    parse_event,
)
from protobench.models.run import (
    HistorySummary,
    OverallHistory,
    ProtocolStability,
    Result,
    Run,
    RunWithResults,
    ScenarioStability,
    StabilityScore,
)
from protobench.models.summary import Sample, Summary

__all__ = [
    # comparison.py
    "VARIANT_A",
    "VARIANT_B",
    "ComparisonMetrics",
    "ComparisonResult",
    "Protocol",
    "ProtocolResult",
    "Winner",
    # config.py
    "AnalysisConfig",
    "BenchConfig",
    "RunnerConfig",
    "ServerConfig",
    "StoreConfig",
    "TargetConfig",
    "apply_env_overrides",
    "load_config",
    # events.py
    "EndEvent",
    "ErrorEvent",
    "Event",
    "InfoEvent",
    "LogEvent",
    "PhaseEvent",
    "ResultEvent",
    "parse_event",
    # run.py
    "HistorySummary",
    "OverallHistory",
    "ProtocolStability",
    "Result",
    "Run",
    "RunWithResults",
    "ScenarioStability",
    "StabilityScore",
    # summary.py
    "Sample",
    "Summary",
]
