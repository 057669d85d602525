"""protobench - Comparative HTTP/2 vs HTTP/3 benchmark harness.

For running comparisons, import from protobench.engine:
    from protobench.engine import Orchestrator, run_comparison

For models, import from protobench.models:
    from protobench.models import ComparisonResult, Summary
"""

__version__ = "0.1.0"

# Re-export commonly used models for convenience (these are lightweight)
from protobench.models import (
    BenchConfig,
    ComparisonMetrics,
    ComparisonResult,
    Event,
    Protocol,
    ProtocolResult,
    Sample,
    Summary,
    Winner,
    load_config,
)

__all__ = [
    # Models
    "BenchConfig",
    "ComparisonMetrics",
    "ComparisonResult",
    "Event",
    "Protocol",
    "ProtocolResult",
    "Sample",
    "Summary",
    "Winner",
    "load_config",
]
