"""Reduce raw samples to a Summary."""

import math
from collections.abc import Sequence

from protobench.models import Sample, Summary

# Stand-in for a zero denominator in every ratio protobench reports.
EPSILON = 1e-9

DEFAULT_DURATION_FLOOR_S = 1.0


def round6(value: float) -> float:
    """Round to 6 decimal places so persisted and displayed values agree."""
    return round(value, 6)


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Percentile by linear interpolation at fractional rank ``p * (n - 1)``.

    ``sorted_values`` must already be ascending and non-empty.
    """
    pos = p * (len(sorted_values) - 1)
    i = math.floor(pos)
    f = pos - i
    if i + 1 < len(sorted_values):
        return sorted_values[i] + f * (sorted_values[i + 1] - sorted_values[i])
    return sorted_values[i]


def compute_summary(
    samples: Sequence[Sample], duration_floor_s: float = DEFAULT_DURATION_FLOOR_S
) -> Summary:
    """Compute the statistical summary of one run.

    Duration is the spread between the earliest and latest sample timestamp.
    When it is zero, RPS is computed against ``duration_floor_s`` instead.

    An empty input yields the all-zero Summary.
    """
    n = len(samples)
    if n == 0:
        return Summary()

    latencies = sorted(s.latency_ms for s in samples)
    min_ts = min(s.timestamp_ns for s in samples)
    max_ts = max(s.timestamp_ns for s in samples)
    ok_count = sum(1 for s in samples if s.ok)

    duration_s = (max_ts - min_ts) / 1e9
    divisor = duration_s if duration_s > 0 else duration_floor_s

    return Summary(
        samples=n,
        ok_rate_pct=round6(ok_count / n * 100),
        rps=round6(n / divisor),
        duration_s=round6(duration_s),
        p50_ms=round6(percentile(latencies, 0.50)),
        p90_ms=round6(percentile(latencies, 0.90)),
        p95_ms=round6(percentile(latencies, 0.95)),
        p99_ms=round6(percentile(latencies, 0.99)),
        mean_ms=round6(math.fsum(latencies) / n),
        min_ms=round6(latencies[0]),
        max_ms=round6(latencies[-1]),
    )
