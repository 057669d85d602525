"""Head-to-head comparison of two protocol summaries."""

from protobench.analysis.summary import EPSILON, round6
from protobench.models import ComparisonMetrics, Summary, Winner


def _guarded(denominator: float) -> float:
    return denominator if denominator != 0 else EPSILON


def latency_winner(a: Summary, b: Summary) -> Winner:
    if b.p50_ms < a.p50_ms:
        return Winner.H3
    if a.p50_ms < b.p50_ms:
        return Winner.H2
    return Winner.TIE


def throughput_winner(a: Summary, b: Summary) -> Winner:
    if b.rps > a.rps:
        return Winner.H3
    if a.rps > b.rps:
        return Winner.H2
    return Winner.TIE


def compare(a: Summary, b: Summary) -> ComparisonMetrics:
    """Compare variant B against variant A.

    Percentage deltas are always relative to ``a``: positive ``p50_diff_pct``
    and ``p99_diff_pct`` mean B was faster, positive ``rps_diff_pct`` means B
    served more requests per second. A zero baseline is replaced by EPSILON.
    """
    p50_diff = (a.p50_ms - b.p50_ms) / _guarded(a.p50_ms) * 100
    p99_diff = (a.p99_ms - b.p99_ms) / _guarded(a.p99_ms) * 100
    rps_diff = (b.rps - a.rps) / _guarded(a.rps) * 100

    return ComparisonMetrics(
        latency_winner=latency_winner(a, b),
        throughput_winner=throughput_winner(a, b),
        p50_diff_pct=round6(p50_diff),
        p99_diff_pct=round6(p99_diff),
        rps_diff_pct=round6(rps_diff),
        latency_improvement_pct=round6((p50_diff + p99_diff) / 2),
    )
