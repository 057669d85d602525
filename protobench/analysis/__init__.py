"""Pure statistics over samples, summaries and run histories."""

from protobench.analysis.comparison import compare
from protobench.analysis.history import summarize_all, summarize_history, verdict_from_winrate
from protobench.analysis.stability import analyze, coefficient_of_variation, sample_stddev
from protobench.analysis.summary import EPSILON, compute_summary, percentile, round6

__all__ = [
    # comparison.py
    "compare",
    # history.py
    "summarize_all",
    "summarize_history",
    "verdict_from_winrate",
    # stability.py
    "analyze",
    "coefficient_of_variation",
    "sample_stddev",
    # summary.py
    "EPSILON",
    "compute_summary",
    "percentile",
    "round6",
]
