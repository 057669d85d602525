"""Win/loss record of h2 against h3 over stored runs."""

from collections.abc import Sequence

from protobench.analysis.stability import mean
from protobench.models import HistorySummary, OverallHistory, RunWithResults, Winner
from protobench.models.run import (
    HistoryCounts,
    HistoryWinners,
    LatencyHistory,
    ThroughputHistory,
    WinRates,
)
from protobench.storage.base import RunStore


def _by_count(h2_wins: int, h3_wins: int) -> Winner:
    if h3_wins > h2_wins:
        return Winner.H3
    if h2_wins > h3_wins:
        return Winner.H2
    return Winner.TIE


def summarize_history(runs: Sequence[RunWithResults]) -> HistorySummary:
    """Summarize every run that has both protocol results.

    Improvements are fractions relative to h2; pairs with a zero h2 baseline
    are left out of the averages but still counted as wins, losses or ties.
    """
    pairs = [r for r in runs if r.is_pair]

    lat_h2 = lat_h3 = lat_tie = 0
    rps_h2 = rps_h3 = rps_tie = 0
    p50_improvements: list[float] = []
    rps_gains: list[float] = []
    h2_p50: list[float] = []
    h3_p50: list[float] = []
    h2_rps: list[float] = []
    h3_rps: list[float] = []

    for pair in pairs:
        h2 = pair.h2.summary  # type: ignore[union-attr]
        h3 = pair.h3.summary  # type: ignore[union-attr]

        if h2.p50_ms < h3.p50_ms:
            lat_h2 += 1
        elif h3.p50_ms < h2.p50_ms:
            lat_h3 += 1
        else:
            lat_tie += 1

        if h2.rps > h3.rps:
            rps_h2 += 1
        elif h3.rps > h2.rps:
            rps_h3 += 1
        else:
            rps_tie += 1

        if h2.p50_ms > 0:
            p50_improvements.append((h2.p50_ms - h3.p50_ms) / h2.p50_ms)
        if h2.rps > 0:
            rps_gains.append((h3.rps - h2.rps) / h2.rps)

        h2_p50.append(h2.p50_ms)
        h3_p50.append(h3.p50_ms)
        h2_rps.append(h2.rps)
        h3_rps.append(h3.rps)

    n_pairs = len(pairs)
    return HistorySummary(
        counts=HistoryCounts(total_runs=len(runs), comparable_pairs=n_pairs),
        latency=LatencyHistory(
            h2_wins=lat_h2,
            h3_wins=lat_h3,
            ties=lat_tie,
            avg_p50_h2_ms=mean(h2_p50),
            avg_p50_h3_ms=mean(h3_p50),
            avg_latency_improvement=mean(p50_improvements),
        ),
        throughput=ThroughputHistory(
            h2_wins=rps_h2,
            h3_wins=rps_h3,
            ties=rps_tie,
            avg_rps_h2=mean(h2_rps),
            avg_rps_h3=mean(h3_rps),
            avg_rps_gain=mean(rps_gains),
        ),
        win_rates=WinRates(
            latency_h3=lat_h3 / n_pairs if n_pairs else 0.0,
            rps_h3=rps_h3 / n_pairs if n_pairs else 0.0,
        ),
        winner=HistoryWinners(latency=_by_count(lat_h2, lat_h3), rps=_by_count(rps_h2, rps_h3)),
    )


def summarize_all(store: RunStore) -> OverallHistory:
    """Summaries for every scenario in the store plus one over all of them."""
    per_scenario: dict[str, HistorySummary] = {}
    all_runs: list[RunWithResults] = []
    for scenario, runs in store.list_all_runs_grouped().items():
        if not runs:
            continue
        per_scenario[scenario] = summarize_history(runs)
        all_runs.extend(runs)
    return OverallHistory(overall=summarize_history(all_runs), per_scenario=per_scenario)


def verdict_from_winrate(rate: float) -> str:
    """Plain-language reading of an h3 win rate."""
    if rate >= 0.65:
        return "clear lead"
    if rate >= 0.55:
        return "slight lead"
    if rate > 0.45:
        return "even"
    if rate > 0.35:
        return "slight deficit"
    return "clear deficit"
