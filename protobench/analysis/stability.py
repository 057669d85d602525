"""Stability of a scenario across its run history."""

import math
from collections.abc import Sequence

from protobench.analysis.summary import EPSILON
from protobench.models import (
    Protocol,
    ProtocolStability,
    RunWithResults,
    ScenarioStability,
    StabilityScore,
    Winner,
)


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return math.fsum(values) / len(values)


def sample_stddev(values: Sequence[float]) -> float:
    """Standard deviation with Bessel's correction; 0 for fewer than two values."""
    if len(values) <= 1:
        return 0.0
    m = mean(values)
    return math.sqrt(math.fsum((x - m) ** 2 for x in values) / (len(values) - 1))


def coefficient_of_variation(values: Sequence[float]) -> float:
    return sample_stddev(values) / (mean(values) or EPSILON)


def protocol_stability(runs: Sequence[RunWithResults], protocol: Protocol) -> ProtocolStability:
    """Stability of one protocol; runs without a result for it are skipped."""
    results = [r.result_for(protocol) for r in runs]
    p50s = [res.summary.p50_ms for res in results if res is not None]
    rps = [res.summary.rps for res in results if res is not None]

    p50_cv = coefficient_of_variation(p50s)
    rps_cv = coefficient_of_variation(rps)
    return ProtocolStability(p50_cv=p50_cv, rps_cv=rps_cv, score=(p50_cv + rps_cv) / 2)


def analyze(runs: Sequence[RunWithResults]) -> ScenarioStability:
    """Score how repeatable each protocol has been; lower score is more stable.

    ``runs`` must be ordered oldest first, as the store returns them.
    """
    if not runs:
        return ScenarioStability()

    h2 = protocol_stability(runs, Protocol.H2)
    h3 = protocol_stability(runs, Protocol.H3)
    if h2.score < h3.score:
        winner = Winner.H2
    elif h3.score < h2.score:
        winner = Winner.H3
    else:
        winner = Winner.TIE

    return ScenarioStability(
        runs=list(runs),
        earliest=runs[0],
        latest=runs[-1],
        stability=StabilityScore(h2=h2, h3=h3, winner=winner),
    )
