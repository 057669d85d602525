import math

import pytest
from factories import entry, summary

from protobench.analysis import analyze, coefficient_of_variation, sample_stddev
from protobench.analysis.summary import EPSILON
from protobench.models import Winner


def test_empty_history():
    result = analyze([])
    assert result.runs == []
    assert result.earliest is None
    assert result.latest is None
    assert result.stability is None


def test_constant_series_is_perfectly_stable():
    runs = [entry(i, h2=summary(10, 100), h3=summary(8, 120)) for i in range(1, 5)]
    s = analyze(runs).stability

    assert s.h2.p50_cv == 0
    assert s.h2.rps_cv == 0
    assert s.h2.score == 0
    assert s.h3.score == 0
    assert s.winner is Winner.TIE


def test_identical_variance_is_a_tie():
    runs = [
        entry(1, h2=summary(10, 100), h3=summary(10, 100)),
        entry(2, h2=summary(20, 200), h3=summary(20, 200)),
    ]
    assert analyze(runs).stability.winner is Winner.TIE


def test_less_variable_protocol_wins():
    runs = [
        entry(1, h2=summary(10, 100), h3=summary(5, 100)),
        entry(2, h2=summary(11, 100), h3=summary(15, 300)),
        entry(3, h2=summary(10, 101), h3=summary(9, 50)),
    ]
    s = analyze(runs).stability

    assert s.h2.score < s.h3.score
    assert s.winner is Winner.H2
    assert s.h2.score == pytest.approx((s.h2.p50_cv + s.h2.rps_cv) / 2)


def test_earliest_and_latest_follow_order():
    runs = [entry(i, h2=summary(), h3=summary()) for i in (3, 4, 7)]
    result = analyze(runs)

    assert result.earliest.run.id == 3
    assert result.latest.run.id == 7
    assert len(result.runs) == 3


def test_protocol_without_results_scores_zero():
    runs = [entry(1, h2=summary(10, 100)), entry(2, h2=summary(30, 300))]
    s = analyze(runs).stability

    assert s.h3.score == 0
    assert s.h2.score > 0
    assert s.winner is Winner.H3


def test_sample_stddev_uses_bessel_correction():
    assert sample_stddev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(math.sqrt(32 / 7))
    assert sample_stddev([5.0]) == 0
    assert sample_stddev([]) == 0


def test_zero_mean_is_guarded():
    assert coefficient_of_variation([0.0, 0.0]) == 0
    cv = coefficient_of_variation([-1.0, 1.0])
    assert cv == pytest.approx(math.sqrt(2) / EPSILON)
    assert math.isfinite(cv)
