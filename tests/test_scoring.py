"""
Unit tests for scoring.py.

Tests cover:
  - round_half_up and score_value edge cases, exact halves, monotonicity
  - score_of_kpi clamping and direction handling
  - score_of_pillar / overall_score weighting, bounds and "no data" propagation
"""
import pytest

from conftest import make_kpi, make_manager, make_pillar
from utils.manager_performance.constants import TimePeriod
from utils.manager_performance.errors import InsufficientDataError
from utils.manager_performance.scoring import (
    best_and_worst_pillars,
    overall_score,
    pillar_scores,
    require_overall_score,
    round_half_up,
    score_of_kpi,
    score_of_pillar,
    score_value,
    weighted_average,
)

MONTHLY = TimePeriod.MONTHLY


class TestRoundHalfUp:
    @pytest.mark.parametrize("value,expected", [
        (0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (84.5, 85), (-0.5, -1),
    ])
    def test_halves_round_away_from_zero(self, value, expected):
        assert round_half_up(value) == expected


class TestScoreValue:
    def test_higher_is_better_ratio(self):
        assert score_value(80, 100, lower_is_better=False) == 80

    def test_exceeding_target_is_capped(self):
        assert score_value(120, 100, lower_is_better=False) == 100

    def test_lower_is_better_inverse_ratio(self):
        assert score_value(20, 10, lower_is_better=True) == 50

    def test_lower_is_better_zero_value_is_perfect(self):
        assert score_value(0, 0, lower_is_better=True) == 100
        assert score_value(0, 5, lower_is_better=True) == 100

    def test_zero_target_higher_is_better(self):
        assert score_value(3, 0, lower_is_better=False) == 100

    def test_lower_is_better_zero_target_with_events(self):
        assert score_value(2, 0, lower_is_better=True) == 0

    @pytest.mark.parametrize("raw,target", [(14.5, 100), (29, 200), (0.29, 2), (1.45, 10)])
    def test_exact_half_rounds_up(self, raw, target):
        assert score_value(raw, target, lower_is_better=False) == 15

    def test_lower_is_better_exact_half_rounds_up(self):
        assert score_value(20, 2.9, lower_is_better=True) == 15

    @pytest.mark.parametrize("target", [10, 40, 100])
    def test_monotonic_in_the_better_direction(self, target):
        raws = [0, 0.5, 1, 4.35, 9.99, 10, 25, 39.5, 40, 72.5, 100, 250]
        higher = [score_value(raw, target, lower_is_better=False) for raw in raws]
        lower = [score_value(raw, target, lower_is_better=True) for raw in raws]

        assert higher == sorted(higher)
        assert lower == sorted(lower, reverse=True)


class TestScoreOfKpi:
    def test_no_data_is_none_not_zero(self):
        assert score_of_kpi(make_kpi(), MONTHLY) is None

    def test_uses_latest_month(self):
        kpi = make_kpi(target=100, history={"2024-01": 50, "2024-02": 90})
        assert score_of_kpi(kpi, MONTHLY) == 90

    def test_lower_is_better(self):
        kpi = make_kpi(target=10, history={"2024-02": 20}, lower_is_better=True)
        assert score_of_kpi(kpi, MONTHLY) == 50

    def test_result_always_within_bounds(self):
        for value in (0, 1, 50, 99.9, 1000):
            for lower in (True, False):
                kpi = make_kpi(target=40, history={"2024-02": value}, lower_is_better=lower)
                assert 0 <= score_of_kpi(kpi, MONTHLY) <= 100

    def test_quarterly_summed_kpi_compares_against_scaled_target(self):
        kpi = make_kpi(target=10, summed=True,
                       history={"2024-01": 10, "2024-02": 10, "2024-03": 10})
        assert score_of_kpi(kpi, TimePeriod.QUARTERLY) == 100


class TestPillarAndOverall:
    def test_pillar_skips_kpis_without_data(self):
        pillar = make_pillar(kpis=[
            make_kpi("a", history={"2024-02": 60}),
            make_kpi("b"),
        ])
        assert score_of_pillar(pillar, MONTHLY) == 60

    def test_pillar_weighted_by_kpi_weight(self):
        pillar = make_pillar(kpis=[
            make_kpi("a", history={"2024-02": 100}, weight=3),
            make_kpi("b", history={"2024-02": 60}, weight=1),
        ])
        assert score_of_pillar(pillar, MONTHLY) == 90

    def test_zero_weights_fall_back_to_even_average(self):
        assert weighted_average([(80, 0), (60, 0)]) == 70

    def test_empty_pillar_is_none(self):
        assert score_of_pillar(make_pillar(), MONTHLY) is None

    def test_overall_weighted_by_pillar_weight(self):
        manager = make_manager(pillars=[
            make_pillar("p1", weight=40, kpis=[make_kpi("a", history={"2024-02": 100})]),
            make_pillar("p2", weight=60, kpis=[make_kpi("b", history={"2024-02": 50})]),
        ])
        assert overall_score(manager, MONTHLY) == 70

    def test_overall_ignores_pillars_without_data(self):
        manager = make_manager(pillars=[
            make_pillar("p1", weight=40, kpis=[make_kpi("a", history={"2024-02": 80})]),
            make_pillar("p2", weight=60, kpis=[make_kpi("b")]),
        ])
        assert overall_score(manager, MONTHLY) == 80

    def test_overall_none_when_nothing_scorable(self):
        manager = make_manager(pillars=[make_pillar(kpis=[make_kpi()])])
        assert overall_score(manager, MONTHLY) is None
        with pytest.raises(InsufficientDataError):
            require_overall_score(manager, MONTHLY)

    def test_pillar_scores_keyed_by_id(self):
        manager = make_manager(pillars=[
            make_pillar("p1", kpis=[make_kpi("a", history={"2024-02": 40})]),
            make_pillar("p2", kpis=[make_kpi("b")]),
        ])
        assert pillar_scores(manager, MONTHLY) == {"p1": 40, "p2": None}

    def test_best_and_worst(self):
        manager = make_manager(pillars=[
            make_pillar("p1", kpis=[make_kpi("a", history={"2024-02": 40})]),
            make_pillar("p2", kpis=[make_kpi("b", history={"2024-02": 95})]),
            make_pillar("p3", kpis=[make_kpi("c")]),
        ])
        best, worst = best_and_worst_pillars(manager, MONTHLY)
        assert (best[0].id, best[1]) == ("p2", 95)
        assert (worst[0].id, worst[1]) == ("p1", 40)

    @pytest.mark.parametrize("pillars", [
        [(100, 40), (50, 60)],
        [(73, 1), (74, 1), (75, 1)],
        [(0, 10), (100, 0.5)],
        [(12.5, 3), (87.5, 3), (60, 0)],
        [(88, 25), (91, 25), (64, 25), (99, 25)],
    ])
    def test_overall_bounded_by_pillar_scores(self, pillars):
        manager = make_manager(pillars=[
            make_pillar(f"p{i}", weight=weight, kpis=[make_kpi(f"k{i}", history={"2024-02": value})])
            for i, (value, weight) in enumerate(pillars)
        ])
        scores = [s for s in pillar_scores(manager, MONTHLY).values() if s is not None]
        assert min(scores) <= overall_score(manager, MONTHLY) <= max(scores)
