"""
Unit tests for trends.py.

Tests cover:
  - linear KPI forecast and its data requirement
  - per-month scores, organisation history and forecast
  - monthly competition ranking and peer averages
"""
import pytest

from conftest import make_kpi, make_manager, make_pillar
from utils.manager_performance.constants import ManagerRole, TimePeriod
from utils.manager_performance.errors import InsufficientDataError, NotFoundError
from utils.manager_performance.trends import (
    available_months,
    forecast_kpi_value,
    forecast_org_score,
    monthly_ranking,
    org_score_history,
    peer_average_for_kpi,
    score_for_month,
)


def history_manager(manager_id, history, role=ManagerRole.RAMP):
    return make_manager(manager_id, name=manager_id.upper(), role=role, pillars=[
        make_pillar("core", kpis=[make_kpi("otp", target=100, history=history)]),
    ])


class TestForecastKpi:
    def test_linear_trend(self):
        kpi = make_kpi(history={"2024-01": 80, "2024-02": 85, "2024-03": 90})
        assert forecast_kpi_value(kpi) == pytest.approx(95.0)

    def test_orders_months_chronologically(self):
        kpi = make_kpi(history={"2024-03": 90, "2024-01": 80, "2024-02": 85})
        assert forecast_kpi_value(kpi) == pytest.approx(95.0)

    def test_needs_two_points(self):
        with pytest.raises(InsufficientDataError):
            forecast_kpi_value(make_kpi(history={"2024-01": 80}))


class TestMonthlyScores:
    def test_available_months_newest_first(self):
        managers = [
            history_manager("a", {"2024-01": 80, "2024-02": 85}),
            history_manager("b", {"2024-03": 70}),
        ]
        assert available_months(managers) == ["2024-03", "2024-02", "2024-01"]

    def test_score_for_month_uses_that_month_only(self):
        manager = history_manager("a", {"2024-01": 60, "2024-02": 90})
        assert score_for_month(manager, "2024-01") == 60
        assert score_for_month(manager, "2024-02") == 90
        assert score_for_month(manager, "2024-03") is None

    def test_score_for_month_requires_every_kpi(self):
        manager = make_manager(pillars=[make_pillar("core", kpis=[
            make_kpi("a", history={"2024-01": 80}),
            make_kpi("b", history={"2024-02": 80}),
        ])])
        assert score_for_month(manager, "2024-01") is None

    def test_org_history_and_forecast(self):
        managers = [
            history_manager("a", {"2024-01": 70, "2024-02": 75, "2024-03": 80}),
            history_manager("b", {"2024-01": 80, "2024-02": 85, "2024-03": 90}),
        ]
        history = org_score_history(managers)
        assert history["month"].tolist() == ["2024-01", "2024-02", "2024-03"]
        assert history["score"].tolist() == [75, 80, 85]

        result = forecast_org_score(managers)
        assert result["forecast"] == 90

    def test_org_forecast_needs_two_months(self):
        result = forecast_org_score([history_manager("a", {"2024-01": 70})])
        assert result["forecast"] is None
        assert len(result["history"]) == 1

    def test_org_forecast_is_clamped(self):
        managers = [history_manager("a", {"2024-01": 80, "2024-02": 90, "2024-03": 100})]
        assert forecast_org_score(managers)["forecast"] == 100

    def test_monthly_ranking(self):
        managers = [
            history_manager("a", {"2024-02": 70}),
            history_manager("b", {"2024-02": 95}),
            history_manager("c", {"2024-01": 99}),
        ]
        ranking = monthly_ranking(managers, "2024-02")
        assert ranking["manager_id"].tolist() == ["b", "a"]
        assert ranking["rank"].tolist() == [1, 2]


class TestPeerAverage:
    def test_same_role_peers_only(self):
        managers = [
            history_manager("me", {"2024-02": 50}),
            history_manager("peer1", {"2024-02": 80}),
            history_manager("peer2", {"2024-02": 90}),
            history_manager("other", {"2024-02": 10}, role=ManagerRole.SAFETY),
        ]
        assert peer_average_for_kpi(managers, "me", "otp", TimePeriod.MONTHLY) == 85.0

    def test_no_peers(self):
        managers = [history_manager("me", {"2024-02": 50})]
        assert peer_average_for_kpi(managers, "me", "otp", TimePeriod.MONTHLY) is None

    def test_unknown_manager(self):
        with pytest.raises(NotFoundError):
            peer_average_for_kpi([], "nobody", "otp", TimePeriod.MONTHLY)
