"""
Unit tests for rollup.py.

Tests cover:
  - department and organisation averages, excluding unscored managers
  - alert ranking (severity, then recency) and top-N truncation
  - pillar averages and the manager leaderboard
"""
from datetime import timedelta

from conftest import FIXED_NOW, make_kpi, make_manager, make_pillar, scored_manager
from utils.manager_performance.constants import (
    ALERT_SEVERITY,
    AlertKind,
    TimePeriod,
)
from utils.manager_performance.models import Alert
from utils.manager_performance.rollup import (
    manager_leaderboard,
    pillar_averages,
    rank_alerts,
    rollup,
)

MONTHLY = TimePeriod.MONTHLY


def make_alert(alert_id, kind, minutes=0, manager_id="m1", is_read=False):
    return Alert(
        id=alert_id,
        kind=kind,
        severity=ALERT_SEVERITY[kind],
        manager_id=manager_id,
        manager_name=manager_id.upper(),
        subject_id=manager_id,
        message=alert_id,
        created_at=FIXED_NOW + timedelta(minutes=minutes),
        is_read=is_read,
    )


def unscored_manager(manager_id, department="Ramp"):
    return make_manager(manager_id, department=department,
                        pillars=[make_pillar(kpis=[make_kpi()])])


class TestRollup:
    def test_department_and_org_averages(self):
        managers = [
            scored_manager("a", 80, department="Ramp"),
            scored_manager("b", 91, department="Ramp"),
            scored_manager("c", 60, department="Cargo"),
        ]
        result = rollup(managers, MONTHLY)
        assert result.per_department == {"Cargo": 60, "Ramp": 86}
        assert result.org_wide == 77
        assert result.scored_managers == 3

    def test_unscored_managers_are_excluded_not_zeroed(self):
        managers = [scored_manager("a", 80), unscored_manager("b"), unscored_manager("c", "Cargo")]
        result = rollup(managers, MONTHLY)
        assert result.per_department == {"Ramp": 80}
        assert result.org_wide == 80
        assert result.unscored_managers == 2

    def test_no_scored_managers(self):
        result = rollup([unscored_manager("a")], MONTHLY)
        assert result.per_department == {}
        assert result.org_wide is None

    def test_top_alerts_limited(self):
        alerts = [make_alert(f"a{i}", AlertKind.PILLAR_RISK, minutes=i) for i in range(8)]
        result = rollup([scored_manager("a", 80)], MONTHLY, alerts, top_n=5)
        assert [a.id for a in result.top_alerts] == ["a7", "a6", "a5", "a4", "a3"]


class TestRankAlerts:
    def test_severity_then_recency(self):
        alerts = [
            make_alert("stale", AlertKind.STALE_ACTION_PLAN, minutes=30),
            make_alert("risk_old", AlertKind.PILLAR_RISK, minutes=0),
            make_alert("low", AlertKind.LOW_PERFORMANCE, minutes=-60),
            make_alert("risk_new", AlertKind.PILLAR_RISK, minutes=10),
        ]
        assert [a.id for a in rank_alerts(alerts)] == ["low", "risk_new", "risk_old", "stale"]


class TestPillarAverages:
    def test_average_by_pillar_name_ignoring_no_data(self):
        def manager(manager_id, value):
            history = {"2024-05": value} if value is not None else {}
            return make_manager(manager_id, pillars=[
                make_pillar("safety", kpis=[make_kpi("k", history=history)]),
            ])

        result = pillar_averages([manager("a", 70), manager("b", 81), manager("c", None)], MONTHLY)
        assert result == {"Safety": 76}


class TestLeaderboard:
    def test_sorted_with_unscored_last(self):
        managers = [
            unscored_manager("x"),
            scored_manager("a", 70),
            scored_manager("b", 90),
        ]
        alerts = [
            make_alert("1", AlertKind.LOW_PERFORMANCE, manager_id="a"),
            make_alert("2", AlertKind.PILLAR_RISK, manager_id="a", is_read=True),
        ]
        board = manager_leaderboard(managers, MONTHLY, alerts)

        assert board["manager_id"].tolist() == ["b", "a", "x"]
        assert board.loc[1, "unread_alerts"] == 1
        assert board.loc[0, "unread_alerts"] == 0
        assert board["open_plans"].tolist() == [0, 0, 0]
