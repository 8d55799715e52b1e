"""
Shared factories and fixtures for the manager performance tests.

Everything here builds plain model objects; no Streamlit runtime, network
or .env file is needed.
"""
import itertools
from datetime import datetime

import pytest

from utils.config import ScoringThresholds
from utils.manager_performance.constants import (
    AggregationMode,
    ManagerRole,
    ScoringDirection,
)
from utils.manager_performance.models import KPI, Manager, Pillar

FIXED_NOW = datetime(2024, 6, 15, 9, 0, 0)


# ── factories ──────────────────────────────────────────────────────────────────

def make_kpi(kpi_id="kpi", target=100.0, history=None, weight=1.0,
             lower_is_better=False, summed=False):
    return KPI(
        id=kpi_id,
        name=kpi_id.replace("_", " ").title(),
        target=target,
        weight=weight,
        direction=(ScoringDirection.LOWER_IS_BETTER if lower_is_better
                   else ScoringDirection.HIGHER_IS_BETTER),
        aggregation=AggregationMode.SUM if summed else AggregationMode.AVERAGE,
        history=dict(history or {}),
    )


def make_pillar(pillar_id="pillar", weight=1.0, kpis=None, risk_threshold=None):
    return Pillar(
        id=pillar_id,
        name=pillar_id.replace("_", " ").title(),
        weight=weight,
        kpis=list(kpis or []),
        risk_threshold=risk_threshold,
    )


def make_manager(manager_id="m1", name="Test Manager", department="Ramp",
                 role=ManagerRole.RAMP, pillars=None):
    return Manager(
        id=manager_id,
        name=name,
        department=department,
        role=role,
        pillars=list(pillars or []),
    )


def scored_manager(manager_id, value, department="Ramp", month="2024-05"):
    """Single pillar, single KPI manager whose monthly score equals `value`."""
    kpi = make_kpi(f"{manager_id}_kpi", target=100, history={month: value})
    return make_manager(manager_id, name=manager_id.upper(), department=department,
                        pillars=[make_pillar("core", kpis=[kpi])])


def sequential_ids(prefix="alert"):
    counter = itertools.count(1)
    return lambda: f"{prefix}_{next(counter)}"


class Clock:
    """Settable clock for store tests."""

    def __init__(self, now=FIXED_NOW):
        self.now = now

    def __call__(self):
        return self.now


# ── fixtures ───────────────────────────────────────────────────────────────────

@pytest.fixture
def thresholds():
    return ScoringThresholds(low_performance=75.0, pillar_risk=75.0, stale_plan_days=30)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def id_factory():
    return sequential_ids()
