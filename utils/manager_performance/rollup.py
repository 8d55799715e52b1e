# utils/manager_performance/rollup.py
"""
Executive Rollup

Aggregates manager scores and alerts for department / organisation views.
Managers without a score for the period are excluded from every average
(never counted as zero).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .constants import SEVERITY_RANK, TimePeriod
from .models import Alert, Manager
from .scoring import overall_score, round_half_up, score_of_pillar

logger = logging.getLogger(__name__)


@dataclass
class ExecutiveRollup:
    per_department: Dict[str, int] = field(default_factory=dict)
    org_wide: Optional[int] = None
    top_alerts: List[Alert] = field(default_factory=list)
    scored_managers: int = 0
    unscored_managers: int = 0


def _score_frame(managers: Sequence[Manager], period: TimePeriod) -> pd.DataFrame:
    rows = [
        {
            'manager_id': m.id,
            'name': m.name,
            'department': m.department,
            'role': m.role.value,
            'score': overall_score(m, period),
        }
        for m in managers
    ]
    df = pd.DataFrame(rows, columns=['manager_id', 'name', 'department', 'role', 'score'])
    df['score'] = pd.to_numeric(df['score'], errors='coerce')
    return df


def rank_alerts(alerts: Sequence[Alert], limit: Optional[int] = None) -> List[Alert]:
    """Severity desc, then most recent first."""
    ranked = sorted(
        alerts,
        key=lambda a: (SEVERITY_RANK[a.severity], a.created_at),
        reverse=True,
    )
    return ranked[:limit] if limit is not None else ranked


def rollup(
    managers: Sequence[Manager],
    period: TimePeriod,
    alerts: Sequence[Alert] = (),
    top_n: Optional[int] = 5
) -> ExecutiveRollup:
    """
    Department averages, organisation-wide average and top alerts.

    org_wide is the mean over scored managers, not a mean of departments.
    """
    df = _score_frame(managers, TimePeriod(period))
    scored = df[df['score'].notna()]

    if scored.empty:
        logger.info("Rollup: no scorable managers for period")
        return ExecutiveRollup(
            top_alerts=rank_alerts(alerts, top_n),
            unscored_managers=len(df),
        )

    by_department = scored.groupby('department', sort=True)['score'].mean()
    return ExecutiveRollup(
        per_department={dept: round_half_up(avg) for dept, avg in by_department.items()},
        org_wide=round_half_up(scored['score'].mean()),
        top_alerts=rank_alerts(alerts, top_n),
        scored_managers=len(scored),
        unscored_managers=len(df) - len(scored),
    )


def pillar_averages(managers: Sequence[Manager], period: TimePeriod) -> Dict[str, int]:
    """Average score per pillar name across the organisation."""
    rows = [
        {'pillar': pillar.name, 'score': score_of_pillar(pillar, period)}
        for manager in managers
        for pillar in manager.pillars
    ]
    if not rows:
        return {}

    df = pd.DataFrame(rows)
    df['score'] = pd.to_numeric(df['score'], errors='coerce')
    means = df.dropna(subset=['score']).groupby('pillar', sort=True)['score'].mean()
    return {name: round_half_up(avg) for name, avg in means.items()}


def manager_leaderboard(
    managers: Sequence[Manager],
    period: TimePeriod,
    alerts: Sequence[Alert] = ()
) -> pd.DataFrame:
    """
    One row per manager sorted by score (unscored last).

    Columns: manager_id, name, department, role, score, open_plans, unread_alerts
    """
    df = _score_frame(managers, TimePeriod(period))

    open_plans = {m.id: len(m.open_plans) for m in managers}
    unread: Dict[str, int] = {}
    for alert in alerts:
        if not alert.is_read:
            unread[alert.manager_id] = unread.get(alert.manager_id, 0) + 1

    df['open_plans'] = df['manager_id'].map(open_plans).fillna(0).astype(int)
    df['unread_alerts'] = df['manager_id'].map(unread).fillna(0).astype(int)

    df = df.sort_values('score', ascending=False, na_position='last', kind='mergesort')
    return df.reset_index(drop=True)
