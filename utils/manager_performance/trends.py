# utils/manager_performance/trends.py
"""
Historical trends, forecasting and monthly competition

- forecast_kpi_value():   linear trend of a KPI's monthly history, next month
- forecast_org_score():   organisation score per month + next-month forecast
- score_for_month():      overall score from exactly one month's values
- monthly_ranking():      managers ranked for a month (competition view)
- peer_average_for_kpi(): same-role peer benchmark for one KPI
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .constants import TimePeriod
from .errors import InsufficientDataError, NotFoundError
from .models import KPI, Manager
from .period_aggregator import MonthLike, month_key, parse_month, resolve_value
from .scoring import overall_score, round_half_up

logger = logging.getLogger(__name__)


def _linear_forecast(values: Sequence[float]) -> float:
    """Least-squares line through (0..n-1, values), evaluated at x = n."""
    x = np.arange(len(values), dtype=float)
    slope, intercept = np.polyfit(x, np.asarray(values, dtype=float), 1)
    return float(slope * len(values) + intercept)


def forecast_kpi_value(kpi: KPI) -> float:
    """
    Next-month value from the KPI's recorded history.

    Raises:
        InsufficientDataError: fewer than two recorded months
    """
    if len(kpi.history) < 2:
        raise InsufficientDataError(f"KPI {kpi.id} forecast")

    values = [kpi.history[k] for k in sorted(kpi.history, key=parse_month)]
    return round(_linear_forecast(values), 2)


def available_months(managers: Sequence[Manager]) -> List[str]:
    """Distinct recorded months across all managers, newest first."""
    months = {
        month_key(key)
        for manager in managers
        for _, kpi in manager.iter_kpis()
        for key in kpi.history
    }
    return sorted(months, reverse=True)


def score_for_month(manager: Manager, month: MonthLike) -> Optional[int]:
    """
    Overall score using exactly `month`'s recorded values.

    None unless every KPI of the manager has a value for that month.
    """
    key = month_key(month)
    kpis = [kpi for _, kpi in manager.iter_kpis()]
    if not kpis or any(key not in kpi.history for kpi in kpis):
        return None
    return overall_score(manager, TimePeriod.MONTHLY, as_of=key)


def org_score_history(managers: Sequence[Manager]) -> pd.DataFrame:
    """
    Average organisation score per month (oldest first).

    Columns: month, score, managers
    """
    rows = []
    for key in reversed(available_months(managers)):
        scores = [s for s in (score_for_month(m, key) for m in managers) if s is not None]
        if scores:
            rows.append({
                'month': key,
                'score': round_half_up(sum(scores) / len(scores)),
                'managers': len(scores),
            })
    return pd.DataFrame(rows, columns=['month', 'score', 'managers'])


def forecast_org_score(managers: Sequence[Manager]) -> Dict:
    """
    Returns:
        {'history': DataFrame from org_score_history(), 'forecast': int or None}
    """
    history = org_score_history(managers)
    if len(history) < 2:
        return {'history': history, 'forecast': None}

    forecast = _linear_forecast(history['score'].tolist())
    return {'history': history, 'forecast': max(0, min(100, round_half_up(forecast)))}


def monthly_ranking(managers: Sequence[Manager], month: MonthLike) -> pd.DataFrame:
    """
    Scorable managers ranked by their score for `month`.

    Columns: rank, manager_id, name, department, score
    """
    key = month_key(month)
    rows = []
    for manager in managers:
        score = score_for_month(manager, key)
        if score is not None:
            rows.append({
                'manager_id': manager.id,
                'name': manager.name,
                'department': manager.department,
                'score': score,
            })

    df = pd.DataFrame(rows, columns=['manager_id', 'name', 'department', 'score'])
    df = df.sort_values('score', ascending=False, kind='mergesort').reset_index(drop=True)
    df.insert(0, 'rank', range(1, len(df) + 1))
    return df


def peer_average_for_kpi(
    managers: Sequence[Manager],
    manager_id: str,
    kpi_id: str,
    period: TimePeriod
) -> Optional[float]:
    """Mean resolved value of `kpi_id` among other managers with the same role."""
    target = next((m for m in managers if m.id == manager_id), None)
    if target is None:
        raise NotFoundError("Manager", manager_id)

    values = []
    for peer in managers:
        if peer.id == manager_id or peer.role != target.role:
            continue
        for _, kpi in peer.iter_kpis():
            if kpi.id == kpi_id:
                value = resolve_value(kpi, period)
                if value is not None:
                    values.append(value)

    if not values:
        return None
    return round(float(np.mean(values)), 2)
