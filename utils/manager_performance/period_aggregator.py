# utils/manager_performance/period_aggregator.py
"""
Time-Period Aggregator

Resolves the KPI value that applies to a requested view period from the
month-keyed recorded values:
- monthly:   most recent recorded month
- quarterly: trailing 3-month window ending at the reference month
- yearly:    trailing 12-month window ending at the reference month

Windowed values are summed for countable KPIs and averaged for rates; the
mode comes from the KPI definition. Reference month = `as_of` when given,
else the KPI's latest recorded month.
"""

import logging
from datetime import date, datetime
from typing import Optional, Tuple, Union

import pandas as pd

from .constants import (
    MONTH_KEY_FORMAT,
    PERIOD_WINDOW_MONTHS,
    AggregationMode,
    TimePeriod,
)
from .errors import ValidationError
from .models import KPI

logger = logging.getLogger(__name__)

MonthLike = Union[str, pd.Period, date, datetime]


# =========================================================================
# MONTH KEYS
# =========================================================================

def parse_month(value: MonthLike) -> pd.Period:
    """
    Normalize a month identifier to a monthly pd.Period.

    Accepts 'YYYY-MM' strings, pd.Period, date and datetime.
    Raises ValidationError on anything else.
    """
    if isinstance(value, pd.Period):
        return value.asfreq('M')
    if isinstance(value, (date, datetime)):
        return pd.Period(year=value.year, month=value.month, freq='M')
    if isinstance(value, str):
        try:
            parsed = datetime.strptime(value.strip(), MONTH_KEY_FORMAT)
        except ValueError:
            raise ValidationError(f"Invalid month '{value}', expected YYYY-MM")
        return pd.Period(year=parsed.year, month=parsed.month, freq='M')
    raise ValidationError(f"Invalid month: {value!r}")


def month_key(value: MonthLike) -> str:
    return parse_month(value).strftime(MONTH_KEY_FORMAT)


# =========================================================================
# WINDOWS
# =========================================================================

def _history_series(kpi: KPI, as_of: Optional[MonthLike] = None) -> pd.Series:
    """Recorded values as a Series indexed by monthly Period, oldest first."""
    if not kpi.history:
        return pd.Series(dtype=float)

    index = pd.PeriodIndex([parse_month(k) for k in kpi.history], freq='M')
    series = pd.Series(list(kpi.history.values()), index=index, dtype=float).sort_index()

    if as_of is not None:
        series = series[series.index <= parse_month(as_of)]
    return series


def window_bounds(period: TimePeriod, reference: pd.Period) -> Tuple[pd.Period, pd.Period]:
    months = PERIOD_WINDOW_MONTHS[TimePeriod(period)]
    return reference - (months - 1), reference


def window_values(
    kpi: KPI,
    period: TimePeriod,
    as_of: Optional[MonthLike] = None
) -> pd.Series:
    """Recorded values that fall in the period window."""
    series = _history_series(kpi, as_of)
    if series.empty:
        return series

    period = TimePeriod(period)
    if period == TimePeriod.MONTHLY:
        return series.iloc[-1:]

    reference = parse_month(as_of) if as_of is not None else series.index.max()
    start, end = window_bounds(period, reference)
    return series[(series.index >= start) & (series.index <= end)]


# =========================================================================
# RESOLUTION
# =========================================================================

def resolve_value(
    kpi: KPI,
    period: TimePeriod,
    as_of: Optional[MonthLike] = None
) -> Optional[float]:
    """
    KPI value applicable to `period`, or None when no value falls in the window.
    """
    values = window_values(kpi, period, as_of)
    if values.empty:
        return None

    if kpi.aggregation == AggregationMode.SUM:
        return float(values.sum())
    return float(values.mean())


def resolve_target(
    kpi: KPI,
    period: TimePeriod,
    as_of: Optional[MonthLike] = None
) -> float:
    """
    Target comparable with resolve_value().

    Targets are monthly; summed KPIs compare against target x recorded months
    in the window so a quarter is not judged against a single month's target.
    """
    if kpi.aggregation != AggregationMode.SUM:
        return float(kpi.target)

    months = len(window_values(kpi, period, as_of))
    return float(kpi.target) * max(months, 1)
