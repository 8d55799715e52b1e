# utils/manager_performance/scoring.py
"""
Score Calculator

Pure functions turning period-resolved KPI values into scores in [0, 100]:
- score_of_kpi:    KPI value vs target, by scoring direction
- score_of_pillar: weighted average over KPIs with data
- overall_score:   weighted average over pillars with data

None means "no data" at every level; callers render it as such and never
treat it as zero. All rounding is round-half-up to integers.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .constants import MAX_SCORE, MIN_SCORE, TimePeriod
from .errors import InsufficientDataError
from .models import KPI, Manager, Pillar
from .period_aggregator import MonthLike, resolve_target, resolve_value

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]


def _decimal(value: Number) -> Decimal:
    # str() keeps the shortest repr, so 14.5 stays exactly 14.5
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(_decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _clamp(score: Number) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, round_half_up(score)))


def _percent(numerator: Number, denominator: Number) -> Decimal:
    return _decimal(numerator) * 100 / _decimal(denominator)


def score_value(raw: float, target: float, lower_is_better: bool) -> int:
    """Normalize a raw value against its target."""
    if lower_is_better:
        if raw <= 0:
            return MAX_SCORE
        return _clamp(_percent(target, raw))

    if target <= 0:
        # Any non-negative value meets a zero target
        return MAX_SCORE
    return _clamp(_percent(raw, target))


def weighted_average(items: Sequence[Tuple[float, float]]) -> Optional[int]:
    """
    Weighted average of (score, weight) pairs, rounded half-up.

    Weights are relative proportions. If every weight is zero the scores are
    averaged evenly. Returns None for an empty input.
    """
    if not items:
        return None

    scores = [(_decimal(score), _decimal(weight)) for score, weight in items]
    total_weight = sum(weight for _, weight in scores)
    if total_weight <= 0:
        return round_half_up(sum(score for score, _ in scores) / len(scores))
    return round_half_up(sum(score * weight for score, weight in scores) / total_weight)


# =========================================================================
# KPI / PILLAR / MANAGER
# =========================================================================

def score_of_kpi(
    kpi: KPI,
    period: TimePeriod,
    as_of: Optional[MonthLike] = None
) -> Optional[int]:
    """Score in [0, 100], or None when the KPI has no value for the period."""
    raw = resolve_value(kpi, period, as_of)
    if raw is None:
        return None
    return score_value(raw, resolve_target(kpi, period, as_of), kpi.lower_is_better)


def score_of_pillar(
    pillar: Pillar,
    period: TimePeriod,
    as_of: Optional[MonthLike] = None
) -> Optional[int]:
    """Weighted KPI average; None when no KPI resolves for the period."""
    scored = []
    for kpi in pillar.kpis:
        score = score_of_kpi(kpi, period, as_of)
        if score is not None:
            scored.append((score, kpi.weight))
    return weighted_average(scored)


def pillar_scores(
    manager: Manager,
    period: TimePeriod,
    as_of: Optional[MonthLike] = None
) -> Dict[str, Optional[int]]:
    """{pillar_id: score or None} in pillar order."""
    return {p.id: score_of_pillar(p, period, as_of) for p in manager.pillars}


def overall_score(
    manager: Manager,
    period: TimePeriod,
    as_of: Optional[MonthLike] = None
) -> Optional[int]:
    """
    Weighted pillar average over pillars that have data.

    Returns None ("insufficient data") if no pillar is scorable.
    """
    scored = []
    for pillar in manager.pillars:
        score = score_of_pillar(pillar, period, as_of)
        if score is not None:
            scored.append((score, pillar.weight))
    return weighted_average(scored)


def require_overall_score(
    manager: Manager,
    period: TimePeriod,
    as_of: Optional[MonthLike] = None
) -> int:
    """overall_score() that raises InsufficientDataError instead of returning None."""
    score = overall_score(manager, period, as_of)
    if score is None:
        raise InsufficientDataError(f"manager {manager.id}", TimePeriod(period).value)
    return score


def best_and_worst_pillars(
    manager: Manager,
    period: TimePeriod
) -> Tuple[Optional[Tuple[Pillar, int]], Optional[Tuple[Pillar, int]]]:
    """(best, worst) scored pillars; ties keep catalog order."""
    scored: List[Tuple[Pillar, int]] = []
    for pillar in manager.pillars:
        score = score_of_pillar(pillar, period)
        if score is not None:
            scored.append((pillar, score))

    if not scored:
        return None, None

    best = max(scored, key=lambda item: item[1])
    worst = min(scored, key=lambda item: item[1])
    return best, worst
