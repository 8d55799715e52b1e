# utils/manager_performance/alerts.py
"""
Alert Generator

Scans every manager (insertion order) against the rule set (rule order):
1. low_performance   - overall score below the low-performance threshold
2. pillar_risk       - one per pillar scoring below its own threshold
3. stale_action_plan - one per plan still open past the age threshold

Regeneration reconciles against the previous alert list by
(manager_id, kind, subject_id): surviving alerts keep their id, is_read flag
and creation time; vanished conditions drop their alert; new conditions get a
fresh unread alert.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from ..config import ScoringThresholds, config

from .constants import ALERT_RULE_ORDER, ALERT_SEVERITY, AlertKind, TimePeriod
from .models import Alert, Manager
from .scoring import overall_score, score_of_pillar

logger = logging.getLogger(__name__)


@dataclass
class AlertCandidate:
    """An alert condition that holds right now, before identity reconciliation."""
    kind: AlertKind
    manager_id: str
    manager_name: str
    subject_id: str
    message: str
    score: Optional[int] = None

    @property
    def key(self):
        return (self.manager_id, self.kind, self.subject_id)


def new_alert_id() -> str:
    return f"alert_{uuid.uuid4().hex[:12]}"


# =========================================================================
# RULES
# =========================================================================

def _low_performance(
    manager: Manager,
    period: TimePeriod,
    thresholds: ScoringThresholds,
    now: datetime
) -> List[AlertCandidate]:
    score = overall_score(manager, period)
    if score is None or score >= thresholds.low_performance:
        return []
    return [AlertCandidate(
        kind=AlertKind.LOW_PERFORMANCE,
        manager_id=manager.id,
        manager_name=manager.name,
        subject_id=manager.id,
        message=(
            f"{manager.name}'s overall score is {score}%, "
            f"below the {thresholds.low_performance:g}% threshold."
        ),
        score=score,
    )]


def _pillar_risk(
    manager: Manager,
    period: TimePeriod,
    thresholds: ScoringThresholds,
    now: datetime
) -> List[AlertCandidate]:
    candidates = []
    for pillar in manager.pillars:
        score = score_of_pillar(pillar, period)
        threshold = pillar.risk_threshold if pillar.risk_threshold is not None else thresholds.pillar_risk
        if score is None or score >= threshold:
            continue
        candidates.append(AlertCandidate(
            kind=AlertKind.PILLAR_RISK,
            manager_id=manager.id,
            manager_name=manager.name,
            subject_id=pillar.id,
            message=f"{pillar.name} dropped to {score}% for {manager.name} (threshold {threshold:g}%).",
            score=score,
        ))
    return candidates


def _stale_action_plans(
    manager: Manager,
    period: TimePeriod,
    thresholds: ScoringThresholds,
    now: datetime
) -> List[AlertCandidate]:
    candidates = []
    for plan in manager.action_plans:
        if not plan.is_open:
            continue
        age_days = (now - plan.created_at).days
        if age_days <= thresholds.stale_plan_days:
            continue
        done = sum(1 for step in plan.steps if step.is_completed)
        candidates.append(AlertCandidate(
            kind=AlertKind.STALE_ACTION_PLAN,
            manager_id=manager.id,
            manager_name=manager.name,
            subject_id=plan.id,
            message=(
                f"Action plan '{plan.original_recommendation[:60]}' for {manager.name} "
                f"has been open for {age_days} days ({done}/{len(plan.steps)} steps done)."
            ),
        ))
    return candidates


ALERT_RULES = {
    AlertKind.LOW_PERFORMANCE: _low_performance,
    AlertKind.PILLAR_RISK: _pillar_risk,
    AlertKind.STALE_ACTION_PLAN: _stale_action_plans,
}


def generate_candidates(
    managers: Iterable[Manager],
    period: TimePeriod,
    thresholds: Optional[ScoringThresholds] = None,
    now: Optional[datetime] = None
) -> List[AlertCandidate]:
    """Every alert condition that holds now, in manager then rule order."""
    thresholds = thresholds or config.get_thresholds()
    now = now or datetime.now()
    period = TimePeriod(period)

    candidates: List[AlertCandidate] = []
    for manager in managers:
        for kind in ALERT_RULE_ORDER:
            candidates.extend(ALERT_RULES[kind](manager, period, thresholds, now))
    return candidates


# =========================================================================
# RECONCILIATION
# =========================================================================

def reconcile_alerts(
    previous: Sequence[Alert],
    candidates: Sequence[AlertCandidate],
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = new_alert_id
) -> List[Alert]:
    """
    Turn candidates into alerts, reusing identity from `previous`.

    Alerts in `previous` without a matching candidate are dropped.
    """
    now = now or datetime.now()
    existing = {alert.key: alert for alert in previous}

    alerts = []
    created = 0
    for candidate in candidates:
        prior = existing.get(candidate.key)
        if prior is None:
            created += 1
        alerts.append(Alert(
            id=prior.id if prior else id_factory(),
            kind=candidate.kind,
            severity=ALERT_SEVERITY[candidate.kind],
            manager_id=candidate.manager_id,
            manager_name=candidate.manager_name,
            subject_id=candidate.subject_id,
            message=candidate.message,
            created_at=prior.created_at if prior else now,
            score=candidate.score,
            is_read=prior.is_read if prior else False,
        ))

    dropped = len(existing) - (len(alerts) - created)
    if created or dropped:
        logger.info(f"Alerts reconciled: {len(alerts)} active, {created} new, {dropped} cleared")
    return alerts


def generate_alerts(
    managers: Iterable[Manager],
    period: TimePeriod,
    previous: Sequence[Alert] = (),
    thresholds: Optional[ScoringThresholds] = None,
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = new_alert_id
) -> List[Alert]:
    """Complete, deterministic alert set for (managers, period)."""
    now = now or datetime.now()
    candidates = generate_candidates(managers, period, thresholds, now)
    return reconcile_alerts(previous, candidates, now, id_factory)
