# utils/manager_performance/constants.py
"""
Constants for Manager Performance Module

Centralized configuration for:
- Role definitions
- Time periods and view modes
- Alert kinds and severities
- Risk register statuses and ratings
- KPI units and aggregation modes
"""

from enum import Enum

# =====================================================================
# ROLE DEFINITIONS
# =====================================================================


class ManagerRole(str, Enum):
    """Selects which pillar/KPI catalog applies to a manager."""
    RAMP = 'RAMP'
    PASSENGER = 'PASSENGER'
    SUPPORT = 'SUPPORT'
    SAFETY = 'SAFETY'
    TECHNICAL = 'TECHNICAL'


ROLE_NAMES = {
    ManagerRole.RAMP: 'Ramp Operations',
    ManagerRole.PASSENGER: 'Passenger Services',
    ManagerRole.SUPPORT: 'Business Support',
    ManagerRole.SAFETY: 'Safety & Quality',
    ManagerRole.TECHNICAL: 'Technical Services',
}

# =====================================================================
# PERIOD & VIEW DEFINITIONS
# =====================================================================


class TimePeriod(str, Enum):
    MONTHLY = 'monthly'
    QUARTERLY = 'quarterly'
    YEARLY = 'yearly'


# Trailing window length (months) ending at the reference month
PERIOD_WINDOW_MONTHS = {
    TimePeriod.MONTHLY: 1,
    TimePeriod.QUARTERLY: 3,
    TimePeriod.YEARLY: 12,
}

PERIOD_LABELS = {
    TimePeriod.MONTHLY: 'Monthly',
    TimePeriod.QUARTERLY: 'Quarterly',
    TimePeriod.YEARLY: 'Yearly',
}


class ViewMode(str, Enum):
    MANAGER = 'manager'
    EXECUTIVE = 'executive'


# Month keys are 'YYYY-MM'
MONTH_KEY_FORMAT = '%Y-%m'

# =====================================================================
# KPI CONFIGURATIONS
# =====================================================================


class ScoringDirection(str, Enum):
    HIGHER_IS_BETTER = 'higher_is_better'
    LOWER_IS_BETTER = 'lower_is_better'


class AggregationMode(str, Enum):
    SUM = 'sum'          # countable KPIs (incidents, costs)
    AVERAGE = 'average'  # rates, percentages, durations


KPI_UNITS = {
    'percentage': '%',
    'minutes': 'min',
    'per_1000_pax': '/1000 pax',
    'per_1000_mov': '/1000 mov',
    'incidents': 'incidents',
    'score': 'pts',
    'currency': 'SAR',
    'days': 'days',
    'count': '',
}

MAX_SCORE = 100
MIN_SCORE = 0

# =====================================================================
# ALERT DEFINITIONS
# =====================================================================


class AlertKind(str, Enum):
    LOW_PERFORMANCE = 'low_performance'
    PILLAR_RISK = 'pillar_risk'
    STALE_ACTION_PLAN = 'stale_action_plan'


class AlertSeverity(str, Enum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


# Higher rank sorts first in executive views
SEVERITY_RANK = {
    AlertSeverity.HIGH: 3,
    AlertSeverity.MEDIUM: 2,
    AlertSeverity.LOW: 1,
}

# Rule evaluation order per manager
ALERT_RULE_ORDER = [
    AlertKind.LOW_PERFORMANCE,
    AlertKind.PILLAR_RISK,
    AlertKind.STALE_ACTION_PLAN,
]

ALERT_SEVERITY = {
    AlertKind.LOW_PERFORMANCE: AlertSeverity.HIGH,
    AlertKind.PILLAR_RISK: AlertSeverity.MEDIUM,
    AlertKind.STALE_ACTION_PLAN: AlertSeverity.LOW,
}

# =====================================================================
# RISK REGISTER
# =====================================================================


class RiskStatus(str, Enum):
    OPEN = 'open'
    UNDER_REVIEW = 'under_review'
    MITIGATED = 'mitigated'
    CLOSED = 'closed'


class RiskLikelihood(str, Enum):
    RARE = 'rare'
    UNLIKELY = 'unlikely'
    POSSIBLE = 'possible'
    LIKELY = 'likely'
    ALMOST_CERTAIN = 'almost_certain'


class RiskImpact(str, Enum):
    NEGLIGIBLE = 'negligible'
    MINOR = 'minor'
    MODERATE = 'moderate'
    MAJOR = 'major'
    CATASTROPHIC = 'catastrophic'


NO_DATA_LABEL = "No data"

AI_FALLBACK_MESSAGE = (
    "The AI assistant is unavailable right now. Please try again later."
)
