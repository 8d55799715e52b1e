# utils/manager_performance/__init__.py
"""
Manager Performance Module

Scoring, alerting and state management for the manager performance
dashboard.

VERSION: 1.3.0
CHANGELOG:
- v1.3.0: ADDED risk register (AddToRiskRegister, UpdateRiskStatus)
          ADDED RefreshAlerts command (time-driven alerts on each app run)
          FIXED half-up rounding uses Decimal (14.5 -> 15)
          FIXED AI cache is bounded; cancelled callers no longer cancel shared calls
- v1.2.0: ADDED AI collaborator (ai_service.py):
          - GeminiClient over httpx, optional web-search grounding
          - AIService with per-key cache and static fallback on failure
          - build_state_snapshot() for conversational context
- v1.1.0: ADDED trends.py (forecasting, monthly competition, peer averages)
          ADDED rollup.pillar_averages() and manager_leaderboard()
- v1.0.0: Initial implementation
          - Score calculator with "no data" propagation
          - Time-period aggregator (monthly/quarterly/yearly windows)
          - Alert generator with identity-preserving reconciliation
          - Action plan tracker
          - PerformanceStore command dispatch

Components:
- PerformanceStore: single owner of AppState, command dispatch
- Scoring: score_of_kpi, score_of_pillar, overall_score
- Alerts: generate_alerts, reconcile_alerts
- Rollup: rollup, pillar_averages, manager_leaderboard
- AIService: summary / conversational oracle

Usage:
    from utils.manager_performance import (
        PerformanceStore,
        AddManager,
        SetTimePeriod,
        overall_score,
        rollup,
    )
"""

# Errors
from .errors import (
    PerformanceError,
    ValidationError,
    NotFoundError,
    InsufficientDataError,
)

# Domain model
from .models import (
    KPI,
    Pillar,
    Manager,
    ActionStep,
    ActionPlan,
    Comment,
    Alert,
    AppState,
    RegisteredRisk,
)

# Catalog
from .catalog import (
    KPI_DEFINITIONS,
    ROLE_TEMPLATES,
    build_pillars,
    catalog_shape,
    build_default_managers,
)

# Period aggregation
from .period_aggregator import (
    parse_month,
    month_key,
    resolve_value,
    resolve_target,
)

# Scoring
from .scoring import (
    round_half_up,
    score_of_kpi,
    score_of_pillar,
    pillar_scores,
    overall_score,
    require_overall_score,
)

# Alerts
from .alerts import (
    generate_alerts,
    generate_candidates,
    reconcile_alerts,
)

# Action plans
from .action_plans import (
    create_plan_from_recommendation,
    complete_step,
    is_open,
)

# Store
from .store import (
    PerformanceStore,
    AddManager,
    EditManager,
    DeleteManager,
    SetSelectedManager,
    SetView,
    SetTimePeriod,
    UpdateKpiValue,
    UpdateKpiTarget,
    AddActionPlan,
    CompleteActionStep,
    AssignActionStep,
    AddActionPlanComment,
    MarkAlertRead,
    RefreshAlerts,
    AddToRiskRegister,
    UpdateRiskStatus,
)

# Rollup
from .rollup import (
    ExecutiveRollup,
    rollup,
    rank_alerts,
    pillar_averages,
    manager_leaderboard,
)

# Trends
from .trends import (
    forecast_kpi_value,
    forecast_org_score,
    available_months,
    score_for_month,
    monthly_ranking,
    peer_average_for_kpi,
)

# AI
from .ai_service import (
    AIService,
    GeminiClient,
    SummaryResult,
    ConversationalAnswer,
    Source,
    build_state_snapshot,
)

# Constants
from .constants import (
    ManagerRole,
    ROLE_NAMES,
    TimePeriod,
    ViewMode,
    ScoringDirection,
    AggregationMode,
    AlertKind,
    AlertSeverity,
    RiskStatus,
    RiskLikelihood,
    RiskImpact,
)

__all__ = [
    # Errors
    'PerformanceError',
    'ValidationError',
    'NotFoundError',
    'InsufficientDataError',

    # Model
    'KPI',
    'Pillar',
    'Manager',
    'ActionStep',
    'ActionPlan',
    'Comment',
    'Alert',
    'AppState',
    'RegisteredRisk',

    # Catalog
    'KPI_DEFINITIONS',
    'ROLE_TEMPLATES',
    'build_pillars',
    'catalog_shape',
    'build_default_managers',

    # Period aggregation
    'parse_month',
    'month_key',
    'resolve_value',
    'resolve_target',

    # Scoring
    'round_half_up',
    'score_of_kpi',
    'score_of_pillar',
    'pillar_scores',
    'overall_score',
    'require_overall_score',

    # Alerts
    'generate_alerts',
    'generate_candidates',
    'reconcile_alerts',

    # Action plans
    'create_plan_from_recommendation',
    'complete_step',
    'is_open',

    # Store
    'PerformanceStore',
    'AddManager',
    'EditManager',
    'DeleteManager',
    'SetSelectedManager',
    'SetView',
    'SetTimePeriod',
    'UpdateKpiValue',
    'UpdateKpiTarget',
    'AddActionPlan',
    'CompleteActionStep',
    'AssignActionStep',
    'AddActionPlanComment',
    'MarkAlertRead',
    'RefreshAlerts',
    'AddToRiskRegister',
    'UpdateRiskStatus',

    # Rollup
    'ExecutiveRollup',
    'rollup',
    'rank_alerts',
    'pillar_averages',
    'manager_leaderboard',

    # Trends
    'forecast_kpi_value',
    'forecast_org_score',
    'available_months',
    'score_for_month',
    'monthly_ranking',
    'peer_average_for_kpi',

    # AI
    'AIService',
    'GeminiClient',
    'SummaryResult',
    'ConversationalAnswer',
    'Source',
    'build_state_snapshot',

    # Constants
    'ManagerRole',
    'ROLE_NAMES',
    'TimePeriod',
    'ViewMode',
    'ScoringDirection',
    'AggregationMode',
    'AlertKind',
    'AlertSeverity',
    'RiskStatus',
    'RiskLikelihood',
    'RiskImpact',
]

__version__ = '1.3.0'
