# utils/manager_performance/models.py
"""
Domain model for the manager performance dashboard.

Pure data contracts: Manager -> Pillars -> KPIs, Manager -> ActionPlans ->
ActionSteps, derived Alerts, the risk register and the AppState aggregate
root. Behaviour lives in scoring.py, alerts.py, action_plans.py and
store.py.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Tuple

from .constants import (
    AggregationMode,
    AlertKind,
    AlertSeverity,
    ManagerRole,
    RiskImpact,
    RiskLikelihood,
    RiskStatus,
    ScoringDirection,
    TimePeriod,
    ViewMode,
)


@dataclass
class KPI:
    """
    A single measurable metric.

    history maps month keys ('YYYY-MM') to the recorded value for that month.
    weight is a relative proportion inside the owning pillar.
    """
    id: str
    name: str
    target: float
    weight: float = 1.0
    direction: ScoringDirection = ScoringDirection.HIGHER_IS_BETTER
    aggregation: AggregationMode = AggregationMode.AVERAGE
    unit: str = 'percentage'
    description: str = ''
    history: Dict[str, float] = field(default_factory=dict)
    benchmark: Optional[float] = None

    @property
    def lower_is_better(self) -> bool:
        return self.direction == ScoringDirection.LOWER_IS_BETTER

    def latest_month(self) -> Optional[str]:
        return max(self.history) if self.history else None


@dataclass
class Pillar:
    id: str
    name: str
    weight: float
    kpis: List[KPI] = field(default_factory=list)
    risk_threshold: Optional[float] = None

    def find_kpi(self, kpi_id: str) -> Optional[KPI]:
        return next((k for k in self.kpis if k.id == kpi_id), None)


@dataclass
class ActionStep:
    id: str
    text: str
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None


@dataclass
class Comment:
    id: str
    author: str
    text: str
    created_at: datetime


@dataclass
class ActionPlan:
    """Remediation task list. Never deleted; closes when every step is done."""
    id: str
    original_recommendation: str
    steps: List[ActionStep]
    created_at: datetime
    comments: List[Comment] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return any(not step.is_completed for step in self.steps)


@dataclass
class Manager:
    id: str
    name: str
    department: str
    role: ManagerRole
    pillars: List[Pillar] = field(default_factory=list)
    action_plans: List[ActionPlan] = field(default_factory=list)

    def find_pillar(self, pillar_id: str) -> Optional[Pillar]:
        return next((p for p in self.pillars if p.id == pillar_id), None)

    def find_plan(self, plan_id: str) -> Optional[ActionPlan]:
        return next((p for p in self.action_plans if p.id == plan_id), None)

    def iter_kpis(self) -> Iterator[Tuple[Pillar, KPI]]:
        for pillar in self.pillars:
            for kpi in pillar.kpis:
                yield pillar, kpi

    @property
    def open_plans(self) -> List[ActionPlan]:
        return [plan for plan in self.action_plans if plan.is_open]


@dataclass
class Alert:
    """
    Derived notification. Identity is (manager_id, kind, subject_id); the id
    and is_read flag survive recomputation while the condition holds.
    """
    id: str
    kind: AlertKind
    severity: AlertSeverity
    manager_id: str
    manager_name: str
    subject_id: str
    message: str
    created_at: datetime
    score: Optional[int] = None
    is_read: bool = False

    @property
    def key(self) -> Tuple[str, AlertKind, str]:
        return (self.manager_id, self.kind, self.subject_id)


@dataclass
class RegisteredRisk:
    """Risk logged from an audit finding or assessment; tracked by status."""
    id: str
    risk_title: str
    risk_description: str
    category: str
    likelihood: RiskLikelihood
    impact: RiskImpact
    source: str
    created_at: datetime
    status: RiskStatus = RiskStatus.OPEN


@dataclass
class AppState:
    """Aggregate root. Manager list order is display order."""
    managers: List[Manager] = field(default_factory=list)
    selected_manager_id: Optional[str] = None
    current_view: ViewMode = ViewMode.MANAGER
    current_period: TimePeriod = TimePeriod.MONTHLY
    alerts: List[Alert] = field(default_factory=list)
    risk_register: List[RegisteredRisk] = field(default_factory=list)

    def find_manager(self, manager_id: str) -> Optional[Manager]:
        return next((m for m in self.managers if m.id == manager_id), None)

    @property
    def selected_manager(self) -> Optional[Manager]:
        if self.selected_manager_id is None:
            return None
        return self.find_manager(self.selected_manager_id)

    @property
    def unread_alerts(self) -> List[Alert]:
        return [a for a in self.alerts if not a.is_read]
