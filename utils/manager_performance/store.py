# utils/manager_performance/store.py
"""
State Store

Single source of truth for the dashboard: managers, selection/view state,
current time period, the derived alert list and the risk register.

The only mutation path is dispatch(command). Each command is applied to a
deep copy of the current state; the copy replaces the live state only when
the handler succeeds and alerts have been recomputed, so readers never see a
partially-applied command or alerts out of sync with manager data.

Usage:
    store = PerformanceStore()
    store.dispatch(AddManager(name="Sara", department="Ramp", role="RAMP"))
    store.dispatch(SetTimePeriod("quarterly"))
    state = store.state
"""

import copy
import logging
import math
import numbers
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, ClassVar, Dict, List, Optional, Sequence

from ..config import ScoringThresholds, config
from .action_plans import (
    StepInput,
    add_comment,
    assign_step,
    complete_step,
    create_plan_from_recommendation,
)
from .alerts import generate_alerts, new_alert_id
from .catalog import build_default_managers, build_pillars
from .constants import (
    ManagerRole,
    RiskImpact,
    RiskLikelihood,
    RiskStatus,
    TimePeriod,
    ViewMode,
)
from .errors import NotFoundError, PerformanceError, ValidationError
from .models import KPI, ActionPlan, AppState, Manager, Pillar, RegisteredRisk
from .period_aggregator import MonthLike, month_key

logger = logging.getLogger(__name__)


# =========================================================================
# COMMANDS
# =========================================================================

@dataclass
class AddManager:
    type: ClassVar[str] = 'ADD_MANAGER'
    name: str
    department: str
    role: ManagerRole


@dataclass
class EditManager:
    """patch may carry name, department and/or role."""
    type: ClassVar[str] = 'EDIT_MANAGER'
    manager_id: str
    patch: Dict[str, Any]


@dataclass
class DeleteManager:
    type: ClassVar[str] = 'DELETE_MANAGER'
    manager_id: str


@dataclass
class SetSelectedManager:
    """manager_id=None clears the selection."""
    type: ClassVar[str] = 'SET_SELECTED_MANAGER'
    manager_id: Optional[str]


@dataclass
class SetView:
    type: ClassVar[str] = 'SET_VIEW'
    view: ViewMode


@dataclass
class SetTimePeriod:
    type: ClassVar[str] = 'SET_TIME_PERIOD'
    period: TimePeriod


@dataclass
class UpdateKpiValue:
    """period is the month the value was recorded for ('YYYY-MM')."""
    type: ClassVar[str] = 'UPDATE_KPI_VALUE'
    manager_id: str
    pillar_id: str
    kpi_id: str
    period: MonthLike
    value: float


@dataclass
class UpdateKpiTarget:
    type: ClassVar[str] = 'UPDATE_KPI_TARGET'
    kpi_id: str
    target: float


@dataclass
class AddActionPlan:
    type: ClassVar[str] = 'ADD_ACTION_PLAN'
    manager_id: str
    recommendation: str
    steps: Sequence[StepInput]


@dataclass
class CompleteActionStep:
    type: ClassVar[str] = 'COMPLETE_ACTION_STEP'
    manager_id: str
    plan_id: str
    step_index: int


@dataclass
class AssignActionStep:
    type: ClassVar[str] = 'ASSIGN_ACTION_STEP'
    manager_id: str
    plan_id: str
    step_index: int
    assignee: Optional[str]


@dataclass
class AddActionPlanComment:
    type: ClassVar[str] = 'ADD_ACTION_PLAN_COMMENT'
    manager_id: str
    plan_id: str
    text: str
    author: str = 'You'


@dataclass
class MarkAlertRead:
    type: ClassVar[str] = 'MARK_ALERT_READ'
    alert_id: Optional[str] = None
    mark_all: bool = False


@dataclass
class RefreshAlerts:
    """Recompute alerts against the current clock without changing data."""
    type: ClassVar[str] = 'REFRESH_ALERTS'


@dataclass
class AddToRiskRegister:
    """Ignored when a risk with the same title from the same source exists."""
    type: ClassVar[str] = 'ADD_TO_RISK_REGISTER'
    risk_title: str
    risk_description: str
    category: str
    likelihood: RiskLikelihood
    impact: RiskImpact
    source: str


@dataclass
class UpdateRiskStatus:
    type: ClassVar[str] = 'UPDATE_RISK_STATUS'
    risk_id: str
    status: RiskStatus


EDITABLE_MANAGER_FIELDS = ('name', 'department', 'role')


# =========================================================================
# VALIDATION HELPERS
# =========================================================================

def _require_text(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    return value.strip()


def _require_role(value: Any) -> ManagerRole:
    try:
        return ManagerRole(value)
    except ValueError:
        raise ValidationError(f"Unknown role: {value!r}")


def _require_choice(enum_cls, value: Any, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unknown {label}: {value!r}")


def _require_measure(value: Any, label: str) -> float:
    """Finite, non-negative number."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(f"{label} must be a number")
    if not math.isfinite(value) or value < 0:
        raise ValidationError(f"{label} must be a finite non-negative number")
    return float(value)


# =========================================================================
# STORE
# =========================================================================

class PerformanceStore:
    """
    Owns AppState and applies commands one at a time.

    Args:
        managers: Initial manager collection (deep-copied). Defaults to the
                  seeded roster from catalog.build_default_managers().
        thresholds: Alert thresholds. Defaults to config.get_thresholds().
        clock: Source of "now" for timestamps and plan ages.
        id_factory: Alert id generator (override for reproducible tests).
        select_first: Select the first manager on start.
    """

    def __init__(
        self,
        managers: Optional[List[Manager]] = None,
        thresholds: Optional[ScoringThresholds] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = new_alert_id,
        period: TimePeriod = TimePeriod.MONTHLY,
        select_first: bool = True,
    ):
        self._lock = threading.RLock()
        self._thresholds = thresholds or config.get_thresholds()
        self._clock = clock
        self._id_factory = id_factory
        self._history_limit = config.get_app_setting("KPI_HISTORY_MONTHS", 24)

        if managers is None:
            managers = build_default_managers()
        managers = copy.deepcopy(list(managers))

        state = AppState(
            managers=managers,
            selected_manager_id=managers[0].id if managers and select_first else None,
            current_period=TimePeriod(period),
        )
        state.alerts = self._derive_alerts(state)
        self._state = state

        self._handlers: Dict[type, Callable[[AppState, Any], None]] = {
            AddManager: self._add_manager,
            EditManager: self._edit_manager,
            DeleteManager: self._delete_manager,
            SetSelectedManager: self._set_selected_manager,
            SetView: self._set_view,
            SetTimePeriod: self._set_time_period,
            UpdateKpiValue: self._update_kpi_value,
            UpdateKpiTarget: self._update_kpi_target,
            AddActionPlan: self._add_action_plan,
            CompleteActionStep: self._complete_action_step,
            AssignActionStep: self._assign_action_step,
            AddActionPlanComment: self._add_action_plan_comment,
            MarkAlertRead: self._mark_alert_read,
            RefreshAlerts: self._refresh_alerts,
            AddToRiskRegister: self._add_to_risk_register,
            UpdateRiskStatus: self._update_risk_status,
        }

        logger.info(
            f"PerformanceStore initialized: {len(managers)} managers, "
            f"{len(state.alerts)} alerts"
        )

    # ==================== READ ACCESS ====================

    @property
    def state(self) -> AppState:
        """Current state. Treat as read-only; every dispatch replaces it."""
        return self._state

    @property
    def thresholds(self) -> ScoringThresholds:
        return self._thresholds

    # ==================== DISPATCH ====================

    def dispatch(self, command) -> AppState:
        """
        Apply one command and recompute alerts.

        Raises:
            ValidationError / NotFoundError: the command had no effect
        """
        handler = self._handlers.get(type(command))
        if handler is None:
            raise ValidationError(f"Unknown command: {type(command).__name__}")

        with self._lock:
            draft = copy.deepcopy(self._state)
            try:
                handler(draft, command)
            except PerformanceError as e:
                logger.warning(f"{command.type} rejected ({type(e).__name__}): {e}")
                raise

            draft.alerts = self._derive_alerts(draft)
            self._state = draft

        logger.debug(f"{command.type} applied")
        return draft

    def _derive_alerts(self, state: AppState):
        return generate_alerts(
            state.managers,
            state.current_period,
            previous=state.alerts,
            thresholds=self._thresholds,
            now=self._clock(),
            id_factory=self._id_factory,
        )

    # ==================== LOOKUPS ====================

    @staticmethod
    def _manager(state: AppState, manager_id: str) -> Manager:
        manager = state.find_manager(manager_id)
        if manager is None:
            raise NotFoundError("Manager", manager_id)
        return manager

    @staticmethod
    def _pillar(manager: Manager, pillar_id: str) -> Pillar:
        pillar = manager.find_pillar(pillar_id)
        if pillar is None:
            raise NotFoundError("Pillar", f"{manager.id}/{pillar_id}")
        return pillar

    @staticmethod
    def _kpi(pillar: Pillar, kpi_id: str) -> KPI:
        kpi = pillar.find_kpi(kpi_id)
        if kpi is None:
            raise NotFoundError("KPI", f"{pillar.id}/{kpi_id}")
        return kpi

    @staticmethod
    def _plan(manager: Manager, plan_id: str) -> ActionPlan:
        plan = manager.find_plan(plan_id)
        if plan is None:
            raise NotFoundError("Action plan", f"{manager.id}/{plan_id}")
        return plan

    def _new_manager_id(self, state: AppState) -> str:
        existing = {m.id for m in state.managers}
        while True:
            manager_id = f"manager_{uuid.uuid4().hex[:8]}"
            if manager_id not in existing:
                return manager_id

    # ==================== MANAGER HANDLERS ====================

    def _add_manager(self, state: AppState, cmd: AddManager) -> None:
        name = _require_text(cmd.name, "Name")
        department = _require_text(cmd.department, "Department")
        role = _require_role(cmd.role)

        manager = Manager(
            id=self._new_manager_id(state),
            name=name,
            department=department,
            role=role,
            pillars=build_pillars(role),
        )
        state.managers.append(manager)
        logger.info(f"Manager added: {manager.id} ({role.value})")

    def _edit_manager(self, state: AppState, cmd: EditManager) -> None:
        manager = self._manager(state, cmd.manager_id)
        patch = dict(cmd.patch or {})

        unknown = set(patch) - set(EDITABLE_MANAGER_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")

        if 'name' in patch:
            manager.name = _require_text(patch['name'], "Name")
        if 'department' in patch:
            manager.department = _require_text(patch['department'], "Department")
        if 'role' in patch:
            role = _require_role(patch['role'])
            if role != manager.role:
                manager.pillars = self._reshape_pillars(manager, role)
                manager.role = role

    @staticmethod
    def _reshape_pillars(manager: Manager, role: ManagerRole) -> List[Pillar]:
        """
        Pillar tree for the new role. KPIs whose id exists in both shapes keep
        their recorded values and target; the rest start with no data.
        """
        carried: Dict[str, KPI] = {}
        for _, kpi in manager.iter_kpis():
            carried.setdefault(kpi.id, kpi)

        pillars = build_pillars(role)
        kept = 0
        for pillar in pillars:
            for kpi in pillar.kpis:
                previous = carried.get(kpi.id)
                if previous is not None:
                    kpi.history = dict(previous.history)
                    kpi.target = previous.target
                    kept += 1

        logger.info(
            f"Manager {manager.id} reshaped {manager.role.value} -> {role.value}, "
            f"{kept} KPI(s) carried over"
        )
        return pillars

    def _delete_manager(self, state: AppState, cmd: DeleteManager) -> None:
        manager = self._manager(state, cmd.manager_id)
        state.managers.remove(manager)
        if state.selected_manager_id == manager.id:
            state.selected_manager_id = state.managers[0].id if state.managers else None

    # ==================== VIEW HANDLERS ====================

    def _set_selected_manager(self, state: AppState, cmd: SetSelectedManager) -> None:
        if cmd.manager_id is not None:
            self._manager(state, cmd.manager_id)
        state.selected_manager_id = cmd.manager_id

    def _set_view(self, state: AppState, cmd: SetView) -> None:
        try:
            state.current_view = ViewMode(cmd.view)
        except ValueError:
            raise ValidationError(f"Unknown view: {cmd.view!r}")

    def _set_time_period(self, state: AppState, cmd: SetTimePeriod) -> None:
        try:
            state.current_period = TimePeriod(cmd.period)
        except ValueError:
            raise ValidationError(f"Unknown time period: {cmd.period!r}")

    # ==================== KPI HANDLERS ====================

    def _update_kpi_value(self, state: AppState, cmd: UpdateKpiValue) -> None:
        manager = self._manager(state, cmd.manager_id)
        kpi = self._kpi(self._pillar(manager, cmd.pillar_id), cmd.kpi_id)
        value = _require_measure(cmd.value, "KPI value")
        key = month_key(cmd.period)

        # A new month older than everything kept would be trimmed on write
        if (kpi.history and key not in kpi.history and len(kpi.history) >= self._history_limit
                and key < min(kpi.history)):
            raise ValidationError(
                f"Month {key} is older than the {self._history_limit} most recent "
                f"months kept for {kpi.id}"
            )

        kpi.history[key] = value
        if len(kpi.history) > self._history_limit:
            for old_key in sorted(kpi.history)[:-self._history_limit]:
                del kpi.history[old_key]

    def _update_kpi_target(self, state: AppState, cmd: UpdateKpiTarget) -> None:
        target = _require_measure(cmd.target, "KPI target")
        updated = 0
        for manager in state.managers:
            for _, kpi in manager.iter_kpis():
                if kpi.id == cmd.kpi_id:
                    kpi.target = target
                    updated += 1
        if not updated:
            raise NotFoundError("KPI", cmd.kpi_id)
        logger.info(f"Target for {cmd.kpi_id} set to {target:g} on {updated} KPI(s)")

    # ==================== ACTION PLAN HANDLERS ====================

    def _add_action_plan(self, state: AppState, cmd: AddActionPlan) -> None:
        manager = self._manager(state, cmd.manager_id)
        create_plan_from_recommendation(manager, cmd.recommendation, cmd.steps, now=self._clock())

    def _complete_action_step(self, state: AppState, cmd: CompleteActionStep) -> None:
        manager = self._manager(state, cmd.manager_id)
        complete_step(self._plan(manager, cmd.plan_id), cmd.step_index, now=self._clock())

    def _assign_action_step(self, state: AppState, cmd: AssignActionStep) -> None:
        manager = self._manager(state, cmd.manager_id)
        assign_step(self._plan(manager, cmd.plan_id), cmd.step_index, cmd.assignee)

    def _add_action_plan_comment(self, state: AppState, cmd: AddActionPlanComment) -> None:
        manager = self._manager(state, cmd.manager_id)
        add_comment(self._plan(manager, cmd.plan_id), cmd.text, cmd.author, now=self._clock())

    # ==================== ALERT HANDLERS ====================

    def _mark_alert_read(self, state: AppState, cmd: MarkAlertRead) -> None:
        if cmd.mark_all:
            for alert in state.alerts:
                alert.is_read = True
            return

        if cmd.alert_id is None:
            raise ValidationError("alert_id is required unless mark_all is set")

        alert = next((a for a in state.alerts if a.id == cmd.alert_id), None)
        if alert is None:
            raise NotFoundError("Alert", cmd.alert_id)
        alert.is_read = True

    def _refresh_alerts(self, state: AppState, cmd: RefreshAlerts) -> None:
        """Nothing to change; dispatch() re-derives alerts with the current clock."""

    # ==================== RISK REGISTER HANDLERS ====================

    def _add_to_risk_register(self, state: AppState, cmd: AddToRiskRegister) -> None:
        title = _require_text(cmd.risk_title, "Risk title")
        source = _require_text(cmd.source, "Risk source")
        likelihood = _require_choice(RiskLikelihood, cmd.likelihood, "likelihood")
        impact = _require_choice(RiskImpact, cmd.impact, "impact")

        if any(r.risk_title == title and r.source == source for r in state.risk_register):
            logger.info(f"Risk '{title}' from '{source}' already registered")
            return

        risk = RegisteredRisk(
            id=f"risk_{uuid.uuid4().hex[:12]}",
            risk_title=title,
            risk_description=(cmd.risk_description or '').strip(),
            category=(cmd.category or '').strip(),
            likelihood=likelihood,
            impact=impact,
            source=source,
            created_at=self._clock(),
        )
        # Newest first
        state.risk_register.insert(0, risk)
        logger.info(f"Risk {risk.id} registered from '{source}'")

    def _update_risk_status(self, state: AppState, cmd: UpdateRiskStatus) -> None:
        status = _require_choice(RiskStatus, cmd.status, "risk status")
        risk = next((r for r in state.risk_register if r.id == cmd.risk_id), None)
        if risk is None:
            raise NotFoundError("Risk", cmd.risk_id)
        risk.status = status
