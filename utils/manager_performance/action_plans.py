# utils/manager_performance/action_plans.py
"""
Action Plan Tracker

Lifecycle of remediation plans:
- create_plan_from_recommendation(): new open plan appended to the manager
- complete_step(): mark one step done (idempotent)
- is_open(): any step still incomplete

Plans are append-only history: they close as steps complete and are never
deleted. Steps can be plain text or {"text": ..., "days_to_complete": n}
(AI-generated plans carry a due date per step).
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Union

from .errors import NotFoundError, ValidationError
from .models import ActionPlan, ActionStep, Comment, Manager

logger = logging.getLogger(__name__)

StepInput = Union[str, Dict]


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _build_step(step: StepInput, index: int, now: datetime) -> ActionStep:
    if isinstance(step, dict):
        text = str(step.get('text') or '').strip()
        days = step.get('days_to_complete')
        due_date = now + timedelta(days=int(days)) if days is not None else None
    else:
        text = str(step or '').strip()
        due_date = None

    if not text:
        raise ValidationError(f"Step {index + 1}: text is required")

    return ActionStep(id=_new_id('step'), text=text, due_date=due_date)


def create_plan_from_recommendation(
    manager: Manager,
    recommendation_text: str,
    steps: Sequence[StepInput],
    now: Optional[datetime] = None
) -> ActionPlan:
    """
    Create an open plan from a recommendation and append it to the manager.

    Raises:
        ValidationError: blank recommendation, no steps, or a blank step
    """
    if not recommendation_text or not recommendation_text.strip():
        raise ValidationError("Recommendation text is required")
    if not steps:
        raise ValidationError("An action plan needs at least one step")

    now = now or datetime.now()
    plan = ActionPlan(
        id=_new_id('plan'),
        original_recommendation=recommendation_text.strip(),
        steps=[_build_step(step, i, now) for i, step in enumerate(steps)],
        created_at=now,
    )
    manager.action_plans.append(plan)

    logger.info(f"Action plan {plan.id} created for {manager.id} with {len(plan.steps)} steps")
    return plan


def _get_step(plan: ActionPlan, step_index: int) -> ActionStep:
    if not isinstance(step_index, int) or isinstance(step_index, bool):
        raise NotFoundError("Action step", step_index)
    if step_index < 0 or step_index >= len(plan.steps):
        raise NotFoundError("Action step", f"{plan.id}[{step_index}]")
    return plan.steps[step_index]


def complete_step(
    plan: ActionPlan,
    step_index: int,
    now: Optional[datetime] = None
) -> ActionPlan:
    """
    Mark a step complete and stamp its completion time.

    Completing an already-complete step is a no-op (timestamp unchanged).

    Raises:
        NotFoundError: step_index out of range
    """
    step = _get_step(plan, step_index)
    if step.is_completed:
        return plan

    step.is_completed = True
    step.completed_at = now or datetime.now()

    if not plan.is_open:
        logger.info(f"Action plan {plan.id} closed")
    return plan


def is_open(plan: ActionPlan) -> bool:
    return plan.is_open


def assign_step(plan: ActionPlan, step_index: int, assignee: Optional[str]) -> ActionPlan:
    """Set or clear (blank assignee) the person responsible for a step."""
    step = _get_step(plan, step_index)
    step.assigned_to = assignee.strip() if assignee and assignee.strip() else None
    return plan


def add_comment(
    plan: ActionPlan,
    text: str,
    author: str = 'You',
    now: Optional[datetime] = None
) -> Comment:
    if not text or not text.strip():
        raise ValidationError("Comment text is required")

    comment = Comment(
        id=_new_id('comment'),
        author=author or 'You',
        text=text.strip(),
        created_at=now or datetime.now(),
    )
    plan.comments.append(comment)
    return comment


def plan_progress(plan: ActionPlan) -> Dict:
    """Completion summary for display."""
    total = len(plan.steps)
    done = sum(1 for step in plan.steps if step.is_completed)
    return {
        'total_steps': total,
        'completed_steps': done,
        'progress_percent': round(done / total * 100, 1) if total else 0,
        'is_open': plan.is_open,
    }


def overdue_steps(plan: ActionPlan, now: Optional[datetime] = None) -> List[ActionStep]:
    now = now or datetime.now()
    return [
        step for step in plan.steps
        if not step.is_completed and step.due_date is not None and step.due_date < now
    ]
