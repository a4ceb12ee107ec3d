"""Derived task status.

A task's status is a pure function of its interventions' outcomes and
end dates. It is recomputed on every read and never stored.
"""

from collections.abc import Iterable
from datetime import date
from typing import Protocol

from alliedhealth.models.task import InterventionOutcome, TaskStatus
from alliedhealth.services.outcome_classifier import is_terminal


class HasOutcome(Protocol):
    outcome_status: InterventionOutcome
    end_date: date


def is_overdue(intervention: HasOutcome, today: date) -> bool:
    return not is_terminal(intervention.outcome_status) and intervention.end_date < today


def derive_task_status(interventions: Iterable[HasOutcome], today: date) -> TaskStatus:
    """Compute a task's status from its interventions.

    Rules, first match wins:
        1. Any non-terminal intervention past its end date -> OVERDUE.
        2. All interventions terminal -> COMPLETED.
        3. Any intervention moved past ASSIGNED -> IN_PROGRESS.
        4. Otherwise -> ASSIGNED.

    Overdue is checked before completion.
    """
    items = list(interventions)
    if not items:
        return TaskStatus.ASSIGNED

    if any(is_overdue(ti, today) for ti in items):
        return TaskStatus.OVERDUE
    if all(is_terminal(ti.outcome_status) for ti in items):
        return TaskStatus.COMPLETED
    if any(ti.outcome_status != InterventionOutcome.ASSIGNED for ti in items):
        return TaskStatus.IN_PROGRESS
    return TaskStatus.ASSIGNED
