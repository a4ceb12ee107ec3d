"""Task repository.

Persistence for Task and TaskIntervention rows. Outcome writes go through
``compare_and_set_outcome`` so a transition computed from a stale read can
never overwrite a newer outcome.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import Select, case, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from alliedhealth.identity import VisibilityScope
from alliedhealth.models.task import InterventionOutcome, Priority, Task, TaskIntervention
from alliedhealth.repositories.catalog import CatalogRepository
from alliedhealth.repositories.listing import Listing
from alliedhealth.utils.dates import utcnow

_PRIORITY_ORDER = case(
    (Task.priority == Priority.HIGH, Priority.HIGH.rank),
    (Task.priority == Priority.MEDIUM, Priority.MEDIUM.rank),
    else_=Priority.LOW.rank,
)


class TaskRepository:
    """Repository for Task operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_task_query(self, include_hidden: bool = False) -> Select[tuple[Task]]:
        """Build base query for tasks with their interventions loaded."""
        query = select(Task).options(selectinload(Task.interventions))
        if not include_hidden:
            query = query.where(Task.hidden.is_(False))
        return query

    def _apply_ordering(self, query: Select[tuple[Task]]) -> Select[tuple[Task]]:
        """Highest priority first, then soonest due; id keeps the order total."""
        return query.order_by(_PRIORITY_ORDER.desc(), Task.due_date.asc(), Task.id.asc())

    async def add(self, task: Task) -> Task:
        """Insert a task together with the interventions attached to it.

        Task and intervention rows are flushed as one unit; a failure leaves
        none of them behind once the surrounding transaction rolls back.
        """
        self.db.add(task)
        await self.db.flush()
        return task

    async def get_by_id(self, task_id: uuid.UUID, include_hidden: bool = False) -> Task | None:
        """Get task by ID with interventions, re-reading current row state."""
        result = await self.db.execute(
            self._base_task_query(include_hidden)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_intervention(self, task_intervention_id: uuid.UUID) -> TaskIntervention | None:
        """Get a task intervention whose task is not retired."""
        result = await self.db.execute(
            select(TaskIntervention)
            .join(Task)
            .where(TaskIntervention.id == task_intervention_id, Task.hidden.is_(False))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def compare_and_set_outcome(
        self,
        task_intervention_id: uuid.UUID,
        expected: InterventionOutcome,
        status: InterventionOutcome,
        note: str | None,
        outcome_date: date | None,
        modified_by: uuid.UUID | None = None,
    ) -> bool:
        """Write an outcome only if the stored status still equals ``expected``.

        Returns:
            True if the row was updated, False if another writer got there first.
        """
        result = await self.db.execute(
            update(TaskIntervention)
            .where(
                TaskIntervention.id == task_intervention_id,
                TaskIntervention.outcome_status == expected,
            )
            .values(
                outcome_status=status,
                outcome=note,
                outcome_date=outcome_date,
                modified_by=modified_by,
                modified_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def remove_intervention(self, task: Task, task_intervention: TaskIntervention) -> None:
        task.interventions.remove(task_intervention)
        await self.db.flush()

    async def save(self, task: Task) -> Task:
        await self.db.flush()
        return task

    def scoped_query(self, scope: VisibilityScope) -> Select[tuple[Task]]:
        """Visible tasks, restricted to tasks with an intervention on a covered ward."""
        query = self._base_task_query()
        if not scope.unrestricted:
            query = query.where(
                Task.interventions.any(
                    CatalogRepository.ward_covered_by(TaskIntervention.ward_id, scope.department_ids)
                )
            )
        return self._apply_ordering(query)

    def list_tasks(self, scope: VisibilityScope, batch_size: int = 200, **filters: Any) -> Listing[Task]:
        """Lazy listing of visible tasks within ``scope``.

        Keyword filters are matched against Task columns (e.g. ``patient_id``).
        """
        query = self.scoped_query(scope)
        for column, value in filters.items():
            if value is not None:
                query = query.where(getattr(Task, column) == value)
        return Listing(self.db, query, batch_size=batch_size)
