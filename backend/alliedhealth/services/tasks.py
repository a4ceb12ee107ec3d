"""Task lifecycle.

Creates tasks with their interventions, applies intervention outcome
transitions, and lists tasks for a caller. Task status is always derived
from the interventions at read time.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from alliedhealth.config import settings
from alliedhealth.errors import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
from alliedhealth.identity import CallerContext, VisibilityScope
from alliedhealth.models.referral import ReferralStatus
from alliedhealth.models.task import InterventionOutcome, Task, TaskIntervention, TaskStatus, TaskType
from alliedhealth.repositories.catalog import CatalogRepository
from alliedhealth.repositories.listing import Listing
from alliedhealth.repositories.referral import ReferralRepository
from alliedhealth.repositories.task import TaskRepository
from alliedhealth.schemas.task import TaskCreate, TaskInterventionCreate, TaskUpdate
from alliedhealth.services.outcome_classifier import apply_outcome, is_terminal
from alliedhealth.services.task_status import derive_task_status
from alliedhealth.utils.dates import utc_today

logger = logging.getLogger(__name__)


class TaskService:
    """Task Lifecycle Manager."""

    def __init__(
        self,
        db: AsyncSession,
        today: Callable[[], date] = utc_today,
        allow_past_due_dates: bool | None = None,
        page_size: int | None = None,
        require_handover_note: bool | None = None,
    ):
        self.db = db
        self.tasks = TaskRepository(db)
        self.catalog = CatalogRepository(db)
        self.referrals = ReferralRepository(db)
        self.today = today
        self.allow_past_due_dates = (
            settings.allow_past_due_dates if allow_past_due_dates is None else allow_past_due_dates
        )
        self.page_size = page_size or settings.task_page_size
        self.require_handover_note = (
            settings.require_handover_note if require_handover_note is None else require_handover_note
        )

    def status_of(self, task: Task) -> TaskStatus:
        return derive_task_status(task.interventions, self.today())

    # === Commands ===

    async def create_task(self, data: TaskCreate, caller: CallerContext) -> Task:
        """Create a task together with its initial interventions.

        Raises:
            ValidationError: If there are no interventions, the due date is in
                the past (unless allowed), the type/custom type pair is
                inconsistent, or any reference does not resolve.
        """
        today = self.today()

        if not data.interventions:
            raise ValidationError("A task needs at least one intervention")
        self._check_type(data.type, data.custom_type)
        self._check_due_date(data.due_date, today)

        intervention_ids = [ti_data.intervention_id for ti_data in data.interventions]
        if len(set(intervention_ids)) != len(intervention_ids):
            raise ValidationError("Each intervention may appear only once per task")

        if await self.catalog.get_patient(data.patient_id) is None:
            raise ValidationError(f"Patient {data.patient_id} does not exist")
        department = await self.catalog.get_department(data.department_id)
        if department is None:
            raise ValidationError(f"Department {data.department_id} does not exist")
        if data.referral_id is not None:
            await self._check_referral(data.referral_id, data.patient_id)
        await self._check_catalog_refs(
            intervention_ids,
            [ti_data.ward_id for ti_data in data.interventions],
        )

        task = Task(
            type=data.type,
            custom_type=data.custom_type.strip() if data.custom_type else None,
            title=data.title,
            description=data.description,
            diagnosis=data.diagnosis,
            goals=data.goals,
            priority=data.priority or department.default_task_priority,
            due_date=data.due_date,
            due_time=data.due_time,
            patient_id=data.patient_id,
            department_id=data.department_id,
            referral_id=data.referral_id,
            created_by=caller.user_id,
            modified_by=caller.user_id,
            interventions=[self._build_intervention(ti_data, data.due_date, today) for ti_data in data.interventions],
        )

        try:
            await self.tasks.add(task)
        except IntegrityError as e:
            await self.db.rollback()
            raise ValidationError("Task could not be stored: conflicting or unresolved references") from e

        logger.info("Created task %s with %d interventions", task.id, len(task.interventions))
        return task

    async def update_intervention_outcome(
        self,
        task_intervention_id: uuid.UUID,
        requested: InterventionOutcome | str,
        note: str | None,
        caller: CallerContext,
        expected_status: InterventionOutcome | None = None,
    ) -> Task:
        """Apply an outcome transition to one task intervention.

        Args:
            task_intervention_id: The task intervention to update.
            requested: Requested outcome status.
            note: Outcome note.
            caller: Who is recording the outcome.
            expected_status: Status the caller last observed, if known.

        Returns:
            The owning task, freshly read.

        Raises:
            NotFoundError: If the intervention or its task does not exist.
            ValidationError: If ``requested`` is not a recognized outcome.
            InvalidTransitionError: If the outcome is terminal, the move is not
                forward, or the stored status changed under the caller.
        """
        task_intervention = await self.tasks.get_intervention(task_intervention_id)
        if task_intervention is None:
            raise NotFoundError("Task intervention not found")

        current = task_intervention.outcome_status
        if expected_status is not None and expected_status != current:
            logger.warning(
                "Stale outcome update on task intervention %s: expected %s, found %s",
                task_intervention_id,
                expected_status.value,
                current.value,
            )
            raise InvalidTransitionError(
                f"Outcome changed since it was read; it is now {current.value}"
            )

        try:
            result = apply_outcome(
                current, requested, note, self.today(), require_handover_note=self.require_handover_note
            )
        except InvalidTransitionError:
            logger.warning("Rejected outcome transition on task intervention %s", task_intervention_id)
            raise

        swapped = await self.tasks.compare_and_set_outcome(
            task_intervention_id,
            expected=current,
            status=result.status,
            note=result.note,
            outcome_date=result.outcome_date,
            modified_by=caller.user_id,
        )
        if not swapped:
            logger.warning("Concurrent outcome update lost on task intervention %s", task_intervention_id)
            raise InvalidTransitionError("Outcome was changed by another update")

        logger.info(
            "Task intervention %s moved %s -> %s",
            task_intervention_id,
            current.value,
            result.status.value,
        )
        return await self.get_task(task_intervention.task_id)

    async def update_task(self, task_id: uuid.UUID, changes: TaskUpdate, caller: CallerContext) -> Task:
        """Administrative edit of a task's descriptive fields and due date.

        Moving the due date also moves the end date of every open
        intervention that was still ending on the old due date, so the
        derived status follows the new deadline.
        """
        self._require_manager(caller)
        task = await self.get_task(task_id)

        updates = changes.model_dump(exclude_unset=True)
        new_due = updates.get("due_date")
        following: list[TaskIntervention] = []
        if new_due is not None and new_due != task.due_date:
            self._check_due_date(new_due, self.today())
            following = [
                ti
                for ti in task.interventions
                if not is_terminal(ti.outcome_status) and ti.end_date == task.due_date
            ]
            if any(new_due < ti.start_date for ti in following):
                raise ValidationError("Due date cannot be before an intervention's start date")

        for field, value in updates.items():
            if field in ("title", "priority", "due_date") and value is None:
                continue
            setattr(task, field, value)
        for ti in following:
            ti.end_date = new_due
            ti.modified_by = caller.user_id
        task.modified_by = caller.user_id

        await self.tasks.save(task)
        logger.info("Updated task %s fields %s", task.id, sorted(updates))
        return task

    async def add_intervention(
        self,
        task_id: uuid.UUID,
        ti_data: TaskInterventionCreate,
        caller: CallerContext,
    ) -> Task:
        self._require_manager(caller)
        task = await self.get_task(task_id)

        if any(ti.intervention_id == ti_data.intervention_id for ti in task.interventions):
            raise ValidationError("Intervention is already part of this task")
        await self._check_catalog_refs([ti_data.intervention_id], [ti_data.ward_id])

        task.interventions.append(self._build_intervention(ti_data, task.due_date, self.today()))
        task.modified_by = caller.user_id
        await self.tasks.save(task)

        logger.info("Added intervention %s to task %s", ti_data.intervention_id, task.id)
        return task

    async def remove_intervention(
        self,
        task_id: uuid.UUID,
        task_intervention_id: uuid.UUID,
        caller: CallerContext,
    ) -> Task:
        """Remove a not-yet-concluded intervention from a task.

        Raises:
            NotFoundError: If the intervention is not part of the task.
            InvalidTransitionError: If its outcome is already terminal.
            ValidationError: If it is the task's last intervention.
        """
        self._require_manager(caller)
        task = await self.get_task(task_id)

        target = next((ti for ti in task.interventions if ti.id == task_intervention_id), None)
        if target is None:
            raise NotFoundError("Task intervention not found")
        if is_terminal(target.outcome_status):
            raise InvalidTransitionError("Interventions with a recorded outcome cannot be removed")
        if len(task.interventions) == 1:
            raise ValidationError("A task must keep at least one intervention")

        await self.tasks.remove_intervention(task, target)
        task.modified_by = caller.user_id
        logger.info("Removed task intervention %s from task %s", task_intervention_id, task.id)
        return task

    async def retire_task(self, task_id: uuid.UUID, caller: CallerContext) -> None:
        """Hide a task. Retired tasks no longer resolve or count anywhere."""
        self._require_manager(caller)
        task = await self.get_task(task_id)
        task.hidden = True
        task.modified_by = caller.user_id
        await self.tasks.save(task)
        logger.info("Retired task %s", task.id)

    # === Queries ===

    async def get_task(self, task_id: uuid.UUID) -> Task:
        """Get a task with its interventions.

        Raises:
            NotFoundError: If the task is unknown or retired.
        """
        task = await self.tasks.get_by_id(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def list_tasks(
        self,
        caller: CallerContext,
        mine: bool = False,
        patient_id: int | None = None,
    ) -> Listing[Task]:
        """Lazy, restartable listing of tasks visible to ``caller``.

        With ``mine`` the listing is restricted to tasks with an intervention
        on a ward covered by one of the caller's departments.
        """
        scope = VisibilityScope.for_caller(caller) if mine else VisibilityScope.everything()
        return self.list_scoped(scope, patient_id=patient_id)

    def list_scoped(self, scope: VisibilityScope, patient_id: int | None = None) -> Listing[Task]:
        return self.tasks.list_tasks(scope, batch_size=self.page_size, patient_id=patient_id)

    # === Helpers ===

    @staticmethod
    def _require_manager(caller: CallerContext) -> None:
        if not caller.can_manage_tasks:
            logger.warning("User %s (%s) denied task management", caller.user_id, caller.role.value)
            raise ForbiddenError("Only professionals and admins can manage tasks")

    @staticmethod
    def _check_type(task_type: TaskType, custom_type: str | None) -> None:
        has_custom = bool(custom_type and custom_type.strip())
        if task_type == TaskType.CUSTOM and not has_custom:
            raise ValidationError("A custom task needs a custom type")
        if task_type != TaskType.CUSTOM and has_custom:
            raise ValidationError("Custom type is only allowed for custom tasks")

    def _check_due_date(self, due_date: date, today: date) -> None:
        if due_date < today and not self.allow_past_due_dates:
            raise ValidationError("Due date cannot be in the past")

    async def _check_referral(self, referral_id: uuid.UUID, patient_id: int) -> None:
        referral = await self.referrals.get_by_id(referral_id)
        if referral is None:
            raise ValidationError(f"Referral {referral_id} does not exist")
        if referral.status != ReferralStatus.ACCEPTED:
            raise ValidationError("Tasks can only be raised from accepted referrals")
        if referral.patient_id != patient_id:
            raise ValidationError("Referral is for a different patient")

    async def _check_catalog_refs(
        self,
        intervention_ids: list[uuid.UUID],
        ward_ids: list[uuid.UUID],
    ) -> None:
        missing = await self.catalog.missing_interventions(intervention_ids)
        if missing:
            raise ValidationError(f"Unknown interventions: {sorted(str(i) for i in missing)}")
        missing = await self.catalog.missing_wards(ward_ids)
        if missing:
            raise ValidationError(f"Unknown wards: {sorted(str(i) for i in missing)}")

    @staticmethod
    def _build_intervention(ti_data: TaskInterventionCreate, due_date: date, today: date) -> TaskIntervention:
        end_date = ti_data.end_date or due_date
        start_date = ti_data.start_date or min(today, end_date)
        if end_date < start_date:
            raise ValidationError("Intervention end date cannot be before its start date")
        return TaskIntervention(
            intervention_id=ti_data.intervention_id,
            ward_id=ti_data.ward_id,
            start_date=start_date,
            end_date=end_date,
            outcome_status=InterventionOutcome.ASSIGNED,
            outcome=None,
            outcome_date=None,
        )
