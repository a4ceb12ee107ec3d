"""Dashboard summaries.

No counter is ever stored. Every summary call lists the current records
and tallies them, with task status coming from the same derivation the
task detail uses, so a count can always be reproduced by drilling in.
"""

from __future__ import annotations

import uuid
from collections import Counter
from collections.abc import Callable, Iterable
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from alliedhealth.identity import CallerContext
from alliedhealth.models.catalog import Department, Patient, Specialty, User
from alliedhealth.models.referral import Referral, ReferralStatus
from alliedhealth.models.task import InterventionOutcome, Priority, Task, TaskStatus
from alliedhealth.repositories.catalog import CatalogRepository
from alliedhealth.schemas.dashboard import (
    DashboardResponse,
    DepartmentCount,
    OutcomeSummaryResponse,
    ReferralSummaryResponse,
    TaskSummaryResponse,
)
from alliedhealth.services.referrals import ReferralService
from alliedhealth.services.task_status import derive_task_status
from alliedhealth.services.tasks import TaskService
from alliedhealth.utils.dates import utc_today


# === Tallies ===


def tally_tasks(
    tasks: Iterable[Task],
    today: date,
    mine_ids: Iterable[uuid.UUID] = (),
) -> TaskSummaryResponse:
    """Count tasks by derived status and by priority."""
    statuses: Counter[TaskStatus] = Counter()
    priorities: Counter[Priority] = Counter()
    mine = set(mine_ids)
    total = 0
    mine_count = 0

    for task in tasks:
        total += 1
        statuses[derive_task_status(task.interventions, today)] += 1
        priorities[task.priority] += 1
        if task.id in mine:
            mine_count += 1

    return TaskSummaryResponse(
        total=total,
        mine=mine_count,
        assigned=statuses[TaskStatus.ASSIGNED],
        in_progress=statuses[TaskStatus.IN_PROGRESS],
        completed=statuses[TaskStatus.COMPLETED],
        overdue=statuses[TaskStatus.OVERDUE],
        high_priority=priorities[Priority.HIGH],
        medium_priority=priorities[Priority.MEDIUM],
        low_priority=priorities[Priority.LOW],
    )


def tally_referrals(
    referrals: Iterable[Referral],
    department_ids: Iterable[uuid.UUID],
) -> ReferralSummaryResponse:
    """Count referrals by status and by direction relative to departments."""
    departments = set(department_ids)
    statuses: Counter[ReferralStatus] = Counter()
    destinations: Counter[uuid.UUID] = Counter()
    total = incoming = outgoing = 0

    for referral in referrals:
        total += 1
        statuses[referral.status] += 1
        destinations[referral.destination_department_id] += 1
        if referral.destination_department_id in departments:
            incoming += 1
        if referral.origin_department_id in departments:
            outgoing += 1

    return ReferralSummaryResponse(
        total=total,
        pending=statuses[ReferralStatus.PENDING],
        accepted=statuses[ReferralStatus.ACCEPTED],
        rejected=statuses[ReferralStatus.REJECTED],
        incoming=incoming,
        outgoing=outgoing,
        by_destination=[
            DepartmentCount(department_id=dept_id, count=count)
            for dept_id, count in sorted(destinations.items(), key=lambda item: (-item[1], str(item[0])))
        ],
    )


def tally_outcomes(tasks: Iterable[Task]) -> OutcomeSummaryResponse:
    """Count terminal intervention outcomes across tasks."""
    outcomes: Counter[InterventionOutcome] = Counter(
        ti.outcome_status for task in tasks for ti in task.interventions
    )
    return OutcomeSummaryResponse(
        seen=outcomes[InterventionOutcome.SEEN],
        attempted=outcomes[InterventionOutcome.ATTEMPTED],
        declined=outcomes[InterventionOutcome.DECLINED],
        unseen=outcomes[InterventionOutcome.UNSEEN],
        handover=outcomes[InterventionOutcome.HANDOVER],
    )


# === Service ===


class SummaryService:
    """Summary Aggregator: read-side projection over tasks and referrals."""

    def __init__(self, db: AsyncSession, today: Callable[[], date] = utc_today):
        self.db = db
        self.today = today
        self.task_service = TaskService(db, today=today)
        self.referral_service = ReferralService(db, today=today)
        self.catalog = CatalogRepository(db)

    async def _visible_tasks(self, caller: CallerContext, mine: bool) -> tuple[list[Task], set[uuid.UUID]]:
        tasks = await self.task_service.list_tasks(caller, mine=mine).all()
        if mine:
            return tasks, {task.id for task in tasks}
        mine_ids = {task.id async for task in self.task_service.list_tasks(caller, mine=True)}
        return tasks, mine_ids

    async def task_summary(self, caller: CallerContext, mine: bool = False) -> TaskSummaryResponse:
        tasks, mine_ids = await self._visible_tasks(caller, mine)
        return tally_tasks(tasks, self.today(), mine_ids)

    async def outcome_summary(self, caller: CallerContext, mine: bool = False) -> OutcomeSummaryResponse:
        tasks = await self.task_service.list_tasks(caller, mine=mine).all()
        return tally_outcomes(tasks)

    async def referral_summary(self, caller: CallerContext) -> ReferralSummaryResponse:
        referrals = await self.referral_service.list_referrals(caller).all()
        return tally_referrals(referrals, caller.department_ids)

    async def dashboard(self, caller: CallerContext) -> DashboardResponse:
        """All dashboard counters; tasks are listed once for both task and outcome tallies."""
        tasks, mine_ids = await self._visible_tasks(caller, mine=False)
        return DashboardResponse(
            total_patients=await self.catalog.count_visible(Patient),
            total_departments=await self.catalog.count_visible(Department),
            total_specialties=await self.catalog.count_visible(Specialty),
            total_users=await self.catalog.count_visible(User),
            tasks=tally_tasks(tasks, self.today(), mine_ids),
            referrals=await self.referral_summary(caller),
            outcomes=tally_outcomes(tasks),
        )
