"""Task API routes.

Task creation, outcome recording, administrative edits and listings for
allied-health tasks. Status is derived from intervention outcomes on every
read and can be filtered on but never written.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from alliedhealth.auth import get_caller
from alliedhealth.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from alliedhealth.database import get_db
from alliedhealth.identity import CallerContext
from alliedhealth.models.task import TaskStatus
from alliedhealth.schemas.dashboard import TaskSummaryResponse
from alliedhealth.schemas.task import (
    OutcomeUpdate,
    TaskCreate,
    TaskDetailResponse,
    TaskInterventionCreate,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from alliedhealth.services.summary import SummaryService
from alliedhealth.services.tasks import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    mine: bool = False,
    patient_id: int | None = None,
    status_filter: TaskStatus | None = Query(None, alias="status"),
) -> TaskListResponse:
    """List tasks with optional filtering and pagination.

    Args:
        skip: Number of records to skip (pagination offset).
        limit: Maximum number of records to return.
        mine: Only tasks on wards covered by the caller's departments.
        patient_id: Filter by patient MRN.
        status_filter: Filter by derived task status.

    Returns:
        Paginated list of tasks ordered by priority, then due date.
    """
    service = TaskService(db)
    rows = []
    async for task in service.list_tasks(caller, mine=mine, patient_id=patient_id):
        task_status = service.status_of(task)
        if status_filter is None or task_status == status_filter:
            rows.append(TaskResponse.from_task(task, task_status))

    return TaskListResponse(
        items=rows[skip : skip + limit],
        total=len(rows),
        skip=skip,
        limit=limit,
    )


@router.post("", response_model=TaskDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> TaskDetailResponse:
    """Create a task with its initial interventions."""
    service = TaskService(db)
    task = await service.create_task(task_data, caller)
    return TaskDetailResponse.from_task(task, service.status_of(task))


@router.put("", response_model=TaskDetailResponse)
async def update_outcome(
    update: OutcomeUpdate,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> TaskDetailResponse:
    """Record an outcome on one task intervention.

    Returns:
        The owning task with its status re-derived.

    Raises:
        404 if the intervention is unknown, 400 for an unrecognized outcome
        (or a handover without a note when notes are required), 409 if the
        transition is not allowed or the outcome changed since the caller
        read it.
    """
    service = TaskService(db)
    task = await service.update_intervention_outcome(
        update.task_intervention_id,
        update.outcome_status,
        update.outcome,
        caller,
        expected_status=update.expected_status,
    )
    return TaskDetailResponse.from_task(task, service.status_of(task))


@router.get("/summary", response_model=TaskSummaryResponse)
async def task_summary(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
    mine: bool = False,
) -> TaskSummaryResponse:
    """Task counts by derived status and priority."""
    return await SummaryService(db).task_summary(caller, mine=mine)


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller),
) -> TaskDetailResponse:
    """Get a single task with its interventions.

    Raises:
        404 if the task is unknown or retired.
    """
    service = TaskService(db)
    task = await service.get_task(task_id)
    return TaskDetailResponse.from_task(task, service.status_of(task))


@router.patch("/{task_id}", response_model=TaskDetailResponse)
async def update_task(
    task_id: uuid.UUID,
    task_data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> TaskDetailResponse:
    """Edit a task's descriptive fields or due date."""
    service = TaskService(db)
    task = await service.update_task(task_id, task_data, caller)
    return TaskDetailResponse.from_task(task, service.status_of(task))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def retire_task(
    task_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> None:
    """Retire a task. The row is kept but no longer listed or counted."""
    await TaskService(db).retire_task(task_id, caller)


@router.post(
    "/{task_id}/interventions",
    response_model=TaskDetailResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_intervention(
    task_id: uuid.UUID,
    intervention_data: TaskInterventionCreate,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> TaskDetailResponse:
    service = TaskService(db)
    task = await service.add_intervention(task_id, intervention_data, caller)
    return TaskDetailResponse.from_task(task, service.status_of(task))


@router.delete("/{task_id}/interventions/{task_intervention_id}", response_model=TaskDetailResponse)
async def remove_intervention(
    task_id: uuid.UUID,
    task_intervention_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> TaskDetailResponse:
    service = TaskService(db)
    task = await service.remove_intervention(task_id, task_intervention_id, caller)
    return TaskDetailResponse.from_task(task, service.status_of(task))
