"""Pydantic schemas for Task API.

Task status is derived, so responses are built from a Task plus the status
computed for it rather than straight from ORM attributes.
"""

from __future__ import annotations

from datetime import date, datetime, time
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from alliedhealth.models.task import (
    InterventionOutcome,
    Priority,
    Task,
    TaskStatus,
    TaskType,
)


# === Request Schemas ===


class TaskInterventionCreate(BaseModel):
    """One intervention to attach to a task."""

    intervention_id: UUID
    ward_id: UUID
    start_date: date | None = Field(default=None, description="Defaults to today")
    end_date: date | None = Field(default=None, description="Defaults to the task due date")


class TaskCreate(BaseModel):
    """Schema for creating a new task with its initial interventions."""

    type: TaskType
    custom_type: str | None = Field(default=None, max_length=100)
    title: str = Field(min_length=1, max_length=140)
    description: str | None = None
    diagnosis: str | None = None
    goals: str | None = None
    priority: Priority | None = None
    due_date: date
    due_time: time | None = None
    patient_id: int
    department_id: UUID
    referral_id: UUID | None = None
    interventions: list[TaskInterventionCreate] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """Schema for an administrative edit of a task."""

    title: str | None = Field(default=None, min_length=1, max_length=140)
    description: str | None = None
    diagnosis: str | None = None
    goals: str | None = None
    priority: Priority | None = None
    due_date: date | None = None
    due_time: time | None = None


class OutcomeUpdate(BaseModel):
    """Outcome transition for one task intervention.

    ``outcome_status`` is left as a string so unrecognized values reach
    the outcome classifier and are reported as validation errors.
    """

    task_intervention_id: UUID = Field(
        validation_alias=AliasChoices("task_intervention_id", "taskInterventionId"),
    )
    outcome_status: str = Field(
        validation_alias=AliasChoices("outcome_status", "outcomeStatus"),
    )
    outcome: str | None = Field(default=None, description="Outcome note")
    expected_status: InterventionOutcome | None = Field(
        default=None,
        validation_alias=AliasChoices("expected_status", "expectedStatus"),
        description="Status the caller last observed; stale views are rejected",
    )


# === Response Schemas ===


class TaskInterventionResponse(BaseModel):
    """Task intervention in API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    intervention_id: UUID
    ward_id: UUID
    start_date: date
    end_date: date
    outcome_status: InterventionOutcome
    outcome: str | None
    outcome_date: date | None


class TaskResponse(BaseModel):
    """Task summary row in API responses."""

    id: UUID
    type: TaskType
    custom_type: str | None
    title: str
    priority: Priority
    status: TaskStatus
    patient_id: int
    department_id: UUID
    due_date: date
    due_time: time | None
    total_interventions: int
    created_at: datetime
    modified_at: datetime

    @classmethod
    def from_task(cls, task: Task, status: TaskStatus) -> TaskResponse:
        return cls(
            id=task.id,
            type=task.type,
            custom_type=task.custom_type,
            title=task.title,
            priority=task.priority,
            status=status,
            patient_id=task.patient_id,
            department_id=task.department_id,
            due_date=task.due_date,
            due_time=task.due_time,
            total_interventions=len(task.interventions),
            created_at=task.created_at,
            modified_at=task.modified_at,
        )


class TaskDetailResponse(TaskResponse):
    """Full task detail including interventions."""

    description: str | None
    diagnosis: str | None
    goals: str | None
    referral_id: UUID | None
    interventions: list[TaskInterventionResponse]

    @classmethod
    def from_task(cls, task: Task, status: TaskStatus) -> TaskDetailResponse:
        summary = TaskResponse.from_task(task, status)
        return cls(
            **summary.model_dump(),
            description=task.description,
            diagnosis=task.diagnosis,
            goals=task.goals,
            referral_id=task.referral_id,
            interventions=[TaskInterventionResponse.model_validate(ti) for ti in task.interventions],
        )


class TaskListResponse(BaseModel):
    """Paginated list of tasks."""

    items: list[TaskResponse]
    total: int
    skip: int
    limit: int
