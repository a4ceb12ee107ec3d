"""Summary and dashboard schemas.

Every counter defaults to zero so a response always carries every field.
"""

from uuid import UUID

from pydantic import BaseModel, Field


class TaskSummaryResponse(BaseModel):
    """Task counters by derived status and by priority."""

    total: int = 0
    mine: int = 0
    assigned: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0
    high_priority: int = 0
    medium_priority: int = 0
    low_priority: int = 0


class DepartmentCount(BaseModel):
    department_id: UUID
    count: int


class ReferralSummaryResponse(BaseModel):
    """Referral counters by status and by direction."""

    total: int = 0
    pending: int = 0
    accepted: int = 0
    rejected: int = 0
    incoming: int = 0
    outgoing: int = 0
    by_destination: list[DepartmentCount] = Field(default_factory=list)


class OutcomeSummaryResponse(BaseModel):
    """Terminal intervention outcome counters."""

    seen: int = 0
    attempted: int = 0
    declined: int = 0
    unseen: int = 0
    handover: int = 0


class DashboardResponse(BaseModel):
    """Everything the dashboard shows, in one response."""

    total_patients: int = 0
    total_departments: int = 0
    total_specialties: int = 0
    total_users: int = 0
    tasks: TaskSummaryResponse = Field(default_factory=TaskSummaryResponse)
    referrals: ReferralSummaryResponse = Field(default_factory=ReferralSummaryResponse)
    outcomes: OutcomeSummaryResponse = Field(default_factory=OutcomeSummaryResponse)
