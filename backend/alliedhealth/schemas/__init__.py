"""Pydantic schemas."""

from alliedhealth.schemas.dashboard import (
    DashboardResponse,
    OutcomeSummaryResponse,
    ReferralSummaryResponse,
    TaskSummaryResponse,
)
from alliedhealth.schemas.patient_outcome import PatientOutcomeCreate, PatientOutcomeResponse
from alliedhealth.schemas.referral import (
    ReferralCreate,
    ReferralDetailResponse,
    ReferralListResponse,
    ReferralResolve,
    ReferralResponse,
)
from alliedhealth.schemas.task import (
    OutcomeUpdate,
    TaskCreate,
    TaskDetailResponse,
    TaskInterventionCreate,
    TaskInterventionResponse,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)

__all__ = [
    "DashboardResponse",
    "OutcomeSummaryResponse",
    "OutcomeUpdate",
    "PatientOutcomeCreate",
    "PatientOutcomeResponse",
    "ReferralCreate",
    "ReferralDetailResponse",
    "ReferralListResponse",
    "ReferralResolve",
    "ReferralResponse",
    "ReferralSummaryResponse",
    "TaskCreate",
    "TaskDetailResponse",
    "TaskInterventionCreate",
    "TaskInterventionResponse",
    "TaskListResponse",
    "TaskResponse",
    "TaskSummaryResponse",
    "TaskUpdate",
]
