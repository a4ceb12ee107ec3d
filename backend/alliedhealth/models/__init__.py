"""SQLAlchemy models."""

from alliedhealth.models.catalog import (
    Department,
    Intervention,
    Patient,
    Specialty,
    User,
    UserRole,
    Ward,
    WardDeptCoverage,
)
from alliedhealth.models.patient_outcome import PatientOutcome
from alliedhealth.models.referral import Referral, ReferralIntervention, ReferralStatus
from alliedhealth.models.task import (
    InterventionOutcome,
    Priority,
    Task,
    TaskIntervention,
    TaskStatus,
    TaskType,
)

__all__ = [
    "Department",
    "Intervention",
    "InterventionOutcome",
    "Patient",
    "PatientOutcome",
    "Priority",
    "Referral",
    "ReferralIntervention",
    "ReferralStatus",
    "Specialty",
    "Task",
    "TaskIntervention",
    "TaskStatus",
    "TaskType",
    "User",
    "UserRole",
    "Ward",
    "WardDeptCoverage",
]
