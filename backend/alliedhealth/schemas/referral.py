"""Pydantic schemas for Referral API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from alliedhealth.models.referral import Referral, ReferralStatus
from alliedhealth.models.task import Priority

ReferralDirection = Literal["incoming", "outgoing"]


class ReferralCreate(BaseModel):
    """Schema for creating a referral."""

    patient_id: int
    origin_department_id: UUID
    destination_department_id: UUID
    referring_staff_id: UUID
    priority: Priority = Priority.MEDIUM
    referral_date: date | None = Field(default=None, description="Defaults to today")
    notes: str | None = None
    diagnosis: str | None = None
    goals: str | None = None
    interventions: list[UUID] = Field(default_factory=list)


class ReferralResolve(BaseModel):
    """Decision on a pending referral (``accepted`` or ``rejected``)."""

    decision: str


class ReferralResponse(BaseModel):
    """Referral in list responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: int
    origin_department_id: UUID
    destination_department_id: UUID
    referring_staff_id: UUID
    referral_date: date
    priority: Priority
    status: ReferralStatus
    direction: str = Field(default="", description="incoming, outgoing, or empty")
    modified_at: datetime

    @classmethod
    def from_referral(cls, referral: Referral, direction: str) -> ReferralResponse:
        return cls.model_validate(referral).model_copy(update={"direction": direction})


class ReferralDetailResponse(ReferralResponse):
    """Full referral detail."""

    notes: str | None
    diagnosis: str | None
    goals: str | None
    resolved_by: UUID | None
    resolved_at: datetime | None
    intervention_ids: list[UUID]

    @classmethod
    def from_referral(cls, referral: Referral, direction: str) -> ReferralDetailResponse:
        return cls(
            **ReferralResponse.from_referral(referral, direction).model_dump(),
            notes=referral.notes,
            diagnosis=referral.diagnosis,
            goals=referral.goals,
            resolved_by=referral.resolved_by,
            resolved_at=referral.resolved_at,
            intervention_ids=[ri.intervention_id for ri in referral.interventions],
        )


class ReferralListResponse(BaseModel):
    """Paginated list of referrals."""

    items: list[ReferralResponse]
    total: int
    skip: int
    limit: int
