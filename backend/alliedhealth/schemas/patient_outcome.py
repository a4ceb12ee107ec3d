"""Pydantic schemas for patient outcome flags."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, computed_field

from alliedhealth.models.task import InterventionOutcome


class PatientOutcomeCreate(BaseModel):
    seen: bool = False
    attempt_made: bool = False
    declined: bool = False
    unseen: bool = False
    refer: bool = False
    additional_note: str | None = None


class PatientOutcomeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: int
    seen: bool
    attempt_made: bool
    declined: bool
    unseen: bool
    refer: bool
    additional_note: str | None
    recorded_by: UUID | None
    recorded_at: datetime

    @computed_field
    @property
    def primary_outcome(self) -> InterventionOutcome | None:
        """First set attendance flag, in the intervention outcome vocabulary."""
        if self.seen:
            return InterventionOutcome.SEEN
        if self.attempt_made:
            return InterventionOutcome.ATTEMPTED
        if self.declined:
            return InterventionOutcome.DECLINED
        if self.unseen:
            return InterventionOutcome.UNSEEN
        return None
