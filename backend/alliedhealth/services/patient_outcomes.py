"""Patient outcome flags."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from alliedhealth.config import settings
from alliedhealth.errors import NotFoundError, ValidationError
from alliedhealth.identity import CallerContext
from alliedhealth.models.patient_outcome import PatientOutcome
from alliedhealth.repositories.catalog import CatalogRepository
from alliedhealth.repositories.patient_outcome import PatientOutcomeRepository
from alliedhealth.schemas.patient_outcome import PatientOutcomeCreate

logger = logging.getLogger(__name__)

ATTENDANCE_FLAGS = ("seen", "attempt_made", "declined", "unseen")


class PatientOutcomeService:
    def __init__(self, db: AsyncSession, enforce_exclusive: bool | None = None):
        self.outcomes = PatientOutcomeRepository(db)
        self.catalog = CatalogRepository(db)
        self.enforce_exclusive = (
            settings.enforce_exclusive_outcome_flags if enforce_exclusive is None else enforce_exclusive
        )

    async def record(self, patient_id: int, data: PatientOutcomeCreate, caller: CallerContext) -> PatientOutcome:
        """Record an assessment outcome for a patient.

        Raises:
            NotFoundError: If the patient does not exist.
            ValidationError: If exclusivity is enforced and more than one
                attendance flag is set.
        """
        await self._require_patient(patient_id)

        set_flags = [flag for flag in ATTENDANCE_FLAGS if getattr(data, flag)]
        if self.enforce_exclusive and len(set_flags) > 1:
            raise ValidationError(f"Only one of {', '.join(ATTENDANCE_FLAGS)} may be set, got {set_flags}")

        outcome = PatientOutcome(
            patient_id=patient_id,
            recorded_by=caller.user_id,
            **data.model_dump(),
        )
        await self.outcomes.add(outcome)
        logger.info("Recorded outcome %s for patient %s", outcome.id, patient_id)
        return outcome

    async def list_for_patient(self, patient_id: int) -> list[PatientOutcome]:
        await self._require_patient(patient_id)
        return await self.outcomes.list_for_patient(patient_id)

    async def _require_patient(self, patient_id: int) -> None:
        if await self.catalog.get_patient(patient_id) is None:
            raise NotFoundError("Patient not found")
