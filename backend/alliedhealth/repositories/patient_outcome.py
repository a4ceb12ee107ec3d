"""Patient outcome repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alliedhealth.models.patient_outcome import PatientOutcome


class PatientOutcomeRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, outcome: PatientOutcome) -> PatientOutcome:
        self.db.add(outcome)
        await self.db.flush()
        return outcome

    async def list_for_patient(self, patient_id: int) -> list[PatientOutcome]:
        """Outcomes for a patient, newest first."""
        result = await self.db.execute(
            select(PatientOutcome)
            .where(PatientOutcome.patient_id == patient_id)
            .order_by(PatientOutcome.recorded_at.desc(), PatientOutcome.id)
        )
        return list(result.scalars().all())
