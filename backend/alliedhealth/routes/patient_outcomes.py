"""Patient outcome API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from alliedhealth.auth import get_caller
from alliedhealth.database import get_db
from alliedhealth.identity import CallerContext
from alliedhealth.schemas.patient_outcome import PatientOutcomeCreate, PatientOutcomeResponse
from alliedhealth.services.patient_outcomes import PatientOutcomeService

router = APIRouter(prefix="/patients", tags=["patient-outcomes"])


@router.get("/{patient_id}/outcomes", response_model=list[PatientOutcomeResponse])
async def list_patient_outcomes(
    patient_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller),
) -> list[PatientOutcomeResponse]:
    """Recorded outcomes for a patient, newest first.

    Raises:
        404 if the patient is unknown.
    """
    outcomes = await PatientOutcomeService(db).list_for_patient(patient_id)
    return [PatientOutcomeResponse.model_validate(o) for o in outcomes]


@router.post(
    "/{patient_id}/outcomes",
    response_model=PatientOutcomeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_patient_outcome(
    patient_id: int,
    outcome_data: PatientOutcomeCreate,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> PatientOutcomeResponse:
    """Record an outcome for a patient.

    Raises:
        404 if the patient is unknown, 400 if more than one attendance flag
        is set while exclusivity is enforced.
    """
    outcome = await PatientOutcomeService(db).record(patient_id, outcome_data, caller)
    return PatientOutcomeResponse.model_validate(outcome)
