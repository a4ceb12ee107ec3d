"""Tests for patient outcome flags."""

import uuid
from datetime import datetime, timezone

import pytest

from alliedhealth.errors import NotFoundError, ValidationError
from alliedhealth.models.task import InterventionOutcome
from alliedhealth.schemas.patient_outcome import PatientOutcomeCreate, PatientOutcomeResponse
from alliedhealth.services.patient_outcomes import PatientOutcomeService


class TestRecordPatientOutcome:
    """Tests for PatientOutcomeService.record."""

    @pytest.mark.asyncio
    async def test_record_and_list(self, db_session, catalog, physio_caller):
        service = PatientOutcomeService(db_session)

        outcome = await service.record(
            catalog.patient.id,
            PatientOutcomeCreate(seen=True, refer=True, additional_note="Refer to OT"),
            physio_caller,
        )

        assert outcome.recorded_by == physio_caller.user_id
        listed = await service.list_for_patient(catalog.patient.id)
        assert [o.id for o in listed] == [outcome.id]

    @pytest.mark.asyncio
    async def test_exclusive_flags_enforced(self, db_session, catalog, physio_caller):
        service = PatientOutcomeService(db_session, enforce_exclusive=True)
        with pytest.raises(ValidationError):
            await service.record(
                catalog.patient.id,
                PatientOutcomeCreate(seen=True, declined=True),
                physio_caller,
            )

    @pytest.mark.asyncio
    async def test_exclusivity_can_be_relaxed(self, db_session, catalog, physio_caller):
        service = PatientOutcomeService(db_session, enforce_exclusive=False)
        outcome = await service.record(
            catalog.patient.id,
            PatientOutcomeCreate(seen=True, declined=True),
            physio_caller,
        )
        assert outcome.seen and outcome.declined

    @pytest.mark.asyncio
    async def test_unknown_patient(self, db_session, catalog, physio_caller):
        service = PatientOutcomeService(db_session)
        with pytest.raises(NotFoundError):
            await service.record(9999, PatientOutcomeCreate(unseen=True), physio_caller)
        with pytest.raises(NotFoundError):
            await service.list_for_patient(catalog.retired_patient.id)


class TestPrimaryOutcome:
    """Tests for the derived primary outcome."""

    def _response(self, **flags) -> PatientOutcomeResponse:
        values = {
            "id": uuid.uuid4(),
            "patient_id": 1001,
            "seen": False,
            "attempt_made": False,
            "declined": False,
            "unseen": False,
            "refer": False,
            "additional_note": None,
            "recorded_by": None,
            "recorded_at": datetime.now(timezone.utc),
        }
        values.update(flags)
        return PatientOutcomeResponse(**values)

    def test_maps_to_intervention_vocabulary(self):
        assert self._response(attempt_made=True).primary_outcome == InterventionOutcome.ATTEMPTED
        assert self._response(unseen=True, refer=True).primary_outcome == InterventionOutcome.UNSEEN

    def test_no_flag(self):
        response = self._response(refer=True)
        assert response.primary_outcome is None
        assert response.model_dump()["primary_outcome"] is None
