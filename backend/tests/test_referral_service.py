"""Tests for the referral lifecycle service."""

import uuid
from datetime import date
from unittest.mock import AsyncMock

import pytest

from alliedhealth.errors import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
from alliedhealth.identity import CallerContext
from alliedhealth.models.catalog import UserRole
from alliedhealth.models.referral import ReferralStatus
from alliedhealth.models.task import Priority
from alliedhealth.repositories.referral import ReferralRepository
from alliedhealth.schemas.referral import ReferralCreate
from alliedhealth.services.referrals import ReferralService, direction_for, parse_decision

TODAY = date(2026, 3, 16)


@pytest.fixture
def service(db_session):
    return ReferralService(db_session, today=lambda: TODAY)


def make_referral(catalog, **overrides) -> ReferralCreate:
    """Physiotherapy referring the seeded patient to dietetics."""
    data = {
        "patient_id": catalog.patient.id,
        "origin_department_id": catalog.physio.id,
        "destination_department_id": catalog.dietetics.id,
        "referring_staff_id": catalog.physio_professional.id,
        "priority": Priority.HIGH,
        "notes": "Poor oral intake",
    }
    data.update(overrides)
    return ReferralCreate(**data)


class TestParseDecision:
    """Tests for parse_decision."""

    @pytest.mark.parametrize("value", ["accepted", "ACCEPTED", ReferralStatus.ACCEPTED])
    def test_accepts_resolutions(self, value):
        assert parse_decision(value) == ReferralStatus.ACCEPTED

    @pytest.mark.parametrize("value", ["pending", ReferralStatus.PENDING, "maybe", ""])
    def test_rejects_everything_else(self, value):
        with pytest.raises(ValidationError):
            parse_decision(value)


class TestCreateReferral:
    """Tests for ReferralService.create_referral."""

    @pytest.mark.asyncio
    async def test_created_pending(self, service, catalog, physio_caller):
        referral = await service.create_referral(
            make_referral(catalog, interventions=[catalog.diet_plan.id, catalog.diet_plan.id]),
            physio_caller,
        )

        assert referral.status == ReferralStatus.PENDING
        assert referral.referral_date == TODAY
        assert referral.resolved_by is None
        assert [ri.intervention_id for ri in referral.interventions] == [catalog.diet_plan.id]

    @pytest.mark.asyncio
    async def test_origin_must_differ_from_destination(self, service, catalog, physio_caller):
        with pytest.raises(ValidationError):
            await service.create_referral(
                make_referral(catalog, destination_department_id=catalog.physio.id),
                physio_caller,
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field",
        ["origin_department_id", "destination_department_id", "referring_staff_id"],
    )
    async def test_references_must_resolve(self, service, catalog, physio_caller, field):
        with pytest.raises(ValidationError):
            await service.create_referral(make_referral(catalog, **{field: uuid.uuid4()}), physio_caller)

    @pytest.mark.asyncio
    async def test_patient_must_resolve(self, service, catalog, physio_caller):
        with pytest.raises(ValidationError):
            await service.create_referral(make_referral(catalog, patient_id=4242), physio_caller)

    @pytest.mark.asyncio
    async def test_interventions_must_resolve(self, service, catalog, physio_caller):
        with pytest.raises(ValidationError):
            await service.create_referral(
                make_referral(catalog, interventions=[catalog.retired_intervention.id]),
                physio_caller,
            )


class TestResolveReferral:
    """Tests for ReferralService.resolve_referral."""

    @pytest.mark.asyncio
    async def test_resolves_exactly_once(self, service, catalog, physio_caller, dietitian_caller):
        referral = await service.create_referral(make_referral(catalog), physio_caller)

        accepted = await service.resolve_referral(referral.id, "accepted", dietitian_caller)
        assert accepted.status == ReferralStatus.ACCEPTED
        assert accepted.resolved_by == dietitian_caller.user_id
        assert accepted.resolved_at is not None

        with pytest.raises(InvalidTransitionError):
            await service.resolve_referral(referral.id, "rejected", dietitian_caller)

        assert (await service.get_referral(referral.id)).status == ReferralStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_only_destination_department_may_resolve(
        self, service, catalog, physio_caller, speech_caller, admin_caller
    ):
        referral = await service.create_referral(make_referral(catalog), physio_caller)

        for caller in (physio_caller, speech_caller, admin_caller):
            with pytest.raises(ForbiddenError):
                await service.resolve_referral(referral.id, "accepted", caller)

        assert (await service.get_referral(referral.id)).status == ReferralStatus.PENDING

    @pytest.mark.asyncio
    async def test_invalid_decision(self, service, catalog, physio_caller, dietitian_caller):
        referral = await service.create_referral(make_referral(catalog), physio_caller)
        with pytest.raises(ValidationError):
            await service.resolve_referral(referral.id, "pending", dietitian_caller)

    @pytest.mark.asyncio
    async def test_unknown_referral(self, service, catalog, dietitian_caller):
        with pytest.raises(NotFoundError):
            await service.resolve_referral(uuid.uuid4(), "accepted", dietitian_caller)

    @pytest.mark.asyncio
    async def test_concurrent_resolution_loses(self, db_session, service, catalog, physio_caller, dietitian_caller):
        """A resolution that lost the compare-and-set reports an invalid transition."""
        referral = await service.create_referral(make_referral(catalog), physio_caller)
        repo = ReferralRepository(db_session)

        first = await repo.compare_and_set_status(
            referral.id, ReferralStatus.PENDING, ReferralStatus.REJECTED, dietitian_caller.user_id, referral.created_at
        )
        second = await repo.compare_and_set_status(
            referral.id, ReferralStatus.PENDING, ReferralStatus.ACCEPTED, dietitian_caller.user_id, referral.created_at
        )

        assert (first, second) == (True, False)
        assert (await service.get_referral(referral.id)).status == ReferralStatus.REJECTED


class TestRetireReferral:
    """Tests for ReferralService.retire_referral."""

    @pytest.mark.asyncio
    async def test_origin_department_can_retire(self, service, catalog, physio_caller):
        referral = await service.create_referral(make_referral(catalog), physio_caller)

        await service.retire_referral(referral.id, physio_caller)

        with pytest.raises(NotFoundError):
            await service.get_referral(referral.id)

    @pytest.mark.asyncio
    async def test_destination_cannot_retire(self, service, catalog, physio_caller, dietitian_caller):
        referral = await service.create_referral(make_referral(catalog), physio_caller)
        with pytest.raises(ForbiddenError):
            await service.retire_referral(referral.id, dietitian_caller)

    @pytest.mark.asyncio
    async def test_admin_can_retire(self, service, catalog, physio_caller, admin_caller):
        referral = await service.create_referral(make_referral(catalog), physio_caller)
        await service.retire_referral(referral.id, admin_caller)
        assert await service.list_referrals(admin_caller).all() == []


class TestListReferrals:
    """Tests for referral listings by direction."""

    @pytest.mark.asyncio
    async def test_directions(self, service, catalog, physio_caller, dietitian_caller, speech_caller, admin_caller):
        outgoing = await service.create_referral(make_referral(catalog), physio_caller)
        incoming = await service.create_referral(
            make_referral(
                catalog,
                origin_department_id=catalog.dietetics.id,
                destination_department_id=catalog.physio.id,
                referring_staff_id=catalog.dietitian.id,
            ),
            dietitian_caller,
        )

        async def ids(listing):
            return [r.id async for r in listing]

        assert await ids(service.list_referrals(physio_caller, "outgoing")) == [outgoing.id]
        assert await ids(service.list_referrals(physio_caller, "incoming")) == [incoming.id]
        assert set(await ids(service.list_referrals(physio_caller))) == {outgoing.id, incoming.id}
        assert await ids(service.list_referrals(speech_caller)) == []
        assert set(await ids(service.list_referrals(admin_caller))) == {outgoing.id, incoming.id}

        assert direction_for(outgoing, physio_caller.department_ids) == "outgoing"
        assert direction_for(outgoing, dietitian_caller.department_ids) == "incoming"
        assert direction_for(outgoing, speech_caller.department_ids) == ""

    @pytest.mark.asyncio
    async def test_status_filter(self, service, catalog, physio_caller, dietitian_caller):
        referral = await service.create_referral(make_referral(catalog), physio_caller)
        await service.create_referral(make_referral(catalog), physio_caller)
        await service.resolve_referral(referral.id, "rejected", dietitian_caller)

        rejected = await service.list_referrals(dietitian_caller, status=ReferralStatus.REJECTED).all()
        assert [r.id for r in rejected] == [referral.id]

    def test_unknown_direction(self):
        service = ReferralService(AsyncMock())
        caller = CallerContext(user_id=uuid.uuid4(), role=UserRole.PROFESSIONAL)
        with pytest.raises(ValidationError):
            service.list_referrals(caller, "sideways")
