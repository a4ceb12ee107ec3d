"""Referral lifecycle.

Referrals are created pending and resolved once, to accepted or rejected,
by a member of the destination department.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from alliedhealth.config import settings
from alliedhealth.errors import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
from alliedhealth.identity import CallerContext
from alliedhealth.models.referral import Referral, ReferralIntervention, ReferralStatus
from alliedhealth.repositories.catalog import CatalogRepository
from alliedhealth.repositories.listing import Listing
from alliedhealth.repositories.referral import ReferralRepository
from alliedhealth.schemas.referral import ReferralCreate
from alliedhealth.utils.dates import utc_today, utcnow

logger = logging.getLogger(__name__)

RESOLUTIONS = frozenset({ReferralStatus.ACCEPTED, ReferralStatus.REJECTED})


def parse_decision(decision: ReferralStatus | str) -> ReferralStatus:
    """Parse a resolution decision.

    Raises:
        ValidationError: Unless the decision is accepted or rejected.
    """
    if isinstance(decision, ReferralStatus):
        status = decision
    else:
        normalized = str(decision).strip().lower()
        status = next((s for s in ReferralStatus if s.value == normalized), None)
    if status not in RESOLUTIONS:
        raise ValidationError(f"Decision must be accepted or rejected, got {decision!r}")
    return status


def direction_for(referral: Referral, department_ids: frozenset[uuid.UUID]) -> str:
    """Direction of a referral relative to a set of departments."""
    if referral.origin_department_id in department_ids:
        return "outgoing"
    if referral.destination_department_id in department_ids:
        return "incoming"
    return ""


class ReferralService:
    """Referral Lifecycle Manager."""

    def __init__(
        self,
        db: AsyncSession,
        today: Callable[[], date] = utc_today,
        page_size: int | None = None,
    ):
        self.db = db
        self.referrals = ReferralRepository(db)
        self.catalog = CatalogRepository(db)
        self.today = today
        self.page_size = page_size or settings.task_page_size

    async def create_referral(self, data: ReferralCreate, caller: CallerContext) -> Referral:
        """Create a pending referral.

        Raises:
            ValidationError: If origin equals destination, or the patient,
                either department, the referring staff member or any
                requested intervention does not resolve.
        """
        if data.origin_department_id == data.destination_department_id:
            raise ValidationError("Origin and destination departments must differ")
        if await self.catalog.get_patient(data.patient_id) is None:
            raise ValidationError(f"Patient {data.patient_id} does not exist")
        if await self.catalog.get_department(data.origin_department_id) is None:
            raise ValidationError("Origin department does not exist")
        if await self.catalog.get_department(data.destination_department_id) is None:
            raise ValidationError("Destination department does not exist")
        if await self.catalog.get_user(data.referring_staff_id) is None:
            raise ValidationError("Referring staff member does not exist")

        intervention_ids = list(dict.fromkeys(data.interventions))
        missing = await self.catalog.missing_interventions(intervention_ids)
        if missing:
            raise ValidationError(f"Unknown interventions: {sorted(str(i) for i in missing)}")

        referral = Referral(
            patient_id=data.patient_id,
            origin_department_id=data.origin_department_id,
            destination_department_id=data.destination_department_id,
            referring_staff_id=data.referring_staff_id,
            referral_date=data.referral_date or self.today(),
            priority=data.priority,
            status=ReferralStatus.PENDING,
            notes=data.notes,
            diagnosis=data.diagnosis,
            goals=data.goals,
            created_by=caller.user_id,
            interventions=[ReferralIntervention(intervention_id=i) for i in intervention_ids],
        )
        await self.referrals.add(referral)

        logger.info(
            "Created referral %s from department %s to %s",
            referral.id,
            referral.origin_department_id,
            referral.destination_department_id,
        )
        return referral

    async def get_referral(self, referral_id: uuid.UUID) -> Referral:
        referral = await self.referrals.get_by_id(referral_id)
        if referral is None:
            raise NotFoundError("Referral not found")
        return referral

    async def resolve_referral(
        self,
        referral_id: uuid.UUID,
        decision: ReferralStatus | str,
        caller: CallerContext,
    ) -> Referral:
        """Accept or reject a pending referral.

        Raises:
            ValidationError: If the decision is not accepted/rejected.
            NotFoundError: If the referral does not exist.
            ForbiddenError: If the caller is not in the destination department.
            InvalidTransitionError: If the referral is already resolved,
                including by a concurrent resolution.
        """
        target = parse_decision(decision)
        referral = await self.get_referral(referral_id)

        if not caller.belongs_to(referral.destination_department_id):
            logger.warning("User %s denied resolving referral %s", caller.user_id, referral_id)
            raise ForbiddenError("Only the destination department can resolve this referral")
        if referral.status != ReferralStatus.PENDING:
            logger.warning("Referral %s is already %s", referral_id, referral.status.value)
            raise InvalidTransitionError(f"Referral is already {referral.status.value}")

        swapped = await self.referrals.compare_and_set_status(
            referral_id,
            expected=ReferralStatus.PENDING,
            status=target,
            resolved_by=caller.user_id,
            resolved_at=utcnow(),
        )
        if not swapped:
            logger.warning("Concurrent resolution lost on referral %s", referral_id)
            raise InvalidTransitionError("Referral was resolved by another update")

        logger.info("Referral %s %s by %s", referral_id, target.value, caller.user_id)
        return await self.get_referral(referral_id)

    async def retire_referral(self, referral_id: uuid.UUID, caller: CallerContext) -> None:
        """Hide a referral. Only the origin department or an admin may."""
        referral = await self.get_referral(referral_id)
        if not (caller.is_admin or caller.belongs_to(referral.origin_department_id)):
            logger.warning("User %s denied retiring referral %s", caller.user_id, referral_id)
            raise ForbiddenError("Only the origin department can retire this referral")
        referral.hidden = True
        await self.referrals.save(referral)
        logger.info("Retired referral %s", referral_id)

    def list_referrals(
        self,
        caller: CallerContext,
        direction: str | None = None,
        status: ReferralStatus | None = None,
    ) -> Listing[Referral]:
        """Lazy listing of referrals visible to ``caller``.

        ``incoming``: destination is one of the caller's departments.
        ``outgoing``: origin is one of the caller's departments.
        No direction: either of those, or every referral for admins.
        """
        if direction not in (None, "incoming", "outgoing"):
            raise ValidationError(f"Unknown referral direction: {direction!r}")
        department_ids = None if caller.is_admin and direction is None else caller.department_ids
        return self.referrals.list_referrals(
            department_ids,
            direction=direction,
            status=status,
            batch_size=self.page_size,
        )
