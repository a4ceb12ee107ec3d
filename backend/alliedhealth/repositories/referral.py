"""Referral repository."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import Select, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from alliedhealth.models.referral import Referral, ReferralStatus
from alliedhealth.repositories.listing import Listing


class ReferralRepository:
    """Repository for Referral operations.

    Status writes are compare-and-set on the pending state, so of two
    concurrent resolutions only the first one lands.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, referral: Referral) -> Referral:
        self.db.add(referral)
        await self.db.flush()
        return referral

    async def get_by_id(self, referral_id: uuid.UUID, include_hidden: bool = False) -> Referral | None:
        query = (
            select(Referral)
            .options(selectinload(Referral.interventions))
            .where(Referral.id == referral_id)
            .execution_options(populate_existing=True)
        )
        if not include_hidden:
            query = query.where(Referral.hidden.is_(False))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def compare_and_set_status(
        self,
        referral_id: uuid.UUID,
        expected: ReferralStatus,
        status: ReferralStatus,
        resolved_by: uuid.UUID,
        resolved_at: datetime,
    ) -> bool:
        """Move a referral out of ``expected`` if it is still in it.

        Returns:
            True if this call made the transition.
        """
        result = await self.db.execute(
            update(Referral)
            .where(Referral.id == referral_id, Referral.status == expected)
            .values(
                status=status,
                resolved_by=resolved_by,
                resolved_at=resolved_at,
                modified_at=resolved_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def save(self, referral: Referral) -> Referral:
        await self.db.flush()
        return referral

    def _visible_query(
        self,
        department_ids: Iterable[uuid.UUID] | None,
        direction: str | None,
    ) -> Select[tuple[Referral]]:
        query = select(Referral).where(Referral.hidden.is_(False))
        if direction == "incoming":
            query = query.where(Referral.destination_department_id.in_(list(department_ids or ())))
        elif direction == "outgoing":
            query = query.where(Referral.origin_department_id.in_(list(department_ids or ())))
        elif department_ids is not None:
            ids = list(department_ids)
            query = query.where(
                or_(
                    Referral.destination_department_id.in_(ids),
                    Referral.origin_department_id.in_(ids),
                )
            )
        return query.order_by(Referral.referral_date.desc(), Referral.id.asc())

    def list_referrals(
        self,
        department_ids: Iterable[uuid.UUID] | None,
        direction: str | None = None,
        status: ReferralStatus | None = None,
        batch_size: int = 200,
    ) -> Listing[Referral]:
        """Lazy listing of visible referrals.

        Args:
            department_ids: Departments the listing is relative to; None means
                every referral (only meaningful without a direction).
            direction: ``incoming`` (destination in departments), ``outgoing``
                (origin in departments) or None for either.
            status: Optional status filter.
        """
        query = self._visible_query(department_ids, direction)
        if status is not None:
            query = query.where(Referral.status == status)
        return Listing(self.db, query, batch_size=batch_size)
