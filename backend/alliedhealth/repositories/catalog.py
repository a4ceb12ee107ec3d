"""Reference catalog lookups.

Read-only from the engine's perspective: resolves ids for validation,
maps departments to the wards they cover, and serves option lists.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

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


class CatalogRepository:
    """Lookups over departments, wards, interventions, patients and staff.

    Hidden rows never resolve.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_visible(self, model: Any, record_id: Any) -> Any | None:
        result = await self.db.execute(
            select(model).where(model.id == record_id, model.hidden.is_(False))
        )
        return result.scalar_one_or_none()

    async def get_patient(self, patient_id: int) -> Patient | None:
        return await self._get_visible(Patient, patient_id)

    async def get_department(self, department_id: uuid.UUID) -> Department | None:
        return await self._get_visible(Department, department_id)

    async def get_user(self, user_id: uuid.UUID) -> User | None:
        return await self._get_visible(User, user_id)

    async def missing_interventions(self, intervention_ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
        """Return the intervention ids that do not resolve."""
        return await self._missing(Intervention, intervention_ids)

    async def missing_wards(self, ward_ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
        """Return the ward ids that do not resolve."""
        return await self._missing(Ward, ward_ids)

    async def _missing(self, model: Any, ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
        wanted = set(ids)
        if not wanted:
            return set()
        result = await self.db.execute(
            select(model.id).where(model.id.in_(wanted), model.hidden.is_(False))
        )
        return wanted - set(result.scalars().all())

    @staticmethod
    def ward_covered_by(ward_column: Any, department_ids: Iterable[uuid.UUID]) -> ColumnElement[bool]:
        """Build a predicate: ``ward_column`` is a ward covered by any department.

        A ward is covered by its default department and by every department
        with a coverage row for it.
        """
        ids = list(department_ids)
        return or_(
            ward_column.in_(select(Ward.id).where(Ward.default_department_id.in_(ids))),
            ward_column.in_(
                select(WardDeptCoverage.ward_id).where(WardDeptCoverage.department_id.in_(ids))
            ),
        )

    async def count_visible(self, model: Any) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(model).where(model.hidden.is_(False))
        )
        return result.scalar() or 0

    # === Option lists ===

    async def departments(self) -> list[Department]:
        return await self._visible_rows(Department, Department.name)

    async def specialties(self) -> list[Specialty]:
        return await self._visible_rows(Specialty, Specialty.name)

    async def interventions(self) -> list[Intervention]:
        return await self._visible_rows(Intervention, Intervention.name)

    async def patients(self) -> list[Patient]:
        return await self._visible_rows(Patient, Patient.full_name)

    async def wards(self) -> list[Ward]:
        result = await self.db.execute(
            select(Ward)
            .options(selectinload(Ward.coverages))
            .where(Ward.hidden.is_(False))
            .order_by(Ward.name)
        )
        return list(result.scalars().all())

    async def assistants(self) -> list[User]:
        result = await self.db.execute(
            select(User)
            .where(User.hidden.is_(False), User.role == UserRole.ASSISTANT)
            .order_by(User.last_name, User.first_name)
        )
        return list(result.scalars().all())

    async def _visible_rows(self, model: Any, order_by: Any) -> list[Any]:
        result = await self.db.execute(
            select(model).where(model.hidden.is_(False)).order_by(order_by)
        )
        return list(result.scalars().all())
