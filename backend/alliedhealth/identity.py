"""Caller identity and visibility scope.

Token validation happens upstream; the engine only ever sees the resolved
``CallerContext``. Visibility is passed to list operations as an explicit
``VisibilityScope`` so the engine can be exercised without a live caller.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from alliedhealth.models.catalog import UserRole


@dataclass(frozen=True)
class CallerContext:
    """Resolved identity of the caller."""

    user_id: uuid.UUID
    role: UserRole
    department_ids: frozenset[uuid.UUID] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def can_manage_tasks(self) -> bool:
        """Professionals and admins may edit, extend and retire tasks."""
        return self.role in (UserRole.PROFESSIONAL, UserRole.ADMIN)

    def belongs_to(self, department_id: uuid.UUID) -> bool:
        return department_id in self.department_ids


@dataclass(frozen=True)
class VisibilityScope:
    """Department coverage a listing is restricted to.

    ``department_ids`` of None means unrestricted; an empty set matches
    nothing.
    """

    department_ids: frozenset[uuid.UUID] | None = None

    @classmethod
    def everything(cls) -> VisibilityScope:
        return cls(None)

    @classmethod
    def for_caller(cls, caller: CallerContext) -> VisibilityScope:
        return cls(frozenset(caller.department_ids))

    @property
    def unrestricted(self) -> bool:
        return self.department_ids is None
