"""Reference catalog models.

Departments, wards, specialties, interventions, patients and staff are
lookup data from the workflow engine's point of view: tasks and referrals
reference them by id and never own or modify them. Rows are retired with
the ``hidden`` flag rather than deleted.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from alliedhealth.database import Base
from alliedhealth.models.task import Priority
from alliedhealth.utils.dates import utcnow


class UserRole(str, enum.Enum):
    """Staff roles."""

    ASSISTANT = "assistant"
    PROFESSIONAL = "professional"
    ADMIN = "admin"


class Department(Base):
    """Allied-health department (physiotherapy, dietetics, ...)."""

    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_task_priority: Mapped[Priority] = mapped_column(
        Enum(Priority, name="task_priority", create_constraint=True),
        nullable=False,
        default=Priority.MEDIUM,
    )
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"<Department(id={self.id}, code={self.code})>"


class Specialty(Base):
    """Clinical specialty grouping interventions."""

    __tablename__ = "specialties"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Ward(Base):
    """Hospital ward.

    A ward is covered by its default department plus any departments listed
    in ``ward_dept_coverage``.
    """

    __tablename__ = "wards"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    location: Mapped[str | None] = mapped_column(String(120), nullable=True)
    bed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    default_department_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    coverages: Mapped[list[WardDeptCoverage]] = relationship(
        back_populates="ward",
        cascade="all, delete-orphan",
    )


class WardDeptCoverage(Base):
    """Additional department covering a ward."""

    __tablename__ = "ward_dept_coverage"

    ward_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("wards.id", ondelete="CASCADE"),
        primary_key=True,
    )
    department_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    ward: Mapped[Ward] = relationship(back_populates="coverages")


class Intervention(Base):
    """A kind of clinical intervention, e.g. "Mobilisation" or "Diet plan"."""

    __tablename__ = "interventions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    specialty_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("specialties.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Patient(Base):
    """Patient, keyed by medical record number."""

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False, comment="MRN")
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def mrn(self) -> str:
        return f"MRN{self.id:05d}"


class User(Base):
    """Staff member."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", create_constraint=True),
        nullable=False,
    )
    department_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
