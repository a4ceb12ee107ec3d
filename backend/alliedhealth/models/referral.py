"""Referral models.

A referral asks a destination department to take on clinical
responsibility for a patient. It is created pending and resolved exactly
once, by a member of the destination department.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Enum, ForeignKey, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from alliedhealth.database import Base
from alliedhealth.models.task import Priority
from alliedhealth.utils.dates import utcnow


class ReferralStatus(str, enum.Enum):
    """Referral lifecycle states."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Referral(Base):
    """Cross-department referral for a patient."""

    __tablename__ = "referrals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # === References ===
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False, index=True)
    origin_department_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("departments.id"),
        nullable=False,
        index=True,
    )
    destination_department_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("departments.id"),
        nullable=False,
        index=True,
    )
    referring_staff_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
    )

    # === Content ===
    referral_date: Mapped[date] = mapped_column(Date, nullable=False)
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority, name="task_priority", create_constraint=True),
        nullable=False,
        default=Priority.MEDIUM,
    )
    status: Mapped[ReferralStatus] = mapped_column(
        Enum(ReferralStatus, name="referral_status", create_constraint=True),
        nullable=False,
        default=ReferralStatus.PENDING,
        index=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    diagnosis: Mapped[str | None] = mapped_column(Text, nullable=True)
    goals: Mapped[str | None] = mapped_column(Text, nullable=True)

    # === Resolution ===
    resolved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # === Auditing ===
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    modified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    interventions: Mapped[list[ReferralIntervention]] = relationship(
        back_populates="referral",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "origin_department_id <> destination_department_id",
            name="ck_referral_departments_differ",
        ),
        Index("idx_referral_destination_status", "destination_department_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Referral(id={self.id}, status={self.status})>"


class ReferralIntervention(Base):
    """Intervention requested by a referral."""

    __tablename__ = "referral_interventions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    referral_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("referrals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    intervention_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("interventions.id"),
        nullable=False,
    )

    referral: Mapped[Referral] = relationship(back_populates="interventions")
