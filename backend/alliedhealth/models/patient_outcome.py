"""Coarse per-patient assessment outcome flags."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from alliedhealth.database import Base
from alliedhealth.utils.dates import utcnow


class PatientOutcome(Base):
    """Outcome of one assessment episode for a patient.

    The four attendance flags are stored as independent booleans; whether
    more than one may be set is a write-time policy
    (``settings.enforce_exclusive_outcome_flags``). ``refer`` is independent
    of the others.
    """

    __tablename__ = "patient_outcomes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    seen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attempt_made: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    declined: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    unseen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    refer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    additional_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    recorded_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"<PatientOutcome(id={self.id}, patient_id={self.patient_id})>"
