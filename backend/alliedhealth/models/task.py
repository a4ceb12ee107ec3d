"""Task models for allied-health clinical work items.

A Task is a unit of clinical work for one patient. It owns one
TaskIntervention per intervention it decomposes into; each of those carries
its own outcome lifecycle. The task's status is never stored: it is derived
from the interventions on every read (see ``services.task_status``).
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, time

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from alliedhealth.database import Base
from alliedhealth.utils.dates import utcnow


class TaskType(str, enum.Enum):
    """Types of allied-health tasks."""

    ASSESSMENT = "assessment"
    THERAPY = "therapy"
    REVIEW = "review"
    EDUCATION = "education"
    DISCHARGE_PLANNING = "discharge_planning"
    FOLLOW_UP = "follow_up"
    CUSTOM = "custom"


class Priority(str, enum.Enum):
    """Ordered priority shared by tasks and referrals."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3}


class InterventionOutcome(str, enum.Enum):
    """Outcome lifecycle of a single task intervention.

    ASSIGNED and IN_PROGRESS are working states; the rest are terminal.
    """

    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    SEEN = "seen"  # patient seen
    ATTEMPTED = "attempted"  # attempt made, no intervention took place
    DECLINED = "declined"  # patient declined intervention
    UNSEEN = "unseen"  # patient not seen
    HANDOVER = "handover"  # see note / handover regarding outcome


class TaskStatus(str, enum.Enum):
    """Derived task status. Never persisted."""

    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class Task(Base):
    """Clinical task assigned to allied-health staff."""

    __tablename__ = "tasks"

    # === Identity ===
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # === Classification ===
    type: Mapped[TaskType] = mapped_column(
        Enum(TaskType, name="task_type", create_constraint=True),
        nullable=False,
        index=True,
    )
    custom_type: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="Free-text type when type is custom",
    )
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority, name="task_priority", create_constraint=True),
        nullable=False,
        default=Priority.MEDIUM,
    )

    # === Content ===
    title: Mapped[str] = mapped_column(String(140), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    diagnosis: Mapped[str | None] = mapped_column(Text, nullable=True)
    goals: Mapped[str | None] = mapped_column(Text, nullable=True)

    # === References ===
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id"),
        nullable=False,
        index=True,
    )
    department_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("departments.id"),
        nullable=False,
        index=True,
    )
    referral_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("referrals.id", ondelete="SET NULL"),
        nullable=True,
        comment="Referral this task was raised from",
    )

    # === Timing ===
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    # === Auditing ===
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    modified_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    modified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    # === Relationships ===
    interventions: Mapped[list[TaskIntervention]] = relationship(
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskIntervention.start_date",
    )

    __table_args__ = (
        Index("idx_task_patient_hidden", "patient_id", "hidden"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, type={self.type}, title={self.title[:30]}...)>"


class TaskIntervention(Base):
    """One intervention delivered as part of a task, on a ward."""

    __tablename__ = "task_interventions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    intervention_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("interventions.id"),
        nullable=False,
    )
    ward_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("wards.id"),
        nullable=False,
        index=True,
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # === Outcome ===
    outcome_status: Mapped[InterventionOutcome] = mapped_column(
        Enum(InterventionOutcome, name="intervention_outcome", create_constraint=True),
        nullable=False,
        default=InterventionOutcome.ASSIGNED,
        index=True,
    )
    outcome: Mapped[str | None] = mapped_column(Text, nullable=True, comment="Outcome note")
    outcome_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Set only once the outcome is terminal",
    )
    modified_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    modified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    task: Mapped[Task] = relationship(back_populates="interventions")

    __table_args__ = (
        UniqueConstraint("task_id", "intervention_id", name="uq_task_intervention"),
        CheckConstraint("end_date >= start_date", name="ck_task_intervention_dates"),
    )

    def __repr__(self) -> str:
        return f"<TaskIntervention(id={self.id}, task_id={self.task_id}, status={self.outcome_status})>"
