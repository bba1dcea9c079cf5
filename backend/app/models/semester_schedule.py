from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base, utcnow


class SemesterScheduleStatus(str, Enum):
    draft = "DRAFT"
    published = "PUBLISHED"
    archived = "ARCHIVED"


class SemesterSchedule(Base):
    __tablename__ = "semester_schedules"
    __table_args__ = (
        UniqueConstraint("term_id", "class_id", "version", name="uq_semester_schedules_term_class_version"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    term_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[SemesterScheduleStatus] = mapped_column(
        SAEnum(
            SemesterScheduleStatus,
            name="semester_schedule_status",
            values_callable=lambda items: [item.value for item in items],
        ),
        nullable=False,
        default=SemesterScheduleStatus.draft,
    )
    meta: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )


class SemesterScheduleSlot(Base):
    __tablename__ = "semester_schedule_slots"
    __table_args__ = (
        UniqueConstraint(
            "semester_schedule_id",
            "day_of_week",
            "time_slot",
            name="uq_semester_schedule_slots_cell",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    semester_schedule_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("semester_schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    time_slot: Mapped[int] = mapped_column(Integer, nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    room: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
