import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base, utcnow


class TeacherPreference(Base):
    __tablename__ = "teacher_preferences"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    teacher_id: Mapped[str] = mapped_column(String(36), unique=True, index=True, nullable=False)
    max_load_per_day: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_load_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # list of {"day_of_week": "MONDAY", "time_range": "1-3"}
    unavailable: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=utcnow)
