from __future__ import annotations

from datetime import datetime
from sqlalchemy import String, Integer, Float, DateTime, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class StudentRecord(Base):
    __tablename__ = "student_records"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    roll_no: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    contact: Mapped[str] = mapped_column(String, nullable=True, default="")
    gender: Mapped[str] = mapped_column(String, nullable=False)
    academy: Mapped[str] = mapped_column(String, nullable=True, default="")

    # RFID tag carried by the runner; opaque to the timing logic
    tag_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)

    # distance labels, e.g. "1600m" run on a "400m" ground
    race: Mapped[str] = mapped_column(String, nullable=False)
    running_ground: Mapped[str | None] = mapped_column(String, nullable=True)

    # SRPF | Police | None for ordinary students
    student_role: Mapped[str | None] = mapped_column(String, nullable=True)

    created_by: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        Index("ix_student_records_race", "race"),
        Index("ix_student_records_created_by", "created_by"),
    )


class TagLog(Base):
    """Raw reader log. Append-only; ``id`` is the arrival order."""

    __tablename__ = "tag_logs"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tag_id: Mapped[str] = mapped_column(String, nullable=False)
    # naive local time as written by the readers
    scanned_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_tag_logs_tag_time", "tag_id", "scanned_at"),
    )


class MarksCriterion(Base):
    __tablename__ = "marks_criteria"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    gender: Mapped[str] = mapped_column(String, nullable=False)
    # "" for ordinary students
    role: Mapped[str] = mapped_column(String, nullable=False, default="")
    race: Mapped[str] = mapped_column(String, nullable=False)
    min_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    max_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    marks: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("gender", "role", "race", "min_seconds", name="uq_marks_band"),
        Index("ix_marks_lookup", "gender", "role", "race"),
    )
