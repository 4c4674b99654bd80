from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select, and_, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .auth import CurrentUser
from .classify import COMPLETED, INCOMPLETE, DNS, classify, marks_for
from .race_config import parse_distance, resolve_config
from .scans import ScanEvent, ScanSummary, aggregate_scans, span_ms
from .schemas import StudentCreate, ScanCreate, MarksCriterionCreate
from .settings import settings
from .utils import day_window, format_duration_ms, local_now

logger = logging.getLogger(__name__)

EMPTY_COMPLETION_TIME = "00:00:00.00"

_STATUS_ORDER = {COMPLETED: 0, INCOMPLETE: 1, DNS: 2}


class RetrievalError(RuntimeError):
    pass


def _today() -> date:
    return local_now(settings.RACELOG_TIMEZONE).date()

def _race_label(label: str) -> str:
    return f"{parse_distance(label)}m"

# ---------------------------
# Store access
# ---------------------------

def fetch_scans_for_tag(session: Session, tag_id: str, day_start: datetime, day_end: datetime) -> list[ScanEvent]:
    try:
        rows = session.execute(
            select(models.TagLog)
            .where(
                and_(
                    models.TagLog.tag_id == tag_id,
                    models.TagLog.scanned_at >= day_start,
                    models.TagLog.scanned_at < day_end,
                )
            )
            .order_by(models.TagLog.scanned_at.asc(), models.TagLog.id.asc())
        ).scalars().all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to fetch scans for tag %s", tag_id)
        raise RetrievalError("Database error during fetch") from exc
    return [ScanEvent(tag_id=r.tag_id, timestamp=r.scanned_at) for r in rows]

def fetch_runners(session: Session, race: Optional[str] = None, created_by: Optional[str] = None) -> list[models.StudentRecord]:
    q = select(models.StudentRecord)
    if race is not None:
        q = q.where(models.StudentRecord.race == race)
    if created_by is not None:
        q = q.where(models.StudentRecord.created_by == created_by)
    q = q.order_by(models.StudentRecord.created_at.desc(), models.StudentRecord.id.desc())
    try:
        return list(session.execute(q).scalars().all())
    except SQLAlchemyError as exc:
        logger.exception("Failed to fetch runners (race=%s, created_by=%s)", race, created_by)
        raise RetrievalError("Database error during fetch") from exc

def fetch_marks_criteria(session: Session, gender: str, role: Optional[str], race: str) -> list[models.MarksCriterion]:
    try:
        return list(
            session.execute(
                select(models.MarksCriterion)
                .where(
                    and_(
                        models.MarksCriterion.gender == gender,
                        models.MarksCriterion.role == (role or ""),
                        models.MarksCriterion.race == race,
                    )
                )
                .order_by(models.MarksCriterion.min_seconds.asc())
            ).scalars().all()
        )
    except SQLAlchemyError as exc:
        logger.exception("Failed to fetch marks criteria for %s/%s/%s", gender, role, race)
        raise RetrievalError("Database error during fetch") from exc

def aggregate(session: Session, tag_id: str, required_scans: int, day: Optional[date] = None) -> ScanSummary:
    day_start, day_end = day_window(day or _today())
    events = fetch_scans_for_tag(session, tag_id, day_start, day_end)
    summary = aggregate_scans(events, required_scans)
    logger.debug("tag %s: %d raw scans, %d kept", tag_id, len(events), summary.scan_count)
    return summary

# ---------------------------
# Results
# ---------------------------

@dataclass
class ResultRow:
    id: int
    roll_no: str
    name: str
    age: Optional[int]
    weight: Optional[float]
    contact: str
    gender: str
    race: str
    running_ground: Optional[str]
    academy: str
    student_role: Optional[str]
    created_by: str
    created_at: Optional[datetime]
    tag_id: str

    status: str
    total_rounds: int
    total_ms: Optional[int]
    total_seconds: Optional[int]
    completion_time: Optional[str]
    round_info: dict[str, Optional[str]] = field(default_factory=dict)
    marks: int = 0

def _result_row(student: models.StudentRecord, summary: ScanSummary, marks: int, status: str) -> ResultRow:
    round_info = {f"round{k}": format_duration_ms(ms) for k, ms in enumerate(summary.rounds, start=1)}
    total_seconds = summary.total_ms // 1000 if summary.total_ms is not None else None
    return ResultRow(
        id=student.id,
        roll_no=student.roll_no,
        name=student.name,
        age=student.age,
        weight=student.weight,
        contact=student.contact or "",
        gender=student.gender,
        race=student.race,
        running_ground=student.running_ground,
        academy=student.academy or "",
        student_role=student.student_role,
        created_by=student.created_by,
        created_at=student.created_at,
        tag_id=student.tag_id,
        status=status,
        total_rounds=summary.rounds_done,
        total_ms=summary.total_ms,
        total_seconds=total_seconds,
        completion_time=format_duration_ms(summary.total_ms),
        round_info=round_info,
        marks=marks,
    )

def compute_race_results(session: Session, race: str, caller: CurrentUser, day: Optional[date] = None) -> list[ResultRow]:
    race = _race_label(race)
    day = day or _today()
    runners = fetch_runners(session, race=race, created_by=caller.created_by_filter)

    criteria_cache: dict[tuple[str, str], list[models.MarksCriterion]] = {}
    rows: list[ResultRow] = []
    for student in runners:
        config = resolve_config(student.race, student.running_ground)
        summary = aggregate(session, student.tag_id, config.required_scans, day=day)
        result = classify(summary, config)

        marks = 0
        if result.status == COMPLETED:
            key = (student.gender, student.student_role or "")
            if key not in criteria_cache:
                criteria_cache[key] = fetch_marks_criteria(session, student.gender, student.student_role, race)
            marks = marks_for(result, criteria_cache[key])

        rows.append(_result_row(student, summary, marks, result.status))

    rows.sort(key=lambda r: (_STATUS_ORDER[r.status], r.total_ms is None, r.total_ms or 0, r.roll_no, r.id))
    logger.info("Computed %d results for %s (caller=%s)", len(rows), race, caller.email)
    return rows

@dataclass
class StudentListing:
    student: models.StudentRecord
    completion_time: str

def list_students_with_completion(session: Session, caller: CurrentUser, day: Optional[date] = None) -> list[StudentListing]:
    day_start, day_end = day_window(day or _today())
    out: list[StudentListing] = []
    for student in fetch_runners(session, created_by=caller.created_by_filter):
        span = span_ms(fetch_scans_for_tag(session, student.tag_id, day_start, day_end))
        out.append(StudentListing(student=student, completion_time=format_duration_ms(span) or EMPTY_COMPLETION_TIME))
    return out

# ---------------------------
# Record keeping
# ---------------------------

def record_scan(session: Session, payload: ScanCreate) -> models.TagLog:
    tag_id = payload.tag_id.strip()
    if not tag_id:
        raise ValueError("tag_id is required")
    scanned_at = payload.scanned_at or local_now(settings.RACELOG_TIMEZONE)
    if scanned_at.tzinfo is not None:
        scanned_at = scanned_at.astimezone(ZoneInfo(settings.RACELOG_TIMEZONE)).replace(tzinfo=None)
    ev = models.TagLog(tag_id=tag_id, scanned_at=scanned_at)
    session.add(ev)
    session.commit()
    logger.info("Scan recorded for tag %s at %s", tag_id, ev.scanned_at.isoformat())
    return ev

def create_student(session: Session, payload: StudentCreate, created_by: str) -> models.StudentRecord:
    race = _race_label(payload.race)
    ground = _race_label(payload.running_ground) if payload.running_ground else None
    # reject pairs the result computation could not handle
    resolve_config(race, ground)

    tag_id = payload.tag_id.strip()
    if not tag_id:
        raise ValueError("tag_id is required")
    if session.execute(select(models.StudentRecord).where(models.StudentRecord.tag_id == tag_id)).scalar_one_or_none():
        raise ValueError("Tag already assigned to another student")

    s = models.StudentRecord(
        roll_no=payload.roll_no,
        name=payload.name,
        age=payload.age,
        weight=payload.weight,
        contact=payload.contact,
        gender=payload.gender,
        race=race,
        running_ground=ground,
        academy=payload.academy,
        student_role=payload.student_role or None,
        tag_id=tag_id,
        created_by=created_by,
    )
    session.add(s)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ValueError("Tag already assigned to another student") from exc
    logger.info("Student %s (%s) registered for %s by %s", s.roll_no, tag_id, race, created_by)
    return s

def list_marks_criteria(session: Session, race: Optional[str] = None) -> list[models.MarksCriterion]:
    q = select(models.MarksCriterion).order_by(
        models.MarksCriterion.race.asc(),
        models.MarksCriterion.gender.asc(),
        models.MarksCriterion.role.asc(),
        models.MarksCriterion.min_seconds.asc(),
    )
    if race:
        q = q.where(models.MarksCriterion.race == _race_label(race))
    try:
        return list(session.execute(q).scalars().all())
    except SQLAlchemyError as exc:
        logger.exception("Failed to list marks criteria (race=%s)", race)
        raise RetrievalError("Database error during fetch") from exc

def create_marks_criterion(session: Session, payload: MarksCriterionCreate) -> models.MarksCriterion:
    if payload.min_seconds > payload.max_seconds:
        raise ValueError("min_seconds must not exceed max_seconds")
    race = _race_label(payload.race)
    role = payload.role or ""
    overlap = session.execute(
        select(models.MarksCriterion).where(
            and_(
                models.MarksCriterion.gender == payload.gender,
                models.MarksCriterion.role == role,
                models.MarksCriterion.race == race,
                models.MarksCriterion.min_seconds <= payload.max_seconds,
                models.MarksCriterion.max_seconds >= payload.min_seconds,
            )
        )
    ).scalars().first()
    if overlap:
        raise ValueError(
            f"Band {payload.min_seconds}-{payload.max_seconds}s overlaps existing band "
            f"{overlap.min_seconds}-{overlap.max_seconds}s"
        )
    c = models.MarksCriterion(
        gender=payload.gender,
        role=role,
        race=race,
        min_seconds=payload.min_seconds,
        max_seconds=payload.max_seconds,
        marks=payload.marks,
    )
    session.add(c)
    session.commit()
    return c

# 1600m table for ordinary students: (min_seconds, max_seconds, marks)
DEFAULT_1600M_BANDS = [
    (0, 309, 20),
    (310, 330, 18),
    (331, 350, 16),
    (351, 370, 14),
    (371, 390, 12),
    (391, 410, 10),
    (411, 430, 8),
    (431, 450, 5),
]

def seed_default_marks_criteria(session: Session) -> int:
    """Install the default 1600m bands when the table is empty."""
    if session.execute(select(func.count()).select_from(models.MarksCriterion)).scalar_one():
        return 0
    added = 0
    for gender in ("Male", "Female"):
        for lo, hi, marks in DEFAULT_1600M_BANDS:
            session.add(models.MarksCriterion(gender=gender, role="", race="1600m", min_seconds=lo, max_seconds=hi, marks=marks))
            added += 1
    session.commit()
    logger.info("Seeded %d default marks bands", added)
    return added
