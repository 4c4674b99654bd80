"""
Shared fixtures: an in-memory database and an API client bound to it.
"""

from datetime import date, datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from racelog import models
from racelog.auth import CurrentUser, issue_token
from racelog.db import Base, get_session
from racelog.main import app


RACE_DAY = date(2026, 3, 14)


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def client(session):
    def _override():
        yield session

    app.dependency_overrides[get_session] = _override
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def superadmin():
    return CurrentUser(email="root@academy.test", role="superadmin")


@pytest.fixture
def admin():
    return CurrentUser(email="coach@academy.test", role="admin")


def auth_header(user: CurrentUser) -> dict:
    return {"Authorization": f"Bearer {issue_token(email=user.email, role=user.role)}"}


def add_student(session, *, roll_no, tag_id, race="1600m", running_ground="400m",
                gender="Male", role=None, created_by="coach@academy.test", name=None):
    s = models.StudentRecord(
        roll_no=roll_no,
        name=name or f"Runner {roll_no}",
        gender=gender,
        race=race,
        running_ground=running_ground,
        student_role=role,
        tag_id=tag_id,
        created_by=created_by,
    )
    session.add(s)
    session.commit()
    return s


def add_scans(session, tag_id, offsets_s, day=RACE_DAY, start=time(7, 0)):
    """Log one scan per offset (seconds after ``start`` on ``day``)."""
    base = datetime.combine(day, start)
    for off in offsets_s:
        session.add(models.TagLog(tag_id=tag_id, scanned_at=base + timedelta(seconds=off)))
    session.commit()
