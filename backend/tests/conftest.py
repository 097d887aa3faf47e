# backend/tests/conftest.py
"""
Pytest configuration for the lesson booking backend.

Every test gets a fresh in-memory SQLite database built from the ORM
metadata (including the reservation overlap triggers). Route tests use
FastAPI's TestClient with ``get_db`` overridden to the test session.
"""

import os

# Set test configuration BEFORE any lessonbook imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt-signing-only-000")

from datetime import date, datetime, timedelta
from typing import Callable, Dict, Optional

from fastapi.testclient import TestClient
import pytest
import pytz
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lessonbook.api.dependencies import get_db
from lessonbook.auth import create_access_token, get_password_hash
from lessonbook.core.enums import LedgerReason, ReservationStatus, RoleName
from lessonbook.database import Base
from lessonbook.domain.time_of_day import TimeOfDay
from lessonbook.main import app
from lessonbook.models import (
    Branch,
    Coach,
    CoachAvailabilityRule,
    CoachTimeOff,
    Lesson,
    Membership,
    MembershipLedgerEntry,
    Reservation,
    User,
)

SEOUL = pytz.timezone("Asia/Seoul")

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)


def seoul(day: date, hour: int, minute: int = 0) -> datetime:
    """Aware instant for a wall-clock time in the reference timezone."""
    return SEOUL.localize(datetime(day.year, day.month, day.day, hour, minute))


@pytest.fixture(scope="session")
def test_password() -> str:
    return "TestPassword123!"


@pytest.fixture(scope="session")
def password_hash(test_password: str) -> str:
    """bcrypt is slow; hash once per session."""
    return get_password_hash(test_password)


@pytest.fixture(scope="function")
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Session:
    """A fresh session per test."""
    TestSessionLocal = sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = TestSessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client(db: Session):
    """Create a test client bound to the test database."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
    test_client.close()


# Model factories


@pytest.fixture
def make_user(db: Session, password_hash: str) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(
        email: Optional[str] = None,
        name: str = "Test Member",
        role: RoleName = RoleName.USER,
        is_active: bool = True,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"member{counter['n']}@example.com",
            hashed_password=password_hash,
            name=name,
            role=role.value,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def member(make_user) -> User:
    return make_user(email="member@example.com", name="Kim Member")


@pytest.fixture
def admin(make_user) -> User:
    return make_user(email="admin@example.com", name="Park Admin", role=RoleName.ADMIN)


@pytest.fixture
def branch(db: Session) -> Branch:
    branch = Branch(name="Gangnam", address="Seoul Gangnam-gu")
    db.add(branch)
    db.commit()
    return branch


@pytest.fixture
def coach(db: Session, branch: Branch) -> Coach:
    coach = Coach(name="Lee Coach", branch_id=branch.id)
    db.add(coach)
    db.commit()
    return coach


@pytest.fixture
def lesson(db: Session, coach: Coach, branch: Branch) -> Lesson:
    lesson = Lesson(name="Private Tennis", category="tennis", coach_id=coach.id, branch_id=branch.id)
    db.add(lesson)
    db.commit()
    return lesson


@pytest.fixture
def monday_rule(db: Session, coach: Coach) -> CoachAvailabilityRule:
    """Monday 09:00-18:00."""
    rule = CoachAvailabilityRule(
        coach_id=coach.id, weekday=1, start_time=TimeOfDay.of(9), end_time=TimeOfDay.of(18)
    )
    db.add(rule)
    db.commit()
    return rule


@pytest.fixture
def make_membership(db: Session) -> Callable[..., Membership]:
    def _make(
        user: User,
        coach: Coach,
        minutes: int = 600,
        expires_at: Optional[datetime] = None,
        is_active: bool = True,
        with_ledger: bool = True,
    ) -> Membership:
        membership = Membership(
            user_id=user.id,
            coach_id=coach.id,
            remaining_minutes=minutes,
            expires_at=expires_at or seoul(date(2030, 12, 31), 23, 59),
            is_active=is_active,
        )
        db.add(membership)
        db.flush()
        if with_ledger:
            db.add(
                MembershipLedgerEntry(
                    membership_id=membership.id,
                    delta_minutes=minutes,
                    reason=LedgerReason.ALLOCATE.value,
                )
            )
        db.commit()
        return membership

    return _make


@pytest.fixture
def membership(make_membership, member: User, coach: Coach) -> Membership:
    return make_membership(member, coach, minutes=600)


@pytest.fixture
def make_reservation(db: Session) -> Callable[..., Reservation]:
    def _make(
        user: User,
        lesson: Lesson,
        start_at: datetime,
        end_at: datetime,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
    ) -> Reservation:
        reservation = Reservation(
            lesson_id=lesson.id,
            user_id=user.id,
            coach_id=lesson.coach_id,
            branch_id=lesson.branch_id,
            start_at=start_at,
            end_at=end_at,
            status=status.value,
        )
        db.add(reservation)
        db.commit()
        return reservation

    return _make


@pytest.fixture
def make_time_off(db: Session) -> Callable[..., CoachTimeOff]:
    def _make(coach: Coach, start_at: datetime, end_at: datetime) -> CoachTimeOff:
        time_off = CoachTimeOff(coach_id=coach.id, start_at=start_at, end_at=end_at, reason="leave")
        db.add(time_off)
        db.commit()
        return time_off

    return _make


# Auth helpers


def auth_headers_for(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": user.id}, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def member_headers(member: User) -> Dict[str, str]:
    return auth_headers_for(member)


@pytest.fixture
def admin_headers(admin: User) -> Dict[str, str]:
    return auth_headers_for(admin)


@pytest.fixture
def headers_for() -> Callable[[User], Dict[str, str]]:
    return auth_headers_for
