"""Shared fixtures: a controllable clock, stores, a workflow engine and an API client."""

from __future__ import annotations

import io
import os

# Point the app at an in-memory database before anything imports its settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

import random
from datetime import datetime, timedelta
from typing import Any, Dict, Iterator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from app import models  # noqa: F401
from app.core.database import Base, make_engine
from app.crud.store import InMemoryRecordStore, SqlRecordStore
from app.schemas.parent_registration import ParentRegistration
from app.services.workflow import WorkflowEngine
from app.utils.timezone import today_utc, utcnow


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


def notification_fields(**overrides: Any) -> Dict[str, Any]:
    fields = {
        "child_name": "Baby Boy Sharma",
        "gender": "Male",
        "date_of_birth": today_utc() - timedelta(days=3),
        "time_of_birth": "08:45",
        "weight": 3.2,
        "attending_doctor": "Dr. Meera Iyer",
        "hospital_name": "City General Hospital",
        "hospital_reg_no": "CGH2024001",
        "delivery_type": "Normal",
    }
    fields.update(overrides)
    return fields


def registration_fields(**overrides: Any) -> Dict[str, Any]:
    fields = {
        "final_child_name": "Aarav Sharma",
        "child_gender": "Male",
        "child_dob": today_utc() - timedelta(days=3),
        "child_tob": "08:45",
        "place_of_birth": "City General Hospital",
        "father_name": "Rohan Sharma",
        "father_aadhaar": "123456789012",
        "father_phone": "9876543210",
        "mother_name": "Priya Sharma",
        "mother_aadhaar": "2345 6789 0123",
        "mother_phone": "9123456780",
        "email": "rohan@example.com",
        "address": "12 MG Road",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
    }
    fields.update(overrides)
    return fields


def make_registration(**overrides: Any) -> ParentRegistration:
    submitted = datetime(2025, 1, 9, 10, 30)
    data: Dict[str, Any] = {
        **registration_fields(child_dob=datetime(2025, 1, 6).date(), father_aadhaar="123456789012",
                              mother_aadhaar="234567890123"),
        "registration_number": "REG-20250109-042",
        "hospital_id": "HSP-123456789",
        "hospital_data": {"hospital_id": "HSP-123456789", "hospital_name": "City General Hospital"},
        "status": "pending",
        "submission_date": submitted,
        "last_updated": submitted,
    }
    data.update(overrides)
    return ParentRegistration(**data)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(utcnow().replace(microsecond=0))


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def engine(store: InMemoryRecordStore, clock: FakeClock) -> WorkflowEngine:
    return WorkflowEngine(store, clock=clock, rng=random.Random(7))


@pytest.fixture
def notification(engine: WorkflowEngine):
    return engine.register_notification(notification_fields()).unwrap()


@pytest.fixture
def registration(engine: WorkflowEngine, notification, clock: FakeClock):
    created = engine.submit(notification.hospital_id, registration_fields()).unwrap()
    clock.advance(minutes=5)
    return created


@pytest.fixture
def db_session() -> Iterator[Session]:
    db_engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=db_engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine, future=True)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=db_engine)
        db_engine.dispose()


@pytest.fixture
def sql_store(db_session: Session) -> SqlRecordStore:
    return SqlRecordStore(db_session)


@pytest.fixture
def client(db_session: Session):
    from fastapi.testclient import TestClient

    from app.core.database import get_db
    from app.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def excel_bytes(frame, **kwargs) -> bytes:
    """Workbook bytes for a DataFrame, as a hospital would upload them."""
    buffer = io.BytesIO()
    frame.to_excel(buffer, index=False, engine="openpyxl", **kwargs)
    return buffer.getvalue()


def submit_new(engine: WorkflowEngine, **overrides: Any) -> ParentRegistration:
    """Upload a fresh notification and register against it."""
    notification = engine.register_notification(notification_fields()).unwrap()
    return engine.submit(notification.hospital_id, registration_fields(**overrides)).unwrap()
