import os
from datetime import date

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")

from booking.main import app
from booking.api.deps import get_appointment_service
from booking.core.database import Base, SessionLocal, engine, get_db, init_db, redis_client
from booking.core.security import get_password_hash
from booking.models.user import User
from booking.services.appointment_service import AppointmentService

# Every test runs as if today were this date, so fixed dates stay bookable
TODAY = date(2024, 10, 1)


def fixed_today() -> date:
    return TODAY


def override_get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db, today=fixed_today)


app.dependency_overrides[get_appointment_service] = override_get_appointment_service


@pytest.fixture(scope="function")
def test_db():
    init_db()
    redis_client.flushall()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(test_db):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    def _make_user(username: str) -> User:
        user = User(username=username, password_hash=get_password_hash("Password123"))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def service(db):
    return AppointmentService(db, today=fixed_today)
