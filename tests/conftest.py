from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.base import Base
from app.db.session import get_db
from app.main import app

API = settings.API_V1_STR

# Far enough ahead that "now" never interferes with slot cut-offs
FUTURE_MONDAY = date(2031, 3, 3)
WEEKDAY_MORNINGS = {
    "Lunedì": [{"start": "09:00", "end": "12:00"}],
    "Venerdì": [{"start": "14:00", "end": "18:00"}],
}


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def client(db_session):
    def override_get_db():
        db = db_session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    # Not entered as a context manager: the lifespan would bootstrap PostgreSQL
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def availability(client):
    response = client.post(
        f"{API}/admin/availabilities/",
        json={"title": "Orario di Lavoro", "rules": WEEKDAY_MORNINGS},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture()
def event(client, availability):
    response = client.post(
        f"{API}/admin/events/",
        json={
            "title": "Consulenza Test",
            "duration_minutes": 60,
            "event_type": "always",
            "availability_id": availability["id"],
            "location": "Google Meet",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def contact(**overrides):
    payload = {
        "user_name": "Mario",
        "user_surname": "Rossi",
        "user_phone": "+393339999999",
        "user_email": "mario.rossi@example.com",
    }
    payload.update(overrides)
    return payload


def day_after(day: date, days: int) -> date:
    return day + timedelta(days=days)
