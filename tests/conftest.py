import os

import pytest

# Must be set before the application (and its settings) are imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["NRIC_HASH_SECRET"] = "test-nric-secret"

from fastapi.testclient import TestClient

from clinic_queue.core.database import Base, SessionLocal, engine, get_redis, init_db
from clinic_queue.main import app
from clinic_queue.models.clinic_settings import ClinicSettings


class FakeRedis:
    """Dict-backed stand-in for the few Redis commands the rate limiter uses."""

    def __init__(self):
        self.data = {}

    def setex(self, key, time, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, "0")) + 1)
        return int(self.data[key])


@pytest.fixture
def fake_redis():
    fake = FakeRedis()
    app.dependency_overrides[get_redis] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_redis, None)


@pytest.fixture(scope="function")
def test_db():
    # Create tables and the clinic settings row the app requires
    init_db()
    db = SessionLocal()
    db.add(ClinicSettings(slot_duration_min=15, booking_window_days=7, timezone="Asia/Singapore"))
    db.commit()
    db.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(test_db):
    db = SessionLocal()
    yield db
    db.close()


@pytest.fixture
def client(test_db, fake_redis):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
