import os

# Must be set before inventory_service.database is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("WEBHOOK_URLS", "")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from inventory_service import auth  # noqa: E402
from inventory_service.database import Base, SessionLocal, engine  # noqa: E402
from inventory_service.observers import OperationObserver  # noqa: E402


class RecordingObserver(OperationObserver):
    """Collects every notification as (hook, operation, payload)."""

    def __init__(self):
        self.events = []

    def started(self, operation, details):
        self.events.append(("started", operation, details))

    def succeeded(self, operation, value):
        self.events.append(("succeeded", operation, value))

    def failed(self, operation, error):
        self.events.append(("failed", operation, error))


def make_token(role="admin", user_id=1, email="admin@example.com"):
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=30),
    }
    return jwt.encode(payload, auth.SECRET_KEY, algorithm=auth.ALGORITHM)


@pytest.fixture(autouse=True)
def reset_tables():
    """Fresh schema for every test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def recorder():
    return RecordingObserver()


@pytest.fixture()
def app(recorder):
    from inventory_service.main import app, get_observer

    app.dependency_overrides[get_observer] = lambda: recorder
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def admin_token():
    return make_token()


@pytest.fixture()
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture()
def user_headers():
    return {"Authorization": f"Bearer {make_token(role='user', user_id=2, email='user@example.com')}"}
