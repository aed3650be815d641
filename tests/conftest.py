import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
SERVICE_ROOT = os.path.dirname(CURRENT_DIR)
if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

# Settings are read once at import time, so the test environment goes in first
os.environ["DATABASE_URL"] = "sqlite:///./test_french_notes.db"
os.environ["CACHE_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"
os.environ.pop("SMTP_USER", None)
os.environ.pop("SMTP_PASSWORD", None)

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from french_notes.application.errors import UpstreamFailure
from french_notes.config import Settings, get_settings
from french_notes.infrastructure.db import get_db
from french_notes.infrastructure.mailer import get_mailer
from french_notes.infrastructure.media import get_media_store
from french_notes.infrastructure.models import Base
from french_notes.main import app

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeMediaStore:
    """In-memory media host that records uploads and deletes."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_upload = False
        self.fail_delete = False
        self._counter = 0

    def upload(self, upload, folder):
        if self.fail_upload:
            raise UpstreamFailure("File upload failed.")
        self._counter += 1
        ext = os.path.splitext(upload.filename or "")[1]
        url = f"https://media.test/{folder}/{self._counter}{ext}"
        self.objects[url] = upload.content
        return url

    def delete(self, url):
        if self.fail_delete:
            raise UpstreamFailure(f"Failed to delete media object {url}")
        self.objects.pop(url, None)
        self.deleted.append(url)


class FakeMailer:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def send_password_reset(self, to, name, username, reset_link, ttl_minutes):
        if self.fail:
            raise UpstreamFailure("Failed to send email")
        self.sent.append({"to": to, "name": name, "username": username,
                          "reset_link": reset_link, "ttl_minutes": ttl_minutes})


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def media():
    return FakeMediaStore()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(db_session, media, mailer):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_store] = lambda: media
    app.dependency_overrides[get_mailer] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def manual_mode():
    """Switch the app to manual device approval for one test."""
    manual = Settings(LOGIN_APPROVAL_MODE="manual")
    app.dependency_overrides[get_settings] = lambda: manual
    yield manual
    app.dependency_overrides.pop(get_settings, None)


def register_student(client, username="alice", password="secret123", email=None, name=None):
    response = client.post("/api/auth/student-register", json={
        "username": username,
        "password": password,
        "name": name or username.title(),
        "email": email or f"{username}@example.com",
    })
    assert response.status_code == 201, response.text
    return response.json()["user"]


def student_login(client, username="alice", password="secret123", device="A"):
    return client.post("/api/auth/student-login", json={
        "username": username,
        "password": password,
        "deviceId": device,
        "deviceInfo": f"browser on {device}",
    })


@pytest.fixture
def admin_headers(client):
    client.post("/api/auth/admin-register", json={"username": "root", "password": "rootpass"})
    response = client.post("/api/auth/admin-login", json={"username": "root", "password": "rootpass"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def student_headers(client):
    register_student(client, username="bob")
    response = student_login(client, username="bob", device="laptop")
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}
