import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app

SMTP_ENV_NAMES = [
    f"{prefix}SMTP_{name}"
    for prefix in ("", "JAVA_")
    for name in ("HOST", "PORT", "SECURE", "USER", "PASS", "FROM")
]

VALID_BOOKING = {
    "customerName": "Alex Doe",
    "customerEmail": "alex@example.com",
    "serviceType": "Oil Change",
    "appointmentDate": "2026-03-01T10:00:00Z",
    "notes": "Please check tire pressure",
}


class StubMailer:
    """Always succeeds and remembers what it was asked to send."""

    def __init__(self, message_id: str = "msg-123"):
        self.message_id = message_id
        self.sent = []

    async def send_booking_confirmation(self, booking):
        self.sent.append(booking)
        return self.message_id


class FailingMailer:
    """Always raises the given exception."""

    def __init__(self, exc: Exception):
        self.exc = exc
        self.calls = 0

    async def send_booking_confirmation(self, booking):
        self.calls += 1
        raise self.exc


@pytest.fixture
def clean_smtp_env(monkeypatch):
    for name in SMTP_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    for name in ("HOST", "PORT", "CORS_ORIGIN"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings():
    return Settings(
        SMTP_HOST="smtp.example.com",
        SMTP_PORT=587,
        SMTP_USER="garage",
        SMTP_PASS="secret",
        SMTP_FROM="Garage <bookings@garage.example.com>",
        CORS_ORIGIN="*",
    )


@pytest.fixture
def mailer():
    return StubMailer()


@pytest.fixture
def client(settings, mailer):
    return TestClient(create_app(settings=settings, mailer=mailer))
