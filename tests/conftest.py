"""
Shared fixtures: an in-memory MongoDB, a captured SMTP outbox, a TestClient
with the default admin seeded, and that admin's bearer token.
"""

import os
import re

import mongomock
import pytest

os.environ["MONGODB_URI"] = "mongodb://localhost:27017"
os.environ["MONGODB_DB_NAME"] = "codivra_test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_EMAIL"] = "Admin@Example.com"
os.environ["ADMIN_PASSWORD"] = "admin-pass"
os.environ["EMAIL_TO"] = "staff@example.com"
os.environ.pop("CORS_ORIGIN", None)

from fastapi.testclient import TestClient  # noqa: E402

from api.main import app  # noqa: E402
from dbase import driver  # noqa: E402
from email_service import smtp_service  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass"


@pytest.fixture(autouse=True)
def mongo(monkeypatch):
    driver.reset_clients()
    monkeypatch.setattr(driver, "MongoClient", mongomock.MongoClient)
    yield driver.DbaseDriver()
    driver.reset_clients()


@pytest.fixture(autouse=True)
def no_smtp(monkeypatch):
    for name in ("SMTP_USER", "SMTP_PASS", "SMTP_HOST", "SMTP_PORT", "SMTP_SECURE", "GROQ_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def outbox(monkeypatch):
    """Configure SMTP and capture every message instead of delivering it."""
    monkeypatch.setenv("SMTP_USER", "mailer@example.com")
    monkeypatch.setenv("SMTP_PASS", "mailer-pass")
    sent = []

    def fake_deliver(email_message, recipient):
        sent.append({"to": recipient, "subject": email_message["Subject"], "message": email_message})

    monkeypatch.setattr(smtp_service, "_deliver", fake_deliver)
    return sent


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_token(client):
    response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


def plain_text(sent_item: dict) -> str:
    plain_part = sent_item["message"].get_payload()[0]
    return plain_part.get_payload(decode=True).decode("utf-8")


def extract_otp(sent_item: dict) -> str:
    match = re.search(r"\b(\d{6})\b", plain_text(sent_item))
    assert match, "no code in OTP email"
    return match.group(1)
