import smtplib

import pytest

VALID = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "service": "Web Development",
    "message": "We need a new landing page for our product.",
}


def test_contact_is_emailed_and_confirmed(client, outbox, mongo):
    response = client.post("/api/contact", json={**VALID, "phone": "+91 99999 00000"})

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    recipients = [item["to"] for item in outbox]
    assert recipients == ["staff@example.com", "jane@example.com"]
    assert outbox[0]["subject"] == "New contact request from Jane Doe - Web Development"
    # Contact submissions are never persisted
    assert set(mongo.db.list_collection_names()) <= {"admins"}


def test_contact_without_smtp_still_succeeds(client):
    response = client.post("/api/contact", json=VALID)
    assert response.status_code == 200


def test_contact_rejects_short_message(client, outbox):
    response = client.post("/api/contact", json={**VALID, "message": "Too short"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid input"
    assert body["issues"]["fieldErrors"]["message"] == ["Message must be at least 10 characters"]
    assert outbox == []


@pytest.mark.parametrize("email", ["not-an-email", "jane@", "@example.com", ""])
def test_contact_rejects_invalid_email(client, email):
    response = client.post("/api/contact", json={**VALID, "email": email})

    assert response.status_code == 400
    assert response.json()["issues"]["fieldErrors"]["email"] == ["Please provide a valid email"]


def test_contact_reports_every_bad_field(client):
    response = client.post("/api/contact", json={"name": "J", "service": "x", "message": "hi"})

    field_errors = response.json()["issues"]["fieldErrors"]
    assert set(field_errors) == {"name", "email", "service", "message"}
    assert field_errors["email"] == ["Email is required"]


def test_contact_rejects_malformed_json(client):
    response = client.post("/api/contact", content="{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["issues"]["formErrors"]


def test_contact_mail_failure_is_500(client, outbox, monkeypatch):
    def broken(email_message, recipient):
        raise smtplib.SMTPServerDisconnected("Connection unexpectedly closed")

    monkeypatch.setattr("email_service.smtp_service._deliver", broken)
    response = client.post("/api/contact", json=VALID)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to send email"
    assert "Connection unexpectedly closed" in body["details"]
