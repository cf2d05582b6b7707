from tests.conftest import ADMIN_HEADERS


def _contact(client, **overrides):
    payload = {"name": "Robin", "email": "robin@example.com", "message": "Where is my order?"}
    payload.update(overrides)
    return client.post("/api/contact", json=payload)


def test_contact_submission_notifies_support_and_replies(client, sent_emails):
    resp = _contact(client, order_number="PU-1-ABCDEF")

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["subject"] == "No subject"
    assert data["read_status"] is False

    recipients = sorted(m["to"] for m in sent_emails)
    assert recipients == ["robin@example.com", "support@pulse.com"]
    support = next(m for m in sent_emails if m["to"] == "support@pulse.com")
    assert support["reply_to"] == "robin@example.com"
    assert "PU-1-ABCDEF" in support["html"]


def test_contact_validation(client):
    assert _contact(client, name="").status_code == 400
    assert _contact(client, message=None).status_code == 400

    resp = _contact(client, email="robin-at-example")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid email address"


def test_admin_lists_and_marks_submissions(client):
    _contact(client, subject="First")
    second = _contact(client, subject="Second").json()["data"]

    assert client.get("/api/contact").status_code == 403

    listing = client.get("/api/contact", headers=ADMIN_HEADERS).json()
    assert [s["subject"] for s in listing["data"]] == ["Second", "First"]
    assert listing["pagination"] == {"total": 2, "limit": 50, "offset": 0, "has_more": False}

    resp = client.put(f"/api/contact/{second['id']}/read", headers=ADMIN_HEADERS)
    assert resp.json()["data"]["read_status"] is True

    unread = client.get("/api/contact?unread=true", headers=ADMIN_HEADERS).json()
    assert [s["subject"] for s in unread["data"]] == ["First"]

    assert client.put("/api/contact/999/read", headers=ADMIN_HEADERS).status_code == 404


def test_newsletter_subscribe_is_idempotent(client, sent_emails):
    first = client.post("/api/contact/newsletter", json={"email": "fan@example.com"}).json()
    again = client.post("/api/contact/newsletter", json={"email": "FAN@example.com"}).json()

    assert first["data"]["already_subscribed"] is False
    assert again["data"]["already_subscribed"] is True
    assert again["message"] == "Already subscribed to newsletter"
    assert [m["to"] for m in sent_emails] == ["fan@example.com"]


def test_newsletter_rejects_bad_email(client):
    resp = client.post("/api/contact/newsletter", json={"email": "nope"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Valid email address is required"


def test_unsubscribe_and_resubscribe(client):
    client.post("/api/contact/newsletter", json={"email": "fan@example.com"})

    resp = client.delete("/api/contact/newsletter/fan@example.com")
    assert resp.status_code == 200

    active = client.get("/api/contact/newsletter/subscribers", headers=ADMIN_HEADERS).json()
    assert active["data"] == []

    everyone = client.get(
        "/api/contact/newsletter/subscribers?active=false", headers=ADMIN_HEADERS
    ).json()["data"]
    assert everyone[0]["unsubscribe_reason"] == "No reason provided"
    assert everyone[0]["active"] is False

    again = client.post("/api/contact/newsletter", json={"email": "fan@example.com"}).json()
    assert again["data"]["already_subscribed"] is False

    active = client.get("/api/contact/newsletter/subscribers", headers=ADMIN_HEADERS).json()
    assert [s["email"] for s in active["data"]] == ["fan@example.com"]


def test_unsubscribe_unknown_email_is_not_found(client):
    assert client.delete("/api/contact/newsletter/ghost@example.com").status_code == 404
