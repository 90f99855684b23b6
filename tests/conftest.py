import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import integrations
import main

ADMIN_EMAIL = "admin@example.com"


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["samadhan_test"]
    monkeypatch.setattr(database, "db", mock_db)
    database.ensure_indexes()
    return mock_db


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    sent = []

    def fake_send_email(to, subject, body):
        sent.append({"to": to, "subject": subject, "body": body})
        return True

    monkeypatch.setattr(main, "send_email", fake_send_email)
    return sent


@pytest.fixture
def client(db, monkeypatch, tmp_path):
    monkeypatch.setattr(main, "ADMIN_EMAILS", {ADMIN_EMAIL})
    monkeypatch.setattr(main, "PAYMENT_SIMULATION_SECONDS", 0)
    monkeypatch.setattr(integrations, "UPLOAD_DIR", str(tmp_path))
    return TestClient(main.app)


@pytest.fixture
def make_user(client):
    def _make_user(email, full_name="Test User", password="secret123"):
        res = client.post("/auth/register", json={"full_name": full_name, "email": email, "password": password})
        assert res.status_code == 200, res.text
        return {"Authorization": f"Bearer {res.json()['token']}"}
    return _make_user


@pytest.fixture
def user_headers(make_user):
    return make_user("citizen@example.com", "Asha Citizen")


@pytest.fixture
def admin_headers(make_user):
    return make_user(ADMIN_EMAIL, "City Admin")


@pytest.fixture
def report_payload():
    return {
        "title": "Deep pothole near bus stop",
        "description": "Two-wheelers keep swerving around it",
        "category": "pothole",
        "priority": "high",
        "latitude": 28.61,
        "longitude": 77.21,
        "address": "Janpath, New Delhi",
        "photo_url": "http://localhost:8000/uploads/pothole.jpg",
    }


@pytest.fixture
def report_id(client, user_headers, report_payload):
    res = client.post("/reports", json=report_payload, headers=user_headers)
    assert res.status_code == 201, res.text
    return res.json()["id"]
