from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from backend.leaddesk.core.security import get_password_hash
from backend.leaddesk.db.base import Base
from backend.leaddesk.db.session import SessionLocal, engine
from backend.leaddesk.main import app
from backend.leaddesk.models.lead import Lead
from backend.leaddesk.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def create_user(email: str, role: str, full_name: str | None = None) -> int:
    db = SessionLocal()
    try:
        user = User(email=email, full_name=full_name, hashed_password=get_password_hash("secret123"), role=role)
        db.add(user)
        db.commit()
        return user.id
    finally:
        db.close()


def auth_headers(client: TestClient, email: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_metrics_summarise_leads_and_credit_hr_completions():
    client = TestClient(app)
    create_user("boss@example.com", "manager")
    hr_id = create_user("hr@example.com", "hr", full_name="Hema R")
    create_user("acc@example.com", "accounts")
    hr_headers = auth_headers(client, "hr@example.com")

    done_id = client.post("/api/leads", json={"name": "Done", "registration_amount": "500"}, headers=hr_headers).json()["id"]
    client.post("/api/leads", json={"name": "Open", "partial_amount": "250.50"}, headers=hr_headers)
    client.put(f"/api/leads/{done_id}", json={"status": "completed"}, headers=hr_headers)
    db = SessionLocal()
    try:
        db.add(Lead(name="Ready", status="ready_for_class"))
        db.commit()
    finally:
        db.close()

    response = client.get("/api/metrics", headers=auth_headers(client, "boss@example.com"))
    assert response.status_code == 200
    metrics = response.json()
    assert metrics["total_leads"] == 3
    assert metrics["completed_leads"] == 1
    assert Decimal(str(metrics["revenue"])) == Decimal("750.50")
    assert metrics["status_distribution"] == {"pending": 1, "new": 1, "ready_for_class": 1}
    assert metrics["hr_performance"] == [
        {"user_id": hr_id, "name": "Hema R", "active_leads": 1, "completed_leads": 1}
    ]


def test_metrics_access():
    client = TestClient(app)
    create_user("hr@example.com", "hr")
    create_user("tl@example.com", "team_lead")
    assert client.get("/api/metrics", headers=auth_headers(client, "hr@example.com")).status_code == 403
    assert client.get("/api/metrics", headers=auth_headers(client, "tl@example.com")).status_code == 200


def test_hr_is_credited_for_moving_a_lead_to_ready_for_class():
    client = TestClient(app)
    create_user("boss@example.com", "manager")
    hr_id = create_user("hr@example.com", "hr", full_name="Hema R")
    hr_headers = auth_headers(client, "hr@example.com")

    lead_id = client.post("/api/leads", json={"name": "Ready"}, headers=hr_headers).json()["id"]
    moved = client.put(f"/api/leads/{lead_id}", json={"status": "ready_for_class"}, headers=hr_headers)
    assert moved.status_code == 200

    metrics = client.get("/api/metrics", headers=auth_headers(client, "boss@example.com")).json()
    assert metrics["hr_performance"] == [
        {"user_id": hr_id, "name": "Hema R", "active_leads": 0, "completed_leads": 1}
    ]
