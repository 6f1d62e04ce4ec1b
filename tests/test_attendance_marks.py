import pytest
from fastapi.testclient import TestClient

from backend.leaddesk.core.security import get_password_hash
from backend.leaddesk.db.base import Base
from backend.leaddesk.db.session import SessionLocal, engine
from backend.leaddesk.main import app
from backend.leaddesk.models.attendance import Attendance
from backend.leaddesk.models.lead import Lead
from backend.leaddesk.models.mark import Mark
from backend.leaddesk.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def create_user(email: str, role: str) -> int:
    db = SessionLocal()
    try:
        user = User(email=email, hashed_password=get_password_hash("secret123"), role=role)
        db.add(user)
        db.commit()
        return user.id
    finally:
        db.close()


def create_lead(name: str) -> int:
    db = SessionLocal()
    try:
        lead = Lead(name=name, status="ready_for_class")
        db.add(lead)
        db.commit()
        return lead.id
    finally:
        db.close()


@pytest.fixture
def roster():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    token = client.post("/api/auth/login", json={"email": "org@example.com", "password": "secret123"}).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    class_id = client.post("/api/classes", json={"name": "Batch", "subject": "SQL"}, headers=headers).json()["id"]
    lead_ids = [create_lead("Asha"), create_lead("Ben")]
    client.post(f"/api/classes/{class_id}/students", json={"lead_ids": lead_ids}, headers=headers)
    return client, headers, class_id, lead_ids


def test_attendance_upsert_keeps_one_row_per_day(roster):
    client, headers, class_id, (asha, _) = roster
    url = f"/api/classes/{class_id}/attendance"

    first = client.post(url, json={"lead_id": asha, "date": "2024-04-01", "status": "Absent"}, headers=headers)
    second = client.post(url, json={"lead_id": asha, "date": "2024-04-01", "status": "Present"}, headers=headers)
    assert first.status_code == second.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert second.json()["status"] == "Present"

    db = SessionLocal()
    try:
        assert db.query(Attendance).count() == 1
    finally:
        db.close()


def test_bulk_attendance_and_date_filter(roster):
    client, headers, class_id, (asha, ben) = roster
    records = [
        {"lead_id": asha, "date": "2024-04-01", "status": "Present"},
        {"lead_id": ben, "date": "2024-04-01", "status": "Absent"},
        {"lead_id": asha, "date": "2024-04-02", "status": "Present"},
        {"lead_id": asha, "date": "2024-04-02", "status": "Absent"},
    ]
    response = client.post(f"/api/classes/{class_id}/attendance/bulk", json={"records": records}, headers=headers)
    assert response.status_code == 200

    day_two = client.get(f"/api/classes/{class_id}/attendance", params={"date": "2024-04-02"}, headers=headers).json()
    assert len(day_two) == 1
    assert day_two[0]["status"] == "Absent"
    assert len(client.get(f"/api/classes/{class_id}/attendance", headers=headers).json()) == 3


def test_attendance_rejects_unknown_status_and_unenrolled_lead(roster):
    client, headers, class_id, (asha, _) = roster
    url = f"/api/classes/{class_id}/attendance"
    bad_status = client.post(url, json={"lead_id": asha, "date": "2024-04-01", "status": "Late"}, headers=headers)
    assert bad_status.status_code == 400

    outsider = create_lead("Outsider")
    not_enrolled = client.post(url, json={"lead_id": outsider, "date": "2024-04-01", "status": "Present"}, headers=headers)
    assert not_enrolled.status_code == 404


def test_marks_total_is_derived(roster):
    client, headers, class_id, (asha, _) = roster
    url = f"/api/classes/{class_id}/marks"
    payload = {"lead_id": asha, "assessment1": 8, "assessment2": 7, "task": 9, "project": 10, "final_validation": 6}

    response = client.post(url, json=payload, headers=headers)
    assert response.status_code == 200
    assert response.json()["total"] == 40

    updated = client.post(url, json={**payload, "project": 4}, headers=headers)
    assert updated.json()["id"] == response.json()["id"]
    assert updated.json()["total"] == 34

    db = SessionLocal()
    try:
        assert db.query(Mark).count() == 1
    finally:
        db.close()


def test_marks_out_of_range_rejected(roster):
    client, headers, class_id, (asha, _) = roster
    url = f"/api/classes/{class_id}/marks"
    assert client.post(url, json={"lead_id": asha, "task": 11}, headers=headers).status_code == 400
    assert client.post(url, json={"lead_id": asha, "project": -1}, headers=headers).status_code == 400


def test_bulk_marks(roster):
    client, headers, class_id, (asha, ben) = roster
    records = [
        {"lead_id": asha, "assessment1": 5},
        {"lead_id": ben, "assessment1": 6, "final_validation": 10},
    ]
    response = client.post(f"/api/classes/{class_id}/marks/bulk", json={"records": records}, headers=headers)
    assert response.status_code == 200
    assert sorted(mark["total"] for mark in response.json()) == [5, 16]

    listed = client.get(f"/api/classes/{class_id}/marks", headers=headers).json()
    assert [mark["lead_id"] for mark in listed] == sorted([asha, ben])


def test_results_are_recorded_by_instructor_or_mentor_only(roster):
    client, headers, class_id, (asha, _) = roster
    create_user("hr@example.com", "hr")
    create_user("mentor@example.com", "team_lead")

    def login(email: str) -> dict:
        token = client.post("/api/auth/login", json={"email": email, "password": "secret123"}).json()["access_token"]
        return {"Authorization": f"Bearer {token}"}

    hr_headers = login("hr@example.com")
    mentor_headers = login("mentor@example.com")
    mark = {"lead_id": asha, "task": 5}
    attendance = {"lead_id": asha, "date": "2024-04-02", "status": "Present"}

    assert client.post(f"/api/classes/{class_id}/marks", json=mark, headers=hr_headers).status_code == 403
    assert client.post(f"/api/classes/{class_id}/attendance", json=attendance, headers=hr_headers).status_code == 403
    assert client.post(f"/api/classes/{class_id}/marks", json=mark, headers=mentor_headers).status_code == 403

    client.put(f"/api/classes/{class_id}", json={"mentor_email": "mentor@example.com"}, headers=headers)
    assert client.post(f"/api/classes/{class_id}/marks", json=mark, headers=mentor_headers).status_code == 200
    assert client.post(f"/api/classes/{class_id}/attendance", json=attendance, headers=mentor_headers).status_code == 200
    assert client.get(f"/api/classes/{class_id}/marks", headers=hr_headers).status_code == 200
