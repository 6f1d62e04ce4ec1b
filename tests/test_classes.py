from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from backend.leaddesk.core.security import get_password_hash
from backend.leaddesk.db.base import Base
from backend.leaddesk.db.session import SessionLocal, engine
from backend.leaddesk.main import app
from backend.leaddesk.models.class_student import ClassStudent
from backend.leaddesk.models.lead import Lead
from backend.leaddesk.models.training_class import TrainingClass
from backend.leaddesk.models.user import User
from backend.leaddesk.services.class_roster import ensure_student_ids


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


def create_lead(name: str, status: str = "ready_for_class") -> int:
    db = SessionLocal()
    try:
        lead = Lead(name=name, status=status)
        db.add(lead)
        db.commit()
        return lead.id
    finally:
        db.close()


def auth_headers(client: TestClient, email: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def create_class(client: TestClient, headers: dict, name: str = "Batch A", subject: str | None = "Python") -> int:
    response = client.post("/api/classes", json={"name": name, "subject": subject, "mode": "online"}, headers=headers)
    assert response.status_code == 201
    return response.json()["id"]


def test_create_and_list_classes():
    client = TestClient(app)
    organizer_id = create_user("org@example.com", "session_organizer")
    create_user("other@example.com", "session_organizer")
    headers = auth_headers(client, "org@example.com")
    class_id = create_class(client, headers)
    create_class(client, auth_headers(client, "other@example.com"), name="Batch B")

    fetched = client.get(f"/api/classes/{class_id}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["instructor_id"] == organizer_id

    mine = client.get("/api/classes", params={"instructor_id": organizer_id}, headers=headers).json()
    assert [c["id"] for c in mine] == [class_id]
    assert len(client.get("/api/classes", headers=headers).json()) == 2

    renamed = client.put(f"/api/classes/{class_id}", json={"name": "Batch A1"}, headers=headers)
    assert renamed.json()["name"] == "Batch A1"
    assert renamed.json()["subject"] == "Python"
    assert client.get("/api/classes/999", headers=headers).status_code == 404


def test_enrollment_assigns_sequential_student_ids():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    headers = auth_headers(client, "org@example.com")
    class_id = create_class(client, headers)
    first, second = create_lead("First"), create_lead("Second")

    response = client.post(f"/api/classes/{class_id}/students", json={"lead_ids": [first, second, 999]}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"enrolled_count": 2, "skipped_count": 1}

    roster = client.get(f"/api/classes/{class_id}/students", headers=headers).json()
    assert [(s["lead"]["name"], s["student_id"]) for s in roster] == [("First", "Python-01"), ("Second", "Python-02")]

    counts = client.get("/api/classes/with-counts", headers=headers).json()
    assert counts[0]["student_count"] == 2


def test_lead_is_enrolled_in_at_most_one_class():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    headers = auth_headers(client, "org@example.com")
    class_a = create_class(client, headers, name="A")
    class_b = create_class(client, headers, name="B")
    lead_id = create_lead("Solo")

    client.post(f"/api/classes/{class_a}/students", json={"lead_ids": [lead_id]}, headers=headers)
    again = client.post(f"/api/classes/{class_a}/students", json={"lead_ids": [lead_id]}, headers=headers)
    elsewhere = client.post(f"/api/classes/{class_b}/students", json={"lead_ids": [lead_id]}, headers=headers)

    assert again.json() == {"enrolled_count": 0, "skipped_count": 1}
    assert elsewhere.json() == {"enrolled_count": 0, "skipped_count": 1}


def test_student_id_prefix_falls_back_to_class_name():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    headers = auth_headers(client, "org@example.com")
    class_id = create_class(client, headers, name="Evening", subject=None)
    lead_id = create_lead("Late")
    client.post(f"/api/classes/{class_id}/students", json={"lead_ids": [lead_id]}, headers=headers)

    roster = client.get(f"/api/classes/{class_id}/students", headers=headers).json()
    assert roster[0]["student_id"] == "Evening-01"


def test_ensure_student_ids_skips_taken_numbers():
    joined = datetime(2024, 1, 1, 9, 0)
    db = SessionLocal()
    try:
        training_class = TrainingClass(name="Batch", subject="Java")
        leads = [Lead(name=f"L{index}") for index in range(3)]
        db.add_all([training_class, *leads])
        db.flush()
        db.add_all(
            [
                ClassStudent(class_id=training_class.id, lead_id=leads[0].id, student_id="Java-01", joined_at=joined),
                ClassStudent(class_id=training_class.id, lead_id=leads[1].id, joined_at=joined + timedelta(minutes=1)),
                ClassStudent(class_id=training_class.id, lead_id=leads[2].id, student_id="Java-02", joined_at=joined + timedelta(minutes=2)),
            ]
        )
        db.commit()

        assert ensure_student_ids(db, training_class) == 1
        assert ensure_student_ids(db, training_class) == 0
        ids = sorted(entry.student_id for entry in db.query(ClassStudent).all())
    finally:
        db.close()
    assert ids == ["Java-01", "Java-02", "Java-03"]


def test_reading_roster_does_not_assign_ids():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    headers = auth_headers(client, "org@example.com")
    class_id = create_class(client, headers)
    lead_id = create_lead("Manual")
    db = SessionLocal()
    try:
        db.add(ClassStudent(class_id=class_id, lead_id=lead_id))
        db.commit()
    finally:
        db.close()

    roster = client.get(f"/api/classes/{class_id}/students", headers=headers).json()
    assert roster[0]["student_id"] is None

    regenerated = client.post(f"/api/classes/{class_id}/generate-student-ids", headers=headers)
    assert regenerated.json() == {"updated": 1}
    roster = client.get(f"/api/classes/{class_id}/students", headers=headers).json()
    assert roster[0]["student_id"] == "Python-01"


def test_update_mapping_rejects_duplicate_student_id():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    headers = auth_headers(client, "org@example.com")
    class_id = create_class(client, headers)
    first, second = create_lead("First"), create_lead("Second")
    client.post(f"/api/classes/{class_id}/students", json={"lead_ids": [first, second]}, headers=headers)

    clash = client.patch(f"/api/classes/{class_id}/students/{second}", json={"student_id": "Python-01"}, headers=headers)
    assert clash.status_code == 409
    renamed = client.patch(f"/api/classes/{class_id}/students/{second}", json={"student_id": "PY-99"}, headers=headers)
    assert renamed.status_code == 200
    assert renamed.json()["student_id"] == "PY-99"


def test_remove_student_requires_privileged_role():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    create_user("hr@example.com", "hr")
    headers = auth_headers(client, "org@example.com")
    class_id = create_class(client, headers)
    lead_id = create_lead("Leaving")
    client.post(f"/api/classes/{class_id}/students", json={"lead_ids": [lead_id]}, headers=headers)

    url = f"/api/classes/{class_id}/students/{lead_id}"
    assert client.delete(url, headers=auth_headers(client, "hr@example.com")).status_code == 403
    assert client.delete(url, headers=headers).status_code == 200
    assert client.delete(url, headers=headers).status_code == 404


def test_reassign_student_between_classes():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    headers = auth_headers(client, "org@example.com")
    old_class = create_class(client, headers, name="Old", subject="Old")
    new_class = create_class(client, headers, name="New", subject="New")
    lead_id = create_lead("Mover")
    client.post(f"/api/classes/{old_class}/students", json={"lead_ids": [lead_id]}, headers=headers)

    response = client.post(
        f"/api/students/{lead_id}/reassign", json={"old_class_id": old_class, "new_class_id": new_class}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["class_id"] == new_class
    assert response.json()["student_id"] == "New-01"
    assert client.get(f"/api/classes/{old_class}/students", headers=headers).json() == []


def test_ready_for_class_excludes_current_members():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    headers = auth_headers(client, "org@example.com")
    class_id = create_class(client, headers)
    enrolled = create_lead("Enrolled")
    create_lead("Waiting")
    create_lead("Not ready", status="new")
    client.post(f"/api/classes/{class_id}/students", json={"lead_ids": [enrolled]}, headers=headers)

    everyone = client.get("/api/leads/ready-for-class", headers=headers).json()
    available = client.get("/api/leads/ready-for-class", params={"class_id": class_id}, headers=headers).json()
    assert {lead["name"] for lead in everyone} == {"Enrolled", "Waiting"}
    assert [lead["name"] for lead in available] == ["Waiting"]


def test_allocated_students_and_class_delete_cascade():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    headers = auth_headers(client, "org@example.com")
    class_id = create_class(client, headers)
    lead_ids = [create_lead("One"), create_lead("Two")]
    client.post(f"/api/classes/{class_id}/students", json={"lead_ids": lead_ids}, headers=headers)

    allocated = client.get("/api/students/allocated", headers=headers).json()
    assert allocated["count"] == 2

    assert client.delete(f"/api/classes/{class_id}", headers=headers).status_code == 200
    assert client.get("/api/students/allocated", headers=headers).json()["count"] == 0
    db = SessionLocal()
    try:
        assert db.query(Lead).count() == 2
    finally:
        db.close()


def test_class_writes_require_class_roles():
    client = TestClient(app)
    create_user("boss@example.com", "manager")
    create_user("hr@example.com", "hr")
    create_user("acc@example.com", "accounts")
    create_user("tech@example.com", "tech-support")
    class_id = create_class(client, auth_headers(client, "boss@example.com"))
    lead_id = create_lead("Someone")

    for email in ("hr@example.com", "acc@example.com", "tech@example.com"):
        headers = auth_headers(client, email)
        created = client.post("/api/classes", json={"name": "Rogue"}, headers=headers)
        assert created.status_code == 403
        assert created.json()["detail"] == "Only admins and session organizers can create classes"
        assert client.put(f"/api/classes/{class_id}", json={"name": "Renamed"}, headers=headers).status_code == 403
        assert client.delete(f"/api/classes/{class_id}", headers=headers).status_code == 403
        enroll = client.post(f"/api/classes/{class_id}/students", json={"lead_ids": [lead_id]}, headers=headers)
        assert enroll.status_code == 403
        assert client.post(f"/api/classes/{class_id}/generate-student-ids", headers=headers).status_code == 403

    assert client.get(f"/api/classes/{class_id}", headers=auth_headers(client, "boss@example.com")).json()["name"] == "Batch A"


def test_organizers_manage_only_their_own_classes():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    create_user("other@example.com", "session_organizer")
    create_user("boss@example.com", "manager")
    owner_headers = auth_headers(client, "org@example.com")
    other_headers = auth_headers(client, "other@example.com")
    class_id = create_class(client, owner_headers)
    other_class = create_class(client, other_headers, name="Batch B", subject="Java")
    lead_id = create_lead("Mover")
    client.post(f"/api/classes/{class_id}/students", json={"lead_ids": [lead_id]}, headers=owner_headers)

    denied = client.delete(f"/api/classes/{class_id}", headers=other_headers)
    assert denied.status_code == 403
    assert denied.json()["detail"] == "You can only manage your own classes"
    mapping = client.patch(f"/api/classes/{class_id}/students/{lead_id}", json={"student_id": "X-01"}, headers=other_headers)
    assert mapping.status_code == 403
    moved = client.post(
        f"/api/students/{lead_id}/reassign", json={"old_class_id": class_id, "new_class_id": other_class}, headers=owner_headers
    )
    assert moved.status_code == 403

    assert client.delete(f"/api/classes/{other_class}", headers=auth_headers(client, "boss@example.com")).status_code == 200
    assert client.delete(f"/api/classes/{class_id}", headers=owner_headers).status_code == 200
    assert client.delete(f"/api/classes/{class_id}", headers=owner_headers).status_code == 404


def test_mentor_classes_match_caller_email():
    client = TestClient(app)
    create_user("org@example.com", "session_organizer")
    create_user("mentor@example.com", "team_lead")
    headers = auth_headers(client, "org@example.com")
    client.post("/api/classes", json={"name": "Mentored", "mentor_email": "Mentor@Example.com"}, headers=headers)
    create_class(client, headers, name="Unmentored")

    response = client.get("/api/classes/my-mentor", headers=auth_headers(client, "mentor@example.com"))
    assert response.status_code == 200
    assert [(c["name"], c["student_count"]) for c in response.json()] == [("Mentored", 0)]
    assert client.get("/api/classes/my-mentor", headers=headers).json() == []
