"""Class, roster, attendance and marks endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.leaddesk.db.session import get_db
from backend.leaddesk.dependencies.auth import get_current_user
from backend.leaddesk.models.training_class import TrainingClass
from backend.leaddesk.models.user import User
from backend.leaddesk.schemas.training_class import (
    AllocatedStudentsResponse,
    AttendanceRead,
    AttendanceUpsert,
    BulkAttendanceUpsert,
    BulkMarkUpsert,
    ClassCreate,
    ClassRead,
    ClassStudentRead,
    ClassStudentUpdate,
    ClassUpdate,
    ClassWithCount,
    EnrollRequest,
    EnrollResult,
    MarkRead,
    MarkUpsert,
    ReassignRequest,
)
from backend.leaddesk.services import access_policy, attendance, class_roster, marks

router = APIRouter(prefix="/api", tags=["classes"])


def _authorized_class(db: Session, user: User, action: str, class_id: int) -> TrainingClass:
    training_class = class_roster.get_class(db, class_id)
    access_policy.authorize(db, user, action, training_class)
    return training_class


@router.post("/classes", response_model=ClassRead, status_code=201)
def create_class(
    class_in: ClassCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("create_class")),
):
    return class_roster.create_class(db, class_in, instructor_id=current_user.id)


@router.get("/classes", response_model=list[ClassRead])
def list_classes(
    instructor_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return class_roster.list_classes(db, instructor_id=instructor_id)


@router.get("/classes/with-counts", response_model=list[ClassWithCount])
def list_classes_with_counts(
    instructor_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return [
        ClassWithCount.model_validate(training_class).model_copy(update={"student_count": count})
        for training_class, count in class_roster.list_classes_with_counts(db, instructor_id=instructor_id)
    ]


@router.get("/classes/my-mentor", response_model=list[ClassWithCount])
def list_mentor_classes(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [
        ClassWithCount.model_validate(training_class).model_copy(update={"student_count": count})
        for training_class, count in class_roster.list_classes_with_counts(db, mentor_email=current_user.email)
    ]


@router.get("/classes/{class_id}", response_model=ClassRead)
def get_class(class_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return class_roster.get_class(db, class_id)


@router.put("/classes/{class_id}", response_model=ClassRead)
def update_class(
    class_id: int,
    class_in: ClassUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    training_class = _authorized_class(db, current_user, "manage_class", class_id)
    return class_roster.update_class(db, training_class, class_in)


@router.delete("/classes/{class_id}")
def delete_class(class_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    class_roster.delete_class(db, _authorized_class(db, current_user, "manage_class", class_id))
    return {"status": "deleted", "id": class_id}


@router.get("/classes/{class_id}/students", response_model=list[ClassStudentRead])
def list_students(class_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    class_roster.get_class(db, class_id)
    return class_roster.list_students(db, class_id)


@router.post("/classes/{class_id}/students", response_model=EnrollResult)
def enroll_students(
    class_id: int,
    payload: EnrollRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    training_class = _authorized_class(db, current_user, "manage_class", class_id)
    enrolled, skipped = class_roster.enroll_leads(db, training_class, payload.lead_ids)
    return EnrollResult(enrolled_count=enrolled, skipped_count=skipped)


@router.post("/classes/{class_id}/generate-student-ids")
def generate_student_ids(class_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    renumbered = class_roster.renumber_student_ids(db, _authorized_class(db, current_user, "manage_class", class_id))
    return {"updated": renumbered}


@router.patch("/classes/{class_id}/students/{lead_id}", response_model=ClassStudentRead)
def update_student_mapping(
    class_id: int,
    lead_id: int,
    payload: ClassStudentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _authorized_class(db, current_user, "manage_class", class_id)
    return class_roster.update_enrollment(db, class_id, lead_id, payload)


@router.delete("/classes/{class_id}/students/{lead_id}")
def remove_student(
    class_id: int,
    lead_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("remove_student")),
):
    class_roster.remove_student(db, class_id, lead_id)
    return {"status": "removed", "class_id": class_id, "lead_id": lead_id}


@router.get("/classes/{class_id}/attendance", response_model=list[AttendanceRead])
def list_attendance(
    class_id: int,
    on_date: Optional[date] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    class_roster.get_class(db, class_id)
    return attendance.list_attendance(db, class_id, on_date=on_date)


@router.post("/classes/{class_id}/attendance", response_model=AttendanceRead)
def mark_attendance(
    class_id: int,
    payload: AttendanceUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _authorized_class(db, current_user, "record_class_results", class_id)
    return attendance.mark_attendance(db, class_id, payload)


@router.post("/classes/{class_id}/attendance/bulk", response_model=list[AttendanceRead])
def mark_attendance_bulk(
    class_id: int,
    payload: BulkAttendanceUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _authorized_class(db, current_user, "record_class_results", class_id)
    return attendance.mark_attendance_bulk(db, class_id, payload.records)


@router.get("/classes/{class_id}/marks", response_model=list[MarkRead])
def list_marks(class_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    class_roster.get_class(db, class_id)
    return marks.list_marks(db, class_id)


@router.post("/classes/{class_id}/marks", response_model=MarkRead)
def save_marks(
    class_id: int,
    payload: MarkUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _authorized_class(db, current_user, "record_class_results", class_id)
    return marks.save_marks(db, class_id, payload)


@router.post("/classes/{class_id}/marks/bulk", response_model=list[MarkRead])
def save_marks_bulk(
    class_id: int,
    payload: BulkMarkUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _authorized_class(db, current_user, "record_class_results", class_id)
    return marks.save_marks_bulk(db, class_id, payload.records)


@router.get("/students/allocated", response_model=AllocatedStudentsResponse)
def allocated_students(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    students = class_roster.allocated_students(db)
    return AllocatedStudentsResponse(students=students, count=len(students))


@router.post("/students/{lead_id}/reassign", response_model=ClassStudentRead)
def reassign_student(
    lead_id: int,
    payload: ReassignRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _authorized_class(db, current_user, "manage_class", payload.old_class_id)
    _authorized_class(db, current_user, "manage_class", payload.new_class_id)
    return class_roster.reassign_student(
        db, lead_id, old_class_id=payload.old_class_id, new_class_id=payload.new_class_id
    )
