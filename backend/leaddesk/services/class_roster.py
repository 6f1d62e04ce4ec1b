"""Class management, enrollment and student id numbering."""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from backend.leaddesk.models.class_student import ClassStudent
from backend.leaddesk.models.lead import Lead
from backend.leaddesk.models.training_class import TrainingClass
from backend.leaddesk.schemas.training_class import ClassCreate, ClassStudentUpdate, ClassUpdate

logger = logging.getLogger(__name__)


def get_class(db: Session, class_id: int) -> TrainingClass:
    training_class = db.query(TrainingClass).filter(TrainingClass.id == class_id).first()
    if not training_class:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return training_class


def create_class(db: Session, class_in: ClassCreate, *, instructor_id: int) -> TrainingClass:
    training_class = TrainingClass(**class_in.model_dump(), instructor_id=instructor_id)
    db.add(training_class)
    db.commit()
    db.refresh(training_class)
    return training_class


def list_classes(db: Session, *, instructor_id: Optional[int] = None) -> list[TrainingClass]:
    query = db.query(TrainingClass)
    if instructor_id is not None:
        query = query.filter(TrainingClass.instructor_id == instructor_id)
    return query.order_by(TrainingClass.created_at.desc(), TrainingClass.id.desc()).all()


def list_classes_with_counts(
    db: Session, *, instructor_id: Optional[int] = None, mentor_email: Optional[str] = None
) -> list[tuple[TrainingClass, int]]:
    counts = dict(
        db.query(ClassStudent.class_id, func.count(ClassStudent.id)).group_by(ClassStudent.class_id).all()
    )
    classes = list_classes(db, instructor_id=instructor_id)
    if mentor_email is not None:
        wanted = mentor_email.strip().lower()
        classes = [c for c in classes if c.mentor_email and c.mentor_email.strip().lower() == wanted]
    return [(c, counts.get(c.id, 0)) for c in classes]


def update_class(db: Session, training_class: TrainingClass, class_in: ClassUpdate) -> TrainingClass:
    for field, value in class_in.model_dump(exclude_unset=True).items():
        setattr(training_class, field, value)
    db.commit()
    db.refresh(training_class)
    return training_class


def delete_class(db: Session, training_class: TrainingClass) -> None:
    db.delete(training_class)
    db.commit()


def student_id_prefix(training_class: TrainingClass) -> str:
    return (training_class.subject or training_class.name or "Student").strip() or "Student"


def format_student_id(prefix: str, number: int) -> str:
    return f"{prefix}-{number:02d}"


def ensure_student_ids(db: Session, training_class: TrainingClass) -> int:
    """Give every roster entry without an id the next free ``{prefix}-NN``, in join order.

    Existing ids are never changed, so calling this repeatedly is harmless.
    """
    prefix = student_id_prefix(training_class)
    roster = (
        db.query(ClassStudent)
        .filter(ClassStudent.class_id == training_class.id)
        .order_by(ClassStudent.joined_at.asc(), ClassStudent.id.asc())
        .all()
    )
    taken = {entry.student_id for entry in roster if entry.student_id}
    assigned = 0
    number = 0
    for entry in roster:
        if entry.student_id:
            continue
        number += 1
        while format_student_id(prefix, number) in taken:
            number += 1
        entry.student_id = format_student_id(prefix, number)
        taken.add(entry.student_id)
        assigned += 1
    if assigned:
        db.commit()
    return assigned


def renumber_student_ids(db: Session, training_class: TrainingClass) -> int:
    prefix = student_id_prefix(training_class)
    roster = (
        db.query(ClassStudent)
        .filter(ClassStudent.class_id == training_class.id)
        .order_by(ClassStudent.joined_at.asc(), ClassStudent.id.asc())
        .all()
    )
    for number, entry in enumerate(roster, start=1):
        entry.student_id = format_student_id(prefix, number)
    db.commit()
    return len(roster)


def enroll_leads(db: Session, training_class: TrainingClass, lead_ids: list[int]) -> tuple[int, int]:
    """Add leads to a class; leads that are missing or already in any class are skipped."""
    wanted = list(dict.fromkeys(lead_ids))
    existing_leads = {lead_id for (lead_id,) in db.query(Lead.id).filter(Lead.id.in_(wanted))}
    already_enrolled = {
        lead_id for (lead_id,) in db.query(ClassStudent.lead_id).filter(ClassStudent.lead_id.in_(wanted))
    }
    enrolled = 0
    for lead_id in wanted:
        if lead_id not in existing_leads or lead_id in already_enrolled:
            continue
        db.add(ClassStudent(class_id=training_class.id, lead_id=lead_id))
        enrolled += 1
    if enrolled:
        db.commit()
        ensure_student_ids(db, training_class)
    skipped = len(lead_ids) - enrolled
    logger.info("Class %s: enrolled %d leads, skipped %d", training_class.id, enrolled, skipped)
    return enrolled, skipped


def list_students(db: Session, class_id: int) -> list[ClassStudent]:
    return (
        db.query(ClassStudent)
        .options(joinedload(ClassStudent.lead))
        .filter(ClassStudent.class_id == class_id)
        .order_by(ClassStudent.joined_at.asc(), ClassStudent.id.asc())
        .all()
    )


def get_enrollment(db: Session, class_id: int, lead_id: int) -> ClassStudent:
    entry = (
        db.query(ClassStudent)
        .filter(ClassStudent.class_id == class_id, ClassStudent.lead_id == lead_id)
        .first()
    )
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found in class")
    return entry


def remove_student(db: Session, class_id: int, lead_id: int) -> None:
    entry = get_enrollment(db, class_id, lead_id)
    db.delete(entry)
    db.commit()


def update_enrollment(db: Session, class_id: int, lead_id: int, changes: ClassStudentUpdate) -> ClassStudent:
    entry = get_enrollment(db, class_id, lead_id)
    data = changes.model_dump(exclude_unset=True)
    student_id = data.get("student_id")
    if student_id:
        clash = (
            db.query(ClassStudent.id)
            .filter(
                ClassStudent.class_id == class_id,
                ClassStudent.student_id == student_id,
                ClassStudent.id != entry.id,
            )
            .first()
        )
        if clash:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student ID already in use in this class")
    for field, value in data.items():
        setattr(entry, field, value)
    db.commit()
    db.refresh(entry)
    return entry


def reassign_student(db: Session, lead_id: int, *, old_class_id: int, new_class_id: int) -> ClassStudent:
    entry = get_enrollment(db, old_class_id, lead_id)
    new_class = get_class(db, new_class_id)
    entry.class_id = new_class.id
    entry.student_id = None
    db.commit()
    ensure_student_ids(db, new_class)
    db.refresh(entry)
    return entry


def allocated_students(db: Session) -> list[ClassStudent]:
    return (
        db.query(ClassStudent)
        .options(joinedload(ClassStudent.lead))
        .order_by(ClassStudent.joined_at.desc(), ClassStudent.id.desc())
        .all()
    )
