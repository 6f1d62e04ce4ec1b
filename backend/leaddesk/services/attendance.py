"""Attendance upserts keyed on (class, lead, date)."""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from backend.leaddesk.models.attendance import Attendance
from backend.leaddesk.schemas.training_class import AttendanceUpsert
from backend.leaddesk.services.class_roster import get_enrollment


def _upsert(db: Session, class_id: int, record: AttendanceUpsert) -> Attendance:
    get_enrollment(db, class_id, record.lead_id)
    existing = (
        db.query(Attendance)
        .filter(
            Attendance.class_id == class_id,
            Attendance.lead_id == record.lead_id,
            Attendance.date == record.date,
        )
        .first()
    )
    if existing:
        existing.status = record.status
        return existing
    entry = Attendance(class_id=class_id, lead_id=record.lead_id, date=record.date, status=record.status)
    db.add(entry)
    return entry


def mark_attendance(db: Session, class_id: int, record: AttendanceUpsert) -> Attendance:
    entry = _upsert(db, class_id, record)
    db.commit()
    db.refresh(entry)
    return entry


def mark_attendance_bulk(db: Session, class_id: int, records: list[AttendanceUpsert]) -> list[Attendance]:
    entries = []
    for record in records:
        entries.append(_upsert(db, class_id, record))
        # Later duplicates in the same batch must see earlier ones
        db.flush()
    db.commit()
    for entry in entries:
        db.refresh(entry)
    return entries


def list_attendance(db: Session, class_id: int, *, on_date: Optional[date] = None) -> list[Attendance]:
    query = db.query(Attendance).filter(Attendance.class_id == class_id)
    if on_date is not None:
        query = query.filter(Attendance.date == on_date)
    return query.order_by(Attendance.date.asc(), Attendance.lead_id.asc()).all()
