"""Marks upserts keyed on (class, lead)."""

from sqlalchemy.orm import Session

from backend.leaddesk.models.mark import MARK_COMPONENTS, Mark
from backend.leaddesk.schemas.training_class import MarkUpsert
from backend.leaddesk.services.class_roster import get_enrollment


def _upsert(db: Session, class_id: int, record: MarkUpsert) -> Mark:
    get_enrollment(db, class_id, record.lead_id)
    mark = db.query(Mark).filter(Mark.class_id == class_id, Mark.lead_id == record.lead_id).first()
    if mark is None:
        mark = Mark(class_id=class_id, lead_id=record.lead_id)
        db.add(mark)
    for component in MARK_COMPONENTS:
        setattr(mark, component, getattr(record, component))
    return mark


def save_marks(db: Session, class_id: int, record: MarkUpsert) -> Mark:
    mark = _upsert(db, class_id, record)
    db.commit()
    db.refresh(mark)
    return mark


def save_marks_bulk(db: Session, class_id: int, records: list[MarkUpsert]) -> list[Mark]:
    marks = []
    for record in records:
        marks.append(_upsert(db, class_id, record))
        db.flush()
    db.commit()
    for mark in marks:
        db.refresh(mark)
    return marks


def list_marks(db: Session, class_id: int) -> list[Mark]:
    return db.query(Mark).filter(Mark.class_id == class_id).order_by(Mark.lead_id.asc()).all()
