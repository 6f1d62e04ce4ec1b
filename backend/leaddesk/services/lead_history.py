"""Lead history ledger: append and query audit rows."""

from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.leaddesk.models.lead_history import LeadHistory


def record_history(
    db: Session,
    *,
    lead_id: int,
    changed_by_user_id: int,
    new_status: str,
    previous_status: Optional[str] = None,
    from_user_id: Optional[int] = None,
    to_user_id: Optional[int] = None,
    reason: Optional[str] = None,
    change_data: Optional[dict[str, Any]] = None,
) -> LeadHistory:
    """Stage a history row in the caller's transaction; the caller commits."""
    entry = LeadHistory(
        lead_id=lead_id,
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        previous_status=previous_status,
        new_status=new_status,
        change_reason=reason,
        change_data=change_data,
        changed_by_user_id=changed_by_user_id,
    )
    db.add(entry)
    return entry


def list_lead_history(db: Session, lead_id: int) -> list[LeadHistory]:
    return (
        db.query(LeadHistory)
        .filter(LeadHistory.lead_id == lead_id)
        .order_by(LeadHistory.changed_at.asc(), LeadHistory.id.asc())
        .all()
    )


def list_all_history(db: Session, *, skip: int = 0, limit: int = 100) -> list[LeadHistory]:
    return (
        db.query(LeadHistory)
        .order_by(LeadHistory.changed_at.desc(), LeadHistory.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def count_lead_history(db: Session, lead_id: int) -> int:
    return db.query(LeadHistory).filter(LeadHistory.lead_id == lead_id).count()


def was_involved(db: Session, lead_id: int, user_id: int) -> bool:
    """True when the user ever held or handed over the lead."""
    return (
        db.query(LeadHistory.id)
        .filter(
            LeadHistory.lead_id == lead_id,
            or_(LeadHistory.from_user_id == user_id, LeadHistory.to_user_id == user_id),
        )
        .first()
        is not None
    )


def involved_lead_ids_query(db: Session, user_id: int):
    return db.query(LeadHistory.lead_id).filter(
        or_(LeadHistory.from_user_id == user_id, LeadHistory.to_user_id == user_id)
    )


def lead_ids_reaching_statuses(db: Session, statuses: tuple[str, ...], *, acted_by: Optional[int] = None) -> set[int]:
    query = db.query(LeadHistory.lead_id).filter(LeadHistory.new_status.in_(statuses))
    if acted_by is not None:
        query = query.filter(
            or_(LeadHistory.changed_by_user_id == acted_by, LeadHistory.from_user_id == acted_by)
        )
    return {lead_id for (lead_id,) in query.distinct().all()}


def delete_lead_history(db: Session, lead_id: int) -> int:
    return db.query(LeadHistory).filter(LeadHistory.lead_id == lead_id).delete(synchronize_session=False)
