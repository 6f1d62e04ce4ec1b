"""Lead store: filtered search, lookups and bulk persistence."""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from fastapi import HTTPException, status
from pydantic import ValidationError
from sqlalchemy import func, insert, or_
from sqlalchemy.orm import Session, joinedload

from backend.leaddesk.core.settings import get_settings
from backend.leaddesk.core.time import end_of_day, start_of_day, utc_now
from backend.leaddesk.models.class_student import ClassStudent
from backend.leaddesk.models.lead import DEFAULT_TOTAL_AMOUNT, Lead
from backend.leaddesk.schemas.lead import BulkLeadImportResult, BulkLeadRow, BulkRowError
from backend.leaddesk.services import lead_history

logger = logging.getLogger(__name__)

PREVIOUS_OWNER_STATUSES = ("completed", "pending", "accounts_pending", "ready_for_class")
PREVIOUS_OWNER_STATUSES_NO_ACCOUNTS = ("completed", "pending", "ready_for_class")
SHOW_ALL_COMPLETED_STATUSES = ("completed", "pending", "accounts_pending")


@dataclass
class LeadSearchFilters:
    status: Optional[str] = None
    statuses: list[str] = field(default_factory=list)
    owner_id: Optional[int] = None
    accounts_id: Optional[int] = None
    unassigned: bool = False
    exclude_completed: bool = False
    exclude_accounts_pending: bool = False
    include_previously_owned: bool = False
    previous_owner_id: Optional[int] = None
    show_all_completed: bool = False
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    search: Optional[str] = None
    page: int = 1
    limit: int = 20


def get_lead(db: Session, lead_id: int) -> Lead:
    lead = db.query(Lead).filter(Lead.id == lead_id).first()
    if not lead:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    return lead


def _restrict_to_ids(query, lead_ids: set[int]):
    return query.filter(Lead.id.in_(lead_ids))


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_leads(db: Session, filters: LeadSearchFilters) -> tuple[list[Lead], int]:
    query = db.query(Lead)

    if filters.statuses:
        # An explicit status list replaces ownership scoping
        query = query.filter(Lead.status.in_(filters.statuses))
    else:
        if filters.owner_id is not None and filters.accounts_id is not None:
            query = query.filter(
                or_(Lead.current_owner_id == filters.owner_id, Lead.current_owner_id == filters.accounts_id)
            )
        elif filters.accounts_id is not None:
            query = query.filter(
                or_(Lead.current_owner_id == filters.accounts_id, Lead.status == "accounts_pending")
            )
        elif filters.owner_id is not None:
            if filters.include_previously_owned:
                involved = lead_history.involved_lead_ids_query(db, filters.owner_id)
                query = query.filter(or_(Lead.current_owner_id == filters.owner_id, Lead.id.in_(involved)))
            else:
                query = query.filter(Lead.current_owner_id == filters.owner_id)
        if filters.unassigned:
            query = query.filter(Lead.current_owner_id.is_(None))

    if filters.status:
        query = query.filter(Lead.status == filters.status)

    if filters.previous_owner_id is not None:
        if filters.exclude_accounts_pending:
            lead_ids = lead_history.lead_ids_reaching_statuses(
                db, PREVIOUS_OWNER_STATUSES_NO_ACCOUNTS, acted_by=filters.previous_owner_id
            )
        else:
            lead_ids = lead_history.lead_ids_reaching_statuses(
                db, PREVIOUS_OWNER_STATUSES, acted_by=filters.previous_owner_id
            )
            lead_ids |= {lead_id for (lead_id,) in db.query(Lead.id).filter(Lead.status == "accounts_pending")}
        if not lead_ids:
            return [], 0
        query = _restrict_to_ids(query, lead_ids)

    if filters.show_all_completed:
        lead_ids = lead_history.lead_ids_reaching_statuses(db, SHOW_ALL_COMPLETED_STATUSES)
        if not lead_ids:
            return [], 0
        query = _restrict_to_ids(query, lead_ids)

    if filters.exclude_completed:
        query = query.filter(Lead.status != "completed")
    if filters.exclude_accounts_pending:
        query = query.filter(Lead.status != "accounts_pending")

    if filters.from_date:
        query = query.filter(Lead.created_at >= start_of_day(filters.from_date))
    if filters.to_date:
        query = query.filter(Lead.created_at <= end_of_day(filters.to_date))

    if filters.search and filters.search.strip():
        pattern = f"%{_escape_like(filters.search.strip())}%"
        query = query.filter(
            or_(
                Lead.name.ilike(pattern, escape="\\"),
                Lead.email.ilike(pattern, escape="\\"),
                Lead.phone.ilike(pattern, escape="\\"),
            )
        )

    total = query.count()
    page = max(filters.page, 1)
    leads = (
        query.options(joinedload(Lead.current_owner))
        .order_by(Lead.updated_at.desc(), Lead.id.desc())
        .offset((page - 1) * filters.limit)
        .limit(filters.limit)
        .all()
    )
    return leads, total


def recent_leads(db: Session, *, owner_id: Optional[int] = None, status_filter: Optional[str] = None, limit: int = 10) -> list[Lead]:
    query = db.query(Lead).options(joinedload(Lead.current_owner))
    if owner_id is not None:
        query = query.filter(Lead.current_owner_id == owner_id)
    if status_filter:
        query = query.filter(Lead.status == status_filter)
    return query.order_by(Lead.created_at.desc(), Lead.id.desc()).limit(limit).all()


def ready_for_class_leads(db: Session, *, exclude_class_id: Optional[int] = None) -> list[Lead]:
    query = db.query(Lead).filter(Lead.status == "ready_for_class")
    if exclude_class_id is not None:
        enrolled = db.query(ClassStudent.lead_id).filter(ClassStudent.class_id == exclude_class_id)
        query = query.filter(~Lead.id.in_(enrolled))
    return query.order_by(Lead.updated_at.desc(), Lead.id.desc()).all()


def existing_emails(db: Session, emails: Iterable[str]) -> set[str]:
    """Lower-cased subset of ``emails`` already stored on some lead."""
    chunk_size = get_settings().email_check_chunk_size
    normalized = sorted({e.strip().lower() for e in emails if e and e.strip()})
    found: set[str] = set()
    for start in range(0, len(normalized), chunk_size):
        chunk = normalized[start : start + chunk_size]
        rows = db.query(func.lower(Lead.email)).filter(func.lower(Lead.email).in_(chunk)).all()
        found.update(value for (value,) in rows)
    return found


def bulk_insert_leads(db: Session, rows: list[dict[str, Any]], *, chunk_size: Optional[int] = None) -> int:
    """Insert unowned ``new`` leads in fixed-size chunks. Commits once at the end."""
    size = chunk_size or get_settings().bulk_insert_chunk_size
    now = utc_now()
    inserted = 0
    for start in range(0, len(rows), size):
        chunk = [
            {
                **row,
                "current_owner_id": None,
                "status": "new",
                "is_active": True,
                "created_at": now,
                "updated_at": now,
            }
            for row in rows[start : start + size]
        ]
        db.execute(insert(Lead), chunk)
        inserted += len(chunk)
        logger.debug("Inserted bulk chunk of %d leads", len(chunk))
    db.commit()
    return inserted


def import_leads(db: Session, raw_rows: list[dict[str, Any]], *, source_manager_id: Optional[int] = None) -> BulkLeadImportResult:
    errors: list[BulkRowError] = []
    candidates: list[tuple[int, dict[str, Any]]] = []

    for index, raw in enumerate(raw_rows, start=1):
        try:
            row = BulkLeadRow.model_validate(raw)
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            message = f"{location}: {first['msg']}" if location else first["msg"]
            errors.append(BulkRowError(row=index, type="validation_error", message=message))
            continue
        if not row.name:
            errors.append(BulkRowError(row=index, type="validation_error", message="name is required"))
            continue
        data = row.model_dump()
        # executemany needs the same keys on every row
        if data["total_amount"] is None:
            data["total_amount"] = DEFAULT_TOTAL_AMOUNT
        candidates.append((index, data))

    in_db = existing_emails(db, [data.get("email", "") for _, data in candidates])
    seen: set[str] = set()
    to_insert: list[dict[str, Any]] = []
    skipped = 0
    for index, data in candidates:
        email = (data.get("email") or "").strip().lower()
        if email:
            if email in in_db:
                errors.append(
                    BulkRowError(
                        row=index,
                        type="duplicate_email",
                        email=data["email"],
                        message=f"Email {data['email']} already exists in database - skipped duplicate",
                    )
                )
                skipped += 1
                continue
            if email in seen:
                errors.append(
                    BulkRowError(
                        row=index,
                        type="duplicate_email_in_file",
                        email=data["email"],
                        message=f"Email {data['email']} appears more than once in the import",
                    )
                )
                skipped += 1
                continue
            seen.add(email)
        data["source_manager_id"] = source_manager_id
        to_insert.append(data)

    processed = bulk_insert_leads(db, to_insert) if to_insert else 0
    failed = len(raw_rows) - processed - skipped
    logger.info("Bulk import: %d rows, %d inserted, %d skipped, %d failed", len(raw_rows), processed, skipped, failed)
    return BulkLeadImportResult(
        total_rows=len(raw_rows),
        processed=processed,
        failed=failed,
        skipped=skipped,
        errors=errors,
    )


def update_total_amount_for_all(db: Session, total_amount: Decimal) -> int:
    updated = db.query(Lead).update({Lead.total_amount: total_amount, Lead.updated_at: utc_now()}, synchronize_session=False)
    db.commit()
    return updated
