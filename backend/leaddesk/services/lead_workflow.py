"""Lead ownership and status transitions.

Every mutation that changes who holds a lead or what state it is in also
appends to the lead history ledger. Self-assignment of pool leads goes through
a conditional UPDATE so two HR users can never both claim the same lead.
"""

import logging
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.leaddesk.core.time import utc_now
from backend.leaddesk.models.lead import Lead
from backend.leaddesk.models.user import SUPERVISOR_ROLES, User, UserRole
from backend.leaddesk.schemas.lead import LeadCreate, LeadUpdate
from backend.leaddesk.services import access_policy, lead_history
from backend.leaddesk.services.events import EventBus
from backend.leaddesk.services.lead_store import get_lead

logger = logging.getLogger(__name__)

METADATA_FIELDS = (
    "name",
    "email",
    "phone",
    "location",
    "degree",
    "domain",
    "session_days",
    "timing",
    "walkin_date",
    "walkin_time",
    "notes",
    "transaction_number",
    "partial_amount",
    "concession",
)
NOT_NULL_FIELDS = ("name", "status", "is_active")
REQUIRED_FOR_ACCOUNTS = ("name", "email", "phone", "walkin_date", "walkin_time", "registration_amount")

AUTO_TRANSFER_REASON = "Auto-assigned to Accounts team (Status: Pending)"
UNASSIGN_REASON = "Lead released by HR - returned to Lead Management"
PASS_TO_ACCOUNTS_REASON = "Passed to Accounts Team"


def _publish(events: Optional[EventBus], event_type: str, payload: dict[str, Any], **targets) -> None:
    if events is not None:
        events.publish(event_type, payload, **targets)


def _changes(lead_in: LeadUpdate, exclude: Optional[set[str]] = None) -> dict[str, Any]:
    data = lead_in.model_dump(exclude_unset=True, exclude=exclude)
    # An explicit null on a required column means "leave as is"
    return {field: value for field, value in data.items() if value is not None or field not in NOT_NULL_FIELDS}


def create_lead(db: Session, lead_in: LeadCreate, *, creator: User, events: Optional[EventBus] = None) -> Lead:
    data = lead_in.model_dump(exclude_none=True)
    lead = Lead(
        **data,
        current_owner_id=creator.id,
        source_manager_id=creator.id,
        status="new",
        is_active=True,
    )
    db.add(lead)
    db.flush()
    lead_history.record_history(
        db,
        lead_id=lead.id,
        changed_by_user_id=creator.id,
        to_user_id=creator.id,
        new_status="new",
        reason="Lead created",
        change_data={"action": "create"},
    )
    db.commit()
    db.refresh(lead)
    _publish(
        events,
        "lead_created",
        {"id": lead.id, "name": lead.name, "created_by": creator.id},
        roles=list(SUPERVISOR_ROLES),
        user_ids=[creator.id],
    )
    return lead


def assign_lead(
    db: Session,
    lead_id: int,
    *,
    actor: User,
    to_user_id: Optional[int] = None,
    reason: Optional[str] = None,
    events: Optional[EventBus] = None,
) -> Lead:
    target_id = to_user_id if to_user_id is not None else actor.id
    target = db.query(User).filter(User.id == target_id).first()
    if not target:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Target user not found")

    if not access_policy.role_may(actor, "assign"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied: You cannot assign this lead")

    lead = get_lead(db, lead_id)
    claim = not actor.is_supervisor
    if claim:
        if target.id != actor.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="HR users can only assign leads to themselves")
        if not access_policy.is_allowed(db, actor, "assign", lead):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Lead is already assigned")
    elif target.role != UserRole.HR.value and target.id != actor.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Leads can only be assigned to HR users")

    previous_owner_id = None if claim else lead.current_owner_id
    current_status = lead.status

    statement = update(Lead).where(Lead.id == lead_id)
    if claim:
        statement = statement.where(Lead.current_owner_id.is_(None))
    result = db.execute(
        statement.values(current_owner_id=target.id, updated_at=utc_now()).execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        if db.query(Lead.id).filter(Lead.id == lead_id).first() is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
        logger.info("Claim on lead %s by user %s lost to a concurrent assignment", lead_id, actor.id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Lead is already assigned to another user")

    lead_history.record_history(
        db,
        lead_id=lead_id,
        changed_by_user_id=actor.id,
        from_user_id=previous_owner_id,
        to_user_id=target.id,
        previous_status=current_status,
        new_status=current_status,
        reason=reason or ("Lead claimed" if claim else "Lead assigned"),
        change_data={"action": "assignment", "claim": claim},
    )
    db.commit()
    db.refresh(lead)
    logger.info("Lead %s assigned to user %s by user %s", lead_id, target.id, actor.id)
    _publish(
        events,
        "lead_assigned",
        {"id": lead.id, "to_user_id": target.id, "from_user_id": previous_owner_id, "by_user_id": actor.id},
        roles=list(SUPERVISOR_ROLES),
        user_ids=[target.id, previous_owner_id],
    )
    return lead


def _auto_transfer_to_accounts(db: Session, lead: Lead, *, actor: User, events: Optional[EventBus]) -> Optional[User]:
    accounts_user = (
        db.query(User)
        .filter(User.role == UserRole.ACCOUNTS.value, User.is_active.is_(True))
        .order_by(User.id.asc())
        .first()
    )
    if not accounts_user:
        logger.warning("Lead %s completed but no active accounts user exists; leaving it with its HR owner", lead.id)
        return None

    hr_owner_id = lead.current_owner_id
    lead.current_owner_id = accounts_user.id
    lead.status = "pending"
    lead_history.record_history(
        db,
        lead_id=lead.id,
        changed_by_user_id=actor.id,
        from_user_id=hr_owner_id,
        to_user_id=accounts_user.id,
        previous_status="completed",
        new_status="pending",
        reason=AUTO_TRANSFER_REASON,
        change_data={"action": "auto_transfer_to_accounts", "accounts_user_id": accounts_user.id},
    )
    db.commit()
    db.refresh(lead)
    logger.info("Lead %s auto-transferred from user %s to accounts user %s", lead.id, hr_owner_id, accounts_user.id)
    _publish(
        events,
        "lead_transferred",
        {"id": lead.id, "from_user_id": hr_owner_id, "to_user_id": accounts_user.id},
        roles=list(SUPERVISOR_ROLES),
        user_ids=[accounts_user.id, hr_owner_id],
    )
    return accounts_user


def update_lead(
    db: Session,
    lead: Lead,
    lead_in: LeadUpdate,
    *,
    actor: User,
    events: Optional[EventBus] = None,
) -> Lead:
    data = _changes(lead_in)
    previous_owner_id = lead.current_owner_id
    previous_status = lead.status
    before = {field: getattr(lead, field) for field in METADATA_FIELDS}

    for field, value in data.items():
        setattr(lead, field, value)
    db.commit()
    db.refresh(lead)

    status_changed = lead.status != previous_status
    try:
        if status_changed:
            lead_history.record_history(
                db,
                lead_id=lead.id,
                changed_by_user_id=actor.id,
                from_user_id=previous_owner_id,
                to_user_id=previous_owner_id,
                previous_status=previous_status,
                new_status=lead.status,
                reason=f"Status changed from {previous_status} to {lead.status}",
                change_data={"action": "status_change"},
            )
        else:
            changed = [f for f in METADATA_FIELDS if f in data and before[f] != getattr(lead, f)]
            if changed:
                lead_history.record_history(
                    db,
                    lead_id=lead.id,
                    changed_by_user_id=actor.id,
                    from_user_id=previous_owner_id,
                    to_user_id=previous_owner_id,
                    previous_status=lead.status,
                    new_status=lead.status,
                    reason="Lead details updated",
                    change_data={"action": "metadata_update", "changed_fields": changed},
                )
        db.commit()
    except SQLAlchemyError:
        # The lead change is already committed
        db.rollback()
        logger.exception("Failed to record history for lead %s", lead.id)

    if status_changed and lead.status == "completed" and previous_owner_id is not None:
        previous_owner = db.query(User).filter(User.id == previous_owner_id).first()
        if previous_owner is not None and previous_owner.role == UserRole.HR.value:
            _auto_transfer_to_accounts(db, lead, actor=actor, events=events)

    _publish(
        events,
        "lead_updated",
        {"id": lead.id, "status": lead.status, "updated_by": actor.id},
        roles=list(SUPERVISOR_ROLES),
        user_ids=[lead.current_owner_id],
    )
    return lead


def pass_to_accounts(
    db: Session,
    lead: Lead,
    *,
    actor: User,
    lead_in: Optional[LeadUpdate] = None,
    events: Optional[EventBus] = None,
) -> Lead:
    data = _changes(lead_in, exclude={"status"}) if lead_in else {}
    missing = [field for field in REQUIRED_FOR_ACCOUNTS if data.get(field, getattr(lead, field)) in (None, "")]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Missing required fields for Accounts handoff", "missing_fields": missing},
        )

    previous_status = lead.status
    for field, value in data.items():
        setattr(lead, field, value)
    lead.status = "accounts_pending"
    lead_history.record_history(
        db,
        lead_id=lead.id,
        changed_by_user_id=actor.id,
        from_user_id=lead.current_owner_id,
        to_user_id=lead.current_owner_id,
        previous_status=previous_status,
        new_status="accounts_pending",
        reason=PASS_TO_ACCOUNTS_REASON,
        change_data={"action": "pass_to_accounts"},
    )
    db.commit()
    db.refresh(lead)
    _publish(
        events,
        "lead_passed_to_accounts",
        {"id": lead.id, "by_user_id": actor.id},
        roles=[*SUPERVISOR_ROLES, UserRole.ACCOUNTS.value],
    )
    return lead


def unassign_lead(db: Session, lead: Lead, *, actor: User, events: Optional[EventBus] = None) -> Lead:
    """Return a lead to the shared pool, resetting it to ``new``."""
    previous_owner_id = lead.current_owner_id
    lead_history.record_history(
        db,
        lead_id=lead.id,
        changed_by_user_id=actor.id,
        from_user_id=previous_owner_id,
        to_user_id=None,
        previous_status=lead.status,
        new_status="new",
        reason=UNASSIGN_REASON,
        change_data={"action": "unassign"},
    )
    lead.current_owner_id = None
    lead.status = "new"
    db.commit()
    db.refresh(lead)
    logger.info("Lead %s released to the pool by user %s", lead.id, actor.id)
    _publish(
        events,
        "lead_unassigned",
        {"id": lead.id, "from_user_id": previous_owner_id},
        roles=list(SUPERVISOR_ROLES),
    )
    return lead


def delete_lead(db: Session, lead: Lead, *, actor: User, events: Optional[EventBus] = None) -> None:
    """Hard delete: the lead, its history, and its class records are removed together."""
    lead_id = lead.id
    lead_history.record_history(
        db,
        lead_id=lead_id,
        changed_by_user_id=actor.id,
        from_user_id=lead.current_owner_id,
        previous_status=lead.status,
        new_status=lead.status,
        reason=f"Lead deleted by {actor.role}",
        change_data={"action": "delete"},
    )
    db.flush()
    removed = lead_history.delete_lead_history(db, lead_id)
    db.delete(lead)
    db.commit()
    logger.warning("Lead %s deleted by user %s; %d history rows discarded", lead_id, actor.id, removed)
    _publish(events, "lead_deleted", {"id": lead_id, "by_user_id": actor.id}, roles=list(SUPERVISOR_ROLES))


def remove_lead(db: Session, lead: Lead, *, actor: User, events: Optional[EventBus] = None) -> dict[str, Any]:
    """Supervisors hard delete; HR owners release the lead back to the pool."""
    if actor.role in SUPERVISOR_ROLES:
        lead_id = lead.id
        delete_lead(db, lead, actor=actor, events=events)
        return {"status": "deleted", "id": lead_id}
    unassign_lead(db, lead, actor=actor, events=events)
    return {"status": "unassigned", "id": lead.id}
