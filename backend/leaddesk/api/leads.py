"""Lead management endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.leaddesk.db.session import get_db
from backend.leaddesk.dependencies.auth import get_current_user
from backend.leaddesk.dependencies.events import get_event_bus
from backend.leaddesk.models.user import User, UserRole
from backend.leaddesk.schemas.lead import (
    BulkLeadImportRequest,
    BulkLeadImportResult,
    BulkTotalAmountUpdate,
    LeadAssignRequest,
    LeadCreate,
    LeadListResponse,
    LeadRead,
    LeadUpdate,
    RecentLeadsResponse,
)
from backend.leaddesk.services import access_policy, lead_store, lead_workflow
from backend.leaddesk.services.events import EventBus

router = APIRouter(prefix="/api/leads", tags=["leads"])


@router.get("", response_model=LeadListResponse)
def list_leads(
    status: Optional[str] = None,
    search: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    owner_id: Optional[int] = None,
    sub_role: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    filters = access_policy.pool_filters(current_user, status_filter=status, sub_role=sub_role)
    if current_user.is_supervisor and owner_id is not None:
        filters.owner_id = owner_id
    filters.search = search
    filters.from_date = from_date
    filters.to_date = to_date
    filters.page = page
    filters.limit = limit
    leads, total = lead_store.search_leads(db, filters)
    return LeadListResponse(leads=leads, total=total, page=page, limit=limit)


@router.get("/recent", response_model=RecentLeadsResponse)
def recent_leads(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if current_user.role == UserRole.HR.value:
        leads = lead_store.recent_leads(db, owner_id=current_user.id)
    elif current_user.role == UserRole.ACCOUNTS.value:
        leads = lead_store.recent_leads(db, status_filter="pending")
    else:
        leads = lead_store.recent_leads(db)
    return RecentLeadsResponse(leads=leads)


@router.get("/ready-for-class", response_model=list[LeadRead])
def ready_for_class(
    class_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return lead_store.ready_for_class_leads(db, exclude_class_id=class_id)


@router.post("", response_model=LeadRead, status_code=201)
def create_lead(
    lead_in: LeadCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("create")),
    events: EventBus = Depends(get_event_bus),
):
    return lead_workflow.create_lead(db, lead_in, creator=current_user, events=events)


@router.post("/bulk", response_model=BulkLeadImportResult)
def bulk_import(
    payload: BulkLeadImportRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("bulk_import")),
    events: EventBus = Depends(get_event_bus),
):
    result = lead_store.import_leads(db, payload.rows, source_manager_id=current_user.id)
    if result.processed:
        events.publish(
            "leads_imported",
            {"processed": result.processed, "by_user_id": current_user.id},
            roles=[UserRole.MANAGER.value, UserRole.ADMIN.value, UserRole.HR.value],
        )
    return result


@router.post("/bulk-update-total")
def bulk_update_total(
    payload: BulkTotalAmountUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("bulk_update_total")),
):
    updated = lead_store.update_total_amount_for_all(db, payload.total_amount)
    return {"updated": updated, "total_amount": payload.total_amount}


@router.get("/{lead_id}", response_model=LeadRead)
def get_lead(lead_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    lead = lead_store.get_lead(db, lead_id)
    access_policy.authorize(db, current_user, "view", lead)
    return lead


@router.put("/{lead_id}", response_model=LeadRead)
def update_lead(
    lead_id: int,
    lead_in: LeadUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    events: EventBus = Depends(get_event_bus),
):
    lead = lead_store.get_lead(db, lead_id)
    access_policy.authorize(db, current_user, "update", lead)
    return lead_workflow.update_lead(db, lead, lead_in, actor=current_user, events=events)


@router.delete("/{lead_id}")
def delete_lead(
    lead_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    events: EventBus = Depends(get_event_bus),
):
    lead = lead_store.get_lead(db, lead_id)
    access_policy.authorize(db, current_user, "delete", lead)
    return lead_workflow.remove_lead(db, lead, actor=current_user, events=events)


@router.post("/{lead_id}/assign", response_model=LeadRead)
def assign_lead(
    lead_id: int,
    payload: LeadAssignRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    events: EventBus = Depends(get_event_bus),
):
    return lead_workflow.assign_lead(
        db,
        lead_id,
        actor=current_user,
        to_user_id=payload.to_user_id,
        reason=payload.reason,
        events=events,
    )


@router.post("/{lead_id}/pass-to-accounts", response_model=LeadRead)
def pass_to_accounts(
    lead_id: int,
    payload: Optional[LeadUpdate] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    events: EventBus = Depends(get_event_bus),
):
    lead = lead_store.get_lead(db, lead_id)
    access_policy.authorize(db, current_user, "pass_to_accounts", lead)
    return lead_workflow.pass_to_accounts(db, lead, actor=current_user, lead_in=payload, events=events)
