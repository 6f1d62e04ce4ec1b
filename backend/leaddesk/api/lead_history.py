"""Lead history (audit trail) endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.leaddesk.db.session import get_db
from backend.leaddesk.dependencies.auth import get_current_user
from backend.leaddesk.models.user import User
from backend.leaddesk.schemas.lead_history import LeadHistoryRead
from backend.leaddesk.services import access_policy, lead_history, lead_store

router = APIRouter(prefix="/api", tags=["history"])


@router.get("/leads/{lead_id}/history", response_model=list[LeadHistoryRead])
def get_lead_history(lead_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    lead = lead_store.get_lead(db, lead_id)
    access_policy.authorize(db, current_user, "view_history", lead)
    return lead_history.list_lead_history(db, lead_id)


@router.get("/history/all", response_model=list[LeadHistoryRead])
def get_all_history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("view_all_history")),
):
    return lead_history.list_all_history(db, skip=(page - 1) * limit, limit=limit)
