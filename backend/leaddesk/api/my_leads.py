"""Per-user lead views."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.leaddesk.db.session import get_db
from backend.leaddesk.dependencies.auth import get_current_user, require_roles
from backend.leaddesk.models.user import User, UserRole
from backend.leaddesk.schemas.lead import LeadListResponse
from backend.leaddesk.services import access_policy, lead_store

router = APIRouter(prefix="/api/my", tags=["my-leads"])


def _run(db: Session, filters: lead_store.LeadSearchFilters, *, search, from_date, to_date, page, limit) -> LeadListResponse:
    filters.search = search
    filters.from_date = from_date
    filters.to_date = to_date
    filters.page = page
    filters.limit = limit
    leads, total = lead_store.search_leads(db, filters)
    return LeadListResponse(leads=leads, total=total, page=page, limit=limit)


@router.get("/leads", response_model=LeadListResponse)
def my_leads(
    search: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    filters = access_policy.my_leads_filters(current_user)
    return _run(db, filters, search=search, from_date=from_date, to_date=to_date, page=page, limit=limit)


@router.get("/completed", response_model=LeadListResponse)
def my_completed(
    search: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    filters = access_policy.my_completed_filters(current_user)
    return _run(db, filters, search=search, from_date=from_date, to_date=to_date, page=page, limit=limit)


@router.get("/accounts-pending", response_model=LeadListResponse)
def my_accounts_pending(
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.ACCOUNTS)),
):
    filters = lead_store.LeadSearchFilters(status="accounts_pending")
    return _run(db, filters, search=search, from_date=None, to_date=None, page=page, limit=limit)
