"""Dashboard figures for managers."""

from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.leaddesk.models.lead import Lead
from backend.leaddesk.models.lead_history import LeadHistory
from backend.leaddesk.models.user import User, UserRole
from backend.leaddesk.schemas.metrics import DashboardMetrics, HrPerformance

COMPLETED_STATUSES = ("completed", "ready_for_class", "accounts_pending")


def get_dashboard_metrics(db: Session) -> DashboardMetrics:
    total_leads = db.query(func.count(Lead.id)).scalar() or 0
    completed_leads = db.query(func.count(Lead.id)).filter(Lead.status.in_(COMPLETED_STATUSES)).scalar() or 0
    registration, partial = db.query(
        func.coalesce(func.sum(Lead.registration_amount), 0),
        func.coalesce(func.sum(Lead.partial_amount), 0),
    ).one()
    distribution = dict(db.query(Lead.status, func.count(Lead.id)).group_by(Lead.status).all())

    active_by_owner = dict(
        db.query(Lead.current_owner_id, func.count(Lead.id))
        .filter(Lead.current_owner_id.isnot(None), ~Lead.status.in_(COMPLETED_STATUSES))
        .group_by(Lead.current_owner_id)
        .all()
    )
    # Completions are credited to whoever moved the lead, since ownership may have moved on since
    completed_by_actor = dict(
        db.query(LeadHistory.changed_by_user_id, func.count(func.distinct(LeadHistory.lead_id)))
        .filter(LeadHistory.new_status.in_(COMPLETED_STATUSES))
        .group_by(LeadHistory.changed_by_user_id)
        .all()
    )
    hr_users = db.query(User).filter(User.role == UserRole.HR.value).order_by(User.id.asc()).all()
    performance = [
        HrPerformance(
            user_id=user.id,
            name=user.display_name,
            active_leads=active_by_owner.get(user.id, 0),
            completed_leads=completed_by_actor.get(user.id, 0),
        )
        for user in hr_users
    ]
    return DashboardMetrics(
        total_leads=total_leads,
        completed_leads=completed_leads,
        revenue=Decimal(str(registration)) + Decimal(str(partial)),
        status_distribution=distribution,
        hr_performance=performance,
    )
