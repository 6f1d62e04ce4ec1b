from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.leaddesk.db.session import get_db
from backend.leaddesk.models.user import User
from backend.leaddesk.schemas.metrics import DashboardMetrics
from backend.leaddesk.services import access_policy
from backend.leaddesk.services.metrics import get_dashboard_metrics

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


@router.get("", response_model=DashboardMetrics)
def read_metrics(
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("view_metrics")),
):
    return get_dashboard_metrics(db)
