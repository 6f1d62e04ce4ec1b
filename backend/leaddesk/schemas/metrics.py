from decimal import Decimal

from pydantic import BaseModel


class HrPerformance(BaseModel):
    user_id: int
    name: str
    active_leads: int
    completed_leads: int


class DashboardMetrics(BaseModel):
    total_leads: int
    completed_leads: int
    revenue: Decimal
    status_distribution: dict[str, int]
    hr_performance: list[HrPerformance]
