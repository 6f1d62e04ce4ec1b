from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class LeadHistoryRead(BaseModel):
    id: int
    lead_id: int
    from_user_id: Optional[int] = None
    to_user_id: Optional[int] = None
    previous_status: Optional[str] = None
    new_status: str
    change_reason: Optional[str] = None
    change_data: Optional[dict[str, Any]] = None
    changed_by_user_id: int
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)
