"""Append-only audit trail of lead ownership and status transitions."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from backend.leaddesk.core.time import utc_now
from backend.leaddesk.db.base_class import Base


class LeadHistory(Base):
    __tablename__ = "lead_history"

    id = Column(Integer, primary_key=True, index=True)
    # No FK: the final row of a hard delete is written before the lead goes away
    lead_id = Column(Integer, nullable=False, index=True)
    from_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    to_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    previous_status = Column(String, nullable=True)
    new_status = Column(String, nullable=False)
    change_reason = Column(Text, nullable=True)
    change_data = Column(JSON, nullable=True)
    changed_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
