"""Lead model for LeadDesk."""

from decimal import Decimal

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Time
from sqlalchemy.orm import relationship

from backend.leaddesk.core.time import utc_now
from backend.leaddesk.db.base_class import Base

LEAD_STATUSES = (
    "new",
    "register",
    "scheduled",
    "completed",
    "ready_for_class",
    "accounts_pending",
    "pending",
    "not_interested",
    "wrong_number",
    "not_picking",
    "call_back",
    "not_available",
    "no_show",
    "reschedule",
    "pending_but_ready",
)

SESSION_DAYS = ("M,W,F", "T,T,S", "daily", "weekend", "custom")


DEFAULT_TOTAL_AMOUNT = Decimal("7000.00")


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True, index=True)
    phone = Column(String, nullable=True)
    location = Column(String, nullable=True)
    degree = Column(String, nullable=True)
    domain = Column(String, nullable=True)
    year_of_passing = Column(String, nullable=True)
    college_name = Column(String, nullable=True)
    session_days = Column(String, nullable=True)
    walkin_date = Column(Date, nullable=True)
    walkin_time = Column(Time, nullable=True)
    timing = Column(String, nullable=True)
    registration_amount = Column(Numeric(10, 2), nullable=True)
    pending_amount = Column(Numeric(10, 2), nullable=True)
    partial_amount = Column(Numeric(10, 2), nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=True, default=DEFAULT_TOTAL_AMOUNT)
    concession = Column(Numeric(10, 2), nullable=True)
    transaction_number = Column(String, nullable=True)
    current_owner_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    source_manager_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(String, nullable=False, default="new", index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    current_owner = relationship("User", back_populates="owned_leads", foreign_keys=[current_owner_id])
    source_manager = relationship("User", foreign_keys=[source_manager_id])
    enrollments = relationship("ClassStudent", back_populates="lead", cascade="all, delete-orphan")
    attendance = relationship("Attendance", back_populates="lead", cascade="all, delete-orphan")
    marks = relationship("Mark", back_populates="lead", cascade="all, delete-orphan")
