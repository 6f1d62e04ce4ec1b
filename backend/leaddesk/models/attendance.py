from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.leaddesk.core.time import utc_now
from backend.leaddesk.db.base_class import Base

ATTENDANCE_STATUSES = ("Present", "Absent")


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (UniqueConstraint("class_id", "lead_id", "date", name="uq_attendance_class_lead_date"),)

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    training_class = relationship("TrainingClass", back_populates="attendance")
    lead = relationship("Lead", back_populates="attendance")
