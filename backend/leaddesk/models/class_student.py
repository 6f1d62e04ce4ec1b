from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from backend.leaddesk.core.time import utc_now
from backend.leaddesk.db.base_class import Base


class ClassStudent(Base):
    __tablename__ = "class_students"

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    student_id = Column(String, nullable=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    training_class = relationship("TrainingClass", back_populates="students")
    lead = relationship("Lead", back_populates="enrollments")
