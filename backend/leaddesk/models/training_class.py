from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from backend.leaddesk.core.time import utc_now
from backend.leaddesk.db.base_class import Base


class TrainingClass(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    subject = Column(String, nullable=True)
    mentor_email = Column(String, nullable=True)
    mode = Column(String, nullable=True)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    students = relationship(
        "ClassStudent",
        back_populates="training_class",
        cascade="all, delete-orphan",
        order_by="ClassStudent.joined_at",
    )
    attendance = relationship("Attendance", back_populates="training_class", cascade="all, delete-orphan")
    marks = relationship("Mark", back_populates="training_class", cascade="all, delete-orphan")
