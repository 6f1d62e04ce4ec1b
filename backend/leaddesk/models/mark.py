from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.leaddesk.core.time import utc_now
from backend.leaddesk.db.base_class import Base

MARK_COMPONENTS = ("assessment1", "assessment2", "task", "project", "final_validation")


class Mark(Base):
    __tablename__ = "marks"
    __table_args__ = (UniqueConstraint("class_id", "lead_id", name="uq_marks_class_lead"),)

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    assessment1 = Column(Integer, nullable=False, default=0)
    assessment2 = Column(Integer, nullable=False, default=0)
    task = Column(Integer, nullable=False, default=0)
    project = Column(Integer, nullable=False, default=0)
    final_validation = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    training_class = relationship("TrainingClass", back_populates="marks")
    lead = relationship("Lead", back_populates="marks")

    @property
    def total(self) -> int:
        return sum(getattr(self, component) or 0 for component in MARK_COMPONENTS)
