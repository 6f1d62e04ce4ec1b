import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from backend.leaddesk.db.base_class import Base


class UserRole(str, enum.Enum):
    MANAGER = "manager"
    ADMIN = "admin"
    TEAM_LEAD = "team_lead"
    HR = "hr"
    ACCOUNTS = "accounts"
    TECH_SUPPORT = "tech-support"
    SESSION_COORDINATOR = "session-coordinator"
    SESSION_ORGANIZER = "session_organizer"


SUPERVISOR_ROLES = (UserRole.MANAGER.value, UserRole.ADMIN.value)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    hashed_password = Column(String, nullable=True)
    role = Column(String(32), nullable=False, default=UserRole.HR.value, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    team_name = Column(String(100), nullable=True)
    team_lead_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owned_leads = relationship("Lead", back_populates="current_owner", foreign_keys="Lead.current_owner_id")

    @property
    def is_supervisor(self) -> bool:
        return self.role in SUPERVISOR_ROLES

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else self.email
