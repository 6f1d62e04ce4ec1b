"""User schemas for management endpoints and responses."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

AssignableRole = Literal[
    "team_lead",
    "hr",
    "accounts",
    "admin",
    "tech-support",
    "session-coordinator",
    "session_organizer",
]


class UserCreate(BaseModel):
    email: EmailStr
    password: Optional[str] = Field(default=None, min_length=6)
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: AssignableRole
    team_name: Optional[str] = None
    team_lead_id: Optional[int] = None

    @model_validator(mode="after")
    def check_team_fields(self):
        if self.role == "team_lead" and not self.team_name:
            raise ValueError("team_name is required for team leads")
        if self.team_lead_id is not None and self.role != "hr":
            raise ValueError("team_lead_id is only valid for hr users")
        return self


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[AssignableRole] = None
    is_active: Optional[bool] = None
    team_name: Optional[str] = None
    team_lead_id: Optional[int] = None


class UserRead(BaseModel):
    id: int
    email: EmailStr
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    is_active: bool
    team_name: Optional[str] = None
    team_lead_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserCreated(UserRead):
    # Only populated when the password was generated server-side
    generated_password: Optional[str] = None
