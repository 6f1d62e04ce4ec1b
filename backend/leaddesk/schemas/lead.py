"""Lead schemas for create, update, read and bulk operations."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

AllowedLeadStatus = Literal[
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
]
SessionDays = Literal["M,W,F", "T,T,S", "daily", "weekend", "custom"]


def _blank_to_none(data: Any) -> Any:
    if isinstance(data, dict):
        return {key: (None if isinstance(value, str) and value.strip() == "" else value) for key, value in data.items()}
    return data


class LeadFields(BaseModel):
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    degree: Optional[str] = None
    domain: Optional[str] = None
    year_of_passing: Optional[str] = None
    college_name: Optional[str] = None
    session_days: Optional[SessionDays] = None
    walkin_date: Optional[date] = None
    walkin_time: Optional[time] = None
    timing: Optional[str] = None
    registration_amount: Optional[Decimal] = None
    pending_amount: Optional[Decimal] = None
    partial_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    concession: Optional[Decimal] = None
    transaction_number: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def empty_strings_are_null(cls, data: Any) -> Any:
        return _blank_to_none(data)


class LeadCreate(LeadFields):
    """Schema for lead creation requests."""

    name: str = Field(min_length=1)


class LeadUpdate(LeadFields):
    """Schema for lead updates with partial fields."""

    name: Optional[str] = None
    status: Optional[AllowedLeadStatus] = None
    is_active: Optional[bool] = None


class OwnerSummary(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: str

    model_config = ConfigDict(from_attributes=True)


class LeadRead(LeadFields):
    """Schema for lead responses."""

    id: int
    name: str
    email: Optional[str] = None
    status: str
    is_active: bool
    current_owner_id: Optional[int] = None
    source_manager_id: Optional[int] = None
    current_owner: Optional[OwnerSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeadListResponse(BaseModel):
    leads: list[LeadRead]
    total: int
    page: int
    limit: int


class LeadAssignRequest(BaseModel):
    to_user_id: Optional[int] = None
    reason: Optional[str] = Field(default=None, max_length=256)


class BulkLeadRow(LeadFields):
    """One row of a bulk import; validated individually so bad rows do not fail the batch."""

    name: Optional[str] = None
    email: Optional[str] = None


class BulkLeadImportRequest(BaseModel):
    rows: list[dict[str, Any]] = Field(min_length=1)


class BulkRowError(BaseModel):
    row: int
    type: Literal["duplicate_email", "duplicate_email_in_file", "validation_error"]
    message: str
    email: Optional[str] = None


class BulkLeadImportResult(BaseModel):
    total_rows: int
    processed: int
    failed: int
    skipped: int
    errors: list[BulkRowError]


class BulkTotalAmountUpdate(BaseModel):
    total_amount: Decimal = Field(ge=0)


class RecentLeadsResponse(BaseModel):
    leads: list[LeadRead]
