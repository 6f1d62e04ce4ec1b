"""Schemas for classes, rosters, attendance and marks."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.leaddesk.schemas.lead import LeadRead


class ClassCreate(BaseModel):
    name: str = Field(min_length=1)
    subject: Optional[str] = None
    mentor_email: Optional[str] = None
    mode: Optional[str] = None


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    subject: Optional[str] = None
    mentor_email: Optional[str] = None
    mode: Optional[str] = None


class ClassRead(BaseModel):
    id: int
    name: str
    subject: Optional[str] = None
    mentor_email: Optional[str] = None
    mode: Optional[str] = None
    instructor_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClassWithCount(ClassRead):
    student_count: int = 0


class EnrollRequest(BaseModel):
    lead_ids: list[int] = Field(min_length=1)


class EnrollResult(BaseModel):
    enrolled_count: int
    skipped_count: int


class ClassStudentRead(BaseModel):
    id: int
    class_id: int
    lead_id: int
    student_id: Optional[str] = None
    joined_at: datetime
    lead: LeadRead

    model_config = ConfigDict(from_attributes=True)


class ClassStudentUpdate(BaseModel):
    student_id: Optional[str] = None
    joined_at: Optional[datetime] = None


class ReassignRequest(BaseModel):
    old_class_id: int
    new_class_id: int


class AttendanceUpsert(BaseModel):
    lead_id: int
    date: date
    status: Literal["Present", "Absent"]


class BulkAttendanceUpsert(BaseModel):
    records: list[AttendanceUpsert] = Field(min_length=1)


class AttendanceRead(BaseModel):
    id: int
    class_id: int
    lead_id: int
    date: date
    status: str

    model_config = ConfigDict(from_attributes=True)


class MarkUpsert(BaseModel):
    lead_id: int
    assessment1: int = Field(default=0, ge=0, le=10)
    assessment2: int = Field(default=0, ge=0, le=10)
    task: int = Field(default=0, ge=0, le=10)
    project: int = Field(default=0, ge=0, le=10)
    final_validation: int = Field(default=0, ge=0, le=10)


class BulkMarkUpsert(BaseModel):
    records: list[MarkUpsert] = Field(min_length=1)


class MarkRead(BaseModel):
    id: int
    class_id: int
    lead_id: int
    assessment1: int
    assessment2: int
    task: int
    project: int
    final_validation: int
    total: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AllocatedStudentsResponse(BaseModel):
    students: list[ClassStudentRead]
    count: int
