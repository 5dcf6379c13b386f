from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.enums import Gender


# ----- Application -----

class ApplicationCreate(BaseModel):
    """Public admission form. Status is always Pending on submission."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=50)
    date_of_birth: date
    gender: Gender
    address: str = Field(..., min_length=1)
    department: Optional[str] = Field(None, max_length=255)
    program: str = Field(..., min_length=1, max_length=255, description="Requested course/program")
    previous_education: Optional[str] = Field(None, max_length=255)
    percentage: Optional[float] = Field(None, ge=0, le=100)

    @field_validator("name", "phone", "address", "program")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class ApplicationApprove(BaseModel):
    """Optional admin corrections to department/program."""

    department: Optional[str] = Field(None, max_length=255)
    program: Optional[str] = Field(None, max_length=255)


class ApplicationReject(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason must not be blank")
        return v.strip()


class ApplicationResponse(BaseModel):
    id: UUID
    application_number: str
    name: str
    email: str
    phone: str
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    department: Optional[str] = None
    program: str
    previous_education: Optional[str] = None
    percentage: Optional[float] = None
    status: str
    reviewer_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    applied_at: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ApplicationSubmitted(BaseModel):
    success: bool = True
    message: str
    application_number: str
    email: str


class ApplicationStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int


# ----- Student (created on approval) -----

class StudentResponse(BaseModel):
    id: UUID
    student_code: str
    application_id: Optional[UUID] = None
    name: str
    email: str
    phone: Optional[str] = None
    department: Optional[str] = None
    program: Optional[str] = None
    term: int
    subject_ids: List[UUID] = Field(default_factory=list)
    status: str
    enrollment_date: Optional[date] = None

    class Config:
        from_attributes = True


# ----- Decision results -----

class ProvisionResponse(BaseModel):
    success: bool = True
    message: str
    application: ApplicationResponse
    student: Optional[StudentResponse] = None
    email_sent: bool
    email_error: Optional[str] = None
    temp_password: Optional[str] = Field(
        None, description="Only returned by resend-email, as a fallback when delivery fails"
    )


class RejectionResponse(BaseModel):
    success: bool = True
    message: str
    application: ApplicationResponse
