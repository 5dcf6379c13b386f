from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.core.enums import AccountRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    # Optional: when given, the account must have this role
    role: Optional[AccountRole] = None


class UserInfo(BaseModel):
    id: UUID
    email: EmailStr
    role: str
    is_approved: bool
    must_change_password: bool
    student_id: Optional[UUID] = None
    faculty_id: Optional[UUID] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)
    confirm_password: str = Field(..., min_length=8)

    @model_validator(mode="after")
    def validate_passwords(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("new_password and confirm_password do not match")
        if self.new_password == self.current_password:
            raise ValueError("new_password must differ from the current password")
        return self


class SetPasswordRequest(BaseModel):
    """Admin sets a password for an account; holder must change it at next login."""

    email: EmailStr
    password: str = Field(..., min_length=8)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated account for role checks."""

    id: UUID
    email: str
    role: str
    must_change_password: bool = False
