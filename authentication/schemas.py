from datetime import datetime
from typing import Optional
from uuid import UUID

from ninja import Field, Schema
from pydantic import EmailStr, model_validator

from leads.schemas import PHONE_PATTERN


class RegisterSchema(Schema):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field("", max_length=20, pattern=r"^$|" + PHONE_PATTERN)
    password: str = Field(..., min_length=8, max_length=100)


class LoginSchema(Schema):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)


class ProfileUpdateSchema(Schema):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, max_length=20, pattern=PHONE_PATTERN)
    current_password: Optional[str] = Field(None, min_length=1, max_length=100)
    new_password: Optional[str] = Field(None, min_length=8, max_length=100)

    @model_validator(mode="after")
    def require_current_password(self):
        if self.new_password and not self.current_password:
            raise ValueError("Current password is required when changing password")
        return self


class UserResponseSchema(Schema):
    """Public view of an account; never includes the password hash"""
    id: UUID
    name: str
    email: str
    phone: str
    role: str
    is_email_verified: bool
    is_phone_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class TokenDataSchema(Schema):
    user: UserResponseSchema
    token: str
    token_type: str = "bearer"


class TokenResponse(Schema):
    data: TokenDataSchema
    message: str


class UserDetailResponseSchema(Schema):
    data: UserResponseSchema
    message: Optional[str] = None
