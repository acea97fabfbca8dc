from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class GuestCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    total_due: float = Field(..., ge=0)
    initial_confirmed_paid: float = Field(0, ge=0)
    is_admin: bool = False

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v):
        return blank_to_none(v)


class GuestUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    total_due: Optional[float] = Field(None, ge=0)
    initial_confirmed_paid: Optional[float] = Field(None, ge=0)
    is_admin: Optional[bool] = None

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v):
        return blank_to_none(v)


class GuestResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    full_name: str
    email: Optional[str] = None
    is_admin: bool
    total_due: float
    initial_confirmed_paid: float
    created_at: datetime

    class Config:
        from_attributes = True


class GuestBalanceResponse(GuestResponse):
    confirmed_total: float
    remaining: float


class GuestDeleteResponse(BaseModel):
    success: bool
    message: str


class SignupLinkResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None
    signup_url: str
    profile_id: int
    profile_name: str
    expires_at: datetime
    email_sent: bool


class WelcomeEmailResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None
