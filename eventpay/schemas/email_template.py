from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class EventType(str, Enum):
    SIGNUP = "signup"
    SIGNUP_LINK = "signup_link"
    PAYMENT_SUBMITTED = "payment_submitted"
    PAYMENT_APPROVED = "payment_approved"
    PAYMENT_REJECTED = "payment_rejected"
    DEADLINE_REMINDER = "deadline_reminder"


def validate_reminder_days(days: list[int]) -> list[int]:
    """Reject negative values and drop duplicates, keeping order."""
    cleaned: list[int] = []
    for day in days:
        if day < 0:
            raise ValueError("Reminder days must be non-negative integers")
        if day not in cleaned:
            cleaned.append(day)
    return cleaned


class EmailTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=1)
    body_text: str = Field(..., min_length=1)
    body_html: Optional[str] = None
    description: Optional[str] = None
    event_type: EventType
    enabled: bool = True
    reminder_days: list[int] = []

    @field_validator("reminder_days")
    @classmethod
    def validate_days(cls, v: list[int]) -> list[int]:
        return validate_reminder_days(v)


class EmailTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    subject: Optional[str] = Field(None, min_length=1)
    body_text: Optional[str] = Field(None, min_length=1)
    body_html: Optional[str] = None
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    enabled: Optional[bool] = None
    reminder_days: Optional[list[int]] = None

    @field_validator("reminder_days")
    @classmethod
    def validate_days(cls, v: list[int] | None) -> list[int] | None:
        if v is not None:
            return validate_reminder_days(v)
        return v


class EmailTemplateResponse(BaseModel):
    id: int
    name: str
    subject: str
    body_text: str
    body_html: Optional[str] = None
    description: Optional[str] = None
    event_type: str
    enabled: bool
    reminder_days: Optional[list[int]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TemplateVariable(BaseModel):
    name: str
    description: str


class SendTestEmailRequest(BaseModel):
    test_email: EmailStr


class SendTestEmailResponse(BaseModel):
    success: bool
    message: str
    message_id: Optional[str] = None
