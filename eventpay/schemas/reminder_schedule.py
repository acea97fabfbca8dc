from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TemplateSummary(BaseModel):
    id: int
    name: str
    subject: str
    event_type: str

    class Config:
        from_attributes = True


class ReminderScheduleCreate(BaseModel):
    days_before: int = Field(..., ge=0, le=365)
    template_id: int
    enabled: bool = True
    description: Optional[str] = Field(None, max_length=500)


class ReminderScheduleUpdate(BaseModel):
    days_before: Optional[int] = Field(None, ge=0, le=365)
    template_id: Optional[int] = None
    enabled: Optional[bool] = None
    description: Optional[str] = Field(None, max_length=500)


class ReminderScheduleResponse(BaseModel):
    id: int
    days_before: int
    template_id: int
    enabled: bool
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    email_template: Optional[TemplateSummary] = None

    class Config:
        from_attributes = True
