from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReminderLogResponse(BaseModel):
    id: int
    template_id: int
    deadline_id: int
    profile_id: int
    days_before: int
    sent_date: date
    email_log_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ReminderLogListResponse(BaseModel):
    items: list[ReminderLogResponse]
    total_count: int
    offset: int
    limit: int


class ReminderRunResponse(BaseModel):
    """Summary returned to the external cron caller."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    reminders_sent: int = Field(alias="remindersSent")
    errors: Optional[list[str]] = None
    log_errors: Optional[list[str]] = Field(default=None, alias="logErrors")
