from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


def coerce_calendar_date(value: Any) -> Any:
    """Keep only the date part of datetimes and ISO datetime strings."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10 and value[10] in ("T", " "):
        return value[:10]
    return value


class DeadlineCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=200)
    due_date: date
    suggested_amount: Optional[float] = Field(None, ge=0)

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, v: Any) -> Any:
        return coerce_calendar_date(v)


class DeadlineUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=200)
    due_date: Optional[date] = None
    suggested_amount: Optional[float] = Field(None, ge=0)

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, v: Any) -> Any:
        return coerce_calendar_date(v)


class DeadlineResponse(BaseModel):
    id: int
    label: str
    due_date: date
    suggested_amount: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
