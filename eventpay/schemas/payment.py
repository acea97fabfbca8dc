from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PaymentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class PaymentCreate(BaseModel):
    amount: float = Field(..., gt=0)
    note: Optional[str] = Field(None, max_length=500)
    deadline_id: Optional[int] = None


class PaymentResponse(BaseModel):
    id: int
    profile_id: int
    deadline_id: Optional[int] = None
    amount: float
    status: str
    note: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PendingPaymentResponse(PaymentResponse):
    guest_name: str
    guest_email: Optional[str] = None


class AdminPaymentCreate(BaseModel):
    profile_id: int
    amount: float = Field(..., gt=0)
    note: Optional[str] = Field(None, max_length=500)
    payment_date: Optional[date] = None
