from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Float, Integer, String

from eventpay.db import Base


def utc_now():
    return datetime.now(timezone.utc)


class PaymentDeadline(Base):
    __tablename__ = "payment_deadlines"

    id = Column(Integer, primary_key=True, index=True)
    label = Column(String(200), nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    suggested_amount = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
