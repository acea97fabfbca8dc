from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text

from eventpay.db import Base


def utc_now():
    return datetime.now(timezone.utc)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    deadline_id = Column(Integer, ForeignKey("payment_deadlines.id"), nullable=True)
    amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # "pending", "confirmed", "rejected"
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now)
    confirmed_at = Column(DateTime, nullable=True)
    confirmed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
