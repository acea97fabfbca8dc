from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String

from eventpay.db import Base


def utc_now():
    return datetime.now(timezone.utc)


class Profile(Base):
    """A guest record, optionally linked to a user account."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # NULL = unclaimed
    full_name = Column(String(200), nullable=False)
    email = Column(String, nullable=True, index=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    total_due = Column(Float, nullable=False, default=0)
    initial_confirmed_paid = Column(Float, nullable=False, default=0)
    signup_token = Column(String(64), nullable=True, index=True)
    signup_token_expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now)
