from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from eventpay.db import Base


def utc_now():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=utc_now)
