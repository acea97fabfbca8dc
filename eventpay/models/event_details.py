from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from eventpay.db import Base


def utc_now():
    return datetime.now(timezone.utc)


class EventDetails(Base):
    __tablename__ = "event_details"

    id = Column(Integer, primary_key=True, index=True)
    event_name = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=utc_now)
