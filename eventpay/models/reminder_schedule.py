from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from eventpay.db import Base


def utc_now():
    return datetime.now(timezone.utc)


class ReminderSchedule(Base):
    __tablename__ = "deadline_reminder_schedules"

    id = Column(Integer, primary_key=True, index=True)
    days_before = Column(Integer, nullable=False, unique=True)
    template_id = Column(Integer, ForeignKey("email_templates.id"), nullable=False, index=True)
    enabled = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    email_template = relationship("EmailTemplate", lazy="joined")
