from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from eventpay.db import Base


def utc_now():
    return datetime.now(timezone.utc)


class EmailTemplate(Base):
    __tablename__ = "email_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    subject = Column(Text, nullable=False)
    body_text = Column(Text, nullable=False)
    body_html = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    event_type = Column(String(30), nullable=False, index=True)
    enabled = Column(Boolean, nullable=False, default=True)
    reminder_days = Column(JSON, nullable=True)  # Only used by deadline_reminder templates
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
