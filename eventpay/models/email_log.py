from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from eventpay.db import Base


def utc_now():
    return datetime.now(timezone.utc)


class EmailLog(Base):
    __tablename__ = "email_log"

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(Integer, ForeignKey("email_templates.id"), nullable=True, index=True)
    template_name = Column(String(100), nullable=True)
    recipient_email = Column(String, nullable=False)
    recipient_name = Column(String(200), nullable=True)
    subject = Column(Text, nullable=False)
    body_text = Column(Text, nullable=False)
    body_html = Column(Text, nullable=True)
    variables_used = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False)  # "sent" or "failed"
    message_id = Column(String(100), nullable=True)  # Resend tracking ID
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now)
