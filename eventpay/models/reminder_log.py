from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, UniqueConstraint

from eventpay.db import Base


def utc_now():
    return datetime.now(timezone.utc)


class ReminderLog(Base):
    """One row per deadline reminder delivered. The unique key allows one send per day."""

    __tablename__ = "deadline_reminder_log"
    __table_args__ = (
        UniqueConstraint(
            "template_id",
            "deadline_id",
            "profile_id",
            "days_before",
            "sent_date",
            name="uq_deadline_reminder_log_daily",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(Integer, ForeignKey("email_templates.id"), nullable=False, index=True)
    deadline_id = Column(Integer, ForeignKey("payment_deadlines.id"), nullable=False, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    days_before = Column(Integer, nullable=False)
    sent_date = Column(Date, nullable=False)
    email_log_id = Column(Integer, ForeignKey("email_log.id"), nullable=True)
    created_at = Column(DateTime, default=utc_now)
