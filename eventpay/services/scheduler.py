import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

import pytz
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from eventpay.config import EventConfig, settings
from eventpay.db import SessionLocal
from eventpay.models.deadline import PaymentDeadline
from eventpay.models.email_template import EmailTemplate
from eventpay.models.profile import Profile
from eventpay.models.reminder_log import ReminderLog
from eventpay.models.reminder_schedule import ReminderSchedule
from eventpay.services.balances import profile_snapshot
from eventpay.services.notifications import get_event_name, send_template_email
from eventpay.services.variables import DeadlineSnapshot, build_email_context, to_calendar_date

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()

DEADLINE_REMINDER = "deadline_reminder"


@dataclass
class ReminderRunSummary:
    success: bool = True
    templates_processed: int = 0
    reminders_sent: int = 0
    skipped_already_sent: int = 0
    skipped_paid: int = 0
    errors: list[str] = field(default_factory=list)
    log_errors: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.success:
            return "Deadline reminder run failed"
        if self.templates_processed == 0:
            return "No deadline reminder templates configured"
        return f"Processed {self.templates_processed} reminder template(s)"


def local_today(tz_name: Optional[str] = None) -> date:
    """Today's calendar date in the reminder timezone."""
    tz = pytz.timezone(tz_name or settings.reminder_timezone)
    return datetime.now(tz).date()


def collect_reminder_plan(db: Session) -> list[tuple[EmailTemplate, list[int]]]:
    """
    Pair each enabled deadline_reminder template with the days-before values
    it should fire on: its own reminder_days plus any enabled schedules that
    point at it.
    """
    templates = (
        db.query(EmailTemplate)
        .filter(
            EmailTemplate.event_type == DEADLINE_REMINDER,
            EmailTemplate.enabled == True,  # noqa: E712
        )
        .order_by(EmailTemplate.id)
        .all()
    )
    schedules = (
        db.query(ReminderSchedule)
        .filter(ReminderSchedule.enabled == True)  # noqa: E712
        .order_by(ReminderSchedule.days_before.desc())
        .all()
    )

    plan = []
    for template in templates:
        days: list[int] = []
        for value in template.reminder_days or []:
            if isinstance(value, int) and value >= 0 and value not in days:
                days.append(value)
        for schedule in schedules:
            if schedule.template_id == template.id and schedule.days_before not in days:
                days.append(schedule.days_before)
        if days:
            plan.append((template, days))
    return plan


def eligible_profiles(db: Session) -> list[Profile]:
    """Guests that can receive reminders: linked to a user, with an email, not admins."""
    return (
        db.query(Profile)
        .filter(
            Profile.is_admin == False,  # noqa: E712
            Profile.email.isnot(None),
            Profile.user_id.isnot(None),
        )
        .order_by(Profile.id)
        .all()
    )


def reminder_already_sent(
    db: Session,
    template_id: int,
    deadline_id: int,
    profile_id: int,
    days_before: int,
    sent_date: date,
) -> bool:
    existing = (
        db.query(ReminderLog.id)
        .filter(
            ReminderLog.template_id == template_id,
            ReminderLog.deadline_id == deadline_id,
            ReminderLog.profile_id == profile_id,
            ReminderLog.days_before == days_before,
            ReminderLog.sent_date == sent_date,
        )
        .first()
    )
    return existing is not None


def run_deadline_reminders(
    db: Session,
    today: Optional[date] = None,
    config: Optional[EventConfig] = None,
) -> ReminderRunSummary:
    """
    Send deadline reminders for today.

    For every (template, days_before) pair, deadlines falling exactly
    days_before days from today are matched and each eligible guest with an
    outstanding balance gets one email. A reminder-log row per
    (template, deadline, profile, days_before, day) keeps reruns on the same
    day from sending again. Errors are collected per recipient and never
    raised to the caller.
    """
    today = today or local_today()
    config = config or settings.event_config()
    summary = ReminderRunSummary()
    logger.info(f"Starting deadline reminder job for {today.isoformat()}")

    try:
        plan = collect_reminder_plan(db)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching reminder templates: {e}")
        db.rollback()
        summary.success = False
        summary.errors.append(f"Failed to fetch reminder templates: {e}")
        return summary

    if not plan:
        logger.info("No deadline reminder templates configured")
        return summary

    event_name = get_event_name(db, config)

    for template, reminder_days in plan:
        summary.templates_processed += 1
        for days_before in reminder_days:
            target_date = today + timedelta(days=days_before)

            try:
                deadlines = (
                    db.query(PaymentDeadline)
                    .filter(PaymentDeadline.due_date == target_date)
                    .order_by(PaymentDeadline.id)
                    .all()
                )
            except SQLAlchemyError as e:
                logger.error(f"Error fetching deadlines for {days_before} days: {e}")
                db.rollback()
                summary.errors.append(f"Failed to fetch deadlines for {days_before} days reminder")
                continue

            for deadline in deadlines:
                try:
                    profiles = eligible_profiles(db)
                except SQLAlchemyError as e:
                    logger.error(f"Error fetching profiles for deadline {deadline.id}: {e}")
                    db.rollback()
                    summary.errors.append(f"Failed to fetch profiles for deadline {deadline.label}")
                    continue

                deadline_id, deadline_label = deadline.id, deadline.label
                for profile in profiles:
                    profile_id, profile_email = profile.id, profile.email
                    try:
                        process_profile_reminder(
                            db, template, deadline, profile, days_before, today, config, event_name, summary
                        )
                    except Exception as e:
                        logger.error(
                            f"Error processing reminder for profile {profile_id} "
                            f"and deadline {deadline_id}: {e}"
                        )
                        db.rollback()
                        summary.errors.append(
                            f"Failed to process reminder for {profile_email} "
                            f"for deadline {deadline_label}: {e}"
                        )

    logger.info(
        f"Deadline reminder job completed: {summary.reminders_sent} sent, "
        f"{summary.skipped_already_sent} already sent, {summary.skipped_paid} fully paid, "
        f"{len(summary.errors)} error(s), {len(summary.log_errors)} log error(s)"
    )
    return summary


def process_profile_reminder(
    db: Session,
    template: EmailTemplate,
    deadline: PaymentDeadline,
    profile: Profile,
    days_before: int,
    today: date,
    config: EventConfig,
    event_name: str,
    summary: ReminderRunSummary,
):
    """Send one reminder to one guest for one deadline, unless sent today or already paid."""
    recipient_email, deadline_label = profile.email, deadline.label

    if reminder_already_sent(db, template.id, deadline.id, profile.id, days_before, today):
        logger.debug(
            f"Reminder already sent today: template {template.id}, deadline {deadline.id}, "
            f"profile {profile.id}, {days_before} days before"
        )
        summary.skipped_already_sent += 1
        return

    snapshot = profile_snapshot(db, profile)
    if snapshot.remaining <= 0:
        logger.debug(f"Profile {profile.id} has no remaining balance, skipping reminder")
        summary.skipped_paid += 1
        return

    due_date = to_calendar_date(deadline.due_date)
    context = build_email_context(
        config,
        profile=snapshot,
        deadline=DeadlineSnapshot(
            id=deadline.id,
            label=deadline.label,
            due_date=due_date,
            suggested_amount=deadline.suggested_amount,
            days_away=(due_date - today).days,
        ),
        event_name=event_name,
    )

    logger.info(
        f"Sending {days_before}-day reminder for deadline {deadline.id} ({deadline.label}) "
        f"to profile {profile.id}"
    )
    result = send_template_email(db, template, recipient_email, profile.full_name, context)

    if not result.success:
        summary.errors.append(
            f"Failed to send reminder to {recipient_email} for deadline {deadline_label}: {result.error}"
        )
        return

    summary.reminders_sent += 1

    log_entry = ReminderLog(
        template_id=template.id,
        deadline_id=deadline.id,
        profile_id=profile.id,
        days_before=days_before,
        sent_date=today,
        email_log_id=result.email_log_id,
    )
    try:
        db.add(log_entry)
        db.commit()
    except IntegrityError:
        db.rollback()
        message = (
            f"Reminder to {recipient_email} for deadline {deadline_label} ({days_before} days) "
            f"was already logged by another run"
        )
        logger.warning(message)
        summary.log_errors.append(message)
    except SQLAlchemyError as e:
        db.rollback()
        message = (
            f"Reminder sent to {recipient_email} for deadline {deadline_label} "
            f"({days_before} days) but could not be logged: {e}"
        )
        logger.error(message)
        summary.log_errors.append(message)


def process_deadline_reminders() -> ReminderRunSummary:
    """Run the reminder job with its own database session."""
    db: Session = SessionLocal()
    try:
        return run_deadline_reminders(db)
    finally:
        db.close()


def start_scheduler():
    """Start the background scheduler."""
    if not settings.enable_scheduler:
        logger.info("Scheduler is disabled via configuration")
        return

    if scheduler.running:
        logger.info("Scheduler is already running")
        return

    # Schedule the daily deadline check
    trigger = CronTrigger(
        hour=settings.reminder_check_hour,
        minute=0,
        timezone=pytz.timezone(settings.reminder_timezone),
    )
    scheduler.add_job(
        process_deadline_reminders,
        trigger=trigger,
        id="deadline_reminders",
        name="Daily Deadline Reminder Check",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(
        f"Scheduler started. Deadline check scheduled for {settings.reminder_check_hour}:00 "
        f"{settings.reminder_timezone} daily"
    )


def stop_scheduler():
    """Stop the background scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


def run_reminder_job_now() -> ReminderRunSummary:
    """
    Manually trigger the reminder job (useful for testing).
    """
    logger.info("Manually triggering deadline reminder job")
    return process_deadline_reminders()
