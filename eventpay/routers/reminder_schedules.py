"""Deadline reminder schedule endpoints (admin only)."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventpay.db import get_db
from eventpay.dependencies import require_admin
from eventpay.models.email_template import EmailTemplate
from eventpay.models.reminder_schedule import ReminderSchedule
from eventpay.schemas.reminder_schedule import (
    ReminderScheduleCreate,
    ReminderScheduleResponse,
    ReminderScheduleUpdate,
)

router = APIRouter(
    prefix="/admin/reminder-schedules",
    tags=["reminder-schedules"],
    dependencies=[Depends(require_admin)],
)


def utc_now():
    return datetime.now(timezone.utc)


def validate_reminder_template(db: Session, template_id: int) -> EmailTemplate:
    """A schedule may only use an enabled deadline_reminder template."""
    template = db.query(EmailTemplate).filter(EmailTemplate.id == template_id).first()
    if not template:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Email template not found",
        )
    if template.event_type != "deadline_reminder":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Template must be of type "deadline_reminder"',
        )
    if not template.enabled:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email template is disabled. Please enable it first.",
        )
    return template


def ensure_days_available(db: Session, days_before: int, exclude_id: int | None = None) -> None:
    query = db.query(ReminderSchedule).filter(ReminderSchedule.days_before == days_before)
    if exclude_id is not None:
        query = query.filter(ReminderSchedule.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A reminder schedule for {days_before} days before already exists",
        )


def commit_schedule(db: Session, schedule: ReminderSchedule) -> ReminderSchedule:
    days_before = schedule.days_before
    # The unique index on days_before settles concurrent writers
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A reminder schedule for {days_before} days before already exists",
        )
    db.refresh(schedule)
    return schedule


@router.get("", response_model=list[ReminderScheduleResponse])
async def list_reminder_schedules(db: Session = Depends(get_db)):
    """List all reminder schedules, furthest from the deadline first."""
    return db.query(ReminderSchedule).order_by(desc(ReminderSchedule.days_before)).all()


@router.post("", response_model=ReminderScheduleResponse, status_code=status.HTTP_201_CREATED)
async def create_reminder_schedule(
    schedule_data: ReminderScheduleCreate,
    db: Session = Depends(get_db),
):
    """Create a reminder schedule."""
    validate_reminder_template(db, schedule_data.template_id)
    ensure_days_available(db, schedule_data.days_before)

    schedule = ReminderSchedule(
        days_before=schedule_data.days_before,
        template_id=schedule_data.template_id,
        enabled=schedule_data.enabled,
        description=schedule_data.description or None,
    )
    db.add(schedule)
    return commit_schedule(db, schedule)


@router.patch("/{schedule_id}", response_model=ReminderScheduleResponse)
async def update_reminder_schedule(
    schedule_id: int,
    schedule_data: ReminderScheduleUpdate,
    db: Session = Depends(get_db),
):
    """Update a reminder schedule."""
    schedule = db.query(ReminderSchedule).filter(ReminderSchedule.id == schedule_id).first()
    if not schedule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reminder schedule not found",
        )

    update_data = schedule_data.model_dump(exclude_unset=True)

    days_before = update_data.get("days_before")
    if days_before is not None and days_before != schedule.days_before:
        ensure_days_available(db, days_before, exclude_id=schedule.id)
        schedule.days_before = days_before

    template_id = update_data.get("template_id")
    if template_id is not None and template_id != schedule.template_id:
        validate_reminder_template(db, template_id)
        schedule.template_id = template_id

    if update_data.get("enabled") is not None:
        if update_data["enabled"] and not schedule.enabled:
            validate_reminder_template(db, schedule.template_id)
        schedule.enabled = update_data["enabled"]

    if "description" in update_data:
        schedule.description = update_data["description"] or None

    schedule.updated_at = utc_now()
    return commit_schedule(db, schedule)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reminder_schedule(schedule_id: int, db: Session = Depends(get_db)):
    """Delete a reminder schedule."""
    schedule = db.query(ReminderSchedule).filter(ReminderSchedule.id == schedule_id).first()
    if not schedule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reminder schedule not found",
        )
    db.delete(schedule)
    db.commit()
