"""Email template management endpoints (admin only)."""

import logging
from datetime import date, datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from eventpay.config import EventConfig, get_event_config
from eventpay.db import get_db
from eventpay.dependencies import require_admin
from eventpay.models.email_log import EmailLog
from eventpay.models.email_template import EmailTemplate
from eventpay.models.reminder_log import ReminderLog
from eventpay.models.reminder_schedule import ReminderSchedule
from eventpay.schemas.email_template import (
    EmailTemplateCreate,
    EmailTemplateResponse,
    EmailTemplateUpdate,
    SendTestEmailRequest,
    SendTestEmailResponse,
    TemplateVariable,
)
from eventpay.services.notifications import get_event_name, send_template_email
from eventpay.services.variables import (
    DeadlineSnapshot,
    PaymentSnapshot,
    ProfileSnapshot,
    available_variables,
    build_email_context,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/email-templates",
    tags=["email-templates"],
    dependencies=[Depends(require_admin)],
)


def utc_now():
    return datetime.now(timezone.utc)


def get_template_or_404(db: Session, template_id: int) -> EmailTemplate:
    template = db.query(EmailTemplate).filter(EmailTemplate.id == template_id).first()
    if not template:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Email template not found",
        )
    return template


def ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    query = db.query(EmailTemplate).filter(EmailTemplate.name == name)
    if exclude_id is not None:
        query = query.filter(EmailTemplate.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Email template '{name}' already exists",
        )


def ensure_not_scheduled(db: Session, template_id: int) -> None:
    """Schedules may only point at enabled deadline_reminder templates."""
    scheduled = (
        db.query(ReminderSchedule)
        .filter(
            ReminderSchedule.template_id == template_id,
            ReminderSchedule.enabled == True,  # noqa: E712
        )
        .first()
    )
    if scheduled:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email template is used by enabled reminder schedules. Disable or move those schedules first.",
        )


@router.get("", response_model=list[EmailTemplateResponse])
async def list_email_templates(db: Session = Depends(get_db)):
    """List all email templates ordered by name."""
    return db.query(EmailTemplate).order_by(EmailTemplate.name).all()


@router.get("/variables", response_model=list[TemplateVariable])
async def list_template_variables():
    """List the variables that can be used in templates."""
    return available_variables()


@router.post("", response_model=EmailTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_email_template(
    template_data: EmailTemplateCreate,
    db: Session = Depends(get_db),
):
    """Create a new email template."""
    ensure_unique_name(db, template_data.name)

    template = EmailTemplate(
        name=template_data.name,
        subject=template_data.subject,
        body_text=template_data.body_text,
        body_html=template_data.body_html or None,
        description=template_data.description or None,
        event_type=template_data.event_type.value,
        enabled=template_data.enabled,
        reminder_days=template_data.reminder_days,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    logger.info(f"Created email template {template.id} ({template.name})")
    return template


@router.get("/{template_id}", response_model=EmailTemplateResponse)
async def get_email_template(template_id: int, db: Session = Depends(get_db)):
    """Get a specific email template by ID."""
    return get_template_or_404(db, template_id)


@router.patch("/{template_id}", response_model=EmailTemplateResponse)
async def update_email_template(
    template_id: int,
    template_data: EmailTemplateUpdate,
    db: Session = Depends(get_db),
):
    """Update an email template. Only provided fields change."""
    template = get_template_or_404(db, template_id)
    update_data = template_data.model_dump(exclude_unset=True)

    if update_data.get("name") and update_data["name"] != template.name:
        ensure_unique_name(db, update_data["name"], exclude_id=template.id)

    if "event_type" in update_data and update_data["event_type"] is not None:
        update_data["event_type"] = update_data["event_type"].value

    disabling = update_data.get("enabled") is False
    retyping = update_data.get("event_type") not in (None, template.event_type)
    if (disabling or retyping) and template.event_type == "deadline_reminder":
        ensure_not_scheduled(db, template.id)

    for field, value in update_data.items():
        if field in ("name", "subject", "body_text", "event_type", "enabled") and value is None:
            continue
        if field in ("body_html", "description"):
            value = value or None
        setattr(template, field, value)

    template.updated_at = utc_now()
    db.commit()
    db.refresh(template)
    return template


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_email_template(template_id: int, db: Session = Depends(get_db)):
    """Delete a template that no schedule or reminder log refers to."""
    template = get_template_or_404(db, template_id)

    in_use = (
        db.query(ReminderSchedule).filter(ReminderSchedule.template_id == template_id).first()
        or db.query(ReminderLog).filter(ReminderLog.template_id == template_id).first()
    )
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email template is in use by reminders. Disable it instead.",
        )

    # Keep the sent-email history; it still carries the template name
    db.query(EmailLog).filter(EmailLog.template_id == template_id).update(
        {EmailLog.template_id: None}
    )
    db.delete(template)
    db.commit()


@router.post("/{template_id}/test", response_model=SendTestEmailResponse)
def send_test_email(
    template_id: int,
    request_data: SendTestEmailRequest,
    db: Session = Depends(get_db),
    config: EventConfig = Depends(get_event_config),
):
    """Send a template to an address using sample guest, payment and deadline data."""
    template = get_template_or_404(db, template_id)

    context = build_email_context(
        config,
        profile=ProfileSnapshot(
            id=None,
            full_name="John Doe",
            email=request_data.test_email,
            total_due=500.00,
            initial_confirmed_paid=100.00,
            confirmed_total=200.00,
            remaining=300.00,
        ),
        payment=PaymentSnapshot(
            id=None,
            amount=100.00,
            status="pending",
            note="Test payment note",
            created_at=utc_now(),
            deadline_label="Deposit",
        ),
        deadline=DeadlineSnapshot(
            id=None,
            label="Final Payment",
            due_date=date.today() + timedelta(days=7),
            suggested_amount=200.00,
            days_away=7,
        ),
        event_name=get_event_name(db, config),
    )

    result = send_template_email(db, template, request_data.test_email, "John Doe", context)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=result.error or "Failed to send test email",
        )

    return SendTestEmailResponse(
        success=True,
        message=f"Test email sent to {request_data.test_email}",
        message_id=result.message_id,
    )
