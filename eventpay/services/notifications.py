import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eventpay.config import EventConfig
from eventpay.models.email_log import EmailLog
from eventpay.models.email_template import EmailTemplate
from eventpay.models.event_details import EventDetails
from eventpay.services.email import email_service
from eventpay.services.variables import EmailContext, substitute_variables, variables_used

logger = logging.getLogger(__name__)


@dataclass
class TemplateSendResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    template_id: Optional[int] = None
    email_log_id: Optional[int] = None


def get_email_template(db: Session, key: Union[int, str]) -> Optional[EmailTemplate]:
    """Find an enabled template by id, then by name, then by event type."""
    base = db.query(EmailTemplate).filter(EmailTemplate.enabled == True)  # noqa: E712

    if isinstance(key, int) or str(key).isdigit():
        template = base.filter(EmailTemplate.id == int(key)).first()
        if template:
            return template

    template = base.filter(EmailTemplate.name == str(key)).first()
    if template:
        return template

    return base.filter(EmailTemplate.event_type == str(key)).order_by(EmailTemplate.id).first()


def get_event_name(db: Session, config: EventConfig) -> str:
    """Latest stored event name, falling back to configuration."""
    try:
        details = db.query(EventDetails).order_by(desc(EventDetails.created_at), desc(EventDetails.id)).first()
    except SQLAlchemyError as e:
        logger.warning(f"Error fetching event name, using configured value: {e}")
        db.rollback()
        return config.event_name
    if details and details.event_name:
        return details.event_name
    return config.event_name


def send_template_email(
    db: Session,
    template: Union[EmailTemplate, int, str],
    recipient_email: str,
    recipient_name: str,
    context: EmailContext,
    log_email: bool = True,
) -> TemplateSendResult:
    """Render a template against the context, send it and record it in email_log."""
    if not isinstance(template, EmailTemplate):
        key = template
        template = get_email_template(db, key)
        if template is None:
            return TemplateSendResult(
                success=False,
                error=f'Email template "{key}" not found or disabled',
            )

    subject = substitute_variables(template.subject, context)
    body_text = substitute_variables(template.body_text, context)
    body_html = None
    if template.body_html and template.body_html.strip():
        body_html = substitute_variables(template.body_html, context)

    result = email_service.send_email(
        to=recipient_email,
        subject=subject,
        body_text=body_text,
        body_html=body_html,
    )

    email_log_id = None
    if log_email:
        email_log_id = _log_email(
            db,
            template=template,
            recipient_email=recipient_email,
            recipient_name=recipient_name,
            subject=subject,
            body_text=body_text,
            body_html=body_html,
            variables=variables_used(context),
            success=result.success,
            message_id=result.message_id,
            error_message=result.error,
        )

    return TemplateSendResult(
        success=result.success,
        message_id=result.message_id,
        error=result.error,
        template_id=template.id,
        email_log_id=email_log_id,
    )


def _log_email(
    db: Session,
    template: EmailTemplate,
    recipient_email: str,
    recipient_name: str,
    subject: str,
    body_text: str,
    body_html: Optional[str],
    variables: dict,
    success: bool,
    message_id: Optional[str],
    error_message: Optional[str],
) -> Optional[int]:
    entry = EmailLog(
        template_id=template.id,
        template_name=template.name,
        recipient_email=recipient_email,
        recipient_name=recipient_name,
        subject=subject,
        body_text=body_text,
        body_html=body_html,
        variables_used=variables,
        status="sent" if success else "failed",
        message_id=message_id,
        error_message=error_message,
        sent_at=datetime.now(timezone.utc) if success else None,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        # Audit failure never fails the send
        logger.error(f"Error logging email to {recipient_email}: {e}")
        db.rollback()
        return None
    return entry.id
