import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from eventpay.config import EventConfig, get_event_config
from eventpay.db import get_db
from eventpay.dependencies import get_current_profile
from eventpay.models.profile import Profile
from eventpay.schemas.email_template import EventType
from eventpay.schemas.profile import WelcomeEmailResponse
from eventpay.services.balances import profile_snapshot
from eventpay.services.notifications import get_event_name, send_template_email
from eventpay.services.variables import build_email_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email", tags=["signup"])


@router.post("/signup-welcome", response_model=WelcomeEmailResponse)
def send_signup_welcome(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    config: EventConfig = Depends(get_event_config),
):
    """Send the signup template to the guest who just claimed their profile."""
    if not profile.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Profile has no email address",
        )

    context = build_email_context(
        config,
        profile=profile_snapshot(db, profile),
        event_name=get_event_name(db, config),
    )
    result = send_template_email(db, EventType.SIGNUP.value, profile.email, profile.full_name, context)

    if not result.success:
        logger.warning(f"Welcome email for profile {profile.id} not sent: {result.error}")
        return WelcomeEmailResponse(
            success=False,
            warning="Failed to send welcome email",
            error=result.error,
        )

    return WelcomeEmailResponse(success=True, message="Welcome email sent successfully")
