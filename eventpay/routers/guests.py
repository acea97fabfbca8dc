"""Guest profile management endpoints (admin only)."""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from eventpay.config import EventConfig, get_event_config
from eventpay.db import get_db
from eventpay.dependencies import require_admin
from eventpay.models.payment import Payment
from eventpay.models.profile import Profile
from eventpay.models.reminder_log import ReminderLog
from eventpay.schemas.email_template import EventType
from eventpay.schemas.profile import (
    GuestBalanceResponse,
    GuestCreate,
    GuestDeleteResponse,
    GuestResponse,
    GuestUpdate,
    SignupLinkResponse,
)
from eventpay.services.balances import profile_snapshot
from eventpay.services.notifications import get_event_name, send_template_email
from eventpay.services.variables import build_email_context

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/guests",
    tags=["guests"],
    dependencies=[Depends(require_admin)],
)

SIGNUP_LINK_TTL = timedelta(days=30)


def utc_now():
    return datetime.now(timezone.utc)


def get_profile_or_404(db: Session, profile_id: int) -> Profile:
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    return profile


def ensure_email_available(db: Session, email: str | None, exclude_id: int | None = None) -> None:
    if not email:
        return
    query = db.query(Profile).filter(func.lower(Profile.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(Profile.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A guest with email '{email}' already exists",
        )


@router.get("", response_model=list[GuestBalanceResponse])
async def list_guests(db: Session = Depends(get_db)):
    """List every guest with their confirmed total and remaining balance."""
    profiles = db.query(Profile).order_by(Profile.full_name).all()

    confirmed_by_profile = dict(
        db.query(Payment.profile_id, func.sum(Payment.amount))
        .filter(Payment.status == "confirmed")
        .group_by(Payment.profile_id)
        .all()
    )

    guests = []
    for profile in profiles:
        confirmed_total = float(profile.initial_confirmed_paid or 0) + float(
            confirmed_by_profile.get(profile.id) or 0
        )
        guests.append(
            GuestBalanceResponse(
                **GuestResponse.model_validate(profile).model_dump(),
                confirmed_total=confirmed_total,
                remaining=float(profile.total_due or 0) - confirmed_total,
            )
        )
    return guests


@router.post("", response_model=GuestResponse, status_code=status.HTTP_201_CREATED)
async def add_guest(guest_data: GuestCreate, db: Session = Depends(get_db)):
    """Add a guest profile. It stays unclaimed until the guest signs up."""
    ensure_email_available(db, guest_data.email)

    profile = Profile(
        full_name=guest_data.full_name,
        email=guest_data.email,
        total_due=guest_data.total_due,
        initial_confirmed_paid=guest_data.initial_confirmed_paid,
        is_admin=guest_data.is_admin,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info(f"Added guest {profile.id} ({profile.full_name})")
    return profile


@router.patch("/{profile_id}", response_model=GuestResponse)
async def update_guest(
    profile_id: int,
    guest_data: GuestUpdate,
    db: Session = Depends(get_db),
):
    """Update a guest profile. Only provided fields change."""
    profile = get_profile_or_404(db, profile_id)
    update_data = guest_data.model_dump(exclude_unset=True)

    if update_data.get("email"):
        ensure_email_available(db, update_data["email"], exclude_id=profile.id)

    for field, value in update_data.items():
        if field in ("full_name", "total_due", "initial_confirmed_paid", "is_admin") and value is None:
            continue
        setattr(profile, field, value)

    db.commit()
    db.refresh(profile)
    return profile


@router.delete("/{profile_id}", response_model=GuestDeleteResponse)
async def delete_guest(profile_id: int, db: Session = Depends(get_db)):
    """Delete a guest with their payments and reminder history."""
    profile = get_profile_or_404(db, profile_id)
    full_name = profile.full_name

    db.query(ReminderLog).filter(ReminderLog.profile_id == profile_id).delete()
    db.query(Payment).filter(Payment.profile_id == profile_id).delete()
    db.delete(profile)
    db.commit()
    logger.info(f"Deleted guest {profile_id} ({full_name})")

    return GuestDeleteResponse(
        success=True,
        message=f'Guest "{full_name}" has been deleted successfully.',
    )


@router.post("/{profile_id}/signup-link", response_model=SignupLinkResponse)
def send_signup_link(
    profile_id: int,
    request: Request,
    db: Session = Depends(get_db),
    config: EventConfig = Depends(get_event_config),
):
    """
    Generate a signup link for an unclaimed guest and email it with the
    signup_link template. The link is returned either way so it can be
    shared by hand when the email fails.
    """
    profile = get_profile_or_404(db, profile_id)
    if profile.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Profile is already claimed. Cannot send signup link for linked profiles.",
        )
    if not profile.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Profile has no email address. Cannot send signup link.",
        )

    token = secrets.token_hex(32)
    expires_at = utc_now() + SIGNUP_LINK_TTL
    profile.signup_token = token
    profile.signup_token_expires_at = expires_at
    db.commit()
    db.refresh(profile)

    base_url = config.app_url or str(request.base_url).rstrip("/")
    signup_url = f"{base_url}/signup/{profile.id}/{token}"
    recipient_email, full_name = profile.email, profile.full_name

    context = build_email_context(
        config,
        profile=profile_snapshot(db, profile),
        event_name=get_event_name(db, config),
        signup_link=signup_url,
    )
    result = send_template_email(db, EventType.SIGNUP_LINK.value, recipient_email, full_name, context)

    if not result.success:
        logger.warning(f"Signup link for profile {profile_id} generated but not emailed: {result.error}")
        return SignupLinkResponse(
            success=True,
            warning="Signup link generated but email failed to send",
            error=result.error,
            signup_url=signup_url,
            profile_id=profile_id,
            profile_name=full_name,
            expires_at=expires_at,
            email_sent=False,
        )

    return SignupLinkResponse(
        success=True,
        message=f"Signup link sent to {recipient_email}",
        signup_url=signup_url,
        profile_id=profile_id,
        profile_name=full_name,
        expires_at=expires_at,
        email_sent=True,
    )
