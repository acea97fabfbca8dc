import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from eventpay.config import EventConfig, get_event_config
from eventpay.db import get_db
from eventpay.dependencies import Authorization, get_current_profile, require_admin
from eventpay.models.deadline import PaymentDeadline
from eventpay.models.payment import Payment
from eventpay.models.profile import Profile
from eventpay.schemas.email_template import EventType
from eventpay.schemas.payment import (
    AdminPaymentCreate,
    PaymentCreate,
    PaymentResponse,
    PaymentStatus,
    PendingPaymentResponse,
)
from eventpay.services.balances import profile_snapshot
from eventpay.services.notifications import get_event_name, send_template_email
from eventpay.services.variables import PaymentSnapshot, build_email_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])
admin_router = APIRouter(
    prefix="/admin/payments",
    tags=["payments"],
    dependencies=[Depends(require_admin)],
)


def utc_now():
    return datetime.now(timezone.utc)


def notify_payment_event(
    db: Session,
    config: EventConfig,
    event_type: EventType,
    profile: Profile,
    payment: Payment,
) -> None:
    """Send the template for a payment event. Failures are logged and never raised."""
    if not profile.email:
        return

    try:
        deadline_label = None
        if payment.deadline_id:
            deadline = db.query(PaymentDeadline).filter(PaymentDeadline.id == payment.deadline_id).first()
            deadline_label = deadline.label if deadline else None

        context = build_email_context(
            config,
            profile=profile_snapshot(db, profile),
            payment=PaymentSnapshot(
                id=payment.id,
                amount=payment.amount,
                status=payment.status,
                note=payment.note,
                created_at=payment.created_at,
                deadline_label=deadline_label,
            ),
            event_name=get_event_name(db, config),
        )
        result = send_template_email(db, event_type.value, profile.email, profile.full_name, context)
        if not result.success:
            logger.warning(f"{event_type.value} email for payment {payment.id} not sent: {result.error}")
    except Exception as e:
        logger.error(f"Error sending {event_type.value} email for payment {payment.id}: {e}")


def get_payment_or_404(db: Session, payment_id: int) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payment not found",
        )
    return payment


def get_pending_payment(db: Session, payment_id: int) -> Payment:
    payment = get_payment_or_404(db, payment_id)
    if payment.status != PaymentStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Payment is already {payment.status}",
        )
    return payment


def admin_payment_note(note: Optional[str], payment_date: Optional[date]) -> Optional[str]:
    """Fold the payment date into the note as dd/mm/yyyy."""
    note = (note or "").strip() or None
    if payment_date is None:
        return note
    formatted = payment_date.strftime("%d/%m/%Y")
    if note:
        return f"{note} (Date: {formatted})"
    return f"Payment Date: {formatted}"


@router.get("", response_model=list[PaymentResponse])
async def list_my_payments(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """List the current guest's payment claims, newest first."""
    return (
        db.query(Payment)
        .filter(Payment.profile_id == profile.id)
        .order_by(desc(Payment.created_at), desc(Payment.id))
        .all()
    )


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def submit_payment(
    payment_data: PaymentCreate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    config: EventConfig = Depends(get_event_config),
):
    """Submit a payment claim for an admin to confirm."""
    if payment_data.deadline_id is not None:
        deadline = db.query(PaymentDeadline).filter(PaymentDeadline.id == payment_data.deadline_id).first()
        if not deadline:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Deadline not found",
            )

    payment = Payment(
        profile_id=profile.id,
        user_id=profile.user_id,
        deadline_id=payment_data.deadline_id,
        amount=payment_data.amount,
        note=payment_data.note,
        status=PaymentStatus.PENDING.value,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)

    notify_payment_event(db, config, EventType.PAYMENT_SUBMITTED, profile, payment)
    db.refresh(payment)
    return payment


@admin_router.get("/pending", response_model=list[PendingPaymentResponse])
async def list_pending_payments(db: Session = Depends(get_db)):
    """List payment claims waiting for review, oldest first."""
    rows = (
        db.query(Payment, Profile)
        .join(Profile, Payment.profile_id == Profile.id)
        .filter(Payment.status == PaymentStatus.PENDING.value)
        .order_by(asc(Payment.created_at), asc(Payment.id))
        .all()
    )
    return [
        PendingPaymentResponse(
            **PaymentResponse.model_validate(payment).model_dump(),
            guest_name=profile.full_name,
            guest_email=profile.email,
        )
        for payment, profile in rows
    ]


@admin_router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def add_payment_for_guest(
    payment_data: AdminPaymentCreate,
    db: Session = Depends(get_db),
):
    """
    Record a payment on a guest's behalf. It lands as pending and the
    guest is emailed only once it is confirmed.
    """
    profile = db.query(Profile).filter(Profile.id == payment_data.profile_id).first()
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )

    payment = Payment(
        profile_id=profile.id,
        user_id=profile.user_id,
        amount=payment_data.amount,
        note=admin_payment_note(payment_data.note, payment_data.payment_date),
        status=PaymentStatus.PENDING.value,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info(f"Admin recorded payment {payment.id} of {payment.amount} for profile {profile.id}")
    return payment


@admin_router.patch("/{payment_id}/confirm", response_model=PaymentResponse)
def confirm_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    authorization: Authorization = Depends(require_admin),
    config: EventConfig = Depends(get_event_config),
):
    """Confirm a pending payment and notify the guest."""
    payment = get_pending_payment(db, payment_id)
    payment.status = PaymentStatus.CONFIRMED.value
    payment.confirmed_at = utc_now()
    payment.confirmed_by = authorization.user.id
    db.commit()
    db.refresh(payment)

    profile = db.query(Profile).filter(Profile.id == payment.profile_id).first()
    if profile:
        notify_payment_event(db, config, EventType.PAYMENT_APPROVED, profile, payment)
        db.refresh(payment)
    return payment


@admin_router.patch("/{payment_id}/reject", response_model=PaymentResponse)
def reject_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    config: EventConfig = Depends(get_event_config),
):
    """Reject a pending payment and notify the guest."""
    payment = get_pending_payment(db, payment_id)
    payment.status = PaymentStatus.REJECTED.value
    db.commit()
    db.refresh(payment)

    profile = db.query(Profile).filter(Profile.id == payment.profile_id).first()
    if profile:
        notify_payment_event(db, config, EventType.PAYMENT_REJECTED, profile, payment)
        db.refresh(payment)
    return payment
