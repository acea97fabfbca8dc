from sqlalchemy import func
from sqlalchemy.orm import Session

from eventpay.models.payment import Payment
from eventpay.models.profile import Profile
from eventpay.services.variables import ProfileSnapshot


def confirmed_payments_total(db: Session, profile_id: int) -> float:
    total = (
        db.query(func.coalesce(func.sum(Payment.amount), 0.0))
        .filter(
            Payment.profile_id == profile_id,
            Payment.status == "confirmed",
        )
        .scalar()
    )
    return float(total or 0)


def profile_balance(db: Session, profile: Profile) -> tuple[float, float]:
    """Return (confirmed_total, remaining) for a guest."""
    confirmed_total = float(profile.initial_confirmed_paid or 0) + confirmed_payments_total(db, profile.id)
    remaining = float(profile.total_due or 0) - confirmed_total
    return confirmed_total, remaining


def profile_snapshot(db: Session, profile: Profile) -> ProfileSnapshot:
    confirmed_total, remaining = profile_balance(db, profile)
    return ProfileSnapshot(
        id=profile.id,
        full_name=profile.full_name,
        email=profile.email,
        total_due=float(profile.total_due or 0),
        initial_confirmed_paid=float(profile.initial_confirmed_paid or 0),
        confirmed_total=confirmed_total,
        remaining=remaining,
    )
