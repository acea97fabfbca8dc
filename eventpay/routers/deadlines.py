from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import asc
from sqlalchemy.orm import Session

from eventpay.db import get_db
from eventpay.dependencies import require_admin
from eventpay.models.deadline import PaymentDeadline
from eventpay.models.payment import Payment
from eventpay.models.reminder_log import ReminderLog
from eventpay.schemas.deadline import DeadlineCreate, DeadlineResponse, DeadlineUpdate

router = APIRouter(
    prefix="/admin/deadlines",
    tags=["deadlines"],
    dependencies=[Depends(require_admin)],
)


def utc_now():
    return datetime.now(timezone.utc)


def get_deadline_or_404(db: Session, deadline_id: int) -> PaymentDeadline:
    deadline = db.query(PaymentDeadline).filter(PaymentDeadline.id == deadline_id).first()
    if not deadline:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Deadline not found",
        )
    return deadline


@router.get("", response_model=list[DeadlineResponse])
async def list_deadlines(db: Session = Depends(get_db)):
    """List payment deadlines, soonest first."""
    return db.query(PaymentDeadline).order_by(asc(PaymentDeadline.due_date)).all()


@router.post("", response_model=DeadlineResponse, status_code=status.HTTP_201_CREATED)
async def create_deadline(deadline_data: DeadlineCreate, db: Session = Depends(get_db)):
    """Create a payment deadline."""
    deadline = PaymentDeadline(
        label=deadline_data.label,
        due_date=deadline_data.due_date,
        suggested_amount=deadline_data.suggested_amount,
    )
    db.add(deadline)
    db.commit()
    db.refresh(deadline)
    return deadline


@router.patch("/{deadline_id}", response_model=DeadlineResponse)
async def update_deadline(
    deadline_id: int,
    deadline_data: DeadlineUpdate,
    db: Session = Depends(get_db),
):
    """Update a payment deadline."""
    deadline = get_deadline_or_404(db, deadline_id)
    update_data = deadline_data.model_dump(exclude_unset=True)

    for field, value in update_data.items():
        if field in ("label", "due_date") and value is None:
            continue
        setattr(deadline, field, value)

    deadline.updated_at = utc_now()
    db.commit()
    db.refresh(deadline)
    return deadline


@router.delete("/{deadline_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deadline(deadline_id: int, db: Session = Depends(get_db)):
    """Delete a deadline. Payments keep their amounts but lose the deadline link."""
    deadline = get_deadline_or_404(db, deadline_id)

    db.query(Payment).filter(Payment.deadline_id == deadline_id).update({Payment.deadline_id: None})
    db.query(ReminderLog).filter(ReminderLog.deadline_id == deadline_id).delete()
    db.delete(deadline)
    db.commit()
