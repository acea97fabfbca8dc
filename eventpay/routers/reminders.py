from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc
from sqlalchemy.orm import Session

from eventpay.db import get_db
from eventpay.dependencies import require_admin
from eventpay.models.reminder_log import ReminderLog
from eventpay.schemas.reminder import ReminderLogListResponse, ReminderLogResponse

router = APIRouter(
    prefix="/admin/reminders",
    tags=["reminders"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=ReminderLogListResponse)
async def get_reminder_history(
    limit: int = Query(default=50, ge=1, le=100, description="Page size (max 100)"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    profile_id: int | None = Query(default=None, description="Filter by guest profile"),
    db: Session = Depends(get_db),
):
    """Get the deadline reminder history, newest first."""
    query = db.query(ReminderLog)
    if profile_id is not None:
        query = query.filter(ReminderLog.profile_id == profile_id)

    total_count = query.count()

    reminders = (
        query.order_by(desc(ReminderLog.sent_date), desc(ReminderLog.id))
        .offset(offset)
        .limit(limit)
        .all()
    )

    return ReminderLogListResponse(
        items=[ReminderLogResponse.model_validate(r) for r in reminders],
        total_count=total_count,
        offset=offset,
        limit=limit,
    )
