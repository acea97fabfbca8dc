import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from eventpay.config import EventConfig, get_event_config
from eventpay.db import get_db
from eventpay.dependencies import verify_cron_request
from eventpay.schemas.reminder import ReminderRunResponse
from eventpay.services.scheduler import local_today, run_deadline_reminders

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


@router.get(
    "/deadline-reminders",
    response_model=ReminderRunResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_cron_request)],
)
def trigger_deadline_reminders(
    db: Session = Depends(get_db),
    config: EventConfig = Depends(get_event_config),
):
    """Run the daily deadline reminder job. Partial failures are reported, not raised."""
    summary = run_deadline_reminders(db, today=local_today(), config=config)
    return ReminderRunResponse(
        success=summary.success,
        message=summary.message,
        reminders_sent=summary.reminders_sent,
        errors=summary.errors or None,
        log_errors=summary.log_errors or None,
    )
