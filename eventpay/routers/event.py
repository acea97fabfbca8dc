import logging

from fastapi import APIRouter, Depends
from sqlalchemy import desc
from sqlalchemy.orm import Session

from eventpay.config import EventConfig, get_event_config
from eventpay.db import get_db
from eventpay.dependencies import require_admin
from eventpay.models.event_details import EventDetails
from eventpay.schemas.event import EventNameResponse, EventNameUpdate
from eventpay.services.notifications import get_event_name

logger = logging.getLogger(__name__)

router = APIRouter(tags=["event"])


@router.get("/event-name", response_model=EventNameResponse)
async def read_event_name(
    db: Session = Depends(get_db),
    config: EventConfig = Depends(get_event_config),
):
    """Current event name, falling back to the configured one."""
    return EventNameResponse(event_name=get_event_name(db, config))


@router.patch(
    "/admin/event-name",
    response_model=EventNameResponse,
    dependencies=[Depends(require_admin)],
)
async def update_event_name(
    event_data: EventNameUpdate,
    db: Session = Depends(get_db),
):
    """Rename the event. Updates the latest details row or creates the first one."""
    details = db.query(EventDetails).order_by(desc(EventDetails.created_at), desc(EventDetails.id)).first()
    if details:
        details.event_name = event_data.event_name
    else:
        details = EventDetails(event_name=event_data.event_name)
        db.add(details)

    db.commit()
    db.refresh(details)
    logger.info(f"Event renamed to {details.event_name!r}")
    return EventNameResponse(event_name=details.event_name)
