from eventpay.schemas.deadline import DeadlineCreate, DeadlineResponse, DeadlineUpdate
from eventpay.schemas.email_template import (
    EmailTemplateCreate,
    EmailTemplateResponse,
    EmailTemplateUpdate,
    EventType,
)
from eventpay.schemas.event import EventNameResponse, EventNameUpdate
from eventpay.schemas.payment import AdminPaymentCreate, PaymentCreate, PaymentResponse, PaymentStatus
from eventpay.schemas.profile import GuestCreate, GuestResponse, GuestUpdate
from eventpay.schemas.reminder import ReminderLogResponse, ReminderRunResponse
from eventpay.schemas.reminder_schedule import (
    ReminderScheduleCreate,
    ReminderScheduleResponse,
    ReminderScheduleUpdate,
)

__all__ = [
    "AdminPaymentCreate",
    "DeadlineCreate",
    "DeadlineResponse",
    "DeadlineUpdate",
    "EmailTemplateCreate",
    "EmailTemplateResponse",
    "EmailTemplateUpdate",
    "EventNameResponse",
    "EventNameUpdate",
    "EventType",
    "GuestCreate",
    "GuestResponse",
    "GuestUpdate",
    "PaymentCreate",
    "PaymentResponse",
    "PaymentStatus",
    "ReminderLogResponse",
    "ReminderRunResponse",
    "ReminderScheduleCreate",
    "ReminderScheduleResponse",
    "ReminderScheduleUpdate",
]
