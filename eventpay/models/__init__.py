from eventpay.models.deadline import PaymentDeadline
from eventpay.models.email_log import EmailLog
from eventpay.models.email_template import EmailTemplate
from eventpay.models.event_details import EventDetails
from eventpay.models.payment import Payment
from eventpay.models.profile import Profile
from eventpay.models.reminder_log import ReminderLog
from eventpay.models.reminder_schedule import ReminderSchedule
from eventpay.models.user import User

__all__ = [
    "EmailLog",
    "EmailTemplate",
    "EventDetails",
    "Payment",
    "PaymentDeadline",
    "Profile",
    "ReminderLog",
    "ReminderSchedule",
    "User",
]
