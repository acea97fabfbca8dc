"""
Email template variables.

Templates reference values with ``{variable}`` or ``[variable]`` placeholders.
Names are matched case-insensitively; unknown names are rendered back as
``[name]`` so a typo in a template never blocks a send.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from eventpay.config import EventConfig

DateLike = Union[date, datetime, str, None]

AVAILABLE_VARIABLES = {
    # Profile variables
    "name": "Guest full name",
    "email": "Guest email address",
    "total_due": "Total amount due",
    "confirmed_paid": "Total confirmed paid amount",
    "remaining": "Amount remaining to pay",
    "percent_paid": "Percentage paid (0-100)",
    # Payment variables
    "payment_amount": "Payment amount",
    "payment_note": "Payment note/description",
    "payment_date": "Payment submission date",
    "payment_status": "Payment status (pending/confirmed/rejected)",
    "deadline_label": "Payment deadline label",
    # Deadline variables
    "deadline_date": "Deadline due date",
    "deadline_label_deadline": "Deadline label",
    "days_away": "Days until deadline",
    "suggested_amount": "Suggested payment amount for deadline",
    # Event variables
    "event_name": "Event name",
    "bank_account_name": "Bank account name",
    "bank_account_number": "Bank account number",
    "bank_sort_code": "Bank sort code",
    "dashboard_url": "Link to dashboard",
    "signup_link": "Signup link for guest to create an account",
}

VARIABLE_PATTERN = re.compile(r"\{([^}]+)\}|\[([^\]]+)\]")

# (prefix, decimal places) as rendered by en-GB currency formatting
CURRENCY_FORMATS = {
    "GBP": ("£", 2),
    "EUR": ("€", 2),
    "USD": ("US$", 2),
    "CAD": ("CA$", 2),
    "AUD": ("A$", 2),
    "JPY": ("JP¥", 0),
}


@dataclass
class ProfileSnapshot:
    id: Optional[int]
    full_name: str
    email: Optional[str]
    total_due: float = 0.0
    initial_confirmed_paid: float = 0.0
    confirmed_total: Optional[float] = None
    remaining: Optional[float] = None


@dataclass
class PaymentSnapshot:
    id: Optional[int]
    amount: float
    status: str
    note: Optional[str] = None
    created_at: DateLike = None
    deadline_label: Optional[str] = None


@dataclass
class DeadlineSnapshot:
    id: Optional[int]
    label: str
    due_date: DateLike
    suggested_amount: Optional[float] = None
    days_away: Optional[int] = None


@dataclass
class EmailContext:
    """Values available to one rendered email."""

    profile: Optional[ProfileSnapshot] = None
    payment: Optional[PaymentSnapshot] = None
    deadline: Optional[DeadlineSnapshot] = None
    event_name: str = ""
    bank_account_name: str = ""
    bank_account_number: str = ""
    bank_sort_code: str = ""
    dashboard_url: str = ""
    signup_link: str = ""
    currency: str = "GBP"


def build_email_context(
    config: EventConfig,
    profile: Optional[ProfileSnapshot] = None,
    payment: Optional[PaymentSnapshot] = None,
    deadline: Optional[DeadlineSnapshot] = None,
    event_name: Optional[str] = None,
    signup_link: Optional[str] = None,
) -> EmailContext:
    """Assemble an EmailContext, filling event-wide values from config."""
    return EmailContext(
        profile=profile,
        payment=payment,
        deadline=deadline,
        event_name=event_name or config.event_name,
        bank_account_name=config.bank_account_name,
        bank_account_number=config.bank_account_number,
        bank_sort_code=config.bank_sort_code,
        dashboard_url=config.dashboard_url,
        signup_link=signup_link or "",
        currency=config.currency,
    )


def available_variables() -> list[dict[str, str]]:
    return [
        {"name": f"{{{name}}}", "description": description}
        for name, description in AVAILABLE_VARIABLES.items()
    ]


def format_currency(amount: Optional[float], currency: str = "GBP") -> str:
    """Format an amount the way en-GB locales do, e.g. '£1,250.50' or '-£5.00'."""
    amount = float(amount or 0)
    code = (currency or "GBP").upper()
    prefix, places = CURRENCY_FORMATS.get(code, (f"{code} ", 2))
    sign = "-" if amount < 0 else ""
    return f"{sign}{prefix}{abs(amount):,.{places}f}"


def to_calendar_date(value: DateLike) -> Optional[date]:
    """Normalise a date, datetime or ISO string to a calendar date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def format_date(value: DateLike) -> str:
    """Long-form date such as '15 January 2026'."""
    try:
        d = to_calendar_date(value)
    except ValueError:
        return str(value)
    if d is None:
        return ""
    return f"{d.day} {d.strftime('%B %Y')}"


def percent_paid(total_due: float, paid: float) -> int:
    if not total_due:
        return 100
    # Half-up rounding, not banker's rounding
    return int(math.floor(100 * paid / total_due + 0.5))


def _paid_amount(profile: Optional[ProfileSnapshot]) -> float:
    if profile is None:
        return 0.0
    if profile.confirmed_total:
        return profile.confirmed_total
    return profile.initial_confirmed_paid or 0.0


def get_variable_value(variable_name: str, context: EmailContext) -> str:
    """Resolve one variable against the context."""
    name = re.sub(r"[{}\[\]]", "", variable_name).strip().lower()
    profile = context.profile
    payment = context.payment
    deadline = context.deadline
    currency = context.currency

    # Profile variables
    if name == "name":
        return (profile.full_name if profile else "") or "Guest"
    if name == "email":
        return (profile.email if profile else "") or ""
    if name == "total_due":
        return format_currency(profile.total_due if profile else 0, currency)
    if name == "confirmed_paid":
        return format_currency(_paid_amount(profile), currency)
    if name == "remaining":
        return format_currency(profile.remaining if profile else 0, currency)
    if name == "percent_paid":
        total = profile.total_due if profile else 0
        return str(percent_paid(total, _paid_amount(profile)))

    # Payment variables
    if name == "payment_amount":
        return format_currency(payment.amount if payment else 0, currency)
    if name == "payment_note":
        return (payment.note if payment else "") or ""
    if name == "payment_date":
        return format_date(payment.created_at) if payment and payment.created_at else ""
    if name == "payment_status":
        return (payment.status if payment else "") or ""
    if name == "deadline_label":
        if payment and payment.deadline_label:
            return payment.deadline_label
        return (deadline.label if deadline else "") or ""

    # Deadline variables
    if name == "deadline_date":
        return format_date(deadline.due_date) if deadline and deadline.due_date else ""
    if name == "deadline_label_deadline":
        return (deadline.label if deadline else "") or ""
    if name == "days_away":
        if deadline is None or deadline.days_away is None:
            return "0"
        return str(deadline.days_away)
    if name == "suggested_amount":
        return format_currency(deadline.suggested_amount if deadline else 0, currency)

    # Event variables
    if name in ("event_name", "bank_account_name", "bank_account_number", "bank_sort_code",
                "dashboard_url", "signup_link"):
        return getattr(context, name) or ""

    return f"[{variable_name}]"


def substitute_variables(text: Optional[str], context: EmailContext) -> str:
    """Replace every {variable} and [variable] placeholder in text."""
    if not text:
        return ""

    def replace(match: re.Match) -> str:
        return get_variable_value(match.group(1) or match.group(2), context)

    return VARIABLE_PATTERN.sub(replace, text)


def variables_used(context: EmailContext) -> dict:
    """Flatten the context into the JSON stored alongside a sent email."""
    return {
        name: get_variable_value(name, context)
        for name in AVAILABLE_VARIABLES
    }
