"""Tests for email template variable substitution."""

from datetime import date, datetime, timezone

import pytest

from eventpay.config import EventConfig
from eventpay.services.variables import (
    AVAILABLE_VARIABLES,
    DeadlineSnapshot,
    EmailContext,
    PaymentSnapshot,
    ProfileSnapshot,
    available_variables,
    build_email_context,
    format_currency,
    format_date,
    substitute_variables,
    variables_used,
)


@pytest.fixture
def ann_context():
    """Ann owes 100, has 40 confirmed up front and no confirmed payments."""
    return EmailContext(
        profile=ProfileSnapshot(
            id=1,
            full_name="Ann",
            email="ann@example.com",
            total_due=100,
            initial_confirmed_paid=40,
            confirmed_total=40,
            remaining=60,
        ),
    )


class TestSubstituteVariables:
    def test_name_and_remaining(self, ann_context):
        assert substitute_variables("{name} owes {remaining}", ann_context) == "Ann owes £60.00"

    def test_square_bracket_syntax(self, ann_context):
        assert substitute_variables("[name] owes [remaining]", ann_context) == "Ann owes £60.00"

    def test_case_insensitive_names(self, ann_context):
        assert substitute_variables("{NAME} / [Remaining]", ann_context) == "Ann / £60.00"

    def test_repeated_placeholders(self, ann_context):
        assert substitute_variables("{name}, {name}, [name]!", ann_context) == "Ann, Ann, Ann!"

    def test_unknown_placeholder_passthrough(self, ann_context):
        assert substitute_variables("Hello {bogus}", ann_context) == "Hello [bogus]"

    def test_unknown_placeholder_keeps_original_spelling(self, ann_context):
        assert substitute_variables("Hi {Bogus_Thing} [other]", ann_context) == "Hi [Bogus_Thing] [other]"

    def test_empty_text(self, ann_context):
        assert substitute_variables("", ann_context) == ""
        assert substitute_variables(None, ann_context) == ""

    def test_text_without_placeholders_unchanged(self, ann_context):
        assert substitute_variables("Nothing to see here.", ann_context) == "Nothing to see here."

    def test_deterministic(self, ann_context):
        template = "{name} paid {confirmed_paid} of {total_due} ({percent_paid}%)"
        first = substitute_variables(template, ann_context)
        assert first == substitute_variables(template, ann_context)
        assert first == "Ann paid £40.00 of £100.00 (40%)"


class TestProfileVariables:
    def test_missing_profile_defaults(self):
        context = EmailContext()
        assert substitute_variables("{name}|{email}|{total_due}|{remaining}", context) == "Guest||£0.00|£0.00"

    def test_confirmed_paid_falls_back_to_initial(self):
        context = EmailContext(
            profile=ProfileSnapshot(id=1, full_name="Bo", email=None, total_due=200, initial_confirmed_paid=50)
        )
        assert substitute_variables("{confirmed_paid}", context) == "£50.00"

    def test_percent_paid_zero_total_is_100(self):
        context = EmailContext(
            profile=ProfileSnapshot(
                id=1, full_name="Cy", email=None, total_due=0, initial_confirmed_paid=0, confirmed_total=0
            )
        )
        assert substitute_variables("{percent_paid}", context) == "100"

    def test_percent_paid_zero_total_ignores_paid_amount(self):
        context = EmailContext(
            profile=ProfileSnapshot(id=1, full_name="Cy", email=None, total_due=0, confirmed_total=75)
        )
        assert substitute_variables("{percent_paid}", context) == "100"

    def test_percent_paid_rounds_half_up(self):
        context = EmailContext(
            profile=ProfileSnapshot(id=1, full_name="Di", email=None, total_due=200, confirmed_total=125)
        )
        # 62.5% rounds to 63
        assert substitute_variables("{percent_paid}", context) == "63"

    def test_percent_paid_rounds_down_below_half(self):
        context = EmailContext(
            profile=ProfileSnapshot(id=1, full_name="Ed", email=None, total_due=100, confirmed_total=33.3)
        )
        assert substitute_variables("{percent_paid}", context) == "33"


class TestPaymentAndDeadlineVariables:
    def test_payment_variables(self):
        context = EmailContext(
            payment=PaymentSnapshot(
                id=9,
                amount=125.5,
                status="confirmed",
                note="Bank transfer",
                created_at=datetime(2026, 1, 15, 18, 30, tzinfo=timezone.utc),
                deadline_label="Deposit",
            ),
        )
        text = "{payment_amount} {payment_status} {payment_note} {payment_date} {deadline_label}"
        assert substitute_variables(text, context) == "£125.50 confirmed Bank transfer 15 January 2026 Deposit"

    def test_deadline_variables(self):
        context = EmailContext(
            deadline=DeadlineSnapshot(
                id=3,
                label="Final Payment",
                due_date=date(2026, 2, 1),
                suggested_amount=250,
                days_away=7,
            ),
        )
        text = "{deadline_label_deadline} due {deadline_date} in {days_away} days, suggest {suggested_amount}"
        assert substitute_variables(text, context) == (
            "Final Payment due 1 February 2026 in 7 days, suggest £250.00"
        )

    def test_deadline_label_prefers_payment(self):
        context = EmailContext(
            payment=PaymentSnapshot(id=1, amount=10, status="pending", deadline_label="Deposit"),
            deadline=DeadlineSnapshot(id=2, label="Final", due_date=date(2026, 2, 1)),
        )
        assert substitute_variables("{deadline_label}", context) == "Deposit"

    def test_deadline_label_falls_back_to_deadline(self):
        context = EmailContext(deadline=DeadlineSnapshot(id=2, label="Final", due_date=date(2026, 2, 1)))
        assert substitute_variables("{deadline_label}", context) == "Final"

    def test_iso_datetime_due_date_uses_calendar_date(self):
        context = EmailContext(
            deadline=DeadlineSnapshot(id=2, label="Final", due_date="2026-02-01T00:00:00Z"),
        )
        assert substitute_variables("{deadline_date}", context) == "1 February 2026"

    def test_days_away_defaults_to_zero(self):
        assert substitute_variables("{days_away}", EmailContext()) == "0"

    def test_missing_payment_renders_blank(self):
        assert substitute_variables("{payment_note}|{payment_date}", EmailContext()) == "|"


class TestEventVariables:
    def test_build_email_context_uses_config(self):
        config = EventConfig(
            event_name="Summer Weekend",
            currency="EUR",
            bank_account_name="Event Fund",
            bank_account_number="12345678",
            bank_sort_code="12-34-56",
            dashboard_url="https://events.example.com/dashboard",
        )
        context = build_email_context(config, signup_link="https://events.example.com/signup/abc")
        text = (
            "{event_name}|{bank_account_name}|{bank_account_number}|{bank_sort_code}|"
            "{dashboard_url}|{signup_link}|{payment_amount}"
        )
        assert substitute_variables(text, context) == (
            "Summer Weekend|Event Fund|12345678|12-34-56|"
            "https://events.example.com/dashboard|https://events.example.com/signup/abc|€0.00"
        )

    def test_explicit_event_name_wins(self):
        context = build_email_context(EventConfig(event_name="Configured"), event_name="Stored")
        assert substitute_variables("{event_name}", context) == "Stored"


class TestFormatting:
    @pytest.mark.parametrize(
        "amount,currency,expected",
        [
            (60, "GBP", "£60.00"),
            (1250.5, "GBP", "£1,250.50"),
            (-5, "GBP", "-£5.00"),
            (None, "GBP", "£0.00"),
            (10, "usd", "US$10.00"),
            (1500, "JPY", "JP¥1,500"),
            (10, "CHF", "CHF 10.00"),
        ],
    )
    def test_format_currency(self, amount, currency, expected):
        assert format_currency(amount, currency) == expected

    def test_format_date_unparseable_passthrough(self):
        assert format_date("next tuesday") == "next tuesday"

    def test_format_date_empty(self):
        assert format_date(None) == ""


class TestVariableCatalogue:
    def test_available_variables_list(self):
        names = [v["name"] for v in available_variables()]
        assert "{name}" in names
        assert "{signup_link}" in names
        assert len(names) == len(AVAILABLE_VARIABLES)

    def test_variables_used_flattens_every_variable(self, ann_context):
        values = variables_used(ann_context)
        assert set(values) == set(AVAILABLE_VARIABLES)
        assert values["name"] == "Ann"
        assert values["remaining"] == "£60.00"
