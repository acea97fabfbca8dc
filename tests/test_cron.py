"""Tests for the cron-triggered deadline reminder endpoint."""

from datetime import date, timedelta
from unittest.mock import patch

import pytest

from eventpay.config import settings
from eventpay.models.deadline import PaymentDeadline
from eventpay.models.email_template import EmailTemplate
from eventpay.models.profile import Profile
from eventpay.models.reminder_log import ReminderLog
from eventpay.models.user import User
from eventpay.services.email import SendResult

TODAY = date(2026, 1, 25)


@pytest.fixture
def cron_secret(monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")
    return "s3cret"


@pytest.fixture
def reminder_setup(db_session):
    db_session.add(
        EmailTemplate(
            name="Deadline reminder",
            subject="{deadline_label} in {days_away} days",
            body_text="Hi {name}, {remaining} left to pay.",
            event_type="deadline_reminder",
            reminder_days=[7],
        )
    )
    db_session.add(PaymentDeadline(label="Final Payment", due_date=TODAY + timedelta(days=7)))
    user = User(email="ann@example.com")
    db_session.add(user)
    db_session.commit()
    db_session.add(Profile(user_id=user.id, full_name="Ann", email=user.email, total_due=100))
    db_session.commit()


class TestCronAuthentication:
    def test_rejects_missing_secret(self, client, cron_secret):
        response = client.get("/cron/deadline-reminders")
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized"

    def test_rejects_wrong_secret(self, client, cron_secret):
        response = client.get(
            "/cron/deadline-reminders",
            headers={"Authorization": "Bearer nope"},
        )
        assert response.status_code == 401

    def test_accepts_bearer_secret(self, client, cron_secret):
        response = client.get(
            "/cron/deadline-reminders",
            headers={"Authorization": f"Bearer {cron_secret}"},
        )
        assert response.status_code == 200

    def test_accepts_token_query_parameter(self, client, cron_secret):
        response = client.get(f"/cron/deadline-reminders?token={cron_secret}")
        assert response.status_code == 200

    def test_user_agent_alone_is_not_trusted_by_default(self, client, cron_secret):
        response = client.get(
            "/cron/deadline-reminders",
            headers={"User-Agent": "vercel-cron/1.0"},
        )
        assert response.status_code == 401

    def test_accepts_configured_trusted_user_agent(self, client, cron_secret, monkeypatch):
        monkeypatch.setattr(settings, "cron_trusted_user_agent", "vercel-cron")
        response = client.get(
            "/cron/deadline-reminders",
            headers={"User-Agent": "vercel-cron/1.0"},
        )
        assert response.status_code == 200

    def test_open_when_no_secret_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "cron_secret", "")
        response = client.get("/cron/deadline-reminders")
        assert response.status_code == 200


class TestCronRun:
    def test_no_templates_configured(self, client, cron_secret):
        response = client.get(f"/cron/deadline-reminders?token={cron_secret}")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "No deadline reminder templates configured"
        assert data["remindersSent"] == 0
        assert "errors" not in data
        assert "logErrors" not in data

    def test_sends_and_reports_count(self, client, db_session, cron_secret, reminder_setup):
        with patch("eventpay.routers.cron.local_today", return_value=TODAY), \
                patch("eventpay.services.notifications.email_service") as mock_email:
            mock_email.send_email.return_value = SendResult(success=True, message_id="email-123")
            response = client.get(f"/cron/deadline-reminders?token={cron_secret}")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Processed 1 reminder template(s)"
        assert data["remindersSent"] == 1
        assert db_session.query(ReminderLog).count() == 1

    def test_rerun_same_day_sends_nothing(self, client, db_session, cron_secret, reminder_setup):
        with patch("eventpay.routers.cron.local_today", return_value=TODAY), \
                patch("eventpay.services.notifications.email_service") as mock_email:
            mock_email.send_email.return_value = SendResult(success=True, message_id="email-123")
            client.get(f"/cron/deadline-reminders?token={cron_secret}")
            response = client.get(f"/cron/deadline-reminders?token={cron_secret}")

        assert response.json()["remindersSent"] == 0
        assert mock_email.send_email.call_count == 1

    def test_send_failures_reported_with_200(self, client, cron_secret, reminder_setup):
        with patch("eventpay.routers.cron.local_today", return_value=TODAY), \
                patch("eventpay.services.notifications.email_service") as mock_email:
            mock_email.send_email.return_value = SendResult(success=False, error="Resend is down")
            response = client.get(f"/cron/deadline-reminders?token={cron_secret}")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["remindersSent"] == 0
        assert len(data["errors"]) == 1
        assert "Resend is down" in data["errors"][0]
