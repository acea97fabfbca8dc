"""Tests for template lookup and template email sending."""

from unittest.mock import patch

from eventpay.models.email_log import EmailLog
from eventpay.models.email_template import EmailTemplate
from eventpay.models.event_details import EventDetails
from eventpay.services.email import SendResult
from eventpay.services.notifications import get_email_template, get_event_name, send_template_email
from eventpay.services.variables import EmailContext, ProfileSnapshot


def add_template(db_session, name, event_type="payment_approved", enabled=True, body_html=None):
    template = EmailTemplate(
        name=name,
        subject="Hi {name}",
        body_text="Remaining: {remaining}",
        body_html=body_html,
        event_type=event_type,
        enabled=enabled,
    )
    db_session.add(template)
    db_session.commit()
    db_session.refresh(template)
    return template


class TestGetEmailTemplate:
    def test_lookup_by_id_name_and_event_type(self, db_session):
        template = add_template(db_session, "Approved")

        assert get_email_template(db_session, template.id).id == template.id
        assert get_email_template(db_session, str(template.id)).id == template.id
        assert get_email_template(db_session, "Approved").id == template.id
        assert get_email_template(db_session, "payment_approved").id == template.id

    def test_disabled_template_is_not_found(self, db_session):
        add_template(db_session, "Approved", enabled=False)

        assert get_email_template(db_session, "payment_approved") is None


class TestGetEventName:
    def test_falls_back_to_config(self, db_session, event_config):
        assert get_event_name(db_session, event_config) == "Summer Weekend 2026"

    def test_prefers_stored_event_details(self, db_session, event_config):
        db_session.add(EventDetails(event_name="Winter Retreat"))
        db_session.commit()

        assert get_event_name(db_session, event_config) == "Winter Retreat"


class TestSendTemplateEmail:
    def test_renders_and_logs(self, db_session):
        add_template(db_session, "Approved", body_html="<p>{name}</p>")
        context = EmailContext(
            profile=ProfileSnapshot(id=1, full_name="Ann", email="ann@example.com", total_due=100, remaining=60)
        )

        with patch("eventpay.services.notifications.email_service") as mock_email:
            mock_email.send_email.return_value = SendResult(success=True, message_id="email-123")
            result = send_template_email(db_session, "payment_approved", "ann@example.com", "Ann", context)

        assert result.success is True
        assert mock_email.send_email.call_args.kwargs == {
            "to": "ann@example.com",
            "subject": "Hi Ann",
            "body_text": "Remaining: £60.00",
            "body_html": "<p>Ann</p>",
        }
        log = db_session.query(EmailLog).filter(EmailLog.id == result.email_log_id).first()
        assert log.status == "sent"
        assert log.sent_at is not None
        assert log.variables_used["name"] == "Ann"

    def test_missing_template(self, db_session):
        with patch("eventpay.services.notifications.email_service") as mock_email:
            result = send_template_email(db_session, "payment_approved", "ann@example.com", "Ann", EmailContext())

        assert result.success is False
        assert "not found" in result.error
        mock_email.send_email.assert_not_called()

    def test_skip_logging(self, db_session):
        template = add_template(db_session, "Approved")

        with patch("eventpay.services.notifications.email_service") as mock_email:
            mock_email.send_email.return_value = SendResult(success=True, message_id="email-123")
            result = send_template_email(
                db_session, template, "ann@example.com", "Ann", EmailContext(), log_email=False
            )

        assert result.success is True
        assert result.email_log_id is None
        assert db_session.query(EmailLog).count() == 0
