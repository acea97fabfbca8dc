import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Optional

from eventpay.config import settings

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EmailService:
    """Email service using Resend API."""

    def __init__(self):
        self._client = None
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email-send")
        if settings.resend_api_key:
            import resend

            resend.api_key = settings.resend_api_key
            self._client = resend
            logger.info("Resend email service initialized")
        else:
            logger.warning("RESEND_API_KEY not configured, emails will be logged only")

    def send_email(
        self,
        to: str,
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
        from_address: Optional[str] = None,
    ) -> SendResult:
        """
        Send a single email.

        Plain text bodies are reused as HTML (newlines become <br>) when no
        HTML body is given. A send that exceeds the configured timeout is
        reported as failed.
        """
        if not self._client:
            logger.info(f"[DRY RUN] Would send email to {to}: {subject}")
            return SendResult(success=True, message_id="dry-run-id")

        params = {
            "from": from_address or settings.email_from_address,
            "to": [to],
            "subject": subject,
            "text": body_text,
            "html": body_html or body_text.replace("\n", "<br>"),
        }

        try:
            future = self._executor.submit(self._client.Emails.send, params)
            response = future.result(timeout=settings.email_send_timeout_seconds)
        except FutureTimeoutError:
            error_msg = f"Timed out after {settings.email_send_timeout_seconds}s"
            # Only a send still waiting for a worker can be withdrawn
            if not future.cancel():
                logger.warning(f"Send to {to} was already in flight when it timed out and may still be delivered")
            logger.error(f"Failed to send email to {to}: {error_msg}")
            return SendResult(success=False, error=error_msg)
        except Exception as e:
            error_msg = str(e) or e.__class__.__name__
            logger.error(f"Failed to send email to {to}: {error_msg}")
            return SendResult(success=False, error=error_msg)

        email_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info(f"Email sent to {to}, id: {email_id}")
        return SendResult(success=True, message_id=email_id)


# Singleton instance
email_service = EmailService()
