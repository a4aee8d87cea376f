"""Booking confirmation emails.

The dispatcher is fire-and-forget: it is scheduled after the booking has
been stored, and a delivery failure is logged, never raised to the caller.
"""
import html
from typing import Any, Dict, Optional, Protocol

import requests
from pydantic import BaseModel
from requests.adapters import HTTPAdapter

from drs_care.errors import MailTransportError
from drs_care.logging_config import get_logger

logger = get_logger(__name__)


class EmailMessage(BaseModel):
    sender: str
    to: str
    subject: str
    text: str
    html: str


class MailTransport(Protocol):
    def send(self, message: EmailMessage) -> None:
        ...


def build_confirmation(booking: Dict[str, Any], sender: str, clinic_address: str) -> EmailMessage:
    """
    Format the confirmation email for a stored booking.

    Args:
        booking: Booking record (treatment, date, slot, patientEmail, patientName)
        sender: From address; also the recipient when the booking has no email
        clinic_address: Address line shown in the HTML body

    Returns:
        EmailMessage ready for a transport
    """
    treatment = booking.get("treatment")
    date = booking.get("date")
    slot = booking.get("slot")
    summary = f"your appointment for {treatment} is on {date} at {slot}"

    body = f"""
        <div>
            <p>Hello {html.escape(str(booking.get("patientName") or ""))}</p>
            <h3>your appointment for {html.escape(str(treatment))} is confirmed</h3>
            <p>looking forward to seeing you on {html.escape(str(date))} at {html.escape(str(slot))}</p>

            <h3>our address</h3>
            <p>{html.escape(clinic_address)}</p>
        </div>
        """

    return EmailMessage(
        sender=sender,
        to=booking.get("patientEmail") or sender,
        subject=summary,
        text=summary,
        html=body,
    )


def create_http_session(pool_size: int = 10) -> requests.Session:
    """
    Create HTTP session with connection pooling and no retries.

    Args:
        pool_size: Connections kept per host

    Returns:
        Configured requests.Session
    """
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=0, pool_connections=pool_size, pool_maxsize=pool_size)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class SendGridTransport:
    """Deliver mail through the SendGrid v3 HTTP API."""

    def __init__(
        self,
        api_key: str,
        api_url: str,
        session: Optional[requests.Session] = None,
        timeout: int = 15
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.session = session or create_http_session()
        self.timeout = timeout

    @staticmethod
    def payload(message: EmailMessage) -> Dict[str, Any]:
        return {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": message.sender},
            "subject": message.subject,
            "content": [
                {"type": "text/plain", "value": message.text},
                {"type": "text/html", "value": message.html},
            ],
        }

    def send(self, message: EmailMessage) -> None:
        """
        POST the message to SendGrid.

        Raises:
            MailTransportError: On connection failure or a non-2xx response
        """
        try:
            response = self.session.post(
                self.api_url,
                json=self.payload(message),
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise MailTransportError(f"SendGrid request failed: {e}") from e

        if response.status_code >= 300:
            raise MailTransportError(
                f"SendGrid rejected message: HTTP {response.status_code} {response.text[:200]}"
            )

    def close(self):
        self.session.close()


class LoggingTransport:
    """Development transport: logs messages instead of sending them. Keeps no state."""

    def send(self, message: EmailMessage) -> None:
        logger.info("email_not_sent", reason="no mail API key configured",
                    to=message.to, subject=message.subject)


class NotificationDispatcher:
    """Formats and hands off booking confirmations."""

    def __init__(self, transport: MailTransport, sender: str, clinic_address: str):
        self.transport = transport
        self.sender = sender
        self.clinic_address = clinic_address

    def dispatch(self, booking: Dict[str, Any]) -> bool:
        """
        Send the confirmation for booking.

        Never raises; failures are logged.

        Returns:
            True if the transport accepted the message, False otherwise
        """
        message = build_confirmation(booking, self.sender, self.clinic_address)
        try:
            self.transport.send(message)
        except MailTransportError as e:
            logger.warning("confirmation_email_failed", to=message.to, error=str(e))
            return False
        except Exception:
            logger.exception("confirmation_email_failed", to=message.to)
            return False

        logger.info("confirmation_email_sent", to=message.to,
                    treatment=booking.get("treatment"), date=booking.get("date"))
        return True
