"""Check-in code email.

Delivery is best-effort: by the time a message is sent the registration
is already committed, so a failed send is logged and reported back as
``emailSent: false`` instead of failing the request.
"""
import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from reunion.collaborators import MailClient
from reunion.core.errors import CollaboratorFailure
from reunion.models import RegistrationRecord

logger = logging.getLogger(__name__)

SUBJECT = "Your Family Reunion QR Code"

templates = Environment(
    loader=FileSystemLoader(Path(__file__).resolve().parent.parent / "templates"),
    autoescape=select_autoescape(["html"]),
)


def render_checkin_email(record: RegistrationRecord) -> str:
    return templates.get_template("email/checkin_code.html").render(record=record)


class NotificationDispatcher:
    """Sends a registrant their check-in code."""

    def __init__(self, mail: MailClient):
        self.mail = mail

    async def send_checkin_code(self, record: RegistrationRecord) -> bool:
        """Email the record's check-in code. Returns whether it was sent."""
        html = render_checkin_email(record)
        try:
            await self.mail.send(record.email, record.participant_name, SUBJECT, html)
        except CollaboratorFailure as e:
            logger.error(f"Check-in email to {record.email} failed: {e.message}")
            return False
        return True
