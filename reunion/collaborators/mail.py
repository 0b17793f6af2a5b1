"""Transactional email client (Brevo HTTP API)."""
import logging

import httpx

from reunion.collaborators._http import error_message
from reunion.core.errors import CollaboratorFailure

logger = logging.getLogger(__name__)


class MailClient:
    """Sends single HTML messages from a fixed, verified sender."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_url: str,
        api_key: str,
        sender_name: str,
        sender_email: str,
    ):
        self.http = http
        self.api_url = api_url
        self.api_key = api_key
        self.sender_name = sender_name
        self.sender_email = sender_email

    async def send(self, to_email: str, to_name: str, subject: str, html: str) -> str | None:
        """Send one message. Returns the provider's message id, if any."""
        payload = {
            "sender": {"name": self.sender_name, "email": self.sender_email},
            "to": [{"email": to_email, "name": to_name}],
            "subject": subject,
            "htmlContent": html,
        }
        headers = {"api-key": self.api_key, "accept": "application/json"}
        try:
            response = await self.http.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise CollaboratorFailure("email", f"Email service unavailable: {e}") from e
        if response.is_error:
            raise CollaboratorFailure("email", error_message(response))

        message_id = response.json().get("messageId") if response.content else None
        logger.info(f"Sent '{subject}' to {to_email} ({message_id})")
        return message_id
