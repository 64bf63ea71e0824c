"""
SendGrid mail delivery.

Posts to the v3 ``/mail/send`` endpoint. SendGrid answers 202 with an empty
body on success; anything >= 400 is raised as EmailDeliveryError.
"""

import logging
from typing import Optional

import httpx

from relay.models.email import OutboundEmail

logger = logging.getLogger(__name__)

SENDGRID_API_BASE = "https://api.sendgrid.com"
_TIMEOUT_SECONDS = 20.0


class EmailDeliveryError(Exception):
    """Raised when the mail provider rejects or fails to accept a message."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def build_sendgrid_payload(email: OutboundEmail) -> dict:
    """Translate an OutboundEmail into the SendGrid v3 request body."""
    payload = {
        "personalizations": [{"to": [{"email": address} for address in email.to]}],
        "from": {"email": email.from_email, "name": email.from_name},
        "subject": email.subject,
        "content": [{"type": "text/plain", "value": email.text}],
    }
    if email.attachments:
        payload["attachments"] = [
            {
                "content": attachment.content,
                "type": attachment.type,
                "filename": attachment.filename,
            }
            for attachment in email.attachments
        ]
    return payload


class SendGridMailer:
    def __init__(
        self,
        api_key: str,
        http: Optional[httpx.AsyncClient] = None,
        api_base: str = SENDGRID_API_BASE,
    ):
        self._api_key = api_key
        self._http = http or httpx.AsyncClient(timeout=_TIMEOUT_SECONDS)
        self._api_base = api_base.rstrip("/")

    async def send(self, email: OutboundEmail) -> None:
        """Send one email. Raises EmailDeliveryError on any failure."""
        if not email.to:
            raise EmailDeliveryError("No recipients configured (TOEMAIL is empty)")

        try:
            response = await self._http.post(
                f"{self._api_base}/v3/mail/send",
                headers={"Authorization": f"Bearer {self._api_key}"},
                json=build_sendgrid_payload(email),
            )
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"SendGrid request failed: {e}") from e

        if response.status_code >= 400:
            raise EmailDeliveryError(
                f"SendGrid send failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

    async def aclose(self) -> None:
        await self._http.aclose()
