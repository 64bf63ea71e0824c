"""
LINE Messaging API client.

A thin async wrapper over the three endpoints the relay uses:

  GET  /v2/bot/profile/{userId}            — display name for the greeting
  POST /v2/bot/message/push                — one message to the fixed group
  GET  /v2/bot/message/{messageId}/content — raw bytes of a media message
                                             (served from api-data.line.me)

Plus ``verify_signature`` for the X-Line-Signature webhook header.
"""

import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional, Union

import httpx

from relay.models.chat_message import ChatMessage
from relay.services.content_type import extension_for

logger = logging.getLogger(__name__)

LINE_API_BASE = "https://api.line.me"
LINE_DATA_API_BASE = "https://api-data.line.me"
_TIMEOUT_SECONDS = 20.0


class LineApiError(Exception):
    """Raised when a LINE API call fails or returns a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class MessageContent:
    """Downloaded media content for one message id."""
    content_type: str
    extension: str
    data: bytes


def verify_signature(body: bytes, signature: Optional[str], channel_secret: str) -> bool:
    """
    Check an X-Line-Signature header against the raw request body.

    LINE signs the body with HMAC-SHA256 keyed by the channel secret and
    sends the base64 digest. An unset secret never validates.
    """
    if not channel_secret or not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("utf-8")
    return hmac.compare_digest(expected, signature.strip())


class LineClient:
    """
    Async Messaging API client bound to one channel access token.

    ``http`` may be supplied (tests pass an AsyncClient on a MockTransport);
    otherwise one is created and owned by this instance.
    """

    def __init__(
        self,
        channel_access_token: str,
        http: Optional[httpx.AsyncClient] = None,
        api_base: str = LINE_API_BASE,
        data_api_base: str = LINE_DATA_API_BASE,
    ):
        self._token = channel_access_token
        self._http = http or httpx.AsyncClient(timeout=_TIMEOUT_SECONDS)
        self._api_base = api_base.rstrip("/")
        self._data_api_base = data_api_base.rstrip("/")

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self._token}"}

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._http.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise LineApiError(f"LINE API request to {url} failed: {e}") from e

        if response.status_code >= 400:
            raise LineApiError(
                f"LINE API {method} {url} failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )
        return response

    async def get_profile(self, user_id: str) -> dict:
        """Return the profile dict (``displayName``, ``userId``, ...) for a user."""
        response = await self._request("GET", f"{self._api_base}/v2/bot/profile/{user_id}")
        return response.json()

    async def push_message(self, target_id: str, message: Union[ChatMessage, dict]) -> None:
        """Push a single message to a user, group or room id."""
        payload = message if isinstance(message, dict) else message.to_api()
        await self._request(
            "POST",
            f"{self._api_base}/v2/bot/message/push",
            json={"to": target_id, "messages": [payload]},
        )

    async def get_content(self, message_id: str) -> MessageContent:
        """
        Download the bytes behind an image/video/audio/file message.

        The MIME type comes from the response Content-Type header and the
        extension is derived from it.
        """
        response = await self._request(
            "GET", f"{self._data_api_base}/v2/bot/message/{message_id}/content"
        )
        content_type = response.headers.get("Content-Type", "")
        return MessageContent(
            content_type=content_type,
            extension=extension_for(content_type),
            data=response.content,
        )

    async def aclose(self) -> None:
        await self._http.aclose()
