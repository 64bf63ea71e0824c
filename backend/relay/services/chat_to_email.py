"""
Chat-to-email leg.

Turns one LINE webhook event into at most one email:

  1. Only ``message`` events are forwarded; everything else is a no-op.
  2. The body opens with a greeting naming the sender (profile lookup) or a
     generic fallback when the event has no user id.
  3. Media kinds (image / video / audio / file) download their content and
     attach it as a single base64 attachment.
  4. Every forwarded kind then appends its line to the body: the message
     text for ``text``, a fixed label for everything else.

Steps 3 and 4 both run for media messages, so the mail carries the
attachment and the label.
"""

import base64
import logging
from typing import Optional

from relay.config import Settings
from relay.models.email import EmailAttachment, OutboundEmail
from relay.models.line_event import WebhookEvent
from relay.services.line_client import LineClient
from relay.services.mailer import SendGridMailer

logger = logging.getLogger(__name__)

FALLBACK_SENDER_NAME = "ユーザー"

MEDIA_LABELS = {
    "image": "画像メッセージ",
    "video": "動画メッセージ",
    "audio": "音声メッセージ",
    "file": "ファイルメッセージ",
}

KIND_LABELS = {
    **MEDIA_LABELS,
    "sticker": "スタンプ",
}


def greeting_line(display_name: Optional[str]) -> str:
    """``"{name}さんからのメッセージ"`` or the generic fallback."""
    if display_name:
        return f"{display_name}さんからのメッセージ"
    return f"{FALLBACK_SENDER_NAME}からのメッセージ"


async def resolve_greeting(event: WebhookEvent, line: LineClient) -> str:
    """
    Build the greeting for an event.

    Profile lookup errors are not caught: an event whose sender cannot be
    resolved fails as a whole.
    """
    user_id = event.source.user_id if event.source else None
    if not user_id:
        return greeting_line(None)
    profile = await line.get_profile(user_id)
    return greeting_line(profile.get("displayName"))


async def build_attachment(message_id: str, line: LineClient) -> EmailAttachment:
    """Download a media message and wrap it as a base64 attachment."""
    content = await line.get_content(message_id)
    return EmailAttachment(
        content=base64.b64encode(content.data).decode("ascii"),
        type=content.content_type,
        filename=f"{message_id}{content.extension}",
    )


def _body_line(event: WebhookEvent) -> Optional[str]:
    """The line appended under the greeting, or None for unsupported kinds."""
    kind = event.message.type
    if kind == "text":
        return event.message.text or ""
    return KIND_LABELS.get(kind)


async def build_email(
    event: WebhookEvent,
    line: LineClient,
    settings: Settings,
) -> Optional[OutboundEmail]:
    """
    Translate one webhook event into an OutboundEmail.

    Returns None when the event should not produce mail: non-message events,
    message events without a message, and message kinds the relay does not
    handle (location, etc.).
    """
    if event.type != "message" or event.message is None:
        return None

    kind = event.message.type
    if kind != "text" and kind not in KIND_LABELS:
        logger.info(f"Dropping unsupported message kind {kind!r}")
        return None

    text = await resolve_greeting(event, line)

    attachments: list[EmailAttachment] = []
    if kind in MEDIA_LABELS:
        attachments.append(await build_attachment(event.message.id, line))

    text = f"{text}\n\n{_body_line(event)}"

    return OutboundEmail(
        to=settings.to_emails,
        from_email=settings.from_email,
        from_name=settings.from_name,
        subject=settings.subject,
        text=text,
        attachments=attachments,
    )


async def forward_event(
    event: WebhookEvent,
    line: LineClient,
    mailer: SendGridMailer,
    settings: Settings,
) -> bool:
    """
    Build and send the email for one event.

    Returns True when a mail was sent, False when the event was skipped.
    Collaborator errors (profile, content, delivery) propagate.
    """
    email = await build_email(event, line, settings)
    if email is None:
        return False

    logger.info(
        f"Sending email for {event.message.type} message to {len(email.to)} recipient(s) "
        f"with {len(email.attachments)} attachment(s)"
    )
    await mailer.send(email)
    return True
