"""
Form-to-chat leg.

Turns one POST /email submission into an ordered list of LINE messages and
pushes them to the configured group:

  [text, <file 1 message>, <file 2 message>, ...]

Files are handled one at a time in submission order. Each file is sniffed,
uploaded to storage and classified by its sniffed type; files of other
types are uploaded but produce no message.
"""

import asyncio
import logging
from typing import Optional

from relay.models.chat_message import (
    AudioMessage,
    ChatMessage,
    ImageMessage,
    TextMessage,
    VideoMessage,
)
from relay.models.email import FormSubmission, SubmittedFile
from relay.services.audio import duration_ms
from relay.services.content_type import sniff_mime
from relay.services.line_client import LineClient
from relay.services.storage import StorageService

logger = logging.getLogger(__name__)

IMAGE_TYPES = frozenset({"image/jpeg", "image/png"})
VIDEO_TYPES = frozenset({"video/mp4", "video/x-m4v"})
AUDIO_TYPES = frozenset({"audio/mp4", "audio/x-m4a"})


def build_text_message(submission: FormSubmission) -> TextMessage:
    return TextMessage(
        text=f"From: {submission.sender}\nSubject: {submission.subject}\n\n{submission.text}"
    )


def classify(mime: Optional[str], url: str, data: bytes) -> Optional[ChatMessage]:
    """
    Pick the LINE message shape for a sniffed MIME type.

    Returns None for types LINE media messages do not cover here.
    """
    if mime in IMAGE_TYPES:
        return ImageMessage(original_content_url=url, preview_image_url=url)
    if mime in VIDEO_TYPES:
        return VideoMessage(original_content_url=url, preview_image_url=url)
    if mime in AUDIO_TYPES:
        return AudioMessage(original_content_url=url, duration=duration_ms(data))
    return None


async def build_file_message(
    upload: SubmittedFile,
    storage: StorageService,
) -> Optional[ChatMessage]:
    """
    Sniff, upload and classify one file.

    Storage errors propagate and abort the rest of the submission.
    """
    mime = sniff_mime(upload.data)
    asset = await asyncio.to_thread(storage.upload_public, upload.data, upload.filename, mime)

    message = classify(mime, asset.url, upload.data)
    if message is None:
        logger.info(f"Dropping {upload.filename!r}: unsupported content type {mime!r}")
    return message


async def build_messages(
    submission: FormSubmission,
    storage: StorageService,
) -> list[ChatMessage]:
    messages: list[ChatMessage] = [build_text_message(submission)]
    for upload in submission.files:
        message = await build_file_message(upload, storage)
        if message is not None:
            messages.append(message)
    return messages


async def forward_submission(
    submission: FormSubmission,
    line: LineClient,
    storage: StorageService,
    group_id: str,
) -> list[ChatMessage]:
    """
    Build the message sequence and push it, one call per message, in order.

    Returns the pushed messages. A failed push stops the loop; messages
    already pushed stay delivered.
    """
    messages = await build_messages(submission, storage)
    logger.info(
        f"Pushing {len(messages)} message(s) to group: "
        f"{[message.type for message in messages]}"
    )
    for message in messages:
        await line.push_message(group_id, message)
    return messages
