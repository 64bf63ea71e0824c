"""
Form-to-chat translation tests.

Storage is a MagicMock StorageService and LINE an AsyncMock; sniffing runs
on real magic bytes unless a test patches it.
"""

from unittest.mock import AsyncMock, MagicMock, call, patch

import pytest

from relay.models.chat_message import AudioMessage, ImageMessage, TextMessage, VideoMessage
from relay.models.email import FormSubmission, SubmittedFile
from relay.services.email_to_chat import (
    build_messages,
    build_text_message,
    classify,
    forward_submission,
)
from relay.services.line_client import LineApiError
from relay.services.storage import StorageUploadError, UploadedAsset

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00" + b"\x00" * 64
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 64
TEXT_BYTES = b"just some plain text, nothing binary here\n"
URL = "https://test.supabase.co/storage/v1/object/public/media/line-to-email/abc-file"


def _storage() -> MagicMock:
    storage = MagicMock()
    storage.upload_public.side_effect = lambda data, filename, content_type: UploadedAsset(
        path=f"line-to-email/abc-{filename}",
        url=f"{URL}-{filename}",
        content_type=content_type or "application/octet-stream",
    )
    return storage


def _submission(*files: SubmittedFile) -> FormSubmission:
    return FormSubmission(
        sender="alice@example.com",
        subject="Hello",
        text="Body line 1\nBody line 2",
        files=list(files),
    )


class TestBuildTextMessage:
    def test_text_layout(self):
        message = build_text_message(_submission())

        assert message == TextMessage(
            text="From: alice@example.com\nSubject: Hello\n\nBody line 1\nBody line 2"
        )

    def test_empty_fields(self):
        message = build_text_message(FormSubmission())

        assert message.text == "From: \nSubject: \n\n"


class TestClassify:
    @pytest.mark.parametrize("mime", ["image/jpeg", "image/png"])
    def test_images(self, mime):
        message = classify(mime, URL, b"")

        assert message == ImageMessage(original_content_url=URL, preview_image_url=URL)

    @pytest.mark.parametrize("mime", ["video/mp4", "video/x-m4v"])
    def test_videos(self, mime):
        message = classify(mime, URL, b"")

        assert message == VideoMessage(original_content_url=URL, preview_image_url=URL)

    @pytest.mark.parametrize("mime", ["audio/mp4", "audio/x-m4a"])
    def test_audio_carries_duration_in_milliseconds(self, mime):
        with patch("relay.services.email_to_chat.duration_ms", return_value=42000) as mock_duration:
            message = classify(mime, URL, b"audio-bytes")

        assert message == AudioMessage(original_content_url=URL, duration=42000)
        mock_duration.assert_called_once_with(b"audio-bytes")

    @pytest.mark.parametrize("mime", ["text/plain", "image/gif", "audio/mpeg", None])
    def test_unsupported_types_are_dropped(self, mime):
        assert classify(mime, URL, b"") is None


class TestBuildMessages:
    @pytest.mark.asyncio
    async def test_no_files_gives_only_text(self):
        storage = _storage()

        messages = await build_messages(_submission(), storage)

        assert len(messages) == 1
        assert messages[0].type == "text"
        storage.upload_public.assert_not_called()

    @pytest.mark.asyncio
    async def test_jpeg_gives_text_then_image(self):
        storage = _storage()

        messages = await build_messages(
            _submission(SubmittedFile(data=JPEG_BYTES, filename="photo.jpg")), storage
        )

        assert [m.type for m in messages] == ["text", "image"]
        image = messages[1]
        assert image.original_content_url == image.preview_image_url == f"{URL}-photo.jpg"
        storage.upload_public.assert_called_once_with(JPEG_BYTES, "photo.jpg", "image/jpeg")

    @pytest.mark.asyncio
    async def test_type_is_sniffed_not_taken_from_filename(self):
        storage = _storage()

        messages = await build_messages(
            _submission(SubmittedFile(data=PNG_BYTES, filename="looks-like.txt")), storage
        )

        assert [m.type for m in messages] == ["text", "image"]

    @pytest.mark.asyncio
    async def test_unsupported_file_is_uploaded_but_dropped(self):
        storage = _storage()

        messages = await build_messages(
            _submission(SubmittedFile(data=TEXT_BYTES, filename="notes.txt")), storage
        )

        assert [m.type for m in messages] == ["text"]
        storage.upload_public.assert_called_once()

    @pytest.mark.asyncio
    async def test_files_keep_submission_order(self):
        storage = _storage()
        files = [
            SubmittedFile(data=PNG_BYTES, filename="first.png"),
            SubmittedFile(data=TEXT_BYTES, filename="skip.txt"),
            SubmittedFile(data=JPEG_BYTES, filename="second.jpg"),
        ]

        messages = await build_messages(_submission(*files), storage)

        assert [m.type for m in messages] == ["text", "image", "image"]
        assert messages[1].original_content_url.endswith("first.png")
        assert messages[2].original_content_url.endswith("second.jpg")

    @pytest.mark.asyncio
    async def test_audio_with_unknown_duration_uses_zero(self):
        storage = _storage()

        with patch("relay.services.email_to_chat.sniff_mime", return_value="audio/x-m4a"), \
             patch("relay.services.email_to_chat.duration_ms", return_value=0):
            messages = await build_messages(
                _submission(SubmittedFile(data=b"m4a", filename="voice.m4a")), storage
            )

        assert messages[1] == AudioMessage(original_content_url=f"{URL}-voice.m4a", duration=0)

    @pytest.mark.asyncio
    async def test_storage_failure_aborts_remaining_files(self):
        storage = _storage()
        storage.upload_public.side_effect = StorageUploadError("Failed to upload")

        with pytest.raises(StorageUploadError):
            await build_messages(
                _submission(
                    SubmittedFile(data=JPEG_BYTES, filename="a.jpg"),
                    SubmittedFile(data=JPEG_BYTES, filename="b.jpg"),
                ),
                storage,
            )

        assert storage.upload_public.call_count == 1


class TestForwardSubmission:
    @pytest.mark.asyncio
    async def test_pushes_each_message_in_order(self):
        line = AsyncMock()
        storage = _storage()

        messages = await forward_submission(
            _submission(SubmittedFile(data=JPEG_BYTES, filename="photo.jpg")),
            line,
            storage,
            "G1",
        )

        assert line.push_message.await_args_list == [
            call("G1", messages[0]),
            call("G1", messages[1]),
        ]

    @pytest.mark.asyncio
    async def test_storage_failure_pushes_nothing(self):
        line = AsyncMock()
        storage = _storage()
        storage.upload_public.side_effect = StorageUploadError("Failed to upload")

        with pytest.raises(StorageUploadError):
            await forward_submission(
                _submission(SubmittedFile(data=JPEG_BYTES, filename="photo.jpg")),
                line,
                storage,
                "G1",
            )

        line.push_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_push_failure_stops_remaining_pushes(self):
        line = AsyncMock()
        line.push_message.side_effect = [None, LineApiError("rate limited", status_code=429)]
        storage = _storage()

        with pytest.raises(LineApiError):
            await forward_submission(
                _submission(
                    SubmittedFile(data=JPEG_BYTES, filename="a.jpg"),
                    SubmittedFile(data=PNG_BYTES, filename="b.png"),
                ),
                line,
                storage,
                "G1",
            )

        assert line.push_message.await_count == 2
