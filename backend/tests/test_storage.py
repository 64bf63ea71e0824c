"""
Unit tests for the Supabase Storage service.
Tests key generation, upload, public access and public URL lookup.
"""

from unittest.mock import MagicMock, patch

import pytest

from relay.services.storage import StorageService, StorageUploadError, build_storage_path

PUBLIC_BASE = "https://test.supabase.co/storage/v1/object/public/media"


def _mock_supabase() -> MagicMock:
    mock_supabase = MagicMock()
    mock_supabase.storage.from_.return_value.get_public_url.side_effect = (
        lambda path: f"{PUBLIC_BASE}/{path}?"
    )
    return mock_supabase


class TestBuildStoragePath:
    """Keys combine a random UUID with the original filename."""

    def test_prefix_uuid_and_filename(self):
        with patch("relay.services.storage.uuid4", return_value="abc123"):
            assert build_storage_path("line-to-email", "photo.jpg") == "line-to-email/abc123-photo.jpg"

    def test_no_prefix(self):
        with patch("relay.services.storage.uuid4", return_value="abc123"):
            assert build_storage_path("", "photo.jpg") == "abc123-photo.jpg"

    def test_filename_is_sanitized(self):
        with patch("relay.services.storage.uuid4", return_value="abc123"):
            path = build_storage_path("p", "My Photo (1).jpg")

        assert path == "p/abc123-My_Photo__1_.jpg"

    def test_non_ascii_characters_are_replaced(self):
        with patch("relay.services.storage.uuid4", return_value="abc123"):
            path = build_storage_path("p", "写真.png")

        assert path == "p/abc123-__.png"

    def test_same_filename_gets_distinct_keys(self):
        assert build_storage_path("p", "a.jpg") != build_storage_path("p", "a.jpg")


class TestUploadPublic:
    def test_returns_asset_with_public_url(self):
        mock_supabase = _mock_supabase()
        service = StorageService(mock_supabase, bucket="media", prefix="line-to-email")

        with patch("relay.services.storage.uuid4", return_value="abc123"):
            asset = service.upload_public(b"data", "photo.jpg", "image/jpeg")

        assert asset.path == "line-to-email/abc123-photo.jpg"
        assert asset.url == f"{PUBLIC_BASE}/line-to-email/abc123-photo.jpg"
        assert asset.content_type == "image/jpeg"
        mock_supabase.storage.from_.assert_called_with("media")
        mock_supabase.storage.from_.return_value.upload.assert_called_once_with(
            "line-to-email/abc123-photo.jpg",
            b"data",
            {"content-type": "image/jpeg"},
        )

    def test_marks_bucket_public(self):
        mock_supabase = _mock_supabase()
        service = StorageService(mock_supabase, bucket="media", prefix="p")

        service.upload_public(b"data", "photo.jpg", "image/jpeg")

        mock_supabase.storage.update_bucket.assert_called_once_with("media", {"public": True})

    def test_unknown_type_uploads_as_octet_stream(self):
        mock_supabase = _mock_supabase()
        service = StorageService(mock_supabase, bucket="media", prefix="p")

        asset = service.upload_public(b"data", "notes.txt", None)

        upload_args = mock_supabase.storage.from_.return_value.upload.call_args[0]
        assert upload_args[2] == {"content-type": "application/octet-stream"}
        assert asset.content_type == "application/octet-stream"

    def test_upload_failure_raises_storage_error(self):
        mock_supabase = _mock_supabase()
        mock_supabase.storage.from_.return_value.upload.side_effect = Exception("Storage error")
        service = StorageService(mock_supabase, bucket="media", prefix="p")

        with pytest.raises(StorageUploadError) as exc_info:
            service.upload_public(b"data", "photo.jpg", "image/jpeg")

        assert "Storage error" in str(exc_info.value)
        mock_supabase.storage.update_bucket.assert_not_called()

    def test_make_public_failure_raises_storage_error(self):
        mock_supabase = _mock_supabase()
        mock_supabase.storage.update_bucket.side_effect = Exception("forbidden")
        service = StorageService(mock_supabase, bucket="media", prefix="p")

        with pytest.raises(StorageUploadError) as exc_info:
            service.upload_public(b"data", "photo.jpg", "image/jpeg")

        assert "forbidden" in str(exc_info.value)

    def test_missing_client_raises_storage_error(self):
        service = StorageService(None, bucket="media", prefix="p")

        with pytest.raises(StorageUploadError) as exc_info:
            service.upload_public(b"data", "photo.jpg", "image/jpeg")

        assert "SUPABASE_URL" in str(exc_info.value)
