"""
Content-type helpers shared by both legs.

The form leg sniffs the real type from the file bytes because the
multipart part's declared type is supplied by the client and cannot be
trusted. The chat leg only needs a file extension for the type LINE reports.
"""

import mimetypes
from typing import Optional

import filetype

# mimetypes answers differ between platforms for a few of these (".jpe" for
# image/jpeg on some systems, nothing for audio/x-m4a on others).
_PINNED_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "video/mp4": ".mp4",
    "video/x-m4v": ".m4v",
    "audio/mp4": ".m4a",
    "audio/x-m4a": ".m4a",
    "audio/mpeg": ".mp3",
    "application/pdf": ".pdf",
}


def sniff_mime(data: bytes) -> Optional[str]:
    """Return the MIME type detected from magic bytes, or None if unknown."""
    if not data:
        return None
    return filetype.guess_mime(data)


def extension_for(mime: Optional[str]) -> str:
    """
    Map a Content-Type value to a file extension including the dot.

    Parameters such as ``; charset=utf-8`` are ignored. Returns "" when the
    type is empty or unknown.
    """
    if not mime:
        return ""
    base = mime.split(";")[0].strip().lower()
    if base in _PINNED_EXTENSIONS:
        return _PINNED_EXTENSIONS[base]
    return mimetypes.guess_extension(base) or ""
