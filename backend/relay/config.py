"""
Environment configuration.

All settings are read from the process environment (a local .env file is
loaded first when present). Nothing is validated at startup: a missing
credential surfaces as an error the first time the matching client is used.
"""

import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_PORT = 3000
DEFAULT_STORAGE_PREFIX = "line-to-email"
DEFAULT_FROM_EMAIL = "line@line-to-email.futa.io"
DEFAULT_FROM_NAME = "line-to-email"
DEFAULT_SUBJECT = "新着メッセージ"


class Settings(BaseModel):
    """Resolved runtime configuration."""

    channel_access_token: str = ""
    channel_secret: str = ""
    sendgrid_api_key: str = ""
    supabase_url: str = ""
    supabase_service_key: str = ""
    storage_bucket: str = ""
    storage_prefix: str = DEFAULT_STORAGE_PREFIX
    group_id: str = ""
    to_emails: List[str] = []
    from_email: str = DEFAULT_FROM_EMAIL
    from_name: str = DEFAULT_FROM_NAME
    subject: str = DEFAULT_SUBJECT
    port: int = DEFAULT_PORT


def parse_recipients(raw: str) -> List[str]:
    """
    Turn the TOEMAIL value into an ordered list of unique addresses.

    All whitespace is removed before splitting on commas, so
    " a@example.com , b@example.com" yields two addresses. Empty entries
    (e.g. from a trailing comma) are dropped and duplicates are removed
    while preserving order.
    """
    compact = "".join(raw.split())
    seen: set = set()
    recipients: List[str] = []
    for address in compact.split(","):
        if address and address not in seen:
            seen.add(address)
            recipients.append(address)
    return recipients


def _parse_port(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        return DEFAULT_PORT


def load_settings() -> Settings:
    """Build a Settings instance from the current environment."""
    return Settings(
        channel_access_token=os.getenv("CHANNEL_ACCESS_TOKEN", ""),
        channel_secret=os.getenv("CHANNEL_SECRET", ""),
        sendgrid_api_key=os.getenv("SENDGRID_API_KEY", ""),
        supabase_url=os.getenv("SUPABASE_URL", ""),
        supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY", ""),
        storage_bucket=os.getenv("STORAGE_BUCKET", ""),
        storage_prefix=os.getenv("STORAGE_PREFIX", DEFAULT_STORAGE_PREFIX).strip("/"),
        group_id=os.getenv("GROUPID", ""),
        to_emails=parse_recipients(os.getenv("TOEMAIL", "")),
        from_email=os.getenv("MAIL_FROM_EMAIL", DEFAULT_FROM_EMAIL),
        from_name=os.getenv("MAIL_FROM_NAME", DEFAULT_FROM_NAME),
        subject=os.getenv("MAIL_SUBJECT", DEFAULT_SUBJECT),
        port=_parse_port(os.getenv("PORT", "").strip() or str(DEFAULT_PORT)),
    )


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, loaded once on first use."""
    return load_settings()
