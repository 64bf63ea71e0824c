"""
Process-wide client handles.

Clients are built once at startup from Settings and kept on ``app.state``.
Routers receive them through the ``get_*`` dependencies below, which tests
replace via ``app.dependency_overrides``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from supabase import Client, create_client

from relay.config import Settings
from relay.services.line_client import LineClient
from relay.services.mailer import SendGridMailer
from relay.services.storage import StorageService

logger = logging.getLogger(__name__)


@dataclass
class Clients:
    line: LineClient
    mailer: SendGridMailer
    storage: StorageService


def create_storage_client(settings: Settings) -> Optional[Client]:
    """Supabase admin client, or None when storage credentials are missing."""
    if not settings.supabase_url or not settings.supabase_service_key:
        logger.warning(
            "SUPABASE_URL / SUPABASE_SERVICE_KEY not set — form attachments cannot be uploaded"
        )
        return None
    return create_client(settings.supabase_url, settings.supabase_service_key)


def build_clients(settings: Settings) -> Clients:
    return Clients(
        line=LineClient(settings.channel_access_token),
        mailer=SendGridMailer(settings.sendgrid_api_key),
        storage=StorageService(
            create_storage_client(settings),
            bucket=settings.storage_bucket,
            prefix=settings.storage_prefix,
        ),
    )


async def close_clients(clients: Clients) -> None:
    await clients.line.aclose()
    await clients.mailer.aclose()


def _clients(request: Request) -> Clients:
    return request.app.state.clients


def get_line_client(request: Request) -> LineClient:
    return _clients(request).line


def get_mailer(request: Request) -> SendGridMailer:
    return _clients(request).mailer


def get_storage(request: Request) -> StorageService:
    return _clients(request).storage
