"""
LINE ⇄ Email relay API.

Forwards LINE webhook messages to email and email-form submissions to a
LINE group.

Run locally with:
    python -m relay.main
or:
    uvicorn relay.main:app --port 3000
"""

import logging

import uvicorn
from fastapi import FastAPI

from relay.clients import build_clients, close_clients
from relay.config import get_settings
from relay.routers import email_form, webhook

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="LINE Email Relay",
    description="Bidirectional relay between LINE chats and email",
    version="0.1.0",
)

app.include_router(webhook.router, tags=["webhook"])
app.include_router(email_form.router, tags=["email"])


@app.on_event("startup")
async def create_clients() -> None:
    """Build the LINE, SendGrid and storage clients once per process."""
    settings = get_settings()
    app.state.clients = build_clients(settings)
    logger.info(f"Application is live and listening on port {settings.port}")


@app.on_event("shutdown")
async def shutdown_clients() -> None:
    clients = getattr(app.state, "clients", None)
    if clients is not None:
        await close_clients(clients)


@app.get("/")
async def root():
    return {"status": "success", "message": "Connected successfully!"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
