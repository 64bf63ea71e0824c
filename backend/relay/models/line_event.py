"""
LINE webhook payload models.

Only the fields the relay reads are modelled; everything else LINE sends
is ignored. Message kinds are kept as plain strings so that kinds the relay
does not handle (location, postback, ...) still parse and can be dropped
by the classifier instead of failing validation for the whole batch.
"""

from typing import Optional

from pydantic import BaseModel, Field


class EventSource(BaseModel):
    """Who triggered the event. ``user_id`` is absent for some group sources."""
    model_config = {"extra": "ignore", "populate_by_name": True}

    type: str = "user"
    user_id: Optional[str] = Field(default=None, alias="userId")
    group_id: Optional[str] = Field(default=None, alias="groupId")


class EventMessage(BaseModel):
    """
    The message carried by a ``message`` event.

    ``type`` is one of text / image / video / audio / file / sticker for the
    kinds the relay forwards. ``id`` is the content id used to download
    media bytes; ``text`` is only set for text messages.
    """
    model_config = {"extra": "ignore"}

    type: str
    id: str = ""
    text: Optional[str] = None


class WebhookEvent(BaseModel):
    model_config = {"extra": "ignore"}

    type: str
    source: Optional[EventSource] = None
    message: Optional[EventMessage] = None


class WebhookPayload(BaseModel):
    """Body of one webhook delivery."""
    model_config = {"extra": "ignore"}

    destination: Optional[str] = None
    events: list[WebhookEvent] = []
