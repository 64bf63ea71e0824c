"""
Outbound LINE message models.

Field names follow Python conventions; ``model_dump(by_alias=True)`` gives
the camelCase shape the Messaging API expects, e.g.::

    {"type": "image", "originalContentUrl": "...", "previewImageUrl": "..."}
"""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _LineMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True)


class TextMessage(_LineMessage):
    type: Literal["text"] = "text"
    text: str


class ImageMessage(_LineMessage):
    type: Literal["image"] = "image"
    original_content_url: str = Field(alias="originalContentUrl")
    preview_image_url: str = Field(alias="previewImageUrl")


class VideoMessage(_LineMessage):
    type: Literal["video"] = "video"
    original_content_url: str = Field(alias="originalContentUrl")
    preview_image_url: str = Field(alias="previewImageUrl")


class AudioMessage(_LineMessage):
    type: Literal["audio"] = "audio"
    original_content_url: str = Field(alias="originalContentUrl")
    duration: int           # milliseconds


ChatMessage = Union[TextMessage, ImageMessage, VideoMessage, AudioMessage]
