"""
Message Models

Pydantic models for persisted messages and the joined view delivered to
clients.
"""
import json
from typing import Optional
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from datetime import datetime


class Attachment(BaseModel):
    """Structured attachment encoded inside message content"""
    name: str = Field(..., description="File name")
    url: str = Field(..., description="Where the file can be fetched")
    mimeType: Optional[str] = Field(None, description="MIME type")
    size: Optional[int] = Field(None, ge=0, description="Size in bytes")


def decode_attachment(content: Optional[str]) -> Optional[Attachment]:
    """
    Decode an attachment from message content.

    Content carries an attachment when it is a JSON object with an
    "attachment" key, e.g. {"attachment": {"name": "a.png", "url": "..."}}.
    Anything else is plain text and yields None.
    """
    if not content or not content.lstrip().startswith("{"):
        return None
    try:
        payload = json.loads(content)
    except ValueError:
        return None
    if not isinstance(payload, dict) or not isinstance(payload.get("attachment"), dict):
        return None
    try:
        return Attachment(**payload["attachment"])
    except PydanticValidationError:
        return None


class MessageView(BaseModel):
    """
    A message joined with its author and, for replies, the replied-to
    message. This is the shape of new_message and channel_history entries.
    """
    id: int
    channel_id: int
    user_id: int
    content: str
    created_at: datetime
    reply_to: Optional[int] = None
    edited: bool = False
    deleted: bool = False

    # Author
    username: str
    color: str

    # Replied-to message
    reply_content: Optional[str] = None
    reply_username: Optional[str] = None

    attachment: Optional[Attachment] = None

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 42,
                "channel_id": 1,
                "user_id": 1,
                "content": "sounds good",
                "created_at": "2025-10-21T15:30:00.123456+00:00",
                "reply_to": 41,
                "edited": False,
                "deleted": False,
                "username": "alice",
                "color": "#3b82f6",
                "reply_content": "ship it?",
                "reply_username": "bob",
                "attachment": None
            }
        }

    @classmethod
    def from_row(cls, row: dict) -> "MessageView":
        data = dict(row)
        data["edited"] = bool(data.get("edited"))
        data["deleted"] = bool(data.get("deleted"))
        if not data["deleted"]:
            data["attachment"] = decode_attachment(data.get("content"))
        return cls(**data)
