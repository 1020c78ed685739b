"""
Real-time Event Models

Inbound payloads accepted on a connection and the outbound event envelope.
Inbound frames look like {"type": "send_message", "data": {...}}.
"""
from typing import Any, Optional
from pydantic import BaseModel, Field
from datetime import datetime, timezone


class ChannelRef(BaseModel):
    """Payload of join_channel / leave_channel"""
    channelId: int

    @classmethod
    def parse(cls, data: Any) -> "ChannelRef":
        # Clients may send the bare id instead of an object
        if isinstance(data, (int, str)) and not isinstance(data, bool):
            return cls(channelId=data)
        return cls.model_validate(data if isinstance(data, dict) else {})


class SendMessagePayload(BaseModel):
    channelId: int
    content: Optional[str] = None
    replyTo: Optional[int] = None


class EditMessagePayload(BaseModel):
    messageId: int
    channelId: int
    content: Optional[str] = None


class DeleteMessagePayload(BaseModel):
    messageId: int
    channelId: int


class TypingPayload(BaseModel):
    channelId: int
    isTyping: bool = False


class OutboundEvent(BaseModel):
    """Envelope for every event sent to a client"""
    type: str = Field(..., description="Event name, e.g. new_message")
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    data: Any = None


def make_event(event_type: str, data: Any = None) -> dict:
    """Build a JSON-ready outbound event."""
    return OutboundEvent(type=event_type, data=data).model_dump(mode="json")
