"""Data models"""
from .user import User, Identity, UserStatus, CredentialsRequest, RegisterResponse, LoginResponse
from .channel import Channel, ChannelKind, ChannelCreate, DirectChannelRequest, direct_channel_name
from .message import MessageView, Attachment, decode_attachment
from .events import make_event

__all__ = [
    "User",
    "Identity",
    "UserStatus",
    "CredentialsRequest",
    "RegisterResponse",
    "LoginResponse",
    "Channel",
    "ChannelKind",
    "ChannelCreate",
    "DirectChannelRequest",
    "direct_channel_name",
    "MessageView",
    "Attachment",
    "decode_attachment",
    "make_event",
]
