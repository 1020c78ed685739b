"""Business logic services"""
from typing import Optional

from teamchat.database import Database, db as default_db
from .websocket_service import Connection, ConnectionManager, get_connection_manager
from .identity_service import IdentityService
from .channel_service import ChannelDirectory
from .presence_service import PresenceTracker
from .session_service import ChannelSessionManager
from .message_service import MessageLog
from .typing_service import TypingBroadcaster
from .admin_service import AdminService
from .event_router import EventRouter


class ChatServices:
    """Service graph sharing one store and one connection registry."""

    def __init__(
        self,
        database: Optional[Database] = None,
        manager: Optional[ConnectionManager] = None
    ):
        self.db = database or default_db
        self.manager = manager or get_connection_manager()

        self.identities = IdentityService(self.db)
        self.channels = ChannelDirectory(self.db, self.manager)
        self.presence = PresenceTracker(self.db, self.manager)
        self.sessions = ChannelSessionManager(self.db, self.manager, self.channels)
        self.messages = MessageLog(self.db, self.manager, self.channels)
        self.typing = TypingBroadcaster(self.manager)
        self.admin = AdminService(self.db, self.manager, self.presence, self.channels)
        self.events = EventRouter(self)


_services: Optional[ChatServices] = None


def get_services() -> ChatServices:
    """Get or create the global service graph"""
    global _services
    if _services is None:
        _services = ChatServices()
    return _services


def reset_services() -> None:
    """Drop the global service graph so the next startup builds a fresh one."""
    global _services
    if _services is not None:
        _services.presence.clear()
    _services = None


__all__ = [
    "ChatServices",
    "Connection",
    "ConnectionManager",
    "IdentityService",
    "ChannelDirectory",
    "PresenceTracker",
    "ChannelSessionManager",
    "MessageLog",
    "TypingBroadcaster",
    "AdminService",
    "EventRouter",
    "get_connection_manager",
    "get_services",
    "reset_services",
]
