"""
Typing Broadcaster

Relays ephemeral typing signals to the other subscribers of a channel.
Nothing is persisted and no timeout is inferred; clients send
isTyping=false themselves.
"""
import logging
from typing import Optional

from teamchat.exceptions import AuthorizationError
from teamchat.models.events import make_event
from teamchat.services.websocket_service import Connection, ConnectionManager, get_connection_manager

logger = logging.getLogger(__name__)


class TypingBroadcaster:

    def __init__(self, manager: Optional[ConnectionManager] = None):
        self.manager = manager or get_connection_manager()

    async def set_typing(self, connection: Connection, channel_id: int, is_typing: bool) -> int:
        """
        Returns:
            Number of connections the signal reached

        Raises:
            AuthorizationError: If the sender is not subscribed to the channel
        """
        if not self.manager.is_subscribed(connection, channel_id):
            raise AuthorizationError(f"{connection} is not subscribed to channel {channel_id}")

        event = make_event("user_typing", {
            "userId": connection.user.id,
            "username": connection.user.username,
            "channelId": channel_id,
            "isTyping": bool(is_typing),
        })
        return self.manager.broadcast_to_channel(channel_id, event, exclude=connection)
