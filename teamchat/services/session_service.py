"""
Channel Session Manager

Per-connection channel subscriptions with bounded history replay.
"""
import logging
from typing import List, Optional

from teamchat.config import settings
from teamchat.database import Database, db as default_db
from teamchat.models.events import make_event
from teamchat.models.message import MessageView
from teamchat.services.channel_service import ChannelDirectory
from teamchat.services.websocket_service import Connection, ConnectionManager, get_connection_manager

logger = logging.getLogger(__name__)


class ChannelSessionManager:
    """Subscribe/unsubscribe connections to channel broadcast groups"""

    def __init__(
        self,
        database: Optional[Database] = None,
        manager: Optional[ConnectionManager] = None,
        directory: Optional[ChannelDirectory] = None,
        history_limit: Optional[int] = None
    ):
        self.db = database or default_db
        self.manager = manager or get_connection_manager()
        self.directory = directory or ChannelDirectory(self.db, self.manager)
        self.history_limit = history_limit or settings.HISTORY_LIMIT

    async def history(self, channel_id: int) -> List[MessageView]:
        """The most recent history_limit messages, oldest first."""
        rows = await self.db.get_recent_messages(channel_id, self.history_limit)
        return [MessageView.from_row(row) for row in rows]

    async def subscribe(self, connection: Connection, channel_id: int) -> List[MessageView]:
        """
        Join a channel's broadcast group and replay its recent history to
        this connection only. Re-subscribing replays history again but does
        not duplicate the subscription.

        Raises:
            NotFoundError: If the channel does not exist
            AuthorizationError: If the channel is not visible to the identity
        """
        await self.directory.get_visible_channel(channel_id, connection.user)

        self.manager.join_channel(connection, channel_id)
        messages = await self.history(channel_id)

        self.manager.send_personal_message(
            make_event("channel_history", {
                "channelId": channel_id,
                "messages": [message.model_dump(mode="json") for message in messages],
            }),
            connection
        )
        logger.debug(f"Replayed {len(messages)} messages of channel {channel_id} to {connection}")
        return messages

    def unsubscribe(self, connection: Connection, channel_id: int) -> bool:
        return self.manager.leave_channel(connection, channel_id)

