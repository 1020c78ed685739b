"""
Message Log

Create, edit and soft-delete messages and fan them out to the current
subscribers of their channel.
"""
import logging
from typing import Optional

from teamchat.config import settings
from teamchat.database import Database, db as default_db
from teamchat.exceptions import AuthorizationError, NotFoundError, ValidationError
from teamchat.models.events import make_event
from teamchat.models.message import MessageView
from teamchat.services.channel_service import ChannelDirectory
from teamchat.services.locks import KeyedLock
from teamchat.services.websocket_service import Connection, ConnectionManager, get_connection_manager

logger = logging.getLogger(__name__)


class MessageLog:
    """Service for channel messages"""

    def __init__(
        self,
        database: Optional[Database] = None,
        manager: Optional[ConnectionManager] = None,
        directory: Optional[ChannelDirectory] = None
    ):
        self.db = database or default_db
        self.manager = manager or get_connection_manager()
        self.directory = directory or ChannelDirectory(self.db, self.manager)
        self._channel_locks = KeyedLock()

    def _check_content(self, content: str) -> None:
        if len(content) > settings.MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message longer than {settings.MAX_MESSAGE_LENGTH} characters")

    async def _get_channel_message(self, message_id: int, channel_id: int) -> dict:
        message = await self.db.get_message(message_id)
        if not message or message["channel_id"] != channel_id:
            raise NotFoundError(f"Message {message_id} not found in channel {channel_id}")
        return message

    async def post(
        self,
        connection: Connection,
        channel_id: int,
        content: Optional[str],
        reply_to: Optional[int] = None
    ) -> Optional[MessageView]:
        """
        Persist a message and fan it out to every subscriber, sender included.

        Empty or whitespace-only content is ignored and returns None.

        Raises:
            NotFoundError: If the channel does not exist
            AuthorizationError: If the channel is not visible to the sender
            ValidationError: If reply_to is not a message of the same channel
        """
        if not content or not content.strip():
            return None
        self._check_content(content)

        user = connection.user
        await self.directory.get_visible_channel(channel_id, user)

        if reply_to is not None:
            target = await self.db.get_message(reply_to)
            if not target or target["channel_id"] != channel_id:
                raise ValidationError(f"Reply target {reply_to} is not in channel {channel_id}")

        # Insert, re-read and fan-out under one lock so subscribers see
        # messages in the order they were persisted
        async with self._channel_locks.hold(channel_id):
            message_id = await self.db.insert_message(channel_id, user.id, content, reply_to)
            row = await self.db.get_message_view(message_id)
            message = MessageView.from_row(row)
            sent = self.manager.broadcast_to_channel(
                channel_id, make_event("new_message", message.model_dump(mode="json"))
            )

        logger.debug(f"Message {message_id} by {user.username} in channel {channel_id} reached {sent} connections")
        return message

    async def edit(
        self, connection: Connection, message_id: int, channel_id: int, content: Optional[str]
    ) -> bool:
        """
        Replace a message's content. Applies only when the editor wrote it;
        message_edited is broadcast only when the row changed.

        Returns:
            True if the edit applied
        """
        if not content or not content.strip():
            raise ValidationError("Message content is empty")
        self._check_content(content)

        await self._get_channel_message(message_id, channel_id)

        updated = await self.db.update_message_content(message_id, connection.user.id, content)
        if not updated:
            logger.info(f"Edit of message {message_id} by {connection.user.username} did not apply")
            return False

        self.manager.broadcast_to_channel(channel_id, make_event("message_edited", {
            "messageId": message_id,
            "channelId": channel_id,
            "content": content,
            "edited": True,
        }))
        return True

    async def delete(self, connection: Connection, message_id: int, channel_id: int) -> bool:
        """
        Soft-delete a message: content becomes the placeholder for good.
        Only the author or an admin may delete.

        Returns:
            True if the delete applied

        Raises:
            NotFoundError: If the message is not in the channel
            AuthorizationError: If the caller is neither author nor admin
        """
        message = await self._get_channel_message(message_id, channel_id)

        user = connection.user
        if message["user_id"] != user.id and not user.is_admin:
            raise AuthorizationError(f"User {user.id} may not delete message {message_id}")

        placeholder = settings.DELETED_MESSAGE_PLACEHOLDER
        deleted = await self.db.soft_delete_message(message_id, placeholder)
        if not deleted:
            return False

        self.manager.broadcast_to_channel(channel_id, make_event("message_deleted", {
            "messageId": message_id,
            "channelId": channel_id,
            "content": placeholder,
        }))
        logger.info(f"Message {message_id} in channel {channel_id} deleted by {user.username}")
        return True
