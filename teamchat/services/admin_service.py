"""
Admin Service

Stats and destructive maintenance for admin identities.
"""
import logging
from typing import List, Optional

from teamchat.database import Database, db as default_db
from teamchat.exceptions import AuthorizationError, NotFoundError, ValidationError
from teamchat.models.channel import Channel
from teamchat.models.events import make_event
from teamchat.models.user import Identity, User
from teamchat.services.channel_service import ChannelDirectory
from teamchat.services.presence_service import PresenceTracker
from teamchat.services.websocket_service import ConnectionManager, get_connection_manager

logger = logging.getLogger(__name__)


class AdminService:
    """Every method checks the actor's admin capability before touching anything"""

    def __init__(
        self,
        database: Optional[Database] = None,
        manager: Optional[ConnectionManager] = None,
        presence: Optional[PresenceTracker] = None,
        directory: Optional[ChannelDirectory] = None
    ):
        self.db = database or default_db
        self.manager = manager or get_connection_manager()
        self.presence = presence or PresenceTracker(self.db, self.manager)
        self.directory = directory or ChannelDirectory(self.db, self.manager)

    @staticmethod
    def _require_admin(actor: User) -> None:
        if not actor.is_admin:
            logger.warning(f"User {actor.username} ({actor.id}) denied admin operation")
            raise AuthorizationError("Admin access required")

    async def get_stats(self, actor: User) -> dict:
        self._require_admin(actor)
        stats = await self.db.count_stats()
        stats["online_users"] = len(self.presence.online_user_ids())
        stats["connections"] = self.manager.get_stats()
        return stats

    async def list_users(self, actor: User) -> List[Identity]:
        self._require_admin(actor)
        return [Identity(**user) for user in await self.presence.snapshot()]

    async def delete_user(self, actor: User, user_id: int) -> None:
        """
        Delete an identity with its messages and memberships, tell everyone,
        and close the identity's live connections.
        """
        self._require_admin(actor)
        if user_id == actor.id:
            raise ValidationError("Admins cannot delete themselves")

        if not await self.db.delete_user(user_id):
            raise NotFoundError(f"User {user_id} not found")

        self.manager.broadcast(make_event("user_deleted", {"userId": user_id}))
        self.manager.close_user_connections(user_id)
        logger.info(f"Admin {actor.username} deleted user {user_id}")

    async def list_channels(self, actor: User) -> List[Channel]:
        self._require_admin(actor)
        return await self.directory.list_all()

    async def delete_channel(self, actor: User, channel_id: int) -> None:
        """Delete a channel with its messages and drop its broadcast group."""
        self._require_admin(actor)

        if not await self.db.delete_channel(channel_id):
            raise NotFoundError(f"Channel {channel_id} not found")

        self.manager.broadcast(make_event("channel_deleted", {"channelId": channel_id}))
        self.manager.drop_channel(channel_id)
        logger.info(f"Admin {actor.username} deleted channel {channel_id}")
