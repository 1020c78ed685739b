"""
Channel Directory

Resolves the channels an identity can see, creates public and private
channels, and derives the one direct channel shared by a pair of
identities.
"""
import logging
import sqlite3
from typing import Iterable, List, Optional

from teamchat.config import settings
from teamchat.database import Database, db as default_db
from teamchat.exceptions import AuthorizationError, NotFoundError, ValidationError
from teamchat.models.channel import Channel, ChannelKind, direct_channel_name
from teamchat.models.events import make_event
from teamchat.models.user import User
from teamchat.services.websocket_service import ConnectionManager, get_connection_manager

logger = logging.getLogger(__name__)


class ChannelDirectory:
    """Service for channel lookup and creation"""

    def __init__(
        self,
        database: Optional[Database] = None,
        manager: Optional[ConnectionManager] = None
    ):
        self.db = database or default_db
        self.manager = manager or get_connection_manager()

    async def _to_channel(self, row: dict) -> Channel:
        member_ids: List[int] = []
        if row["kind"] != ChannelKind.PUBLIC.value:
            member_ids = await self.db.get_channel_member_ids(row["id"])
        return Channel(**row, member_ids=member_ids)

    # ============ Lookup ============

    async def list_visible(self, user_id: int) -> List[Channel]:
        """Public channels, direct channels with user_id as an endpoint, and private channels user_id belongs to."""
        rows = await self.db.list_visible_channels(user_id)
        return [await self._to_channel(row) for row in rows]

    async def list_all(self) -> List[Channel]:
        rows = await self.db.list_channels()
        return [await self._to_channel(row) for row in rows]

    async def get_channel(self, channel_id: int) -> Channel:
        row = await self.db.get_channel(channel_id)
        if not row:
            raise NotFoundError(f"Channel {channel_id} not found")
        return await self._to_channel(row)

    async def get_visible_channel(self, channel_id: int, user: User) -> Channel:
        """
        Get a channel the identity is allowed to read and post to.

        Raises:
            NotFoundError: If the channel does not exist
            AuthorizationError: If it is direct/private and user is not a member
        """
        channel = await self.get_channel(channel_id)
        if not channel.is_public and user.id not in channel.member_ids:
            raise AuthorizationError(f"User {user.id} is not a member of channel {channel_id}")
        return channel

    # ============ Creation ============

    async def create_channel(
        self, creator: User, name: Optional[str], member_ids: Optional[Iterable[int]] = None
    ) -> Channel:
        """
        Create a public channel, or a private channel when member_ids is non-empty.

        Private channels get membership rows for the creator and every member.

        Raises:
            ValidationError: If the name is empty
            NotFoundError: If a member id does not exist
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Channel name required")

        members = set(member_ids or [])
        if members:
            kind = ChannelKind.PRIVATE
            for member_id in members - {creator.id}:
                if not await self.db.get_user(member_id):
                    raise NotFoundError(f"User {member_id} not found")
            members.add(creator.id)
        else:
            kind = ChannelKind.PUBLIC

        channel_id = await self.db.create_channel(name, kind.value, creator.id, members)
        channel = await self.get_channel(channel_id)
        logger.info(f"User {creator.username} created {kind.value} channel #{name} ({channel_id})")

        self.announce(channel)
        return channel

    async def get_or_create_direct(self, user: User, target_id: Optional[int]) -> Channel:
        """
        Return the direct channel between user and target_id, creating it once.

        Concurrent calls for the same pair converge on one row: the unique
        index rejects the second insert and the loser re-reads the winner.

        Raises:
            ValidationError: If target_id is missing or is the caller
            NotFoundError: If target_id does not exist
        """
        if target_id is None:
            raise ValidationError("targetId required")
        if target_id == user.id:
            raise ValidationError("Cannot open a direct channel with yourself")

        name = direct_channel_name(user.id, target_id)

        existing = await self.db.get_direct_channel(name)
        if existing:
            return await self._to_channel(existing)

        if not await self.db.get_user(target_id):
            raise NotFoundError(f"User {target_id} not found")

        try:
            channel_id = await self.db.create_channel(
                name, ChannelKind.DIRECT.value, user.id, (user.id, target_id)
            )
        except sqlite3.IntegrityError:
            # Lost the race for this pair
            existing = await self.db.get_direct_channel(name)
            if not existing:
                raise
            logger.debug(f"Direct channel {name} created concurrently, re-read id={existing['id']}")
            return await self._to_channel(existing)

        channel = await self.get_channel(channel_id)
        logger.info(f"Created direct channel {name} ({channel_id})")
        self.announce(channel)
        return channel

    def announce(self, channel: Channel) -> int:
        """Broadcast channel_created; direct/private channels only reach members when scoped."""
        event = make_event("channel_created", channel.model_dump(mode="json"))
        if channel.is_public or not settings.SCOPE_PRIVATE_CHANNEL_EVENTS:
            return self.manager.broadcast(event)
        return self.manager.broadcast_to_users(channel.member_ids, event)
