"""
Presence Tracker

Process-wide registry of live connections per identity. An identity is
online while it has at least one live connection; status_change events
are broadcast only on the offline->online and online->offline edges.
"""
import logging
from typing import Dict, List, Optional, Set

from teamchat.database import Database, db as default_db
from teamchat.models.events import make_event
from teamchat.models.user import User, UserStatus
from teamchat.services.locks import KeyedLock
from teamchat.services.websocket_service import Connection, ConnectionManager, get_connection_manager

logger = logging.getLogger(__name__)


class PresenceTracker:
    """
    Connection -> identity map with per-identity serialization.

    Connect and disconnect for the same identity run under one lock, so
    the "any other live connection?" check, the persisted status and the
    broadcast happen as one unit. A disconnect racing a reconnect can not
    leave the identity offline while a connection is live.
    """

    def __init__(
        self,
        database: Optional[Database] = None,
        manager: Optional[ConnectionManager] = None
    ):
        self.db = database or default_db
        self.manager = manager or get_connection_manager()
        # Structure: {connection_id: User}
        self._connections: Dict[str, User] = {}
        self._locks = KeyedLock()

    def live_count(self, user_id: int) -> int:
        return sum(1 for user in self._connections.values() if user.id == user_id)

    def is_online(self, user_id: int) -> bool:
        return self.live_count(user_id) > 0

    def online_user_ids(self) -> Set[int]:
        return {user.id for user in self._connections.values()}

    async def connect(self, connection: Connection) -> bool:
        """
        Register a live connection.

        Returns:
            True if this made the identity go online
        """
        user = connection.user
        async with self._locks.hold(user.id):
            was_online = self.is_online(user.id)
            self._connections[connection.id] = user
            if was_online:
                logger.debug(f"User {user.username} opened another connection ({self.live_count(user.id)} live)")
                return False

            await self.db.set_user_status(user.id, UserStatus.ONLINE.value)
            self.manager.broadcast(
                make_event("user_status_change", {"userId": user.id, "status": UserStatus.ONLINE.value})
            )
            logger.info(f"🟢 User {user.username} ({user.id}) is online")
            return True

    async def disconnect(self, connection: Connection) -> bool:
        """
        Forget a connection.

        Returns:
            True if this was the identity's last live connection
        """
        user = connection.user
        async with self._locks.hold(user.id):
            if self._connections.pop(connection.id, None) is None:
                return False
            if self.is_online(user.id):
                logger.debug(f"User {user.username} still has {self.live_count(user.id)} live connections")
                return False

            await self.db.set_user_status(user.id, UserStatus.OFFLINE.value)
            self.manager.broadcast(
                make_event("user_status_change", {"userId": user.id, "status": UserStatus.OFFLINE.value})
            )
            logger.info(f"⚪ User {user.username} ({user.id}) is offline")
            return True

    async def snapshot(self) -> List[dict]:
        """Every identity with its live status."""
        online = self.online_user_ids()
        users = await self.db.list_users()
        return [
            {
                "id": row["id"],
                "username": row["username"],
                "color": row["color"],
                "status": UserStatus.ONLINE.value if row["id"] in online else UserStatus.OFFLINE.value,
            }
            for row in users
        ]

    def clear(self) -> None:
        """Forget every connection (process shutdown)."""
        self._connections.clear()
        self._locks.clear()
