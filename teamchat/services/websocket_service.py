"""
WebSocket Service
Tracks live connections and the per-channel broadcast groups they are
subscribed to.
"""
from fastapi import WebSocket, status
from typing import Dict, Iterable, List, Optional, Set
import asyncio
import logging
import uuid
from datetime import datetime, timezone

from teamchat.models.user import User

logger = logging.getLogger(__name__)


class _CloseFrame:
    """Outbox marker asking the sender to close the socket"""

    def __init__(self, code: int):
        self.code = code


class Connection:
    """
    One live duplex session bound to exactly one verified identity.

    Outbound events are queued on the connection's outbox and written to
    the socket by its own sender task, so fan-out never waits on a slow
    client and delivery order equals enqueue order.
    """

    def __init__(self, websocket: Optional[WebSocket], user: User):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.user = user
        self.channels: Set[int] = set()
        self.connected_at = datetime.now(timezone.utc)
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def __repr__(self) -> str:
        return f"<Connection {self.id[:8]} user={self.user.id}>"

    def deliver(self, message: dict) -> None:
        if self.closed:
            return
        self.outbox.put_nowait(message)

    def close(self, code: Optional[int] = None) -> None:
        """Stop accepting events; the sender flushes what is queued, then exits."""
        if self.closed:
            return
        self.closed = True
        self.outbox.put_nowait(_CloseFrame(code) if code is not None else None)

    async def run_sender(self) -> None:
        """Drain the outbox to the socket until closed."""
        while True:
            item = await self.outbox.get()
            if item is None:
                return
            if isinstance(item, _CloseFrame):
                try:
                    await self.websocket.close(code=item.code)
                except RuntimeError as e:
                    logger.debug(f"Socket already closed for {self}: {e}")
                return
            try:
                await self.websocket.send_json(item)
            except Exception as e:
                # Transport is gone; the receive loop will clean up
                logger.error(f"❌ Failed to send to {self}: {e}")
                self.closed = True
                return


class ConnectionManager:
    """
    Registry of live connections and channel broadcast groups.

    Every method that changes group membership or fans out is synchronous,
    so a fan-out reads a consistent snapshot: a connection leaving a channel
    either is in the snapshot or is not, never half-way.
    """

    def __init__(self):
        """Initialize connection manager"""
        # Structure: {connection_id: Connection}
        self.active_connections: Dict[str, Connection] = {}

        # Structure: {channel_id: Set[connection_id]}
        self.channel_groups: Dict[int, Set[str]] = {}

    def connect(self, connection: Connection) -> None:
        """Register a new connection (socket must already be accepted)."""
        self.active_connections[connection.id] = connection
        logger.info(
            f"✅ WebSocket connected: user={connection.user.username} ({connection.user.id}), "
            f"total_connections={len(self.active_connections)}"
        )

    def disconnect(self, connection: Connection) -> Set[int]:
        """
        Remove a connection and unsubscribe it from every channel.

        Returns:
            Channel ids the connection was subscribed to
        """
        left = set(connection.channels)
        for channel_id in left:
            self._remove_from_group(connection, channel_id)
        connection.channels.clear()

        if self.active_connections.pop(connection.id, None) is not None:
            logger.info(
                f"🔌 WebSocket disconnected: user={connection.user.username} ({connection.user.id}), "
                f"remaining_connections={len(self.active_connections)}"
            )
        return left

    # ============ Channel Groups ============

    def join_channel(self, connection: Connection, channel_id: int) -> bool:
        """Add a connection to a channel group. Returns False if already there."""
        if connection.id not in self.active_connections:
            logger.warning(f"Attempted to subscribe unregistered {connection}")
            return False
        members = self.channel_groups.setdefault(channel_id, set())
        if connection.id in members:
            return False
        members.add(connection.id)
        connection.channels.add(channel_id)
        logger.debug(f"{connection} joined channel {channel_id}")
        return True

    def leave_channel(self, connection: Connection, channel_id: int) -> bool:
        """Remove a connection from a channel group. Returns False if not there."""
        if channel_id not in connection.channels:
            return False
        self._remove_from_group(connection, channel_id)
        connection.channels.discard(channel_id)
        logger.debug(f"{connection} left channel {channel_id}")
        return True

    def _remove_from_group(self, connection: Connection, channel_id: int) -> None:
        members = self.channel_groups.get(channel_id)
        if members is None:
            return
        members.discard(connection.id)
        # Clean up empty groups
        if not members:
            del self.channel_groups[channel_id]

    def drop_channel(self, channel_id: int) -> None:
        """Forget a channel group entirely (channel deleted)."""
        for connection_id in self.channel_groups.pop(channel_id, set()):
            connection = self.active_connections.get(connection_id)
            if connection:
                connection.channels.discard(channel_id)

    def is_subscribed(self, connection: Connection, channel_id: int) -> bool:
        return connection.id in self.channel_groups.get(channel_id, set())

    def channel_subscribers(self, channel_id: int) -> List[Connection]:
        return [
            self.active_connections[connection_id]
            for connection_id in self.channel_groups.get(channel_id, set())
            if connection_id in self.active_connections
        ]

    # ============ Delivery ============

    def send_personal_message(self, message: dict, connection: Connection) -> None:
        """Send an event to one connection."""
        if connection.id not in self.active_connections:
            logger.warning("Attempted to send message to unregistered WebSocket")
            return
        connection.deliver(message)
        logger.debug(f"📤 Sent personal message: type={message.get('type')}")

    def broadcast(self, message: dict, exclude: Optional[Connection] = None) -> int:
        """Send an event to every live connection."""
        targets = [c for c in self.active_connections.values() if c is not exclude]
        for connection in targets:
            connection.deliver(message)
        logger.info(f"📢 Broadcast {message.get('type')} to {len(targets)} connections")
        return len(targets)

    def broadcast_to_channel(
        self, channel_id: int, message: dict, exclude: Optional[Connection] = None
    ) -> int:
        """Send an event to every subscriber of a channel."""
        targets = [c for c in self.channel_subscribers(channel_id) if c is not exclude]
        for connection in targets:
            connection.deliver(message)
        logger.debug(f"📢 {message.get('type')} to channel {channel_id}: sent={len(targets)}")
        return len(targets)

    def broadcast_to_users(self, user_ids: Iterable[int], message: dict) -> int:
        """Send an event to every connection of the given identities."""
        wanted = set(user_ids)
        targets = [c for c in self.active_connections.values() if c.user.id in wanted]
        for connection in targets:
            connection.deliver(message)
        logger.debug(f"📢 {message.get('type')} to users {sorted(wanted)}: sent={len(targets)}")
        return len(targets)

    # ============ Lookup & Shutdown ============

    def connections_for_user(self, user_id: int) -> List[Connection]:
        return [c for c in self.active_connections.values() if c.user.id == user_id]

    def close_user_connections(self, user_id: int, code: int = status.WS_1008_POLICY_VIOLATION) -> int:
        """Close every connection of an identity after its queued events are flushed."""
        connections = self.connections_for_user(user_id)
        for connection in connections:
            connection.close(code)
        if connections:
            logger.info(f"Closing {len(connections)} connections of user {user_id}")
        return len(connections)

    def close_all(self, code: int = status.WS_1001_GOING_AWAY) -> None:
        for connection in list(self.active_connections.values()):
            connection.close(code)

    def get_connection_count(self, user_id: Optional[int] = None) -> int:
        """
        Get number of active connections.

        Args:
            user_id: Optional identity to filter by
        """
        if user_id is not None:
            return len(self.connections_for_user(user_id))
        return len(self.active_connections)

    def get_stats(self) -> dict:
        return {
            "total_connections": len(self.active_connections),
            "subscribed_channels": len(self.channel_groups),
            "connections_by_channel": {
                channel_id: len(members) for channel_id, members in self.channel_groups.items()
            },
        }


# Singleton instance
connection_manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    """
    Get the global ConnectionManager singleton instance.

    Returns:
        ConnectionManager instance
    """
    return connection_manager
