"""
Database Operations.
Identities, channels, memberships and messages.
"""
import logging
import sqlite3
from datetime import datetime, timezone
from typing import List, Dict, Any, Iterable, Optional

import aiosqlite

from teamchat.exceptions import ConflictError

logger = logging.getLogger(__name__)

MESSAGE_VIEW_SQL = """
    SELECT m.id, m.channel_id, m.user_id, m.content, m.created_at,
           m.reply_to, m.edited, m.deleted,
           u.username, u.color,
           r.content AS reply_content, ru.username AS reply_username
    FROM messages m
    JOIN users u ON m.user_id = u.id
    LEFT JOIN messages r ON m.reply_to = r.id
    LEFT JOIN users ru ON r.user_id = ru.id
"""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class DatabaseOperationsMixin:
    """Mixin containing business-specific database operations."""

    # --- Identity Operations ---

    async def create_user(self, username: str, password_hash: str, color: str) -> int:
        try:
            return await self._execute_write(
                "INSERT INTO users (username, password, color) VALUES (?, ?, ?)",
                (username, password_hash, color)
            )
        except sqlite3.IntegrityError:
            raise ConflictError("Username already taken")

    async def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        return await self._fetchone(
            "SELECT id, username, color, status FROM users WHERE id = ?", (user_id,)
        )

    async def get_user_credentials(self, username: str) -> Optional[Dict[str, Any]]:
        """Identity row including the password hash, for login only."""
        return await self._fetchone("SELECT * FROM users WHERE username = ?", (username,))

    async def list_users(self) -> List[Dict[str, Any]]:
        return await self._fetchall("SELECT id, username, color, status FROM users ORDER BY id")

    async def set_user_status(self, user_id: int, status: str) -> int:
        return await self._execute_update(
            "UPDATE users SET status = ? WHERE id = ?", (status, user_id)
        )

    async def delete_user(self, user_id: int) -> bool:
        """Delete an identity; messages and memberships cascade."""
        deleted = await self._execute_update("DELETE FROM users WHERE id = ?", (user_id,))
        return deleted > 0

    # --- Channel Operations ---

    async def get_channel(self, channel_id: int) -> Optional[Dict[str, Any]]:
        return await self._fetchone("SELECT * FROM channels WHERE id = ?", (channel_id,))

    async def get_direct_channel(self, name: str) -> Optional[Dict[str, Any]]:
        return await self._fetchone(
            "SELECT * FROM channels WHERE name = ? AND kind = 'direct'", (name,)
        )

    async def get_channel_member_ids(self, channel_id: int) -> List[int]:
        rows = await self._fetchall(
            "SELECT user_id FROM channel_members WHERE channel_id = ? ORDER BY user_id",
            (channel_id,)
        )
        return [row["user_id"] for row in rows]

    async def is_channel_member(self, channel_id: int, user_id: int) -> bool:
        row = await self._fetchone(
            "SELECT 1 AS present FROM channel_members WHERE channel_id = ? AND user_id = ?",
            (channel_id, user_id)
        )
        return row is not None

    async def list_visible_channels(self, user_id: int) -> List[Dict[str, Any]]:
        """Public channels plus every channel the identity is a member of."""
        return await self._fetchall(
            """
            SELECT c.* FROM channels c
            WHERE c.kind = 'public'
               OR EXISTS (
                    SELECT 1 FROM channel_members cm
                    WHERE cm.channel_id = c.id AND cm.user_id = ?
               )
            ORDER BY c.id
            """,
            (user_id,)
        )

    async def list_channels(self) -> List[Dict[str, Any]]:
        return await self._fetchall("SELECT * FROM channels ORDER BY id")

    async def create_channel(
        self, name: str, kind: str, created_by: Optional[int], member_ids: Iterable[int] = ()
    ) -> int:
        """
        Insert a channel and its membership rows in one transaction.

        Raises:
            sqlite3.IntegrityError: On a duplicate direct channel name or an
                unknown member id.
        """
        members = sorted(set(member_ids))
        created_at = utc_now()

        async def operation(conn: aiosqlite.Connection) -> int:
            cursor = await conn.execute(
                "INSERT INTO channels (name, kind, created_by, created_at) VALUES (?, ?, ?, ?)",
                (name, kind, created_by, created_at)
            )
            channel_id = cursor.lastrowid
            if members:
                await conn.executemany(
                    "INSERT OR IGNORE INTO channel_members (channel_id, user_id) VALUES (?, ?)",
                    [(channel_id, member_id) for member_id in members]
                )
            return channel_id

        return await self._run_write(operation)

    async def delete_channel(self, channel_id: int) -> bool:
        """Delete a channel; messages and memberships cascade."""
        deleted = await self._execute_update("DELETE FROM channels WHERE id = ?", (channel_id,))
        return deleted > 0

    # --- Message Operations ---

    async def insert_message(
        self, channel_id: int, user_id: int, content: str, reply_to: Optional[int] = None
    ) -> int:
        async def operation(conn: aiosqlite.Connection) -> int:
            # Timestamp taken on the writer so created_at follows insert order
            cursor = await conn.execute(
                """
                INSERT INTO messages (channel_id, user_id, content, created_at, reply_to)
                VALUES (?, ?, ?, ?, ?)
                """,
                (channel_id, user_id, content, utc_now(), reply_to)
            )
            return cursor.lastrowid

        return await self._run_write(operation)

    async def get_message(self, message_id: int) -> Optional[Dict[str, Any]]:
        return await self._fetchone("SELECT * FROM messages WHERE id = ?", (message_id,))

    async def get_message_view(self, message_id: int) -> Optional[Dict[str, Any]]:
        return await self._fetchone(MESSAGE_VIEW_SQL + " WHERE m.id = ?", (message_id,))

    async def get_recent_messages(self, channel_id: int, limit: int = 100) -> List[Dict[str, Any]]:
        """Most recent messages of a channel, returned oldest first."""
        rows = await self._fetchall(
            MESSAGE_VIEW_SQL + " WHERE m.channel_id = ? ORDER BY m.id DESC LIMIT ?",
            (channel_id, limit)
        )
        return rows[::-1]

    async def update_message_content(self, message_id: int, author_id: int, content: str) -> int:
        """Edit a live message; only matches when author_id wrote it."""
        return await self._execute_update(
            """
            UPDATE messages SET content = ?, edited = 1
            WHERE id = ? AND user_id = ? AND deleted = 0
            """,
            (content, message_id, author_id)
        )

    async def soft_delete_message(self, message_id: int, placeholder: str) -> int:
        """Overwrite content with the placeholder and flag the row deleted."""
        return await self._execute_update(
            "UPDATE messages SET content = ?, deleted = 1 WHERE id = ? AND deleted = 0",
            (placeholder, message_id)
        )

    # --- Stats ---

    async def count_stats(self) -> Dict[str, Any]:
        users = await self._fetchone("SELECT COUNT(*) AS total FROM users")
        messages = await self._fetchone("SELECT COUNT(*) AS total FROM messages")
        kinds = await self._fetchall("SELECT kind, COUNT(*) AS total FROM channels GROUP BY kind")
        by_kind = {row["kind"]: row["total"] for row in kinds}
        return {
            "users": users["total"],
            "messages": messages["total"],
            "channels": sum(by_kind.values()),
            "channels_by_kind": {
                kind: by_kind.get(kind, 0) for kind in ("public", "direct", "private")
            },
        }
