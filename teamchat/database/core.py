"""SQLite database core infrastructure."""
import aiosqlite
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from teamchat.config import settings
from teamchat.database.schema import SCHEMA_SQL

logger = logging.getLogger(__name__)

WriteOperation = Callable[[aiosqlite.Connection], Awaitable[Any]]


class DatabaseCore:
    """Manage SQLite database connection and write queue."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path
        self.conn: Optional[aiosqlite.Connection] = None
        self.write_queue: Optional[asyncio.Queue] = None
        self.writer_task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def is_connected(self) -> bool:
        return self.conn is not None and self._running

    async def connect(self, db_path: Optional[str] = None) -> None:
        """Connect to SQLite, create tables and start the writer."""
        self.db_path = db_path or self.db_path or settings.SQLITE_DB_PATH
        self.conn = await aiosqlite.connect(self.db_path)
        self.conn.row_factory = aiosqlite.Row

        # Enable Write-Ahead Logging for concurrency
        await self.conn.execute("PRAGMA journal_mode=WAL;")
        await self.conn.execute("PRAGMA synchronous=NORMAL;")
        await self.conn.execute("PRAGMA foreign_keys=ON;")

        await self._create_tables()

        self.write_queue = asyncio.Queue()
        self._running = True
        self.writer_task = asyncio.create_task(self._process_write_queue())

        await self._seed_defaults()
        logger.info(f"💾 Database connected: {self.db_path}")

    async def close(self) -> None:
        if self.writer_task:
            # Let queued writes finish before the writer stops
            await self.write_queue.join()
            self._running = False
            self.writer_task.cancel()
            try:
                await self.writer_task
            except asyncio.CancelledError:
                pass
            self.writer_task = None
        if self.conn:
            await self.conn.close()
            self.conn = None
        logger.info("💾 Database closed")

    async def _create_tables(self) -> None:
        """Execute schema definition."""
        # Split schema by semicolon to execute statement by statement
        statements = SCHEMA_SQL.split(';')
        for stmt in statements:
            if stmt.strip():
                await self.conn.execute(stmt)
        await self.conn.commit()

    async def _seed_defaults(self) -> None:
        """Make sure the default public channel exists."""
        existing = await self._fetchone(
            "SELECT id FROM channels WHERE name = ? AND kind = 'public'",
            (settings.DEFAULT_CHANNEL_NAME,)
        )
        if not existing:
            await self._execute_write(
                "INSERT INTO channels (name, kind) VALUES (?, 'public')",
                (settings.DEFAULT_CHANNEL_NAME,)
            )
            logger.info(f"Created default channel #{settings.DEFAULT_CHANNEL_NAME}")

    async def _process_write_queue(self) -> None:
        """Sequential writer to prevent SQLite locking errors."""
        while self._running:
            try:
                operation, future = await self.write_queue.get()
            except asyncio.CancelledError:
                break
            try:
                result = await operation(self.conn)
                await self.conn.commit()
                if not future.done():
                    future.set_result(result)
            except Exception as e:
                await self.conn.rollback()
                if not future.done():
                    future.set_exception(e)
            finally:
                self.write_queue.task_done()

    async def _run_write(self, operation: WriteOperation) -> Any:
        """Run a write operation as one transaction on the writer task."""
        if not self.is_connected:
            raise RuntimeError("Database not connected")
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        await self.write_queue.put((operation, future))
        return await future

    async def _execute_write(self, query: str, args: tuple = ()) -> Optional[int]:
        """Execute one write statement; returns the last inserted row id."""
        async def operation(conn: aiosqlite.Connection) -> Optional[int]:
            cursor = await conn.execute(query, args)
            return cursor.lastrowid

        return await self._run_write(operation)

    async def _execute_update(self, query: str, args: tuple = ()) -> int:
        """Execute one write statement; returns the affected row count."""
        async def operation(conn: aiosqlite.Connection) -> int:
            cursor = await conn.execute(query, args)
            return cursor.rowcount

        return await self._run_write(operation)

    async def _fetchone(self, query: str, args: tuple = ()) -> Optional[Dict[str, Any]]:
        async with self.conn.execute(query, args) as cursor:
            row = await cursor.fetchone()
            return dict(row) if row else None

    async def _fetchall(self, query: str, args: tuple = ()) -> List[Dict[str, Any]]:
        async with self.conn.execute(query, args) as cursor:
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]
