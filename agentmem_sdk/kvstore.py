"""Key-Value Store implementation backed by SQLite"""

import logging
import math
import time
from contextlib import contextmanager
from typing import AsyncIterator, Iterator, Optional

from turso.aio import Connection, connect
from turso.lib import Error as TursoError

from .errors import StoreUnavailableError
from .store import KeyValueStore

logger = logging.getLogger(__name__)

_LIVE = "(expires_at IS NULL OR expires_at > ?)"


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except TursoError as error:
        logger.warning("SQLite %s failed: %s", operation, error)
        raise StoreUnavailableError(f"Key-value store unavailable: {error}") from error


class KvStore(KeyValueStore):
    """Key-Value store backed by SQLite

    Stores raw text values with an optional expiry timestamp. Expired
    rows are invisible to reads and are purged lazily by prefix scans.
    """

    def __init__(self, db: Connection, owns_connection: bool = False):
        """Private constructor - use KvStore.from_database() or KvStore.open() instead"""
        self._db = db
        self._owns_connection = owns_connection

    @staticmethod
    async def from_database(db: Connection, owns_connection: bool = False) -> "KvStore":
        """Create a KvStore from an existing database connection

        Args:
            db: An existing pyturso.aio Connection
            owns_connection: Close the connection when the store is closed

        Returns:
            Fully initialized KvStore instance
        """
        kv = KvStore(db, owns_connection=owns_connection)
        await kv._initialize()
        return kv

    @staticmethod
    async def open(path: str) -> "KvStore":
        """Open a database file and create a KvStore that owns the connection

        Example:
            >>> kv = await KvStore.open('.agentmem/memory.db')
        """
        db = await connect(path)
        return await KvStore.from_database(db, owns_connection=True)

    async def _initialize(self) -> None:
        """Initialize the database schema"""
        with _store_errors("initialize"):
            await self._db.executescript("""
                CREATE TABLE IF NOT EXISTS memory_kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at REAL,
                    created_at INTEGER DEFAULT (unixepoch()),
                    updated_at INTEGER DEFAULT (unixepoch())
                );

                CREATE INDEX IF NOT EXISTS idx_memory_kv_expires_at
                ON memory_kv(expires_at);
            """)
            await self._db.commit()

    def get_database(self) -> Connection:
        """Get the underlying Database connection"""
        return self._db

    async def get(self, key: str) -> Optional[str]:
        """Get a value by key

        Example:
            >>> content = await kv.get('memory:/memories/notes.md')
        """
        with _store_errors("get"):
            cursor = await self._db.execute(
                f"SELECT value FROM memory_kv WHERE key = ? AND {_LIVE}", (key, time.time())
            )
            row = await cursor.fetchone()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        """Set a key-value pair without expiry"""
        with _store_errors("set"):
            await self._upsert(key, value, None)

    async def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        """Set a key-value pair that expires after ttl seconds"""
        with _store_errors("set_with_expiry"):
            await self._upsert(key, value, time.time() + ttl)

    async def _upsert(self, key: str, value: str, expires_at: Optional[float]) -> None:
        await self._db.execute(
            """
            INSERT INTO memory_kv (key, value, expires_at, updated_at)
            VALUES (?, ?, ?, unixepoch())
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                expires_at = excluded.expires_at,
                updated_at = unixepoch()
            """,
            (key, value, expires_at),
        )
        await self._db.commit()

    async def exists(self, key: str) -> bool:
        """Check if a live key exists"""
        with _store_errors("exists"):
            return await self._exists(key)

    async def _exists(self, key: str) -> bool:
        cursor = await self._db.execute(
            f"SELECT 1 FROM memory_kv WHERE key = ? AND {_LIVE}", (key, time.time())
        )
        return await cursor.fetchone() is not None

    async def delete(self, *keys: str) -> int:
        """Delete keys and return how many live keys were removed

        Example:
            >>> await kv.delete('memory:/memories/a.md', 'memory:/memories/b.md')
        """
        if not keys:
            return 0

        placeholders = ", ".join("?" for _ in keys)
        with _store_errors("delete"):
            cursor = await self._db.execute(
                f"SELECT COUNT(*) FROM memory_kv WHERE key IN ({placeholders}) AND {_LIVE}",
                (*keys, time.time()),
            )
            row = await cursor.fetchone()
            await self._db.execute(f"DELETE FROM memory_kv WHERE key IN ({placeholders})", keys)
            await self._db.commit()
        return row[0] if row else 0

    async def scan_prefix(self, prefix: str) -> AsyncIterator[str]:
        """Iterate over live keys starting with prefix

        Example:
            >>> async for key in kv.scan_prefix('memory:/memories/'):
            >>>     print(key)
        """
        now = time.time()
        # Escape special characters for LIKE query
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

        with _store_errors("scan_prefix"):
            await self._db.execute(
                "DELETE FROM memory_kv WHERE expires_at IS NOT NULL AND expires_at <= ?", (now,)
            )
            await self._db.commit()
            cursor = await self._db.execute(
                f"SELECT key FROM memory_kv WHERE key LIKE ? ESCAPE '\\' AND {_LIVE}",
                (escaped + "%", now),
            )
            rows = await cursor.fetchall()

        for row in rows:
            # LIKE ignores ASCII case
            if row[0].startswith(prefix):
                yield row[0]

    async def refresh_expiry(self, key: str, ttl: int) -> bool:
        """Reset the expiry of a live key"""
        with _store_errors("refresh_expiry"):
            if not await self._exists(key):
                return False
            await self._db.execute(
                "UPDATE memory_kv SET expires_at = ? WHERE key = ?", (time.time() + ttl, key)
            )
            await self._db.commit()
        return True

    async def ttl(self, key: str) -> Optional[int]:
        """Remaining lifetime of a key in whole seconds"""
        now = time.time()
        with _store_errors("ttl"):
            cursor = await self._db.execute(
                f"SELECT expires_at FROM memory_kv WHERE key = ? AND {_LIVE}", (key, now)
            )
            row = await cursor.fetchone()
        if not row or row[0] is None:
            return None
        return max(0, math.ceil(row[0] - now))

    async def close(self) -> None:
        """Close the database connection if this store opened it"""
        if self._owns_connection:
            await self._db.close()
