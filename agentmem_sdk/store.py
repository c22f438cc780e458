"""Key-value store contract used by the memory tool.

Any store that offers exact-key reads and writes, batch deletes, prefix
scans and per-key expiry can back the memory namespace. Two
implementations ship with the package: ``KvStore`` (SQLite via turso) and
``RedisKvStore`` (Redis).

Every method may raise ``StoreUnavailableError``. The memory tool never
retries and propagates the error unchanged.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional


class KeyValueStore(ABC):
    """Flat text key-value store with prefix scans and expiry"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value stored at key, or None if absent or expired"""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value at key without expiry, replacing any previous value"""

    @abstractmethod
    async def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        """Store value at key, expiring after ttl seconds"""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a live value is stored at key"""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys in one batch and return how many existed"""

    @abstractmethod
    def scan_prefix(self, prefix: str) -> AsyncIterator[str]:
        """Iterate over live keys starting with prefix.

        The prefix is literal; implementations escape their own pattern
        syntax. Keys may be yielded more than once and in any order.
        """

    @abstractmethod
    async def refresh_expiry(self, key: str, ttl: int) -> bool:
        """Reset the expiry of key to ttl seconds. Returns False if absent."""

    @abstractmethod
    async def ttl(self, key: str) -> Optional[int]:
        """Remaining lifetime of key in seconds, None if absent or persistent"""

    async def close(self) -> None:
        """Release the underlying connection if this store owns it"""

    async def __aenter__(self) -> "KeyValueStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def write_with_ttl(store: KeyValueStore, key: str, value: str, ttl: Optional[int]) -> None:
    """Write value, applying ttl when one is configured"""
    if ttl:
        await store.set_with_expiry(key, value, ttl)
    else:
        await store.set(key, value)


async def refresh_ttl(store: KeyValueStore, key: str, ttl: Optional[int]) -> None:
    """Slide the expiry window of key when a ttl is configured"""
    if ttl:
        await store.refresh_expiry(key, ttl)
