"""Redis-backed key-value store.

Implements the ``KeyValueStore`` contract on ``redis.asyncio``. Works with
clients created with or without ``decode_responses``; byte responses are
decoded as UTF-8.
"""

import logging
from contextlib import contextmanager
from typing import Any, AsyncIterator, Iterator, Optional, Union

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .constants import DEFAULT_SCAN_COUNT
from .errors import StoreUnavailableError
from .store import KeyValueStore

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = ("\\", "*", "?", "[", "]")


def escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters so value matches literally"""
    for char in _GLOB_SPECIAL:
        value = value.replace(char, "\\" + char)
    return value


def _decode(value: Union[bytes, str]) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except RedisError as error:
        logger.warning("Redis %s failed: %s", operation, error)
        raise StoreUnavailableError(f"Key-value store unavailable: {error}") from error


class RedisKvStore(KeyValueStore):
    """Key-value store on a Redis server

    The client passed to the constructor stays owned by the caller and is
    never closed here. ``RedisKvStore.from_url()`` creates a client that
    the store owns and closes in ``close()``.

    Example::

        from redis.asyncio import Redis

        store = RedisKvStore(Redis(host="localhost", port=6379))
        tool = await MemoryTool.open_with(store)
    """

    def __init__(self, client: Redis, owns_connection: bool = False, scan_count: int = DEFAULT_SCAN_COUNT):
        self._client = client
        self._owns_connection = owns_connection
        self._scan_count = scan_count

    @staticmethod
    def from_url(url: str, **kwargs: Any) -> "RedisKvStore":
        """Create a store with its own client

        Args:
            url: Redis URL, e.g. ``redis://localhost:6379/0``
            **kwargs: Extra options passed to ``Redis.from_url``
        """
        kwargs.setdefault("decode_responses", True)
        client = Redis.from_url(url, **kwargs)
        return RedisKvStore(client, owns_connection=True)

    @property
    def client(self) -> Redis:
        return self._client

    @property
    def owns_connection(self) -> bool:
        return self._owns_connection

    async def get(self, key: str) -> Optional[str]:
        with _store_errors("GET"):
            value = await self._client.get(key)
        return None if value is None else _decode(value)

    async def set(self, key: str, value: str) -> None:
        with _store_errors("SET"):
            await self._client.set(key, value)

    async def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        with _store_errors("SETEX"):
            await self._client.setex(key, ttl, value)

    async def exists(self, key: str) -> bool:
        with _store_errors("EXISTS"):
            return await self._client.exists(key) > 0

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        with _store_errors("DEL"):
            return await self._client.delete(*keys)

    async def scan_prefix(self, prefix: str) -> AsyncIterator[str]:
        """Iterate over keys starting with prefix using SCAN

        SCAN may return a key more than once; each key is yielded once
        per call.
        """
        pattern = escape_glob(prefix) + "*"
        seen = set()
        with _store_errors("SCAN"):
            async for raw_key in self._client.scan_iter(match=pattern, count=self._scan_count):
                key = _decode(raw_key)
                if key in seen:
                    continue
                seen.add(key)
                yield key

    async def refresh_expiry(self, key: str, ttl: int) -> bool:
        with _store_errors("EXPIRE"):
            return bool(await self._client.expire(key, ttl))

    async def ttl(self, key: str) -> Optional[int]:
        with _store_errors("TTL"):
            remaining = await self._client.ttl(key)
        # -2: no such key, -1: no expiry
        return None if remaining < 0 else remaining

    async def close(self) -> None:
        """Close the Redis client if this store created it"""
        if self._owns_connection:
            await self._client.aclose()
