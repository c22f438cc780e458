"""Shared fixtures: every store-backed test runs on SQLite and on Redis"""

import os
import tempfile
from typing import AsyncIterator, List, Optional, Tuple

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis, FakeServer

from agentmem_sdk import KeyValueStore, KvStore, MemoryTool, MemoryToolOptions, RedisKvStore


class RecordingStore(KeyValueStore):
    """Store wrapper that records every call by method name"""

    def __init__(self, inner: KeyValueStore):
        self.inner = inner
        self.calls: List[Tuple[str, tuple]] = []

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def reset(self) -> None:
        self.calls.clear()

    async def get(self, key: str) -> Optional[str]:
        self.calls.append(("get", (key,)))
        return await self.inner.get(key)

    async def set(self, key: str, value: str) -> None:
        self.calls.append(("set", (key,)))
        await self.inner.set(key, value)

    async def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        self.calls.append(("set_with_expiry", (key, ttl)))
        await self.inner.set_with_expiry(key, value, ttl)

    async def exists(self, key: str) -> bool:
        self.calls.append(("exists", (key,)))
        return await self.inner.exists(key)

    async def delete(self, *keys: str) -> int:
        self.calls.append(("delete", keys))
        return await self.inner.delete(*keys)

    async def scan_prefix(self, prefix: str) -> AsyncIterator[str]:
        self.calls.append(("scan_prefix", (prefix,)))
        async for key in self.inner.scan_prefix(prefix):
            yield key

    async def refresh_expiry(self, key: str, ttl: int) -> bool:
        self.calls.append(("refresh_expiry", (key, ttl)))
        return await self.inner.refresh_expiry(key, ttl)

    async def ttl(self, key: str) -> Optional[int]:
        return await self.inner.ttl(key)


@pytest_asyncio.fixture
async def sqlite_store():
    with tempfile.TemporaryDirectory() as tmpdir:
        kv = await KvStore.open(os.path.join(tmpdir, "test.db"))
        yield kv
        await kv.close()


@pytest_asyncio.fixture
async def fake_redis():
    client = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def redis_store(fake_redis):
    return RedisKvStore(fake_redis)


@pytest.fixture(params=["sqlite", "redis"])
def store(request):
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def tool(store):
    return MemoryTool(store)


@pytest.fixture
def recording_store(store):
    return RecordingStore(store)


@pytest.fixture
def ttl_tool(recording_store):
    return MemoryTool(recording_store, MemoryToolOptions(ttl=60))
