"""Id-addressed memory entries with metadata"""

import json
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .constants import DEFAULT_ENTRY_PREFIX
from .store import KeyValueStore, write_with_ttl


@dataclass
class MemoryEntry:
    """A stored memory entry

    Attributes:
        id: Unique identifier for the memory
        content: The content of the memory
        metadata: Optional metadata associated with the memory
        created_at: ISO 8601 timestamp of the first write
        updated_at: ISO 8601 timestamp of the latest write
    """

    id: str
    content: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: str = ""
    updated_at: str = ""


_ENTRY_FIELDS = tuple(field.name for field in fields(MemoryEntry))


class MemoryStore:
    """Memory entries keyed by id, stored as JSON

    A simpler companion to MemoryTool for callers that address memories
    by id instead of by path, and that want created/updated timestamps.

    Example:
        >>> store = MemoryStore(await KvStore.open('memory.db'), default_ttl=3600)
        >>> await store.set('user-preferences', 'Prefers concise answers', {'source': 'chat'})
        >>> entry = await store.get('user-preferences')
    """

    def __init__(
        self,
        kv: KeyValueStore,
        key_prefix: str = DEFAULT_ENTRY_PREFIX,
        default_ttl: Optional[int] = None,
        owns_store: bool = False,
    ):
        self._kv = kv
        self.key_prefix = key_prefix
        self.default_ttl = default_ttl
        self._owns_store = owns_store

    def _get_key(self, id: str) -> str:
        return f"{self.key_prefix}{id}"

    async def set(
        self,
        id: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        ttl: Optional[int] = None,
    ) -> MemoryEntry:
        """Store a memory entry

        Args:
            id: Entry id
            content: Entry content
            metadata: Optional metadata, must be JSON serializable
            ttl: Lifetime in seconds, overrides default_ttl

        Returns:
            The stored entry. created_at survives updates.
        """
        now = datetime.now(timezone.utc).isoformat()
        existing = await self.get(id)

        entry = MemoryEntry(
            id=id,
            content=content,
            metadata=metadata,
            created_at=(existing.created_at if existing else "") or now,
            updated_at=now,
        )

        effective_ttl = ttl if ttl is not None else self.default_ttl
        await write_with_ttl(self._kv, self._get_key(id), json.dumps(asdict(entry)), effective_ttl)
        return entry

    async def get(self, id: str) -> Optional[MemoryEntry]:
        """Retrieve a memory entry by id"""
        value = await self._kv.get(self._get_key(id))
        if not value:
            return None
        data = json.loads(value)
        return MemoryEntry(**{name: data[name] for name in _ENTRY_FIELDS if name in data})

    async def delete(self, id: str) -> bool:
        """Delete a memory entry. Returns True if it existed."""
        return await self._kv.delete(self._get_key(id)) > 0

    async def has(self, id: str) -> bool:
        """Check if a memory entry exists"""
        return await self._kv.exists(self._get_key(id))

    async def list(self) -> List[str]:
        """List all entry ids under the prefix"""
        ids = set()
        async for key in self._kv.scan_prefix(self.key_prefix):
            ids.add(key[len(self.key_prefix):])
        return sorted(ids)

    async def clear(self) -> int:
        """Delete all entries under the prefix and return the count"""
        keys = set()
        async for key in self._kv.scan_prefix(self.key_prefix):
            keys.add(key)
        if not keys:
            return 0
        return await self._kv.delete(*keys)

    async def close(self) -> None:
        """Close the key-value store if this instance owns it"""
        if self._owns_store:
            await self._kv.close()
