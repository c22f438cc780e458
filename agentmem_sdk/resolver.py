"""Directory resolver: infers directories from flat keys"""

from contextlib import aclosing
from dataclasses import dataclass
from typing import List, Literal, Optional, Set

from .constants import PATH_SEPARATOR
from .errors import MemoryCommand
from .paths import PathCodec
from .store import KeyValueStore

PathKind = Literal["file", "directory", "absent"]


@dataclass(frozen=True)
class DirEntry:
    """Immediate child of a directory

    Attributes:
        name: Child name (a single path segment)
        kind: 'file' or 'directory'
    """

    name: str
    kind: PathKind

    def is_file(self) -> bool:
        return self.kind == "file"

    def is_directory(self) -> bool:
        return self.kind == "directory"

    @property
    def display_name(self) -> str:
        """Name as listed by view, directories end with '/'"""
        return self.name + PATH_SEPARATOR if self.is_directory() else self.name


class DirectoryResolver:
    """Classifies memory paths and enumerates directory children

    Directories are never stored. A path is a directory when at least one
    key lives strictly below it. The root always counts as a directory.
    All operations are read-only and never touch key expiry.
    """

    def __init__(self, store: KeyValueStore, codec: PathCodec):
        self._store = store
        self._codec = codec

    async def classify(self, path: str, command: Optional[MemoryCommand] = None) -> PathKind:
        """Classify a path as 'file', 'directory' or 'absent'"""
        normalized = self._codec.normalize(path, command)
        if self._codec.is_root(normalized):
            return "directory"

        key = self._codec.encode(normalized, command)
        if await self._store.exists(key):
            return "file"
        if await self.has_descendants(key):
            return "directory"
        return "absent"

    async def has_descendants(self, key: str) -> bool:
        """Check if any key lives below key"""
        async with aclosing(self._store.scan_prefix(key + PATH_SEPARATOR)) as keys:
            async for _ in keys:
                return True
        return False

    async def file_ancestor(self, path: str) -> Optional[str]:
        """Return the nearest ancestor of a normalized path stored as a file"""
        segments = path[len(self._codec.root):].split(PATH_SEPARATOR)[1:-1]
        ancestor = self._codec.root
        found = None
        for segment in segments:
            ancestor = self._codec.child_path(ancestor, segment)
            if await self._store.exists(self._codec.encode(ancestor)):
                found = ancestor
        return found

    async def subtree_keys(self, key: str) -> List[str]:
        """Sorted, deduplicated keys strictly below key"""
        keys: Set[str] = set()
        async for descendant in self._store.scan_prefix(key + PATH_SEPARATOR):
            keys.add(descendant)
        return sorted(keys)

    async def list_children(self, path: str, command: Optional[MemoryCommand] = None) -> List[DirEntry]:
        """List the immediate children of a directory

        Performs one prefix scan plus one existence probe per unique child.
        Entries are sorted by display name.

        Example:
            >>> entries = await resolver.list_children('/memories/projects')
            >>> [entry.display_name for entry in entries]
            ['alpha/', 'notes.md']
        """
        dir_key = self._codec.encode(path, command)
        dir_prefix = dir_key + PATH_SEPARATOR

        names: Set[str] = set()
        async for key in self._store.scan_prefix(dir_prefix):
            first_segment = key[len(dir_prefix):].split(PATH_SEPARATOR)[0]
            if first_segment:
                names.add(first_segment)

        entries = []
        for name in names:
            is_file = await self._store.exists(dir_prefix + name)
            entries.append(DirEntry(name=name, kind="file" if is_file else "directory"))

        return sorted(entries, key=lambda entry: entry.display_name)
