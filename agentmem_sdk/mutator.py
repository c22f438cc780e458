"""Delete and rename for files and whole subtrees"""

import logging
from typing import List, Optional, Tuple

from .errors import ConflictError, NotFoundError
from .guards import assert_not_root, assert_not_within
from .paths import PathCodec
from .resolver import DirectoryResolver
from .store import KeyValueStore, write_with_ttl

logger = logging.getLogger(__name__)


class Mutator:
    """Structural operations on the memory namespace

    Renames are not atomic. A subtree move checks every destination
    before writing anything, then moves one key at a time: copy to the
    destination, then delete the source. A failure part way through
    leaves some keys at both locations, never at neither.
    """

    def __init__(
        self,
        store: KeyValueStore,
        codec: PathCodec,
        resolver: DirectoryResolver,
        ttl: Optional[int] = None,
    ):
        self._store = store
        self._codec = codec
        self._resolver = resolver
        self._ttl = ttl

    async def delete(self, path: str) -> str:
        """Delete a file, or a directory with everything below it

        Raises:
            ProtectedPathError: If path is the namespace root
            NotFoundError: If nothing exists at path
        """
        normalized = self._codec.normalize(path, "delete")
        assert_not_root(
            normalized,
            self._codec.root,
            "delete",
            message=f"Cannot delete the {self._codec.root} directory itself",
        )

        key = self._codec.encode(normalized, "delete")
        if await self._store.exists(key):
            await self._store.delete(key)
            logger.debug("Deleted file %s", normalized)
            return f"File deleted: {path}"

        keys = await self._resolver.subtree_keys(key)
        if not keys:
            raise NotFoundError(f"Path not found: {path}", command="delete", path=path)

        deleted = await self._store.delete(*keys)
        logger.info("Deleted directory %s (%d keys)", normalized, deleted)
        return f"Directory deleted: {path}"

    async def rename(self, old_path: str, new_path: str) -> str:
        """Move a file or directory to a new path

        Raises:
            NotFoundError: If nothing exists at old_path
            ConflictError: If any destination key already exists
            ProtectedPathError: If either path is the namespace root
            InvalidPathError: If a directory would move into itself
        """
        old_normalized = self._codec.normalize(old_path, "rename")
        new_normalized = self._codec.normalize(new_path, "rename")
        assert_not_root(old_normalized, self._codec.root, "rename")
        assert_not_root(new_normalized, self._codec.root, "rename")

        old_key = self._codec.encode(old_normalized, "rename")
        new_key = self._codec.encode(new_normalized, "rename")

        content = await self._store.get(old_key)
        if content is not None:
            await self._move_file(old_key, new_key, content, new_path, new_normalized)
            logger.debug("Renamed file %s to %s", old_normalized, new_normalized)
            return f"Renamed {old_path} to {new_path}"

        keys = await self._resolver.subtree_keys(old_key)
        if not keys:
            raise NotFoundError(f"Source path not found: {old_path}", command="rename", path=old_path)

        assert_not_within(old_normalized, new_normalized)
        moves = await self._plan_subtree_move(keys, old_key, new_key, new_path, new_normalized)
        moved = await self._apply_moves(moves)
        logger.info("Renamed directory %s to %s (%d keys)", old_normalized, new_normalized, moved)
        return f"Renamed {old_path} to {new_path}"

    async def _assert_destination_parent(self, new_path: str, new_normalized: str) -> None:
        ancestor = await self._resolver.file_ancestor(new_normalized)
        if ancestor is not None:
            raise ConflictError(f"Parent path is a file: {ancestor}", command="rename", path=new_path)

    async def _move_file(
        self, old_key: str, new_key: str, content: str, new_path: str, new_normalized: str
    ) -> None:
        if await self._store.exists(new_key) or await self._resolver.has_descendants(new_key):
            raise ConflictError(f"Destination already exists: {new_path}", command="rename", path=new_path)
        await self._assert_destination_parent(new_path, new_normalized)

        await write_with_ttl(self._store, new_key, content, self._ttl)
        await self._store.delete(old_key)

    async def _plan_subtree_move(
        self, keys: List[str], old_key: str, new_key: str, new_path: str, new_normalized: str
    ) -> List[Tuple[str, str]]:
        """Map every source key to its destination, failing on any collision

        Nothing is written until every destination has been checked.
        """
        if await self._store.exists(new_key):
            raise ConflictError(f"Destination already exists: {new_path}", command="rename", path=new_path)
        await self._assert_destination_parent(new_path, new_normalized)

        moves = []
        for key in keys:
            relative = self._codec.relative_key(key, old_key)
            destination = new_key + relative
            if await self._store.exists(destination):
                raise ConflictError(
                    f"Destination already exists: {new_path}{relative}",
                    command="rename",
                    path=new_path + relative,
                )
            moves.append((key, destination))
        return moves

    async def _apply_moves(self, moves: List[Tuple[str, str]]) -> int:
        moved = 0
        for source, destination in moves:
            content = await self._store.get(source)
            if content is None:
                logger.warning("Source %s vanished during move, skipping", source)
                continue
            await write_with_ttl(self._store, destination, content, self._ttl)
            await self._store.delete(source)
            moved += 1
        return moved
