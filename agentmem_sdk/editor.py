"""Content editor: view, create, str_replace and insert"""

import logging
from typing import List, Optional, Sequence

from .constants import EMPTY_DIRECTORY_MARKER, LINE_NUMBER_WIDTH
from .errors import AlreadyExistsError, ConflictError, NotFoundError
from .guards import assert_file_content, assert_insert_line, assert_not_root, count_unique_match
from .paths import PathCodec
from .resolver import DirectoryResolver, DirEntry
from .store import KeyValueStore, refresh_ttl, write_with_ttl

logger = logging.getLogger(__name__)


def format_numbered_lines(content: str, view_range: Optional[Sequence[int]] = None) -> str:
    """Render file content with 1-based, right-aligned line numbers

    Args:
        content: File content, split on '\\n'
        view_range: Optional [start, end] pair of 1-based line numbers,
            inclusive. An end of -1 means the last line.

    Example:
        >>> format_numbered_lines("alpha\\nbeta", [2, -1])
        '   2: beta'
    """
    lines = content.split("\n")
    start = 0
    if view_range is not None and len(view_range) == 2:
        range_start, range_end = view_range
        start = max(1, range_start) - 1
        end = len(lines) if range_end == -1 else range_end
        lines = lines[start:end]

    return "\n".join(
        f"{number:>{LINE_NUMBER_WIDTH}}: {line}" for number, line in enumerate(lines, start + 1)
    )


def render_directory(path: str, entries: List[DirEntry]) -> str:
    """Render a directory header followed by one bullet per child"""
    if not entries:
        return f"Directory: {path}\n{EMPTY_DIRECTORY_MARKER}"
    return f"Directory: {path}\n" + "\n".join(f"- {entry.display_name}" for entry in entries)


class ContentEditor:
    """Reads and edits file content

    Every edit is a read-modify-write of the full value. Concurrent
    writers to the same path are not detected; the last write wins.
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

    async def view(self, path: str, view_range: Optional[Sequence[int]] = None) -> str:
        """View a file with line numbers, or list a directory

        Reading a file slides its expiry window. Listing a directory does
        not touch expiry.

        Raises:
            NotFoundError: If nothing exists at path
        """
        normalized = self._codec.normalize(path, "view")

        if self._codec.is_root(normalized):
            entries = await self._resolver.list_children(normalized, "view")
            return render_directory(self._codec.root, entries)

        key = self._codec.encode(normalized, "view")
        content = await self._store.get(key)
        if content is not None:
            await refresh_ttl(self._store, key, self._ttl)
            return format_numbered_lines(content, view_range)

        entries = await self._resolver.list_children(normalized, "view")
        if not entries:
            raise NotFoundError(f"Path not found: {path}", command="view", path=path)
        return render_directory(path, entries)

    async def create(self, path: str, file_text: str) -> str:
        """Create a new file. Never overwrites.

        Raises:
            AlreadyExistsError: If a file or directory exists at path
            ConflictError: If an ancestor of path is a file
            ProtectedPathError: If path is the namespace root
        """
        normalized = self._codec.normalize(path, "create")
        assert_not_root(normalized, self._codec.root, "create")

        key = self._codec.encode(normalized, "create")
        if await self._store.exists(key):
            raise AlreadyExistsError(f"File already exists: {path}", command="create", path=path)
        if await self._resolver.has_descendants(key):
            raise AlreadyExistsError(f"Directory already exists: {path}", command="create", path=path)

        ancestor = await self._resolver.file_ancestor(normalized)
        if ancestor is not None:
            raise ConflictError(f"Parent path is a file: {ancestor}", command="create", path=path)

        await write_with_ttl(self._store, key, file_text, self._ttl)
        logger.debug("Created %s (%d chars)", normalized, len(file_text))
        return f"File created successfully at {path}"

    async def str_replace(self, path: str, old_str: str, new_str: str) -> str:
        """Replace the single occurrence of old_str with new_str

        Raises:
            NotFoundError: If no file exists at path
            NoMatchError: If old_str does not occur
            AmbiguousReplaceError: If old_str occurs more than once
        """
        key = self._codec.encode(path, "str_replace")
        content = assert_file_content(await self._store.get(key), "str_replace", path)

        count_unique_match(content, old_str, path)

        await write_with_ttl(self._store, key, content.replace(old_str, new_str, 1), self._ttl)
        logger.debug("Replaced text in %s", path)
        return f"File {path} has been edited"

    async def insert(self, path: str, insert_line: int, insert_text: str) -> str:
        """Insert text as a new line before 0-based line insert_line

        An insert_line equal to the line count appends after the last line.
        One trailing newline of insert_text is dropped.

        Raises:
            NotFoundError: If no file exists at path
            InvalidRangeError: If insert_line is outside [0, line count]
        """
        key = self._codec.encode(path, "insert")
        content = assert_file_content(await self._store.get(key), "insert", path)

        lines = content.split("\n")
        assert_insert_line(insert_line, len(lines), path)

        if insert_text.endswith("\n"):
            insert_text = insert_text[:-1]
        lines.insert(insert_line, insert_text)

        await write_with_ttl(self._store, key, "\n".join(lines), self._ttl)
        logger.debug("Inserted text at line %d in %s", insert_line, path)
        return f"Text inserted at line {insert_line} in {path}"
