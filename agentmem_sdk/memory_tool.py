"""Main MemoryTool class"""

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from .commands import (
    CreateCommand,
    DeleteCommand,
    InsertCommand,
    MemoryToolCommand,
    RenameCommand,
    StrReplaceCommand,
    ViewCommand,
    parse_command,
)
from .constants import DEFAULT_KEY_PREFIX, KEY_SEPARATOR, MEMORIES_ROOT, PATH_SEPARATOR
from .editor import ContentEditor
from .errors import InvalidCommandError, MemoryErrorCode, MemoryToolError
from .kvstore import KvStore
from .mutator import Mutator
from .paths import PathCodec, build_key_prefix
from .redis_store import RedisKvStore
from .resolver import DirectoryResolver
from .store import KeyValueStore

logger = logging.getLogger(__name__)

_AGENT_CONTEXT_PATTERN = r"^[a-zA-Z0-9_-]+$"


@dataclass
class MemoryToolOptions:
    """Configuration options for a MemoryTool

    Attributes:
        key_prefix: Base prefix for every key (default: 'memory')
        agent_context: Optional agent/session id. Keys become
            ``<key_prefix>:<agent_context>:<path>`` so contexts never
            see each other's memories.
        ttl: Optional lifetime in seconds. Applied on every write and
            refreshed whenever file content is viewed.
        root: Namespace root every path must live under
        path: SQLite database file, used by MemoryTool.open()
        redis_url: Redis URL, used by MemoryTool.open()
    """

    key_prefix: str = DEFAULT_KEY_PREFIX
    agent_context: Optional[str] = None
    ttl: Optional[int] = None
    root: str = MEMORIES_ROOT
    path: Optional[str] = None
    redis_url: Optional[str] = None

    def validate(self) -> None:
        """Validate option values

        Raises:
            ValueError: On an invalid key_prefix, agent_context, ttl or root
        """
        if not self.key_prefix or KEY_SEPARATOR in self.key_prefix:
            raise ValueError(f"Invalid key prefix: {self.key_prefix!r}")
        if self.agent_context is not None and not re.match(_AGENT_CONTEXT_PATTERN, self.agent_context):
            raise ValueError(
                "Agent context must contain only alphanumeric characters, hyphens, and underscores"
            )
        if self.ttl is not None and (isinstance(self.ttl, bool) or not isinstance(self.ttl, int) or self.ttl <= 0):
            raise ValueError("TTL must be a positive number of seconds")
        if (
            not self.root.startswith(PATH_SEPARATOR)
            or self.root.endswith(PATH_SEPARATOR)
            or KEY_SEPARATOR in self.root
        ):
            raise ValueError(f"Invalid namespace root: {self.root!r}")


@dataclass
class ToolResult:
    """Result of a memory tool call

    Attributes:
        output: Text returned to the agent on success, None on failure
        error: Error message on failure, None on success
        error_code: Error code on failure (e.g. 'ENOENT')
    """

    output: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[MemoryErrorCode] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def content(self) -> str:
        """Text to hand back to the agent"""
        return self.error if self.error is not None else (self.output or "")


class MemoryTool:
    """Memory tool handlers on a flat key-value store

    Emulates a directory tree under ``/memories`` for an AI agent's memory
    tool. Directories exist only as key prefixes. Each handler takes a
    command object and returns the text shown to the agent, raising a
    MemoryToolError on failure.

    There is no locking: edits are read-modify-write, and the last writer
    wins when two calls touch the same path concurrently.

    Example:
        >>> async with await MemoryTool.open(MemoryToolOptions(path='memory.db')) as tool:
        >>>     await tool.create(CreateCommand(path='/memories/notes.md', file_text='hi'))
        >>>     print(await tool.view(ViewCommand(path='/memories')))
    """

    def __init__(self, store: KeyValueStore, options: Optional[MemoryToolOptions] = None, owns_store: bool = False):
        """Create handlers on an existing store

        Args:
            store: Key-value store holding the memories
            options: Configuration options
            owns_store: Close the store when the tool is closed
        """
        options = options or MemoryToolOptions()
        options.validate()

        self._store = store
        self._owns_store = owns_store
        self.options = options
        self.key_prefix = build_key_prefix(options.key_prefix, options.agent_context)
        self.ttl = options.ttl

        self.codec = PathCodec(self.key_prefix, options.root)
        self.resolver = DirectoryResolver(store, self.codec)
        self.editor = ContentEditor(store, self.codec, self.resolver, options.ttl)
        self.mutator = Mutator(store, self.codec, self.resolver, options.ttl)

    @staticmethod
    async def open(options: MemoryToolOptions) -> "MemoryTool":
        """Open a memory tool on a store it owns

        Args:
            options: Configuration options (path or redis_url required)

        Returns:
            MemoryTool that closes its store on close()

        Raises:
            ValueError: If not exactly one of path and redis_url is given

        Example:
            >>> tool = await MemoryTool.open(MemoryToolOptions(path='./data/memory.db'))
            >>> tool = await MemoryTool.open(MemoryToolOptions(redis_url='redis://localhost:6379'))
        """
        if bool(options.path) == bool(options.redis_url):
            raise ValueError("MemoryTool.open() requires exactly one of 'path' or 'redis_url'.")
        options.validate()

        store: KeyValueStore
        if options.path:
            store = await KvStore.open(options.path)
        else:
            store = RedisKvStore.from_url(options.redis_url)

        return MemoryTool(store, options, owns_store=True)

    @staticmethod
    async def open_with(store: KeyValueStore, options: Optional[MemoryToolOptions] = None) -> "MemoryTool":
        """Open a memory tool on a caller-owned store

        The store is left open when the tool is closed.
        """
        return MemoryTool(store, options, owns_store=False)

    def get_store(self) -> KeyValueStore:
        """Get the underlying key-value store"""
        return self._store

    async def view(self, command: ViewCommand) -> str:
        """View a file with line numbers, or list a directory"""
        return await self.editor.view(command.path, command.view_range)

    async def create(self, command: CreateCommand) -> str:
        """Create a new file"""
        return await self.editor.create(command.path, command.file_text)

    async def str_replace(self, command: StrReplaceCommand) -> str:
        """Replace a unique occurrence of text in a file"""
        return await self.editor.str_replace(command.path, command.old_str, command.new_str)

    async def insert(self, command: InsertCommand) -> str:
        """Insert a line of text into a file"""
        return await self.editor.insert(command.path, command.insert_line, command.insert_text)

    async def delete(self, command: DeleteCommand) -> str:
        """Delete a file or directory"""
        return await self.mutator.delete(command.path)

    async def rename(self, command: RenameCommand) -> str:
        """Rename or move a file or directory"""
        return await self.mutator.rename(command.old_path, command.new_path)

    async def execute(self, command: MemoryToolCommand) -> str:
        """Dispatch a command object to its handler"""
        if isinstance(command, ViewCommand):
            return await self.view(command)
        if isinstance(command, CreateCommand):
            return await self.create(command)
        if isinstance(command, StrReplaceCommand):
            return await self.str_replace(command)
        if isinstance(command, InsertCommand):
            return await self.insert(command)
        if isinstance(command, DeleteCommand):
            return await self.delete(command)
        if isinstance(command, RenameCommand):
            return await self.rename(command)
        raise InvalidCommandError(f"Unknown memory command: {command!r}")

    async def handle(self, payload: Mapping[str, Any]) -> ToolResult:
        """Run a raw tool-call input and capture failures as a ToolResult

        Memory tool errors become ``ToolResult(error=...)`` with the same
        message the exception carries. Any other exception propagates.

        Example:
            >>> result = await tool.handle({'command': 'view', 'path': '/memories'})
            >>> print(result.content)
        """
        try:
            output = await self.execute(parse_command(payload))
        except MemoryToolError as error:
            logger.debug("Memory command %r failed: %s", payload.get("command"), error)
            return ToolResult(error=error.message, error_code=error.code)
        return ToolResult(output=output)

    async def clear_all(self) -> int:
        """Delete every memory in this agent context

        Returns:
            Number of keys deleted
        """
        keys = set()
        async for key in self._store.scan_prefix(self.codec.namespace_prefix()):
            keys.add(key)
        if not keys:
            return 0
        deleted = await self._store.delete(*keys)
        logger.info("Cleared %d memories under %s", deleted, self.key_prefix)
        return deleted

    async def get_all_paths(self) -> List[str]:
        """Get every stored file path, sorted"""
        paths = set()
        async for key in self._store.scan_prefix(self.codec.namespace_prefix()):
            paths.add(self.codec.decode(key))
        return sorted(paths)

    async def close(self) -> None:
        """Close the store if this tool opened it"""
        if self._owns_store:
            await self._store.close()

    async def __aenter__(self) -> "MemoryTool":
        """Context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        """Context manager exit"""
        await self.close()
