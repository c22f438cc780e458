"""AgentMem Python SDK

A directory-structured memory tool for AI agents on flat key-value
stores, backed by SQLite or Redis.
"""

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
from .errors import (
    AlreadyExistsError,
    AmbiguousReplaceError,
    ConflictError,
    InvalidCommandError,
    InvalidPathError,
    InvalidRangeError,
    MemoryCommand,
    MemoryErrorCode,
    MemoryToolError,
    NoMatchError,
    NotFoundError,
    ProtectedPathError,
    StoreUnavailableError,
    create_memory_error,
)
from .kvstore import KvStore
from .memory_store import MemoryEntry, MemoryStore
from .memory_tool import MemoryTool, MemoryToolOptions, ToolResult
from .paths import PathCodec, normalize_path
from .redis_store import RedisKvStore
from .resolver import DirectoryResolver, DirEntry, PathKind
from .store import KeyValueStore

__version__ = "0.1.0"

__all__ = [
    "MemoryTool",
    "MemoryToolOptions",
    "ToolResult",
    "MemoryToolCommand",
    "ViewCommand",
    "CreateCommand",
    "StrReplaceCommand",
    "InsertCommand",
    "DeleteCommand",
    "RenameCommand",
    "parse_command",
    "KeyValueStore",
    "KvStore",
    "RedisKvStore",
    "MemoryStore",
    "MemoryEntry",
    "PathCodec",
    "normalize_path",
    "DirectoryResolver",
    "DirEntry",
    "PathKind",
    "MemoryToolError",
    "InvalidPathError",
    "NotFoundError",
    "AlreadyExistsError",
    "ConflictError",
    "AmbiguousReplaceError",
    "NoMatchError",
    "InvalidRangeError",
    "ProtectedPathError",
    "InvalidCommandError",
    "StoreUnavailableError",
    "MemoryErrorCode",
    "MemoryCommand",
    "create_memory_error",
]
