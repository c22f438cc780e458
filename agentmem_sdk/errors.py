"""Error types for memory tool operations"""

from typing import Dict, Literal, Optional, Type

# Error codes surfaced to the tool-calling layer
MemoryErrorCode = Literal[
    "EINVALPATH",   # Path outside the namespace root or containing ':'
    "ENOENT",       # No such file or directory
    "EEXIST",       # File already exists (create)
    "ECONFLICT",    # Destination already exists (rename)
    "EAMBIGUOUS",   # old_str matches more than once
    "ENOMATCH",     # old_str does not match
    "ERANGE",       # insert_line out of bounds
    "EPERM",        # Operation not permitted on the namespace root
    "EINVAL",       # Malformed command
    "EUNAVAIL",     # Key-value store failure
]

# Memory tool command names for error reporting
# clear_all and get_all_paths are utility operations, not tool commands
MemoryCommand = Literal[
    "view",
    "create",
    "str_replace",
    "insert",
    "delete",
    "rename",
    "clear_all",
    "get_all_paths",
]


class MemoryToolError(Exception):
    """Base error for memory tool operations

    The message is the exact text returned to the agent; ``code``,
    ``command`` and ``path`` are available for callers that want
    structured handling.
    """

    default_code: MemoryErrorCode = "EINVAL"

    def __init__(
        self,
        message: str,
        code: Optional[MemoryErrorCode] = None,
        command: Optional[MemoryCommand] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.command = command
        self.path = path


class InvalidPathError(MemoryToolError, ValueError):
    default_code: MemoryErrorCode = "EINVALPATH"


class NotFoundError(MemoryToolError, FileNotFoundError):
    default_code: MemoryErrorCode = "ENOENT"


class AlreadyExistsError(MemoryToolError, FileExistsError):
    default_code: MemoryErrorCode = "EEXIST"


class ConflictError(MemoryToolError):
    default_code: MemoryErrorCode = "ECONFLICT"


class AmbiguousReplaceError(MemoryToolError):
    default_code: MemoryErrorCode = "EAMBIGUOUS"


class NoMatchError(MemoryToolError):
    default_code: MemoryErrorCode = "ENOMATCH"


class InvalidRangeError(MemoryToolError, ValueError):
    default_code: MemoryErrorCode = "ERANGE"


class ProtectedPathError(MemoryToolError, PermissionError):
    default_code: MemoryErrorCode = "EPERM"


class InvalidCommandError(MemoryToolError, ValueError):
    default_code: MemoryErrorCode = "EINVAL"


class StoreUnavailableError(MemoryToolError):
    default_code: MemoryErrorCode = "EUNAVAIL"


_ERROR_CLASSES: Dict[str, Type[MemoryToolError]] = {
    "EINVALPATH": InvalidPathError,
    "ENOENT": NotFoundError,
    "EEXIST": AlreadyExistsError,
    "ECONFLICT": ConflictError,
    "EAMBIGUOUS": AmbiguousReplaceError,
    "ENOMATCH": NoMatchError,
    "ERANGE": InvalidRangeError,
    "EPERM": ProtectedPathError,
    "EINVAL": InvalidCommandError,
    "EUNAVAIL": StoreUnavailableError,
}


def create_memory_error(
    code: MemoryErrorCode,
    command: Optional[MemoryCommand],
    path: Optional[str],
    message: str,
) -> MemoryToolError:
    """Create a memory tool error of the class matching ``code``

    Args:
        code: Error code (e.g., 'ENOENT')
        command: Command that failed (e.g., 'view')
        path: Optional path involved in the error
        message: Message returned verbatim to the agent

    Returns:
        MemoryToolError subclass instance with attributes set
    """
    error_class = _ERROR_CLASSES.get(code, MemoryToolError)
    return error_class(message, code=code, command=command, path=path)
