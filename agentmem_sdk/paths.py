"""Path codec: memory paths to flat store keys and back"""

import re
from typing import Optional

from .constants import DEFAULT_KEY_PREFIX, KEY_SEPARATOR, MEMORIES_ROOT, PATH_SEPARATOR
from .errors import InvalidPathError, MemoryCommand

_REPEATED_SEPARATORS = re.compile(r"/+")


def normalize_path(path: str) -> str:
    """Collapse repeated separators and strip one trailing separator

    The bare separator is left as is. Segments are never interpreted,
    so '.' and '..' are ordinary names.
    """
    normalized = _REPEATED_SEPARATORS.sub(PATH_SEPARATOR, path)
    if len(normalized) > 1 and normalized.endswith(PATH_SEPARATOR):
        normalized = normalized[:-1]
    return normalized


def build_key_prefix(key_prefix: str = DEFAULT_KEY_PREFIX, agent_context: Optional[str] = None) -> str:
    """Build the key prefix for one agent context

    Returns ``base:context`` when a context is given, ``base`` otherwise.
    """
    if agent_context:
        return f"{key_prefix}{KEY_SEPARATOR}{agent_context}"
    return key_prefix


class PathCodec:
    """Converts memory paths to store keys

    Keys have the form ``<prefix>:<normalized path>``. Every path must
    live under the namespace root.
    """

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX, root: str = MEMORIES_ROOT):
        self.key_prefix = key_prefix
        self.root = root

    def normalize(self, path: str, command: Optional[MemoryCommand] = None) -> str:
        """Normalize and validate a memory path

        Raises:
            InvalidPathError: If the path is outside the root or contains ':'
        """
        normalized = normalize_path(path)
        if normalized != self.root and not normalized.startswith(self.root + PATH_SEPARATOR):
            raise InvalidPathError(
                f"Path must start with {self.root}, got: {path}",
                command=command,
                path=path,
            )
        if KEY_SEPARATOR in normalized:
            raise InvalidPathError(
                f"Path must not contain '{KEY_SEPARATOR}', got: {path}",
                command=command,
                path=path,
            )
        return normalized

    def encode(self, path: str, command: Optional[MemoryCommand] = None) -> str:
        """Convert a memory path to a store key"""
        return f"{self.key_prefix}{KEY_SEPARATOR}{self.normalize(path, command)}"

    def decode(self, key: str) -> str:
        """Convert a store key produced by encode() back to its path"""
        return key[len(self.key_prefix) + len(KEY_SEPARATOR):]

    def is_root(self, path: str) -> bool:
        """Check if a normalized path is the namespace root"""
        return path == self.root

    def child_path(self, path: str, name: str) -> str:
        """Join a normalized directory path and a child name"""
        return f"{path}{PATH_SEPARATOR}{name}"

    def relative_key(self, key: str, base_key: str) -> str:
        """Suffix of key below base_key, including the leading separator"""
        return key[len(base_key):]

    def namespace_prefix(self) -> str:
        """Key prefix shared by every key below the root"""
        return f"{self.key_prefix}{KEY_SEPARATOR}{self.root}{PATH_SEPARATOR}"
