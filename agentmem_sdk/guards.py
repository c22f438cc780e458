"""Guard functions for memory tool operations validation"""

from typing import Optional

from .errors import (
    AmbiguousReplaceError,
    InvalidCommandError,
    InvalidPathError,
    InvalidRangeError,
    MemoryCommand,
    NoMatchError,
    NotFoundError,
    ProtectedPathError,
)


def assert_not_root(path: str, root: str, command: MemoryCommand, message: Optional[str] = None) -> None:
    """Assert that path is not the namespace root"""
    if path == root:
        raise ProtectedPathError(
            message or f"Operation not permitted on the {root} directory itself",
            command=command,
            path=path,
        )


def assert_file_content(content: Optional[str], command: MemoryCommand, path: str) -> str:
    """Assert that a file read returned content"""
    if content is None:
        raise NotFoundError(f"File not found: {path}", command=command, path=path)
    return content


def count_unique_match(content: str, old_str: str, path: str) -> int:
    """Count occurrences of old_str and assert there is exactly one

    Occurrences are counted without overlap.
    """
    if not old_str:
        raise InvalidCommandError("old_str must not be empty", command="str_replace", path=path)
    count = content.count(old_str)
    if count == 0:
        raise NoMatchError(f"Text not found in {path}", command="str_replace", path=path)
    if count > 1:
        raise AmbiguousReplaceError(
            f"Text appears {count} times in {path}. Must be unique.",
            command="str_replace",
            path=path,
        )
    return count


def assert_insert_line(insert_line: int, line_count: int, path: str) -> None:
    """Assert that insert_line is within [0, line_count]"""
    if insert_line < 0 or insert_line > line_count:
        raise InvalidRangeError(
            f"Invalid insert_line {insert_line}. Must be 0-{line_count}",
            command="insert",
            path=path,
        )


def assert_not_within(old_path: str, new_path: str) -> None:
    """Assert that a directory is not moved into its own subtree"""
    if new_path.startswith(old_path + "/"):
        raise InvalidPathError(
            f"Cannot move {old_path} into itself: {new_path}",
            command="rename",
            path=new_path,
        )
