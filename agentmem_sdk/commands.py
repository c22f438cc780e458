"""Memory tool command objects

Each command mirrors the input schema of one memory tool command. Tool
calls arrive as plain dictionaries; ``parse_command`` validates them and
builds the matching dataclass.
"""

from dataclasses import dataclass
from typing import Any, Literal, Mapping, Optional, Tuple, Type, Union

from .errors import InvalidCommandError


@dataclass(frozen=True)
class ViewCommand:
    """View a file or list a directory

    Attributes:
        path: Memory path
        view_range: Optional (start, end) 1-based line range, end -1 for last line
    """

    path: str
    view_range: Optional[Tuple[int, int]] = None
    command: Literal["view"] = "view"


@dataclass(frozen=True)
class CreateCommand:
    path: str
    file_text: str
    command: Literal["create"] = "create"


@dataclass(frozen=True)
class StrReplaceCommand:
    path: str
    old_str: str
    new_str: str
    command: Literal["str_replace"] = "str_replace"


@dataclass(frozen=True)
class InsertCommand:
    """Insert a line before 0-based line insert_line"""

    path: str
    insert_line: int
    insert_text: str
    command: Literal["insert"] = "insert"


@dataclass(frozen=True)
class DeleteCommand:
    path: str
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class RenameCommand:
    old_path: str
    new_path: str
    command: Literal["rename"] = "rename"


MemoryToolCommand = Union[
    ViewCommand,
    CreateCommand,
    StrReplaceCommand,
    InsertCommand,
    DeleteCommand,
    RenameCommand,
]


def _require(payload: Mapping[str, Any], command: str, field: str, expected: Type) -> Any:
    if field not in payload or payload[field] is None:
        raise InvalidCommandError(f"Missing required field '{field}' for {command}", path=payload.get("path"))
    value = payload[field]
    # bool is an int subclass
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise InvalidCommandError(
            f"Field '{field}' for {command} must be of type {expected.__name__}",
            path=payload.get("path"),
        )
    return value


def _parse_view_range(payload: Mapping[str, Any]) -> Optional[Tuple[int, int]]:
    raw = payload.get("view_range")
    if raw is None:
        return None
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise InvalidCommandError("view_range must be a list of two integers", path=payload.get("path"))

    start = 1 if raw[0] is None else raw[0]
    end = -1 if raw[1] is None else raw[1]
    for value in (start, end):
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidCommandError("view_range must be a list of two integers", path=payload.get("path"))
    return (start, end)


def parse_command(payload: Mapping[str, Any]) -> MemoryToolCommand:
    """Build a command object from a tool-call input

    Args:
        payload: Tool input, e.g. ``{"command": "view", "path": "/memories"}``

    Returns:
        The matching command dataclass

    Raises:
        InvalidCommandError: On unknown commands, missing fields or wrong types
    """
    name = payload.get("command")

    if name == "view":
        return ViewCommand(
            path=_require(payload, name, "path", str),
            view_range=_parse_view_range(payload),
        )
    if name == "create":
        return CreateCommand(
            path=_require(payload, name, "path", str),
            file_text=_require(payload, name, "file_text", str),
        )
    if name == "str_replace":
        return StrReplaceCommand(
            path=_require(payload, name, "path", str),
            old_str=_require(payload, name, "old_str", str),
            new_str=_require(payload, name, "new_str", str),
        )
    if name == "insert":
        return InsertCommand(
            path=_require(payload, name, "path", str),
            insert_line=_require(payload, name, "insert_line", int),
            insert_text=_require(payload, name, "insert_text", str),
        )
    if name == "delete":
        return DeleteCommand(path=_require(payload, name, "path", str))
    if name == "rename":
        return RenameCommand(
            old_path=_require(payload, name, "old_path", str),
            new_path=_require(payload, name, "new_path", str),
        )

    raise InvalidCommandError(f"Unknown memory command: {name!r}")
