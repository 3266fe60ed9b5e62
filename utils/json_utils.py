"""Shared JSON helpers.

Reading configuration files and rendering command output use the same
encoding rules: UTF-8, datetimes as ISO 8601 UTC text, enums by value.
"""
import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Union


def load_json(file_path: Union[str, Path]) -> Any:
    """
    Load JSON from a file.

    Args:
        file_path: Path to the JSON file (string or Path object)

    Returns:
        Parsed JSON data

    Raises:
        FileNotFoundError: If file does not exist
        json.JSONDecodeError: If JSON is malformed or the file is empty
    """
    path = Path(file_path)

    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
        if not content.strip():
            raise json.JSONDecodeError("File is empty", content, 0)
        return json.loads(content)


def _encode_default(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dump_json(data: Any, indent: int = 2) -> str:
    """
    Serialize data to JSON text.

    Args:
        data: Data to serialize
        indent: JSON indentation level (default: 2)

    Returns:
        JSON text, non-ASCII characters kept as-is

    Raises:
        TypeError: If data contains values that cannot be serialized
    """
    return json.dumps(data, indent=indent, ensure_ascii=False, default=_encode_default)


def save_json(data: Any, file_path: Union[str, Path], indent: int = 2) -> None:
    """
    Save data to a JSON file, creating parent directories as needed.

    Args:
        data: Data to serialize to JSON
        file_path: Path to the output file
        indent: JSON indentation level (default: 2)
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = dump_json(data, indent=indent)

    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
