"""Fast, type-safe JSON parsing and encoding."""

from typing import Any
import json

import msgspec
import orjson

_decoder = msgspec.json.Decoder()


class JSONParseError(Exception):
    """JSON parsing failed."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


def decode_json(data: str | bytes) -> Any:
    """
    Decode a JSON document.

    Args:
        data: JSON text or UTF-8 bytes

    Returns:
        Decoded Python value

    Raises:
        JSONParseError: If the payload is not valid JSON
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        return _decoder.decode(data)
    except msgspec.DecodeError as e:
        raise JSONParseError(f"Invalid JSON: {e}", e) from e


def decode_json_object(data: str | bytes) -> dict[str, Any]:
    """Decode a JSON document that must be an object."""
    result = decode_json(data)
    if not isinstance(result, dict):
        raise JSONParseError(f"Expected object, got {type(result).__name__}")
    return result


def safe_json_dumps(obj: Any, **kwargs: Any) -> str:
    """
    Encode object to JSON string using fastest available library.

    Keys are sorted so equal values always encode to equal strings.

    Args:
        obj: Object to encode
        **kwargs: Additional arguments (indent)

    Returns:
        JSON string
    """
    indent = kwargs.get("indent", 0)

    if indent == 0:
        try:
            return orjson.dumps(obj, option=orjson.OPT_SORT_KEYS).decode("utf-8")
        except (TypeError, ValueError):
            # Fallback for edge cases (e.g., integers outside 64-bit range)
            pass

    return json.dumps(obj, indent=indent if indent > 0 else None, sort_keys=True, default=str)


def validate_json_size(data: str | bytes, max_size: int, name: str = "JSON") -> None:
    """
    Validate JSON payload size.

    Raises:
        JSONParseError: If size exceeds limit
    """
    size = len(data.encode("utf-8")) if isinstance(data, str) else len(data)
    if size > max_size:
        raise JSONParseError(f"{name} size {size} bytes exceeds maximum {max_size} bytes")


def validate_json_depth(obj: Any, max_depth: int = 20, current_depth: int = 0) -> None:
    """
    Validate JSON nesting depth to prevent stack overflow.

    Raises:
        JSONParseError: If depth exceeds limit
    """
    if current_depth > max_depth:
        raise JSONParseError(f"JSON nesting depth {current_depth} exceeds maximum {max_depth}")

    if isinstance(obj, dict):
        for value in obj.values():
            validate_json_depth(value, max_depth, current_depth + 1)
    elif isinstance(obj, list):
        for item in obj:
            validate_json_depth(item, max_depth, current_depth + 1)
