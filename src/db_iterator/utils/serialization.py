"""JSON serialization of row values using orjson.

orjson handles datetime, date, time, UUID and dataclasses natively. The
default handler covers the remaining types drivers commonly return.
"""

import base64
import datetime
import decimal
import ipaddress
from typing import Any

import orjson


def _default_handler(obj: Any) -> Any:
    """
    Custom default handler for types orjson doesn't handle natively.

    Raises:
        TypeError: If object cannot be serialized
    """
    if isinstance(obj, datetime.timedelta):
        return obj.total_seconds()

    if isinstance(obj, decimal.Decimal):
        return str(obj)

    # bytes/bytearray/memoryview - try UTF-8 decode, fall back to base64
    if isinstance(obj, (bytes, bytearray, memoryview)):
        data = bytes(obj)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(data).decode("ascii")

    if isinstance(obj, (set, frozenset)):
        return list(obj)

    if isinstance(
        obj,
        (
            ipaddress.IPv4Address,
            ipaddress.IPv6Address,
            ipaddress.IPv4Network,
            ipaddress.IPv6Network,
        ),
    ):
        return str(obj)

    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def convert_value_to_json_safe(value: Any) -> Any:
    """
    Convert a value to JSON-serializable format.

    Falls back to ``str(value)`` when orjson cannot encode it.
    """
    try:
        return orjson.loads(orjson.dumps(value, default=_default_handler))
    except TypeError:
        return str(value)


def convert_row_to_json_safe(row: dict[str, Any]) -> dict[str, Any]:
    """Convert all values in a row dict to JSON-serializable formats."""
    return {key: convert_value_to_json_safe(value) for key, value in row.items()}


def convert_rows_to_json_safe(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert all rows to JSON-serializable format."""
    return [convert_row_to_json_safe(row) for row in rows]


def dumps(obj: Any) -> str:
    """
    Serialize object to an indented JSON string using orjson.

    Args:
        obj: Object to serialize

    Returns:
        JSON string
    """
    return orjson.dumps(
        obj, default=_default_handler, option=orjson.OPT_INDENT_2
    ).decode("utf-8")
