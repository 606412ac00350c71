"""Helpers for reading records and attribute bags."""

import re
from collections.abc import Mapping
from typing import Any, Iterator


def is_numeric_key(key: Any) -> bool:
    """Check if a key is positional (an int or an integer string like "0" or "-1")."""
    if isinstance(key, bool):
        return False
    if isinstance(key, int):
        return True
    return isinstance(key, str) and re.fullmatch(r"-?[0-9]+", key) is not None


def iter_properties(properties: Any) -> Iterator[tuple[Any, Any]]:
    """
    Iterate key/value pairs of a mapping, sequence or attribute bag.

    Args:
        properties: A mapping, a SQLAlchemy Row, a list/tuple or any object
            with instance attributes

    Yields:
        (key, value) pairs in source order
    """
    if isinstance(properties, Mapping):
        yield from properties.items()
    elif hasattr(properties, "_mapping"):
        # sqlalchemy.engine.Row
        yield from properties._mapping.items()
    elif isinstance(properties, (list, tuple)):
        yield from enumerate(properties)
    elif hasattr(properties, "__dict__"):
        yield from vars(properties).items()
    else:
        raise TypeError(
            f"Cannot read properties from object of type {type(properties).__name__}"
        )


def named_properties(properties: Any) -> dict[str, Any]:
    """Collect the non-numeric properties of an object into a dict."""
    return {
        str(key): value
        for key, value in iter_properties(properties)
        if not is_numeric_key(key)
    }
