"""Utility modules for db-iterator."""

from db_iterator.utils.properties import (
    is_numeric_key,
    iter_properties,
    named_properties,
)
from db_iterator.utils.serialization import (
    convert_row_to_json_safe,
    convert_rows_to_json_safe,
    convert_value_to_json_safe,
    dumps,
)

__all__ = [
    "is_numeric_key",
    "iter_properties",
    "named_properties",
    "convert_value_to_json_safe",
    "convert_row_to_json_safe",
    "convert_rows_to_json_safe",
    "dumps",
]
