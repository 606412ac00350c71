"""Pydantic models for configuration, column metadata and queries."""

from .column import Column
from .config import DatabaseConfig
from .query import LoadState, QuerySpec

__all__ = [
    "Column",
    "DatabaseConfig",
    "LoadState",
    "QuerySpec",
]
