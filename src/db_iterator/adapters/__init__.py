"""Database adapters for dialect-specific behaviour."""

from .base import BaseAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgresAdapter
from .sqlite import SQLiteAdapter

__all__ = [
    "BaseAdapter",
    "MySQLAdapter",
    "PostgresAdapter",
    "SQLiteAdapter",
    "create_adapter",
]


def create_adapter(dialect: str) -> BaseAdapter:
    """
    Factory function to create the adapter for a dialect.

    Args:
        dialect: Dialect name

    Returns:
        Database adapter instance

    Raises:
        ValueError: If database type is not supported
    """
    adapters = {
        "sqlite": SQLiteAdapter,
        "mysql": MySQLAdapter,
        "postgresql": PostgresAdapter,
    }

    adapter_class = adapters.get(dialect)

    if adapter_class is None:
        raise ValueError(
            f"Unsupported database dialect: {dialect}. "
            f"Supported dialects: {', '.join(adapters.keys())}"
        )

    return adapter_class()
