"""Core traversal layer."""

from .connection import DatabaseConnection, FetchMode
from .database import Database
from .row import Row
from .table import Table

__all__ = [
    "Database",
    "DatabaseConnection",
    "FetchMode",
    "Row",
    "Table",
]
