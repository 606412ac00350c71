"""
db_iterator - traverse and edit relational databases table by table

Keyed and sequential access to the tables, rows and columns of a database,
with lazily executed select/where/order/limit chaining and single-row
insert/update/delete.
"""

__version__ = "0.1.0"

from db_iterator.core import Database, DatabaseConnection, FetchMode, Row, Table
from db_iterator.exceptions import (
    CreateTableError,
    DatabaseIteratorError,
    EmptyUpdateError,
    InsertDataMismatchError,
    PrimaryKeyNotFoundError,
    StatementExecutionError,
    UnknownFieldError,
)
from db_iterator.models import Column, DatabaseConfig, LoadState, QuerySpec

__all__ = [
    "Column",
    "CreateTableError",
    "Database",
    "DatabaseConfig",
    "DatabaseConnection",
    "DatabaseIteratorError",
    "EmptyUpdateError",
    "FetchMode",
    "InsertDataMismatchError",
    "LoadState",
    "PrimaryKeyNotFoundError",
    "QuerySpec",
    "Row",
    "StatementExecutionError",
    "Table",
    "UnknownFieldError",
]
