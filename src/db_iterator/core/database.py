"""Database traversal root."""

import logging
from typing import Any, Callable, Iterator, Optional

from db_iterator.core.connection import DatabaseConnection, FetchMode
from db_iterator.core.table import Table

logger = logging.getLogger(__name__)


class Database:
    """Keyed and sequential access to the tables of a database.

    Example:
        with DatabaseConnection(config) as conn:
            db = Database(conn)
            for table in db:
                for row in table:
                    print(row)
    """

    def __init__(self, connection: Optional[DatabaseConnection] = None):
        """
        Initialize the root, binding it if a connection is given.

        Args:
            connection: Initialized database connection (shared, not owned)
        """
        self.connection: Optional[DatabaseConnection] = None
        self.database_name: Optional[str] = None
        self._tables: Optional[dict[str, Table]] = None

        if connection is not None:
            self.bind(connection)

    def bind(self, connection: DatabaseConnection) -> None:
        """
        Bind a connection and load its tables.

        Args:
            connection: Initialized database connection
        """
        self.database_name = connection.database
        self.connection = connection
        self.connection.set_fetch_mode(FetchMode.ASSOC)

        self.reload_tables()

    def reload_tables(self) -> None:
        """Rebuild the table views, discarding the previous ones."""
        connection = self._require_connection()
        self._tables = {
            name: Table(name, self) for name in connection.meta_tables()
        }
        logger.debug(
            f"Loaded {len(self._tables)} tables from database {self.database_name!r}"
        )

    def get(self, name: str) -> Optional[Table]:
        """Get a table view by name, or None if absent."""
        return self._ensure_tables().get(name)

    def names(self) -> list[str]:
        """Table names in traversal order."""
        return list(self._ensure_tables())

    def for_each(self, visitor: Callable[[Table], Any]) -> None:
        """Call ``visitor`` with every table, in order."""
        for table in self:
            visitor(table)

    def _require_connection(self) -> DatabaseConnection:
        if self.connection is None:
            raise RuntimeError("Database not bound. Call bind() first.")
        return self.connection

    def _ensure_tables(self) -> dict[str, Table]:
        if self._tables is None:
            self.reload_tables()
        assert self._tables is not None
        return self._tables

    def __getitem__(self, name: str) -> Optional[Table]:
        return self.get(name)

    def __setitem__(self, name: str, table: Table) -> None:
        self._ensure_tables()[name] = table

    def __delitem__(self, name: str) -> None:
        self._ensure_tables().pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._ensure_tables()

    def __iter__(self) -> Iterator[Table]:
        return iter(list(self._ensure_tables().values()))

    def __len__(self) -> int:
        return len(self._ensure_tables())

    def __repr__(self) -> str:
        return f"Database(name={self.database_name!r})"
