"""Base adapter abstract class for database-specific behaviour."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import Connection
from sqlalchemy.schema import CreateTable

if TYPE_CHECKING:
    from db_iterator.core.connection import DatabaseConnection


class BaseAdapter(ABC):
    """Base adapter defining the dialect-specific interface."""

    @property
    @abstractmethod
    def dialect(self) -> str:
        """SQLAlchemy dialect name handled by this adapter."""
        ...

    @abstractmethod
    def get_create_table(
        self, connection: "DatabaseConnection", table_name: str
    ) -> Optional[str]:
        """
        Retrieve the CREATE TABLE statement of a table.

        Args:
            connection: Database connection
            table_name: Table name

        Returns:
            DDL string, or None if the database returned nothing
        """
        ...

    @abstractmethod
    def set_read_only(self, conn: Connection) -> None:
        """Put a session in read-only mode."""
        ...

    @abstractmethod
    def set_statement_timeout(self, conn: Connection, timeout: int) -> None:
        """Set the statement timeout of a session, in seconds."""
        ...

    def is_auto_increment(
        self, col_data: dict[str, Any], pk_columns: list[str]
    ) -> bool:
        """
        Check if a reflected column gets its value from the database.

        Args:
            col_data: Column data from SQLAlchemy's Inspector.get_columns()
            pk_columns: Primary key column names of the table

        Returns:
            True for auto-increment/identity columns
        """
        return col_data.get("autoincrement") is True

    def _render_create_table(
        self, connection: "DatabaseConnection", table_name: str
    ) -> str:
        """Render DDL from the reflected table when no native statement exists."""
        table = connection.reflect(table_name)
        return str(CreateTable(table).compile(dialect=connection.sa_dialect)).strip()

    @staticmethod
    def _field(record: Any, key: str, position: int = 0) -> Any:
        """Read a field from a record fetched in either fetch mode."""
        if record is None:
            return None
        if isinstance(record, Mapping):
            return record.get(key)
        return record[position]
