"""SQLite adapter."""

from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import Connection, text

from db_iterator.adapters.base import BaseAdapter

if TYPE_CHECKING:
    from db_iterator.core.connection import DatabaseConnection


class SQLiteAdapter(BaseAdapter):
    """SQLite adapter reading DDL from sqlite_master."""

    @property
    def dialect(self) -> str:
        return "sqlite"

    def get_create_table(
        self, connection: "DatabaseConnection", table_name: str
    ) -> Optional[str]:
        """Read the original CREATE TABLE statement from sqlite_master."""
        record = connection.get_row(
            "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = :name",
            {"name": table_name},
        )
        return self._field(record, "sql")

    def set_read_only(self, conn: Connection) -> None:
        conn.execute(text("PRAGMA query_only = ON"))

    def set_statement_timeout(self, conn: Connection, timeout: int) -> None:
        # SQLite has no per-statement timeout
        pass

    def is_auto_increment(
        self, col_data: dict[str, Any], pk_columns: list[str]
    ) -> bool:
        """An INTEGER PRIMARY KEY aliases the rowid and is assigned automatically."""
        if col_data.get("autoincrement") is True:
            return True
        return (
            pk_columns == [col_data["name"]]
            and str(col_data["type"]).upper() == "INTEGER"
        )
