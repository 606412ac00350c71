"""MySQL adapter."""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Connection, text

from db_iterator.adapters.base import BaseAdapter

if TYPE_CHECKING:
    from db_iterator.core.connection import DatabaseConnection


class MySQLAdapter(BaseAdapter):
    """MySQL adapter using SHOW CREATE TABLE."""

    @property
    def dialect(self) -> str:
        return "mysql"

    def get_create_table(
        self, connection: "DatabaseConnection", table_name: str
    ) -> Optional[str]:
        """Run SHOW CREATE TABLE and return its 'Create Table' column."""
        sql = f"SHOW CREATE TABLE {connection.quote_identifier(table_name)}"
        record = connection.get_row(sql)
        # Second column holds the DDL when fetched positionally
        return self._field(record, "Create Table", position=1)

    def set_read_only(self, conn: Connection) -> None:
        conn.execute(text("SET SESSION TRANSACTION READ ONLY"))

    def set_statement_timeout(self, conn: Connection, timeout: int) -> None:
        timeout_ms = timeout * 1000
        conn.execute(text(f"SET SESSION max_execution_time = {timeout_ms}"))
