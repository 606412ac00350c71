"""PostgreSQL adapter."""

from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import Connection, text

from db_iterator.adapters.base import BaseAdapter

if TYPE_CHECKING:
    from db_iterator.core.connection import DatabaseConnection


class PostgresAdapter(BaseAdapter):
    """PostgreSQL adapter.

    PostgreSQL has no SHOW CREATE TABLE, so the DDL is rendered by SQLAlchemy
    from the reflected table.
    """

    @property
    def dialect(self) -> str:
        return "postgresql"

    def get_create_table(
        self, connection: "DatabaseConnection", table_name: str
    ) -> Optional[str]:
        return self._render_create_table(connection, table_name)

    def set_read_only(self, conn: Connection) -> None:
        conn.execute(text("SET SESSION CHARACTERISTICS AS TRANSACTION READ ONLY"))

    def set_statement_timeout(self, conn: Connection, timeout: int) -> None:
        timeout_ms = timeout * 1000
        conn.execute(text(f"SET statement_timeout = {timeout_ms}"))

    def is_auto_increment(
        self, col_data: dict[str, Any], pk_columns: list[str]
    ) -> bool:
        """Serial and identity columns."""
        if col_data.get("identity") or col_data.get("autoincrement") is True:
            return True
        default = col_data.get("default")
        return bool(default) and str(default).startswith("nextval(")
