"""Database connection management with SQLAlchemy."""

import datetime
import logging
from collections.abc import Mapping
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional

from sqlalchemy import Connection, Engine, MetaData, Table, create_engine, literal, text
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.engine import Dialect, Result
from sqlalchemy.exc import CompileError, SQLAlchemyError

from db_iterator.adapters import BaseAdapter, create_adapter
from db_iterator.models.config import DatabaseConfig

logger = logging.getLogger(__name__)


class FetchMode(str, Enum):
    """How fetched records are shaped."""

    ASSOC = "assoc"  # dict keyed by column name
    NUM = "num"  # tuple in select-list order


class DatabaseConnection:
    """Synchronous SQLAlchemy connection shared by all traversal objects.

    A single long-lived connection is held open between ``initialize()`` and
    ``dispose()``. Outside an explicit transaction each statement is committed
    as soon as it runs.
    """

    def __init__(self, config: DatabaseConfig):
        """
        Initialize database connection.

        Args:
            config: Database configuration with connection URL
        """
        self.config = config
        self.engine: Optional[Engine] = None
        self._conn: Optional[Connection] = None
        self._dialect = config.dialect
        self._driver = config.driver
        self.adapter: BaseAdapter = create_adapter(self._dialect)
        self.fetch_mode = FetchMode.ASSOC
        self._affected_rows = 0
        self._in_transaction = False

    @classmethod
    def from_url(cls, url: str, **options: Any) -> "DatabaseConnection":
        """Create and initialize a connection from a URL."""
        connection = cls(DatabaseConfig(url=url, **options))
        connection.initialize()
        return connection

    def initialize(self) -> None:
        """Create the engine and open the connection."""
        if self.engine is not None:
            return  # Already initialized

        self.engine = create_engine(self.config.url, echo=self.config.echo_sql)
        self._conn = self.engine.connect()

        if self.config.read_only:
            self.adapter.set_read_only(self._conn)

        if self.config.statement_timeout:
            self.adapter.set_statement_timeout(
                self._conn, self.config.statement_timeout
            )

        self._conn.commit()
        logger.debug(f"Connected to {self._dialect} database {self.database!r}")

    def dispose(self) -> None:
        """Close the connection and dispose of the engine."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
        self._in_transaction = False

    @property
    def dialect(self) -> str:
        """Get database dialect name."""
        return self._dialect

    @property
    def driver(self) -> str:
        """Get database driver name."""
        return self._driver

    @property
    def database(self) -> Optional[str]:
        """Get database name from the connection URL."""
        return self.config.database

    @property
    def is_initialized(self) -> bool:
        """Check if the connection is open."""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """Check if an explicit transaction is in progress."""
        return self._in_transaction

    @property
    def sa_dialect(self) -> Dialect:
        """SQLAlchemy dialect used for quoting and compilation."""
        if self.engine is None:
            raise RuntimeError(
                "DatabaseConnection not initialized. Call initialize() first."
            )
        return self.engine.dialect

    def set_fetch_mode(self, mode: FetchMode) -> None:
        """Set the shape of records returned by execute()."""
        self.fetch_mode = FetchMode(mode)

    # Metadata

    def meta_tables(self) -> list[str]:
        """List table names of the bound database."""
        with self._statement() as conn:
            return list(sa_inspect(conn).get_table_names())

    def meta_columns(self, table_name: str) -> list[dict[str, Any]]:
        """
        List column metadata of a table.

        Args:
            table_name: Table name

        Returns:
            One dict per column, in table order, with name, type, not_null,
            max_length, auto_increment and primary_key
        """
        with self._statement() as conn:
            inspector = sa_inspect(conn)
            columns = inspector.get_columns(table_name)
            pk_constraint = inspector.get_pk_constraint(table_name) or {}

        pk_columns = list(pk_constraint.get("constrained_columns") or [])
        return [self._column_from_sa(dict(col), pk_columns) for col in columns]

    def reflect(self, table_name: str) -> Table:
        """Reflect a table into SQLAlchemy metadata."""
        with self._statement() as conn:
            return Table(table_name, MetaData(), autoload_with=conn)

    # Statements

    def execute(
        self, sql: str, params: Optional[dict[str, Any]] = None
    ) -> list[Any]:
        """
        Execute a SQL statement.

        Statements with bound parameters go through ``text()`` (``:name``
        placeholders). Statements without parameters are sent to the driver
        untouched, so literal colons and percent signs are left alone.

        Args:
            sql: SQL statement
            params: Bound parameters

        Returns:
            Fetched records for row-returning statements, otherwise []

        Raises:
            SQLAlchemyError: If the statement fails
        """
        logger.debug(f"Executing SQL: {sql}")

        with self._statement() as conn:
            if params:
                result = conn.execute(text(sql), params)
            else:
                result = conn.exec_driver_sql(
                    sql, execution_options={"no_parameters": True}
                )

            if result.returns_rows:
                return self._fetch_records(result)

            self._affected_rows = max(result.rowcount, 0)
            return []

    def get_one(self, sql: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Return the first column of the first record, or None."""
        record = self.get_row(sql, params)
        if record is None:
            return None
        if isinstance(record, Mapping):
            return next(iter(record.values()), None)
        return record[0]

    def get_row(self, sql: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Return the first record, or None."""
        records = self.execute(sql, params)
        return records[0] if records else None

    def affected_rows(self) -> int:
        """Number of rows affected by the last write statement."""
        return self._affected_rows

    def quote(self, value: Any) -> str:
        """
        Render a scalar as a SQL literal for the connection's dialect.

        Args:
            value: Scalar value

        Returns:
            SQL literal text
        """
        if value is None:
            return "NULL"

        dialect = self.sa_dialect
        try:
            compiled = literal(value).compile(
                dialect=dialect, compile_kwargs={"literal_binds": True}
            )
        except (CompileError, NotImplementedError):
            # Types without a literal renderer are embedded as text
            if isinstance(value, datetime.datetime):
                value = value.isoformat(sep=" ")
            elif isinstance(value, (datetime.date, datetime.time)):
                value = value.isoformat()
            compiled = literal(str(value)).compile(
                dialect=dialect, compile_kwargs={"literal_binds": True}
            )

        rendered = str(compiled)
        if dialect.paramstyle in ("format", "pyformat"):
            # Literals are rendered with doubled percent signs, but quoted
            # values only appear in statements sent without parameters
            rendered = rendered.replace("%%", "%")
        return rendered

    def quote_identifier(self, name: str) -> str:
        """Quote a table or column name where the dialect requires it."""
        return self.sa_dialect.identifier_preparer.quote(name)

    # Transactions

    def begin(self) -> None:
        """Start an explicit transaction; statements are no longer autocommitted."""
        self._require_connection()
        self._in_transaction = True

    def commit(self) -> None:
        """Commit the explicit transaction."""
        self._require_connection().commit()
        self._in_transaction = False

    def rollback(self) -> None:
        """Roll back the explicit transaction."""
        self._require_connection().rollback()
        self._in_transaction = False

    @contextmanager
    def transaction(self) -> Iterator["DatabaseConnection"]:
        """Run a block in a transaction, rolling back if it raises."""
        self.begin()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()

    # Internals

    def _require_connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError(
                "DatabaseConnection not initialized. Call initialize() first."
            )
        return self._conn

    @contextmanager
    def _statement(self) -> Iterator[Connection]:
        """Yield the connection, committing or rolling back outside transactions."""
        conn = self._require_connection()
        try:
            yield conn
        except SQLAlchemyError:
            if not self._in_transaction:
                conn.rollback()
            raise
        else:
            if not self._in_transaction:
                conn.commit()

    def _fetch_records(self, result: Result) -> list[Any]:
        if self.fetch_mode is FetchMode.ASSOC:
            return [dict(record) for record in result.mappings()]
        return [tuple(record) for record in result]

    def _column_from_sa(
        self, col_data: dict[str, Any], pk_columns: list[str]
    ) -> dict[str, Any]:
        """Convert SQLAlchemy column data to column descriptor properties."""
        return {
            "name": col_data["name"],
            "type": str(col_data["type"]),
            "not_null": not col_data.get("nullable", True),
            "max_length": getattr(col_data["type"], "length", None),
            "auto_increment": self.adapter.is_auto_increment(col_data, pk_columns),
            "primary_key": col_data["name"] in pk_columns,
        }

    def __enter__(self) -> "DatabaseConnection":
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.dispose()
