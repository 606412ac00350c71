"""Row view: one record of a table, with single-row CRUD."""

import html
import logging
import weakref
from typing import TYPE_CHECKING, Any, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from db_iterator.exceptions import (
    EmptyUpdateError,
    InsertDataMismatchError,
    PrimaryKeyNotFoundError,
    StatementExecutionError,
    UnknownFieldError,
)
from db_iterator.utils import named_properties

if TYPE_CHECKING:
    from db_iterator.core.connection import DatabaseConnection
    from db_iterator.core.table import Table

logger = logging.getLogger(__name__)


class Row:
    """Snapshot of one row's field values.

    Fields are read by key (``row["title"]``), by ``get()`` or as attributes
    (``row.title``). Only fields already present in the snapshot can be
    assigned; a new row gets its fields from ``load()`` or ``insert()``.

    Columns whose names clash with Row methods or properties (``keys``,
    ``get``, ``update``, ``table`` and so on) are only reachable by key:
    ``row.keys`` is the method, and ``row.keys = ...`` raises AttributeError.

    Example:
        row = db["posts"][0]
        row.title = "Hello"
        row.update()
    """

    def __init__(self, table: "Table"):
        """
        Initialize an empty row bound to a table.

        Args:
            table: Owning table view, referenced weakly
        """
        self._table_name = table.name
        self._table_ref = weakref.ref(table)
        self._fields: dict[str, Any] = {}

    @property
    def table_name(self) -> str:
        """Name of the owning table."""
        return self._table_name

    @property
    def table(self) -> "Table":
        """Owning table view."""
        table = self._table_ref()
        if table is None:
            raise ReferenceError(
                f"Table view '{self._table_name}' of this row no longer exists"
            )
        return table

    def load(self, record: Any) -> "Row":
        """
        Populate the snapshot from a record.

        Args:
            record: Mapping, attribute bag or sequence; numeric keys are skipped

        Returns:
            self
        """
        self._fields.update(named_properties(record))
        return self

    # Field access

    def get(self, name: str, default: Any = None) -> Any:
        """Get a field value, or ``default`` if the field is absent."""
        return self._fields.get(name, default)

    def set(self, name: str, value: Any) -> None:
        """
        Set the value of an existing field.

        Raises:
            UnknownFieldError: If the field is not in the snapshot
        """
        if name not in self._fields:
            raise UnknownFieldError(self._table_name, name)
        self._fields[name] = value

    def __getitem__(self, name: str) -> Any:
        return self._fields.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __delitem__(self, name: str) -> None:
        self._fields.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._fields))

    def __len__(self) -> int:
        return len(self._fields)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        fields = self.__dict__.get("_fields", {})
        if name in fields:
            return fields[name]
        raise AttributeError(
            f"Row of table '{self.__dict__.get('_table_name')}' has no field '{name}'"
        )

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        elif hasattr(type(self), name):
            raise AttributeError(
                f"'{name}' is a Row attribute; use row[{name!r}] for the field"
            )
        else:
            self.set(name, value)

    def keys(self) -> list[str]:
        return list(self._fields.keys())

    def values(self) -> list[Any]:
        return list(self._fields.values())

    def items(self) -> list[tuple[str, Any]]:
        return list(self._fields.items())

    def to_dict(self) -> dict[str, Any]:
        """Copy of the raw field snapshot."""
        return dict(self._fields)

    # Operations

    def update(self) -> int:
        """
        Write the snapshot's non-key values back to the database.

        Columns whose value is None are left untouched.

        Returns:
            Number of affected rows

        Raises:
            PrimaryKeyNotFoundError: If the row cannot be identified
            EmptyUpdateError: If there is no value to write
            StatementExecutionError: If the UPDATE fails
        """
        table = self.table
        conn = table.connection
        condition = self._build_where_condition()

        assignments = [
            f"{conn.quote_identifier(col.name)}={conn.quote(self._fields[col.name])}"
            for col in table.get_columns().values()
            if not col.is_primary_key() and self._fields.get(col.name) is not None
        ]
        if not assignments:
            raise EmptyUpdateError(self._table_name)

        sql = (
            f"UPDATE {conn.quote_identifier(self._table_name)} "
            f"SET {', '.join(assignments)} WHERE {condition}"
        )
        return self._execute(sql)

    def insert(self, data: Any = None) -> int:
        """
        Insert a new record into the table.

        ``data`` must supply exactly the table's columns. When omitted, the
        row's own snapshot is inserted. After a successful insert the snapshot
        holds the inserted values.

        Args:
            data: Mapping or attribute bag of column values

        Returns:
            Number of affected rows

        Raises:
            InsertDataMismatchError: If the fields differ from the table's columns
            StatementExecutionError: If the INSERT fails
        """
        table = self.table
        conn = table.connection
        values = named_properties(data) if data is not None else dict(self._fields)

        columns = list(table.get_columns())
        missing = [name for name in columns if name not in values]
        unexpected = [name for name in values if name not in columns]
        if missing or unexpected:
            raise InsertDataMismatchError(self._table_name, missing, unexpected)

        column_list = ", ".join(conn.quote_identifier(name) for name in columns)
        value_list = ", ".join(conn.quote(values[name]) for name in columns)
        sql = (
            f"INSERT INTO {conn.quote_identifier(self._table_name)} "
            f"({column_list}) VALUES ({value_list})"
        )

        affected = self._execute(sql)
        self._fields = {name: values[name] for name in columns}
        return affected

    def delete(self) -> int:
        """
        Remove this row from the database.

        Returns:
            Number of affected rows

        Raises:
            PrimaryKeyNotFoundError: If the row cannot be identified
            StatementExecutionError: If the DELETE fails
        """
        conn = self.table.connection
        sql = (
            f"DELETE FROM {conn.quote_identifier(self._table_name)} "
            f"WHERE {self._build_where_condition()}"
        )
        return self._execute(sql)

    def _execute(self, sql: str) -> int:
        """Run a write statement, then invalidate the owning table's rows."""
        table = self.table
        conn: "DatabaseConnection" = table.connection
        try:
            conn.execute(sql)
        except SQLAlchemyError as e:
            raise StatementExecutionError(sql) from e

        table.reset()
        affected = conn.affected_rows()
        logger.debug(f"{affected} row(s) affected in {self._table_name}")
        return affected

    def _build_where_condition(self) -> str:
        """Build the primary key condition identifying this row."""
        table = self.table
        conn = table.connection
        pks = table.get_primary_keys()
        if not pks:
            raise PrimaryKeyNotFoundError(self._table_name)

        conditions = []
        for name in pks:
            if self._fields.get(name) is None:
                raise PrimaryKeyNotFoundError(self._table_name, name)
            conditions.append(
                f"{conn.quote_identifier(name)}={conn.quote(self._fields[name])}"
            )

        return " AND ".join(conditions)

    # Rendering

    def __str__(self) -> str:
        """Render the fields as an HTML definition list."""
        items = "".join(
            f"<dt>{html.escape(str(key))}</dt>"
            f"<dd>{html.escape(self._display(value))}</dd>"
            for key, value in self._fields.items()
        )
        return f"<dl>{items}</dl>"

    def __repr__(self) -> str:
        return f"Row(table={self._table_name!r}, fields={self._fields!r})"

    @staticmethod
    def _display(value: Optional[Any]) -> str:
        return "" if value is None else str(value)
