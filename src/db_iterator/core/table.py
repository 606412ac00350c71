"""Table view: query building, lazy row loading and column metadata."""

import logging
import weakref
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from db_iterator.core.row import Row
from db_iterator.exceptions import CreateTableError
from db_iterator.models.column import Column
from db_iterator.models.query import LoadState, QuerySpec

if TYPE_CHECKING:
    from db_iterator.core.connection import DatabaseConnection
    from db_iterator.core.database import Database

logger = logging.getLogger(__name__)


class Table:
    """View over one table of a database.

    The query specification is built with chainable calls and executed lazily
    the first time rows are needed. Loaded rows are kept until ``reset()`` is
    called or a row is written through this view.

    Example:
        posts = db["posts"].select("id, title").where("id > :min", {"min": 10})
        for row in posts:
            print(row.title)
    """

    def __init__(self, name: str, database: "Database"):
        """
        Initialize a table view and load its columns.

        Args:
            name: Table name
            database: Owning traversal root, referenced weakly
        """
        self.name = name
        self._database = weakref.ref(database)
        self.connection: "DatabaseConnection" = database.connection

        self.spec = QuerySpec()
        self._rows: list[Row] = []
        self._state = LoadState.UNLOADED

        self._columns: Optional[dict[str, Column]] = None
        self._load_columns()

    @property
    def database(self) -> Optional["Database"]:
        """Owning traversal root, or None if it no longer exists."""
        return self._database()

    @property
    def state(self) -> LoadState:
        """Load state of the row sequence."""
        return self._state

    def reset(self, clear_spec: bool = False) -> None:
        """
        Drop the loaded rows so the next access queries again.

        Args:
            clear_spec: Also restore the default query specification
        """
        if clear_spec:
            self.spec = QuerySpec()

        self._rows = []
        self._state = LoadState.UNLOADED

    # Query specification (raw SQL fragments, never escaped)

    def select(self, columns: str = "*") -> "Table":
        """Set the select list."""
        self.spec.select = columns
        return self

    def where(self, clause: str, params: Optional[dict[str, Any]] = None) -> "Table":
        """
        Set the WHERE clause.

        Args:
            clause: Raw SQL condition; may use ``:name`` placeholders
            params: Values bound to the placeholders by the driver
        """
        self.spec.where = clause
        self.spec.params = dict(params or {})
        return self

    def order_by(self, clause: str) -> "Table":
        """Set the ORDER BY clause."""
        self.spec.order_by = clause
        return self

    def limit(self, clause: Union[str, int]) -> "Table":
        """Set the LIMIT clause (e.g. ``10`` or ``"0, 10"``)."""
        self.spec.limit = str(clause)
        return self

    def build_query(self) -> str:
        """Assemble the SELECT statement from the current specification."""
        return self.spec.to_sql(self.connection.quote_identifier(self.name))

    # Rows

    def execute(self) -> list[Row]:
        """
        Run the query and replace the loaded rows.

        A failing SELECT is logged and leaves an empty row sequence.

        Returns:
            Loaded rows in driver order
        """
        sql = self.build_query()

        try:
            records = self.connection.execute(sql, self.spec.params)
        except SQLAlchemyError as e:
            logger.warning(f"Query on table {self.name} failed, no rows loaded: {e}")
            records = []

        self._rows = [Row(self).load(record) for record in records]
        self._state = LoadState.LOADED if self._rows else LoadState.EMPTY

        return list(self._rows)

    @property
    def rows(self) -> list[Row]:
        """Loaded rows, querying first if needed."""
        self._ensure_rows()
        return list(self._rows)

    def row_count(self) -> int:
        """Number of loaded rows (not a COUNT(*) query)."""
        self._ensure_rows()
        return len(self._rows)

    def total_count(self) -> int:
        """Number of rows in the table, ignoring the WHERE clause."""
        sql = f"SELECT COUNT(*) FROM {self.connection.quote_identifier(self.name)}"
        return int(self.connection.get_one(sql) or 0)

    def for_each(self, visitor: Callable[[Row], Any]) -> None:
        """Call ``visitor`` with every row, in order."""
        for row in self:
            visitor(row)

    def _ensure_rows(self) -> None:
        if self._state is LoadState.UNLOADED:
            self.execute()

    def __iter__(self) -> Iterator[Row]:
        self._ensure_rows()
        return iter(list(self._rows))

    def __len__(self) -> int:
        return self.row_count()

    def __getitem__(self, index: int) -> Optional[Row]:
        self._ensure_rows()
        try:
            return self._rows[index]
        except IndexError:
            return None

    def __setitem__(self, index: int, row: Row) -> None:
        self._ensure_rows()
        if index == len(self._rows):
            self._rows.append(row)
        else:
            self._rows[index] = row
        self._state = LoadState.LOADED

    def __delitem__(self, index: int) -> None:
        self._ensure_rows()
        if -len(self._rows) <= index < len(self._rows):
            del self._rows[index]
        if not self._rows:
            self._state = LoadState.EMPTY

    # Columns

    def _load_columns(self) -> None:
        self._columns = {}
        for properties in self.connection.meta_columns(self.name):
            column = Column.load(properties, table=self)
            self._columns[column.name] = column

    @property
    def columns(self) -> dict[str, Column]:
        """Column descriptors by name, in table order."""
        return self.get_columns()

    def get_columns(self) -> dict[str, Column]:
        """Column descriptors by name, in table order."""
        return dict(self._columns or {})

    def get_primary_keys(self) -> Optional[dict[str, Column]]:
        """Primary key columns by name, or None if columns are not loaded."""
        if self._columns is None:
            return None
        return {
            name: column
            for name, column in self._columns.items()
            if column.is_primary_key()
        }

    def get_create_table(self) -> str:
        """
        Get the CREATE TABLE statement of this table.

        Raises:
            CreateTableError: If the statement cannot be retrieved
        """
        try:
            ddl = self.connection.adapter.get_create_table(self.connection, self.name)
        except SQLAlchemyError as e:
            raise CreateTableError(self.name) from e

        if not ddl:
            raise CreateTableError(self.name)
        return ddl

    # Writes

    def new_row(self) -> Row:
        """Empty row bound to this table."""
        return Row(self)

    def insert(self, data: Any) -> int:
        """
        Insert a record and drop the loaded rows.

        Args:
            data: Mapping or attribute bag with exactly the table's columns

        Returns:
            Number of affected rows
        """
        affected = self.new_row().insert(data)
        self.reset()
        return affected

    def __repr__(self) -> str:
        return f"Table(name={self.name!r}, state={self._state.value!r})"
