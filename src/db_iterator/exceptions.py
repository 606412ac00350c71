"""Named failures raised by the traversal layer."""


class DatabaseIteratorError(Exception):
    """Base class for all db-iterator errors."""


class PrimaryKeyNotFoundError(DatabaseIteratorError):
    """Raised when a row cannot be identified by its primary key."""

    def __init__(self, table_name: str, column: str | None = None):
        self.table_name = table_name
        self.column = column
        if column is None:
            message = f"Primary key not found for table: {table_name}"
        else:
            message = (
                f"Primary key column '{column}' has no value in row of table: "
                f"{table_name}"
            )
        super().__init__(message)


class InsertDataMismatchError(DatabaseIteratorError):
    """Raised when insert data does not supply exactly the table's columns."""

    def __init__(self, table_name: str, missing: list[str], unexpected: list[str]):
        self.table_name = table_name
        self.missing = missing
        self.unexpected = unexpected
        details = []
        if missing:
            details.append(f"missing: {', '.join(missing)}")
        if unexpected:
            details.append(f"unexpected: {', '.join(unexpected)}")
        super().__init__(
            f"Insert data doesn't match columns of table {table_name} "
            f"({'; '.join(details)})"
        )


class EmptyUpdateError(DatabaseIteratorError):
    """Raised when an update has no non-key values to write."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"No values to update in row of table: {table_name}")


class CreateTableError(DatabaseIteratorError):
    """Raised when the CREATE TABLE statement of a table cannot be retrieved."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Unable to retrieve CREATE TABLE for table: {table_name}")


class StatementExecutionError(DatabaseIteratorError):
    """Raised when a write statement fails. The driver error is the __cause__."""

    def __init__(self, sql: str):
        self.sql = sql
        super().__init__(f"Error executing SQL sentence: {sql}")


class UnknownFieldError(DatabaseIteratorError, KeyError):
    """Raised when setting a field that is not part of a row snapshot."""

    def __init__(self, table_name: str, field: str):
        self.table_name = table_name
        self.field = field
        super().__init__(f"Unknown field '{field}' for row of table: {table_name}")

    def __str__(self) -> str:
        return self.args[0]
