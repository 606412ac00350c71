"""Query specification and row load state."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class LoadState(str, Enum):
    """Load state of a table's row sequence."""

    UNLOADED = "unloaded"
    EMPTY = "empty"
    LOADED = "loaded"


class QuerySpec(BaseModel):
    """Raw SQL fragments assembled into a table's SELECT statement.

    Fragments are stored verbatim. Only ``params`` are sent to the driver as
    bound values.
    """

    select: str = Field(default="*", description="Select list")
    where: Optional[str] = Field(None, description="WHERE clause body")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Bound parameters for the WHERE clause"
    )
    order_by: Optional[str] = Field(None, description="ORDER BY clause body")
    limit: Optional[str] = Field(None, description="LIMIT clause body")

    def to_sql(self, table_ref: str) -> str:
        """Build the SELECT statement for a quoted table reference."""
        sql = f"SELECT {self.select} FROM {table_ref}"

        if self.where is not None:
            sql += f" WHERE {self.where}"

        if self.order_by is not None:
            sql += f" ORDER BY {self.order_by}"

        if self.limit is not None:
            sql += f" LIMIT {self.limit}"

        return sql
