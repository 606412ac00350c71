"""Column descriptor model."""

import weakref
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from db_iterator.utils import named_properties

if TYPE_CHECKING:
    from db_iterator.core.table import Table


class Column(BaseModel):
    """Static metadata of one table column.

    Instances are immutable once loaded. Driver-specific keys beyond the
    declared fields are kept as extra attributes.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = Field(..., description="Column name")
    type: Optional[str] = Field(None, description="Driver-reported type")
    not_null: Optional[bool] = Field(None, description="Whether NULL is rejected")
    max_length: Optional[int] = Field(
        None, description="Maximum length for string types"
    )
    auto_increment: Optional[bool] = Field(
        None, description="Whether values are generated by the database"
    )
    primary_key: bool = Field(
        default=False, description="Whether column is part of primary key"
    )

    _table: Optional[weakref.ReferenceType] = PrivateAttr(default=None)

    @classmethod
    def load(cls, properties: Any, table: Optional["Table"] = None) -> "Column":
        """
        Build a column from a mapping or attribute bag.

        Args:
            properties: Column metadata; numeric keys are skipped
            table: Owning table view, referenced weakly

        Returns:
            Loaded column descriptor
        """
        column = cls(**named_properties(properties))
        if table is not None:
            column._table = weakref.ref(table)
        return column

    @property
    def table(self) -> Optional["Table"]:
        """Owning table view, or None if it no longer exists."""
        return self._table() if self._table is not None else None

    def is_primary_key(self) -> bool:
        """Check if this column is a primary key."""
        return self.primary_key

    def get(self, name: str) -> Any:
        """Get a metadata attribute by name, or None if unset."""
        if name in type(self).model_fields:
            return getattr(self, name)
        return (self.model_extra or {}).get(name)
