"""
Table and column naming shared by every entity model.

A concrete entity declares TABLE_NAME. An entity whose rows are split between a shared
parent table and a subtype table also declares PARENT_TABLE_NAME; only that one level of
nesting is modeled. Selected columns are projected under "<table>__<column>" labels so
rows from joined tables never collide.
"""
from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.engine import RowMapping

from db.builders import SelectBuilder


class AbstractObject:
    TABLE_NAME: Optional[str] = None
    PARENT_TABLE_NAME: Optional[str] = None

    def get_table(self) -> str:
        if self.TABLE_NAME is None:
            raise NotImplementedError(f"{type(self).__name__} has no table")
        return self.TABLE_NAME

    def get_table_parent(self) -> str:
        if self.PARENT_TABLE_NAME is None:
            raise NotImplementedError(f"{type(self).__name__} has no parent table")
        return self.PARENT_TABLE_NAME

    def get_column(self, column: str) -> str:
        return f"{self.get_table()}.{column}"

    def get_column_parent(self, column: str) -> str:
        return f"{self.get_table_parent()}.{column}"

    def get_label(self, column: str) -> str:
        return f"{self.get_table()}__{column}"

    def get_label_parent(self, column: str) -> str:
        return f"{self.get_table_parent()}__{column}"

    def add_column(self, select: SelectBuilder, column: str) -> SelectBuilder:
        return select.column(self.get_column(column), self.get_label(column))

    def add_column_parent(self, select: SelectBuilder, column: str) -> SelectBuilder:
        return select.column(self.get_column_parent(column), self.get_label_parent(column))

    def value(self, row: RowMapping, column: str) -> Any:
        return row[self.get_label(column)]

    def value_parent(self, row: RowMapping, column: str) -> Any:
        return row[self.get_label_parent(column)]

    def update_from_fetch(self, row: RowMapping) -> None:
        """Populate fields from a row already positioned on a record."""
        raise NotImplementedError
