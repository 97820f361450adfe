"""
SQL statement builders.

Each builder targets one table and accumulates column, value and condition fragments.
Builders are immutable: every fluent call returns a new builder and leaves the receiver
untouched, so a base projection can be shared and extended freely. SQL text is produced
by render() (or str()) and is identical on every call. Values travel as named bind
parameters (":name") collected alongside the fragments; statement() hands both to
SQLAlchemy as a TextClause.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

from db.errors import StatementBuildError


def quote(value: str) -> str:
    """Escape a string as a SQL literal. Prefer bind parameters where possible."""
    return "'" + value.replace("'", "''") + "'"


def _append_list(sql: list[str], items: tuple[str, ...], init: str, sep: str) -> None:
    if items:
        sql.append(init)
        sql.append(sep.join(items))


@dataclass(frozen=True)
class AbstractBuilder:
    table: str
    bindings: tuple[tuple[str, Any], ...] = ()

    @property
    def params(self) -> dict[str, Any]:
        return dict(self.bindings)

    def _bind(self, params: dict[str, Any]) -> tuple[tuple[str, Any], ...]:
        merged = dict(self.bindings)
        for name, value in params.items():
            if name in merged and merged[name] != value:
                raise StatementBuildError(f"Bind parameter '{name}' is already bound to a different value")
            merged[name] = value
        return tuple(merged.items())

    def render(self) -> str:
        raise NotImplementedError

    def statement(self) -> TextClause:
        clause = text(self.render())
        if self.bindings:
            clause = clause.bindparams(**self.params)
        return clause

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class SelectBuilder(AbstractBuilder):
    columns: tuple[str, ...] = ()
    tables: tuple[str, ...] = ()
    joins: tuple[str, ...] = ()
    wheres: tuple[str, ...] = ()
    orders: tuple[str, ...] = ()
    row_limit: Optional[int] = None

    def column(self, name: str, alias: Optional[str] = None) -> SelectBuilder:
        expr = f"{name} AS {alias}" if alias else name
        return replace(self, columns=self.columns + (expr,))

    def from_table(self, table: str) -> SelectBuilder:
        return replace(self, tables=self.tables + (table,))

    def join(self, table: str, on: str, **params: Any) -> SelectBuilder:
        return replace(self, joins=self.joins + (f"JOIN {table} ON {on}",), bindings=self._bind(params))

    def left_join(self, table: str, on: str, **params: Any) -> SelectBuilder:
        return replace(self, joins=self.joins + (f"LEFT JOIN {table} ON {on}",), bindings=self._bind(params))

    def where(self, expr: str, **params: Any) -> SelectBuilder:
        return replace(self, wheres=self.wheres + (expr,), bindings=self._bind(params))

    def order_by(self, column: str, ascending: bool = True) -> SelectBuilder:
        return replace(self, orders=self.orders + (f"{column} {'ASC' if ascending else 'DESC'}",))

    def limit(self, count: int) -> SelectBuilder:
        if count < 0:
            raise StatementBuildError("Negative limits are not permitted for building select statements")
        return replace(self, row_limit=count)

    def render(self) -> str:
        sql = ["SELECT "]
        sql.append(", ".join(self.columns) if self.columns else "*")
        sql.append(" FROM ")
        sql.append(", ".join((self.table,) + self.tables))
        for join in self.joins:
            sql.append(" ")
            sql.append(join)
        _append_list(sql, self.wheres, " WHERE ", " AND ")
        _append_list(sql, self.orders, " ORDER BY ", ", ")
        if self.row_limit is not None:
            sql.append(f" LIMIT {self.row_limit}")
        return "".join(sql)


@dataclass(frozen=True)
class InsertBuilder(AbstractBuilder):
    columns: tuple[str, ...] = ()
    values: tuple[str, ...] = ()
    returning_column: Optional[str] = None

    def set(self, column: str, expr: str) -> InsertBuilder:
        """Set a column to a literal SQL expression (number, CURRENT_TIMESTAMP, placeholder)."""
        return replace(self, columns=self.columns + (column,), values=self.values + (expr,))

    def set_string(self, column: str, value: Any) -> InsertBuilder:
        """Set a column to a value bound under the column name."""
        return replace(
            self,
            columns=self.columns + (column,),
            values=self.values + (f":{column}",),
            bindings=self._bind({column: value}),
        )

    def returning(self, column: str) -> InsertBuilder:
        return replace(self, returning_column=column)

    def render(self) -> str:
        if not self.columns:
            raise StatementBuildError("Empty column lists are not permitted for building insert statements")
        sql = [f"INSERT INTO {self.table} ("]
        sql.append(", ".join(self.columns))
        sql.append(") VALUES (")
        sql.append(", ".join(self.values))
        sql.append(")")
        if self.returning_column:
            sql.append(f" RETURNING {self.returning_column}")
        return "".join(sql)


@dataclass(frozen=True)
class UpdateBuilder(AbstractBuilder):
    """UPDATE without a WHERE clause is allowed, unlike DELETE."""

    sets: tuple[str, ...] = ()
    wheres: tuple[str, ...] = ()

    def set(self, expr: str, **params: Any) -> UpdateBuilder:
        return replace(self, sets=self.sets + (expr,), bindings=self._bind(params))

    def where(self, expr: str, **params: Any) -> UpdateBuilder:
        return replace(self, wheres=self.wheres + (expr,), bindings=self._bind(params))

    def render(self) -> str:
        if not self.sets:
            raise StatementBuildError("Empty set lists are not permitted for building update statements")
        sql = [f"UPDATE {self.table}"]
        _append_list(sql, self.sets, " SET ", ", ")
        _append_list(sql, self.wheres, " WHERE ", " AND ")
        return "".join(sql)


@dataclass(frozen=True)
class DeleteBuilder(AbstractBuilder):
    wheres: tuple[str, ...] = ()

    def where(self, expr: str, **params: Any) -> DeleteBuilder:
        return replace(self, wheres=self.wheres + (expr,), bindings=self._bind(params))

    def render(self) -> str:
        if not self.wheres:
            raise StatementBuildError("Empty where lists are not permitted for building delete statements")
        sql = [f"DELETE FROM {self.table}"]
        _append_list(sql, self.wheres, " WHERE ", " AND ")
        return "".join(sql)
