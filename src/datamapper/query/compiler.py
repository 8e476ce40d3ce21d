"""
SQL compilation utilities translating filter mappings into SQL strings.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Sequence, Tuple

from ..dialects.base import Dialect
from .expressions import Filters, split_lookup, split_ordering


class SQLCompiler:
    """
    Compile row store calls into SQL statements and parameters.
    """

    def __init__(self, dialect: Dialect, *, uid_column: str = "uid") -> None:
        self.dialect = dialect
        self.uid_column = uid_column

    def select(
        self,
        table: str,
        filters: Filters | None = None,
        order_by: Sequence[str] = (),
        limit: int | None = None,
    ) -> Tuple[str, List[Any]]:
        sql_parts: List[str] = ["SELECT *", "FROM", self.dialect.format_table(table)]
        where_sql, params = self.where(filters)
        if where_sql:
            sql_parts.extend(["WHERE", where_sql])

        if order_by:
            sql_parts.append("ORDER BY")
            sql_parts.append(", ".join(self._compile_ordering(term) for term in order_by))

        limit_clause = self.dialect.limit_clause(limit)
        if limit_clause:
            sql_parts.append(limit_clause)

        return " ".join(sql_parts), params

    def count(self, table: str, filters: Filters | None = None) -> Tuple[str, List[Any]]:
        sql_parts: List[str] = ["SELECT COUNT(*)", "FROM", self.dialect.format_table(table)]
        where_sql, params = self.where(filters)
        if where_sql:
            sql_parts.extend(["WHERE", where_sql])
        return " ".join(sql_parts), params

    def insert(self, table: str, data: Mapping[str, Any]) -> Tuple[str, List[Any]]:
        table_sql = self.dialect.format_table(table)
        if not data:
            return f"INSERT INTO {table_sql} {self.dialect.insert_defaults_clause()}", []
        columns = ", ".join(self.dialect.quote_identifier(column) for column in data)
        placeholders = ", ".join(self.dialect.parameter_placeholder() for _ in data)
        return f"INSERT INTO {table_sql} ({columns}) VALUES ({placeholders})", list(data.values())

    def update(self, table: str, data: Mapping[str, Any], uid: int) -> Tuple[str, List[Any]]:
        if not data:
            raise ValueError("UPDATE statements need at least one column.")
        placeholder = self.dialect.parameter_placeholder()
        set_sql = ", ".join(f"{self.dialect.quote_identifier(column)} = {placeholder}" for column in data)
        uid_sql = f"{self.dialect.quote_identifier(self.uid_column)} = {placeholder}"
        params = list(data.values())
        params.append(uid)
        return f"UPDATE {self.dialect.format_table(table)} SET {set_sql} WHERE {uid_sql}", params

    def delete(self, table: str, filters: Filters) -> Tuple[str, List[Any]]:
        if not filters:
            raise ValueError("DELETE statements need at least one filter.")
        where_sql, params = self.where(filters)
        return f"DELETE FROM {self.dialect.format_table(table)} WHERE {where_sql}", params

    # Compilation helpers -----------------------------------------------
    def where(self, filters: Filters | None) -> Tuple[str, List[Any]]:
        parts: List[str] = []
        params: List[Any] = []
        for key, value in (filters or {}).items():
            sql, lookup_params = self._compile_lookup(key, value)
            if sql:
                parts.append(sql)
                params.extend(lookup_params)
        return " AND ".join(parts), params

    def _compile_lookup(self, key: str, value: Any) -> Tuple[str, List[Any]]:
        column_name, lookup = split_lookup(key)
        column = self.dialect.quote_identifier(column_name)
        placeholder = self.dialect.parameter_placeholder()

        if lookup == "exact":
            if value is None:
                return f"{column} IS NULL", []
            return f"{column} = {placeholder}", [value]

        values = list(value)
        if not values:
            # Nothing can be IN an empty list, and everything is NOT IN it.
            return (self.dialect.false_condition(), []) if lookup == "in" else ("", [])
        placeholders = ", ".join(placeholder for _ in values)
        operator = "IN" if lookup == "in" else "NOT IN"
        return f"{column} {operator} ({placeholders})", values

    def _compile_ordering(self, term: str) -> str:
        column, descending = split_ordering(term)
        clause = self.dialect.quote_identifier(column)
        if descending:
            clause += " DESC"
        return clause
