"""
SQLite dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import Dialect


class SQLiteDialect:
    """
    Rendering rules for SQLite with qmark parameters.
    """

    name: Final[str] = "sqlite"
    param_style: Final[str] = "qmark"

    def quote_identifier(self, identifier: str) -> str:
        if not identifier:
            raise ValueError("Identifiers must not be empty.")
        return '"' + identifier.replace('"', '""') + '"'

    def format_table(self, table_name: str) -> str:
        # Attached databases are addressed as "schema"."table".
        return ".".join(self.quote_identifier(part) for part in table_name.split("."))

    def limit_clause(self, limit: int | None) -> str:
        if limit is None:
            return ""
        if limit < 0:
            raise ValueError("The limit must be >= 0.")
        return f"LIMIT {int(limit)}"

    def parameter_placeholder(self) -> str:
        return "?"

    def false_condition(self) -> str:
        return "1 = 0"

    def insert_defaults_clause(self) -> str:
        return "DEFAULT VALUES"


def get_sqlite_dialect() -> Dialect:
    return SQLiteDialect()
