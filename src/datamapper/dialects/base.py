"""
Dialect interface used by the row store SQL compiler.
"""

from __future__ import annotations

from typing import Protocol


class Dialect(Protocol):
    """
    SQL rendering rules of one database engine.

    The compiler only needs identifier quoting, parameter placeholders and the
    few statement fragments that differ between engines.
    """

    @property
    def name(self) -> str: ...

    @property
    def param_style(self) -> str: ...

    def quote_identifier(self, identifier: str) -> str: ...

    def format_table(self, table_name: str) -> str: ...

    def limit_clause(self, limit: int | None) -> str: ...

    def parameter_placeholder(self) -> str: ...

    def false_condition(self) -> str: ...

    def insert_defaults_clause(self) -> str: ...
