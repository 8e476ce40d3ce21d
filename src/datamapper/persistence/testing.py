"""
Interface of the test scaffolding that mappers cooperate with.
"""

from __future__ import annotations

from typing import Protocol


class TestingFramework(Protocol):
    """
    Tracks the tables a test wrote to so the rows can be cleaned up later.

    Mappers in testing mode mark every table they insert into as dirty and
    flag the inserted rows through the framework's dummy column.
    """

    __test__ = False

    def mark_table_as_dirty(self, table: str) -> None: ...

    def get_dummy_column_name(self, table: str) -> str: ...
