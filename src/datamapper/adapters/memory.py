"""
Row store keeping all tables in process memory.
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from ..exceptions import NotFoundError
from ..query.expressions import order_rows, row_matches
from ..utils import get_logger
from .base import Row, RowStore


class InMemoryRowStore(RowStore):
    """
    Dictionary-backed row store for tests and for mappers without a database.

    Tables spring into existence on first use. ``create_table`` registers
    column defaults that are applied to inserted rows, similar to SQL
    ``DEFAULT`` clauses. Every write is appended to :attr:`writes` as an
    ``(operation, table)`` pair.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, List[Row]] = {}
        self._defaults: Dict[str, Dict[str, Any]] = {}
        self._next_uid: Dict[str, int] = {}
        self._lock = RLock()
        self.writes: List[Tuple[str, str]] = []
        self.logger = get_logger("adapters.memory")

    # ------------------------------------------------------------------ #
    # Table management
    # ------------------------------------------------------------------ #
    def create_table(self, table: str, defaults: Mapping[str, Any] | None = None) -> None:
        with self._lock:
            self._tables.setdefault(table, [])
            self._defaults[table] = dict(defaults or {})

    def seed(self, table: str, rows: Iterable[Mapping[str, Any]]) -> List[int]:
        """
        Insert rows without recording them as writes; explicit UIDs are kept.
        """

        with self._lock:
            uids = [self._insert(table, row) for row in rows]
        return uids

    def rows(self, table: str) -> List[Row]:
        with self._lock:
            return [dict(row) for row in self._tables.get(table, [])]

    def clear_writes(self) -> None:
        with self._lock:
            self.writes.clear()

    # ------------------------------------------------------------------ #
    # Row store interface
    # ------------------------------------------------------------------ #
    def select_filtered(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: Sequence[str] = (),
        limit: int | None = None,
    ) -> List[Row]:
        with self._lock:
            matching = [row for row in self._tables.get(table, []) if row_matches(row, filters or {})]
        rows = [dict(row) for row in order_rows(matching, order_by)]
        if limit is not None:
            rows = rows[:limit]
        self.logger.debug("select %s", table, extra={"table": table, "filters": dict(filters or {})})
        return rows

    def select_by_id(self, table: str, uid: int) -> Row:
        rows = self.select_filtered(table, {"uid": uid}, limit=1)
        if not rows:
            raise NotFoundError(f'No record with the UID {uid} exists in the table "{table}".')
        return rows[0]

    def count(self, table: str, filters: Mapping[str, Any] | None = None) -> int:
        with self._lock:
            return sum(1 for row in self._tables.get(table, []) if row_matches(row, filters or {}))

    def insert(self, table: str, data: Mapping[str, Any]) -> int:
        with self._lock:
            uid = self._insert(table, data)
            self.writes.append(("insert", table))
        return uid

    def update(self, table: str, data: Mapping[str, Any], uid: int) -> None:
        with self._lock:
            for row in self._tables.get(table, []):
                if row.get("uid") == uid:
                    row.update(data)
                    row["uid"] = uid
            self.writes.append(("update", table))

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        if not filters:
            raise ValueError("delete needs at least one filter.")
        with self._lock:
            rows = self._tables.get(table, [])
            self._tables[table] = [row for row in rows if not row_matches(row, filters)]
            self.writes.append(("delete", table))

    # ------------------------------------------------------------------ #
    def _insert(self, table: str, data: Mapping[str, Any]) -> int:
        rows = self._tables.setdefault(table, [])
        row = dict(self._defaults.get(table, {}))
        row.update(data)
        uid = int(row.get("uid") or 0)
        if uid <= 0:
            uid = self._next_uid.get(table, 1)
        row["uid"] = uid
        self._next_uid[table] = max(self._next_uid.get(table, 1), uid + 1)
        rows.append(row)
        return uid
