"""
SQLite row store implementation.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Sequence

from ..dialects.sqlite import SQLiteDialect
from ..exceptions import NotFoundError
from ..query.compiler import SQLCompiler
from ..utils import get_logger, time_call
from .base import AdapterConnectionError, AdapterExecutionError, ConnectionConfig, Row, RowStore


@dataclass(slots=True)
class SQLiteConnectionState:
    connection: sqlite3.Connection


class SQLiteAdapter(RowStore):
    """
    Row store wrapping the Python stdlib sqlite3 module.

    Statements run in autocommit mode: every insert, update and delete is
    durable on its own, which is what the mappers expect.
    """

    def __init__(self, *, slow_query_ms: int = 200) -> None:
        self.dialect = SQLiteDialect()
        self.compiler = SQLCompiler(self.dialect)
        self.slow_query_ms = slow_query_ms
        self._state: SQLiteConnectionState | None = None
        self.logger = get_logger("adapters.sqlite")

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        path = self._normalize_path(config.url)
        timeout = config.timeout if config.timeout is not None else 5.0

        try:
            connection = sqlite3.connect(
                path,
                isolation_level=None,
                timeout=timeout,
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            raise AdapterConnectionError(f"Could not open {config.descriptive_label()}: {exc}") from exc
        connection.row_factory = sqlite3.Row

        self._state = SQLiteConnectionState(connection)
        self.logger.debug("Connected to %s", config.descriptive_label())
        return connection

    def close(self) -> None:
        if self._state:
            self._state.connection.close()
            self._state = None

    def _ensure_connection(self) -> sqlite3.Connection:
        if not self._state:
            raise AdapterConnectionError("SQLiteAdapter is not connected.")
        return self._state.connection

    # ------------------------------------------------------------------ #
    # Execution helpers
    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Cursor:
        connection = self._ensure_connection()
        cursor = connection.cursor()
        params = list(params or ())
        with time_call("sqlite.execute", self.logger, sql=sql, params=params, threshold_ms=self.slow_query_ms):
            try:
                cursor.execute(sql, params)
            except sqlite3.Error as exc:
                raise AdapterExecutionError(f"{exc} (SQL: {sql})") from exc
        return cursor

    def executescript(self, script: str) -> None:
        connection = self._ensure_connection()
        with time_call("sqlite.executescript", self.logger, threshold_ms=self.slow_query_ms):
            connection.executescript(script)

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
        sql, params = self.compiler.select(table, filters, order_by, limit)
        return self._fetch_all(self.execute(sql, params).fetchall())

    def select_by_id(self, table: str, uid: int) -> Row:
        rows = self.select_filtered(table, {self.compiler.uid_column: uid}, limit=1)
        if not rows:
            raise NotFoundError(f'No record with the UID {uid} exists in the table "{table}".')
        return rows[0]

    def count(self, table: str, filters: Mapping[str, Any] | None = None) -> int:
        sql, params = self.compiler.count(table, filters)
        return int(self.execute(sql, params).fetchone()[0])

    def insert(self, table: str, data: Mapping[str, Any]) -> int:
        sql, params = self.compiler.insert(table, data)
        cursor = self.execute(sql, params)
        return int(cursor.lastrowid)

    def update(self, table: str, data: Mapping[str, Any], uid: int) -> None:
        if not data:
            return
        sql, params = self.compiler.update(table, data, uid)
        self.execute(sql, params)

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        sql, params = self.compiler.delete(table, filters)
        self.execute(sql, params)

    # ------------------------------------------------------------------ #
    @staticmethod
    def _fetch_all(rows: Iterable[sqlite3.Row]) -> List[Row]:
        return [dict(row) for row in rows]

    @staticmethod
    def _normalize_path(url: str) -> str:
        if url == "sqlite:///:memory:":
            return ":memory:"
        prefix = "sqlite:///"
        if url.startswith(prefix):
            return url[len(prefix) :]
        return url
