"""
Row store protocol and connection configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Protocol, Sequence
from urllib.parse import parse_qsl, urlsplit


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration values are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class AdapterExecutionError(AdapterError):
    """Raised when a statement cannot be executed."""


def _parse_float(value: str, *, key: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid float value for '{key}': {value!r}") from exc


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for row store adapters.
    """

    url: str
    timeout: float | None = None
    options: dict[str, Any] | None = None
    source: str | None = None

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a connection config from a DSN such as ``sqlite:///app.db?timeout=2``.
        """

        parts = urlsplit(dsn)
        if not parts.scheme:
            raise AdapterConfigurationError(f"DSN is missing a scheme: {dsn!r}")
        query = dict(parse_qsl(parts.query))

        parsed_timeout = _parse_float(query.pop("timeout"), key="timeout") if "timeout" in query else None
        options = dict(query)
        options.update(kwargs.pop("options", None) or {})
        timeout = kwargs.pop("timeout", parsed_timeout)

        url = dsn.split("?", 1)[0]
        return cls(url=url, timeout=timeout, options=options or None, **kwargs)

    @classmethod
    def from_env(cls, env_var: str = "DATAMAPPER_DSN", **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from an environment variable containing a DSN.
        """

        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **kwargs)

    def descriptive_label(self) -> str:
        if self.source:
            return f"{self.source} ({self.url})"
        return self.url


Row = Dict[str, Any]


class RowStore(Protocol):
    """
    Storage interface the mappers read rows from and write rows to.

    Every table has an integer ``uid`` primary key. Filters map ``column``,
    ``column__in`` or ``column__not_in`` to values; ordering terms are column
    names, prefixed with ``-`` for descending order.
    """

    def select_filtered(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: Sequence[str] = (),
        limit: int | None = None,
    ) -> List[Row]:
        """
        Return the matching rows as dictionaries.
        """

    def select_by_id(self, table: str, uid: int) -> Row:
        """
        Return the row with the given UID or raise ``NotFoundError``.
        """

    def count(self, table: str, filters: Mapping[str, Any] | None = None) -> int:
        """
        Count the matching rows.
        """

    def insert(self, table: str, data: Mapping[str, Any]) -> int:
        """
        Insert a row and return its newly allocated UID.
        """

    def update(self, table: str, data: Mapping[str, Any], uid: int) -> None:
        """
        Update the row with the given UID.
        """

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        """
        Physically delete the matching rows.
        """
