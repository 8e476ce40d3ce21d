"""Logging helpers for datamapper."""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable, List, Optional

_SENSITIVE_TOKENS = ("password", "secret", "token")


class TableFilter(logging.Filter):
    """Give every record a ``table`` attribute so the format can show it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "table", None) is None:
            record.table = "-"
        return True


def configure_logging(level: int = logging.INFO) -> None:
    logger = logging.getLogger("datamapper")
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(table)s | %(message)s")
    handler.setFormatter(formatter)
    handler.addFilter(TableFilter())
    logger.addHandler(handler)
    logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(f"datamapper.{name}")


def redact_params(params: Optional[Iterable[Any]]) -> List[Any]:
    redacted = []
    for value in params or ():
        if isinstance(value, str) and any(token in value.lower() for token in _SENSITIVE_TOKENS):
            redacted.append("***")
        else:
            redacted.append(value)
    return redacted


def time_call(
    name: str,
    logger: logging.Logger,
    *,
    table: str | None = None,
    sql: str | None = None,
    params: Iterable[Any] | None = None,
    threshold_ms: int = 100,
):
    start = time.monotonic()

    class Timer:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            elapsed_ms = (time.monotonic() - start) * 1000
            level = logging.WARNING if elapsed_ms >= threshold_ms else logging.DEBUG
            extra = {"table": table, "sql": sql, "params": redact_params(params), "elapsed_ms": elapsed_ms}
            logger.log(level, "%s took %.2fms", name, elapsed_ms, extra=extra)

    return Timer()
