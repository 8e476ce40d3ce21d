"""
SQL dialects used by the row store adapters.
"""

from .base import Dialect
from .sqlite import SQLiteDialect, get_sqlite_dialect

__all__ = ["Dialect", "SQLiteDialect", "get_sqlite_dialect"]
