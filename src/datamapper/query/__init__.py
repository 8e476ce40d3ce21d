"""
Filter evaluation and SQL compilation for row stores.
"""

from .compiler import SQLCompiler
from .expressions import LOOKUPS, order_rows, row_matches, split_lookup, split_ordering

__all__ = ["LOOKUPS", "SQLCompiler", "order_rows", "row_matches", "split_lookup", "split_ordering"]
