"""
Naming utilities for datamapper.
"""

import re
from typing import Any


_EXTENSION_PREFIX_RE = re.compile(r"^tx_[a-z]+_")


def unify_class_name(reference: Any) -> str:
    """
    Build the case-insensitive registry key for a class or a dotted path.
    """
    if isinstance(reference, type):
        reference = f"{reference.__module__}.{reference.__qualname__}"
    return str(reference).lower()


def accessor_name_for_column(column: str) -> str:
    """
    Derive the model attribute name for a column, dropping an extension prefix.

    ``tx_shop_order`` becomes ``order``.
    """
    return _EXTENSION_PREFIX_RE.sub("", column)
