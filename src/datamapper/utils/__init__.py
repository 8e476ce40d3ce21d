"""
Utility helpers shared across datamapper packages.
"""

from .coercion import int_explode, to_bool, to_int
from .logging import configure_logging, get_logger, redact_params, time_call
from .naming import accessor_name_for_column, unify_class_name

__all__ = [
    "accessor_name_for_column",
    "configure_logging",
    "get_logger",
    "int_explode",
    "redact_params",
    "time_call",
    "to_bool",
    "to_int",
    "unify_class_name",
]
