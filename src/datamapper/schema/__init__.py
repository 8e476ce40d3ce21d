"""
Schema metadata consumed by mappers.
"""

from .definitions import ColumnDefinition, SchemaRegistry, TableDefinition

__all__ = ["ColumnDefinition", "SchemaRegistry", "TableDefinition"]
