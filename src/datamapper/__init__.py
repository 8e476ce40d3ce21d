"""
datamapper public package initialization.

Models are plain objects tracked by load status; mappers move them between
memory and a row store, and a registry hands out one mapper per class.
"""

from .adapters import ConnectionConfig, InMemoryRowStore, RowStore, SQLiteAdapter  # noqa: F401
from .core import (  # noqa: F401
    BooleanField,
    Collection,
    CollectionField,
    FloatField,
    IntegerField,
    LoadStatus,
    Model,
    ModelField,
    StringField,
)
from .exceptions import BadMethodCallError, MapperConfigurationError, NotFoundError  # noqa: F401
from .hooks import HookDispatcher  # noqa: F401
from .persistence import DataMapper, IdentityMap, MapperRegistry, TestingFramework  # noqa: F401
from .schema import ColumnDefinition, SchemaRegistry, TableDefinition  # noqa: F401
from .utils import configure_logging  # noqa: F401

__all__ = [
    "BadMethodCallError",
    "BooleanField",
    "Collection",
    "CollectionField",
    "ColumnDefinition",
    "ConnectionConfig",
    "DataMapper",
    "FloatField",
    "HookDispatcher",
    "IdentityMap",
    "InMemoryRowStore",
    "IntegerField",
    "LoadStatus",
    "MapperConfigurationError",
    "MapperRegistry",
    "Model",
    "ModelField",
    "NotFoundError",
    "RowStore",
    "SQLiteAdapter",
    "SchemaRegistry",
    "StringField",
    "TableDefinition",
    "TestingFramework",
    "configure_logging",
]
