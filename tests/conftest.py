import pytest

from datamapper import InMemoryRowStore, MapperRegistry, SchemaRegistry
from domain import JUNCTION_TABLE, NOW, SCHEMA


@pytest.fixture
def store():
    store = InMemoryRowStore()
    for table in ("articles", "comments", "tags", "authors"):
        store.create_table(table, {"pid": 0, "deleted": 0, "hidden": 0})
    store.create_table(JUNCTION_TABLE)
    return store


@pytest.fixture
def schema():
    return SchemaRegistry.from_dict(SCHEMA)


@pytest.fixture
def registry(store, schema):
    return MapperRegistry(store, schema, clock=lambda: NOW)
