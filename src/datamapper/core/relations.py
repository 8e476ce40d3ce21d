"""
Relation descriptors resolved from schema metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from ..exceptions import MapperConfigurationError
from ..schema.definitions import ColumnDefinition

# A mapper class or the dotted import path of one.
MapperReference = Any

_UNLIMITED_ITEMS = 99999


@dataclass(frozen=True)
class OneToMany:
    """Child rows point at the owning row through ``foreign_field``."""

    key: str
    mapper: MapperReference
    foreign_table: str
    foreign_field: str
    order_by: str = ""


@dataclass(frozen=True)
class ManyToOne:
    """The column holds the UID of a single related record."""

    key: str
    mapper: MapperReference


@dataclass(frozen=True)
class ManyToMany:
    """
    Related records are listed in a junction table with the columns
    ``uid_local``, ``uid_foreign`` and ``sorting``. On the opposite side of
    the relation the roles of the two key columns are swapped.
    """

    key: str
    mapper: MapperReference
    table: str
    is_opposite: bool = False

    @property
    def own_column(self) -> str:
        return "uid_foreign" if self.is_opposite else "uid_local"

    @property
    def related_column(self) -> str:
        return "uid_local" if self.is_opposite else "uid_foreign"

    @property
    def order_column(self) -> str:
        return "uid_local" if self.is_opposite else "sorting"


@dataclass(frozen=True)
class CommaSeparatedList:
    """The column holds a comma-separated list of related UIDs."""

    key: str
    mapper: MapperReference


Relation = Union[OneToMany, ManyToOne, ManyToMany, CommaSeparatedList]


def _cardinality(column: ColumnDefinition) -> int:
    cardinality = int(column.maxitems or 0)
    if cardinality == 0:
        cardinality = _UNLIMITED_ITEMS if column.allows_multiple_selection() else 1
    return cardinality


def build_relation(key: str, mapper: MapperReference, column: ColumnDefinition) -> Relation:
    """
    Classify a relation column.

    One-to-many wins over many-to-one, which wins over many-to-many; every
    other relation column is treated as a comma-separated UID list.
    """

    if column.foreign_field and column.foreign_table and column.allows_multiple_selection():
        order_by = column.foreign_sortby or column.foreign_default_sortby
        return OneToMany(
            key=key,
            mapper=mapper,
            foreign_table=column.foreign_table,
            foreign_field=column.foreign_field,
            order_by=order_by,
        )
    if column.foreign_field and column.allows_multiple_selection():
        raise MapperConfigurationError(f'"foreign_table" is missing for the relation "{key}".')

    if _cardinality(column) == 1:
        return ManyToOne(key=key, mapper=mapper)

    if column.mm:
        return ManyToMany(key=key, mapper=mapper, table=column.mm, is_opposite=bool(column.mm_opposite_field))
    if column.mm_opposite_field:
        raise MapperConfigurationError(f'The junction table is missing for the relation "{key}".')

    return CommaSeparatedList(key=key, mapper=mapper)
