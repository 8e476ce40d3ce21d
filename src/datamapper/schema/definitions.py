"""
Schema metadata describing tables and their relation columns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ..exceptions import MapperConfigurationError


@dataclass(frozen=True)
class ColumnDefinition:
    """
    Relation markers for a single column.

    ``type`` and ``render_type`` tell whether the column may hold more than
    one reference; the remaining markers point at the related table, the
    foreign key column of one-to-many children, or the junction table of a
    many-to-many relation.
    """

    name: str
    type: str = "input"
    render_type: str = ""
    foreign_table: str = ""
    foreign_field: str = ""
    foreign_sortby: str = ""
    foreign_default_sortby: str = ""
    maxitems: int = 0
    mm: str = ""
    mm_opposite_field: str = ""

    def allows_multiple_selection(self) -> bool:
        if self.type not in ("select", "inline", "group"):
            return False
        return self.render_type != "selectSingle"


@dataclass
class TableDefinition:
    name: str
    columns: Dict[str, ColumnDefinition] = field(default_factory=dict)
    delete_column: str = ""
    hidden_column: str = ""
    default_sortby: str = ""

    def add_column(self, column: ColumnDefinition) -> None:
        self.columns[column.name] = column


class SchemaRegistry:
    """
    In-memory schema metadata provider keyed by table name.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, TableDefinition] = {}

    @classmethod
    def from_dict(cls, config: Mapping[str, Mapping[str, Any]]) -> "SchemaRegistry":
        """
        Build a registry from a nested mapping::

            {"articles": {"ctrl": {"delete": "deleted", "default_sortby": "title"},
                          "columns": {"author": {"type": "select", "maxitems": 1}}}}
        """

        registry = cls()
        for table_name, table_config in config.items():
            ctrl = dict(table_config.get("ctrl", {}))
            table = TableDefinition(
                name=table_name,
                delete_column=ctrl.pop("delete", ""),
                hidden_column=ctrl.pop("hidden", ""),
                default_sortby=ctrl.pop("default_sortby", ""),
            )
            if ctrl:
                raise MapperConfigurationError(
                    f"Unknown ctrl settings for table '{table_name}': {', '.join(sorted(ctrl))}"
                )
            for column_name, column_config in table_config.get("columns", {}).items():
                try:
                    table.add_column(ColumnDefinition(name=column_name, **column_config))
                except TypeError as exc:
                    raise MapperConfigurationError(
                        f"Invalid configuration for column '{table_name}.{column_name}': {exc}"
                    ) from exc
            registry.register(table)
        return registry

    def register(self, table: TableDefinition) -> None:
        self._tables[table.name] = table

    def find_table(self, table_name: str) -> Optional[TableDefinition]:
        return self._tables.get(table_name)

    def get_table(self, table_name: str) -> TableDefinition:
        table = self.find_table(table_name)
        if table is None:
            raise MapperConfigurationError(f'The table "{table_name}" has no schema definition.')
        return table

    def get_column(self, table_name: str, column: str) -> ColumnDefinition:
        table = self.get_table(table_name)
        try:
            return table.columns[column]
        except KeyError as exc:
            raise MapperConfigurationError(
                f"In the table {table_name}, the column {column} does not have a schema entry."
            ) from exc

    def __contains__(self, table_name: object) -> bool:
        return table_name in self._tables
