"""
Registry handing out one mapper instance per mapper class.
"""

from __future__ import annotations

import importlib
import time
from threading import RLock
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Optional, Type, Union

from ..adapters.base import RowStore
from ..exceptions import BadMethodCallError
from ..hooks import HookDispatcher
from ..schema.definitions import SchemaRegistry
from ..utils import get_logger, unify_class_name
from .testing import TestingFramework

if TYPE_CHECKING:
    from .mapper import DataMapper


MapperType = Union[Type["DataMapper"], str]
Clock = Callable[[], int]


def _unix_time() -> int:
    return int(time.time())


class MapperRegistry:
    """
    Shared context of a unit of work: the row store, the schema metadata and
    one lazily created mapper per mapper class.

    Mappers are keyed by their case-insensitive qualified class name, so a
    class and its dotted import path refer to the same mapper. Flags set on
    the registry (denied database access, testing mode) are applied to every
    mapper each time it is handed out.
    """

    def __init__(
        self,
        store: RowStore,
        schema: SchemaRegistry,
        *,
        clock: Optional[Clock] = None,
        hooks: Optional[HookDispatcher] = None,
    ) -> None:
        self.store = store
        self.schema = schema
        self.clock: Clock = clock or _unix_time
        self.hooks = hooks or HookDispatcher()
        self.lock = RLock()
        self._mappers: Dict[str, "DataMapper"] = {}
        self._deny_database_access = False
        self._testing_framework: Optional[TestingFramework] = None
        self.logger = get_logger("persistence.registry")

    @classmethod
    def build(
        cls,
        store: RowStore,
        schema: SchemaRegistry,
        mapper_types: Iterable[MapperType] = (),
        **kwargs: Any,
    ) -> "MapperRegistry":
        """
        Create a registry and instantiate the given mappers against it.
        """

        registry = cls(store, schema, **kwargs)
        for mapper_type in mapper_types:
            registry.get(mapper_type)
        return registry

    # ------------------------------------------------------------------ #
    def get(self, mapper_type: MapperType) -> "DataMapper":
        if not mapper_type:
            raise ValueError("The mapper type must not be empty.")

        key = unify_class_name(mapper_type)
        with self.lock:
            mapper = self._mappers.get(key)
            if mapper is None:
                mapper_class = self._resolve_mapper_class(mapper_type)
                mapper = mapper_class(self)
                self._mappers[key] = mapper
                self.logger.debug("Instantiated mapper %s", key)

        if self._testing_framework is not None:
            mapper.set_testing_framework(self._testing_framework)
        if self._deny_database_access:
            mapper.disable_database_access()
        return mapper

    def set(self, mapper_type: MapperType, mapper: "DataMapper") -> None:
        """
        Register a pre-built mapper, e.g. a test double.
        """

        mapper_class = self._resolve_mapper_class(mapper_type)
        if not isinstance(mapper, mapper_class):
            raise ValueError(f"The provided mapper is not an instance of {mapper_class.__qualname__}.")

        key = unify_class_name(mapper_type)
        with self.lock:
            if key in self._mappers:
                raise BadMethodCallError(
                    f"There already is a {key} mapper registered. Overwriting existing mappers is not allowed."
                )
            self._mappers[key] = mapper

    def purge(self) -> None:
        with self.lock:
            self._mappers.clear()

    def deny_database_access(self) -> None:
        self._deny_database_access = True

    def activate_testing_mode(self, testing_framework: TestingFramework) -> None:
        self._testing_framework = testing_framework

    def __contains__(self, mapper_type: object) -> bool:
        with self.lock:
            return unify_class_name(mapper_type) in self._mappers

    # ------------------------------------------------------------------ #
    @staticmethod
    def _resolve_mapper_class(mapper_type: MapperType) -> Type["DataMapper"]:
        from .mapper import DataMapper

        if isinstance(mapper_type, str):
            module_name, _, class_name = mapper_type.rpartition(".")
            try:
                mapper_class = getattr(importlib.import_module(module_name), class_name)
            except (ImportError, AttributeError, ValueError) as exc:
                raise ValueError(f'No mapper class "{mapper_type}" could be found.') from exc
        else:
            mapper_class = mapper_type

        if not (isinstance(mapper_class, type) and issubclass(mapper_class, DataMapper)):
            raise ValueError(f"{mapper_type!r} is not a mapper class.")
        return mapper_class
