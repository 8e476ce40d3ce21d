"""
Model base class and load-state machine for datamapper.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Type

from ..exceptions import BadMethodCallError, NotFoundError
from ..utils.coercion import to_bool, to_int
from .fields import Field

if TYPE_CHECKING:
    from .collection import Collection


class LoadStatus(IntEnum):
    VIRGIN = 0
    GHOST = 1
    LOADING = 2
    LOADED = 3
    DEAD = 4


@dataclass
class ModelOptions:
    """
    Container for model metadata calculated by :class:`ModelMeta`.
    """

    model: Type["Model"]
    read_only: bool = False
    fields: "OrderedDict[str, Field]" = field(default_factory=OrderedDict)

    def add_field(self, field_obj: Field) -> None:
        self.fields[field_obj.require_name()] = field_obj

    def get_field(self, name: str) -> Field:
        try:
            return self.fields[name]
        except KeyError as exc:
            raise KeyError(f"Unknown field '{name}' on model '{self.model.__name__}'") from exc

    def field_for_column(self, column: str) -> Optional[Field]:
        for field_obj in self.fields.values():
            if field_obj.column_name() == column:
                return field_obj
        return None


class ModelMeta(type):
    """
    Metaclass collecting field descriptors, including inherited ones.
    """

    def __new__(mcls, name: str, bases: tuple[type, ...], attrs: Dict[str, Any]) -> "ModelMeta":
        declared_fields: Dict[str, Field] = {}
        for attr_name, value in list(attrs.items()):
            if isinstance(value, Field):
                declared_fields[attr_name] = attrs.pop(attr_name)

        cls = super().__new__(mcls, name, bases, attrs)

        meta = getattr(cls, "Meta", None)
        options = ModelOptions(model=cls, read_only=bool(getattr(meta, "read_only", False)))
        for base in reversed(cls.__mro__[1:]):
            base_options = base.__dict__.get("_meta")
            if isinstance(base_options, ModelOptions):
                options.fields.update(base_options.fields)

        sorted_fields = sorted(declared_fields.items(), key=lambda item: item[1].creation_counter)
        for attr_name, field_obj in sorted_fields:
            field_obj.contribute_to_class(cls, attr_name)
            options.add_field(field_obj)

        cls._meta = options
        return cls


LoadCallback = Callable[["Model"], None]


class Model(metaclass=ModelMeta):
    """
    One record of a table, tracked through its load status.

    A model starts as a *virgin*, becomes a *ghost* once it receives a UID,
    is *loaded* when it receives data, and ends up *dead* when its record
    does not exist (any more). Reading data from a ghost triggers its load
    callback, which is how mappers implement lazy loading.
    """

    _meta: ModelOptions

    def __init__(self) -> None:
        self._uid: Optional[int] = None
        self._data: Dict[str, Any] = {}
        self._load_status = LoadStatus.VIRGIN
        self._dirty = False
        self._load_callback: Optional[LoadCallback] = None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} uid={self._uid} status={self._load_status.name}>"

    # Identity ----------------------------------------------------------
    @property
    def uid(self) -> Optional[int]:
        return self._uid

    def has_uid(self) -> bool:
        return self._uid is not None and self._uid > 0

    def set_uid(self, uid: int) -> None:
        if self.has_uid():
            raise BadMethodCallError("The UID of a model cannot be set a second time.")
        if self.is_virgin():
            self._load_status = LoadStatus.GHOST
        self._uid = uid

    # Data --------------------------------------------------------------
    def set_data(self, data: Mapping[str, Any]) -> None:
        if self.is_loaded():
            raise BadMethodCallError("set_data must only be called once per model instance.")
        self.reset_data(data)

    def reset_data(self, data: Mapping[str, Any]) -> None:
        self._data = dict(data)
        if "uid" in self._data:
            raw_uid = to_int(self._data.pop("uid"))
            if not self.has_uid() and raw_uid > 0:
                self.set_uid(raw_uid)

        self._load_status = LoadStatus.LOADED
        if self.has_uid():
            self.mark_as_clean()
        else:
            self.mark_as_dirty()

    def get_data(self) -> Dict[str, Any]:
        return dict(self._data)

    def is_empty(self) -> bool:
        if self.is_ghost():
            self._load()
            self._load_status = LoadStatus.LOADED
        return not self._data

    def _get(self, key: str) -> Any:
        if key == "uid":
            raise ValueError("The UID needs to be accessed using the uid property.")
        self._load()
        if self.is_dead():
            raise NotFoundError(
                f"The {self.__class__.__name__} with the UID {self._uid} either has been deleted "
                "(or has never existed), but still is accessed."
            )
        return self._data.get(key)

    def _set(self, key: str, value: Any) -> None:
        if key == "deleted":
            raise ValueError('The key must not be "deleted". Please use set_to_deleted() instead.')
        if self.is_read_only():
            raise BadMethodCallError("Read-only models must not be modified.")
        if self.is_ghost():
            self._load()
        self._data[key] = value
        self._load_status = LoadStatus.LOADED
        self.mark_as_dirty()

    def get_as_model(self, key: str) -> Optional["Model"]:
        result = self._get(key)
        if result is None:
            return None
        if not isinstance(result, Model):
            raise TypeError(f'The data item for the key "{key}" is no model instance.')
        return result

    def get_as_collection(self, key: str) -> "Collection":
        from .collection import Collection

        result = self._get(key)
        if not isinstance(result, Collection):
            raise TypeError(f'The data item for the key "{key}" is no collection.')
        return result

    # Lazy loading ------------------------------------------------------
    def set_load_callback(self, callback: LoadCallback) -> None:
        self._load_callback = callback

    def _load(self) -> None:
        if self.is_virgin():
            raise BadMethodCallError(
                f"{self.__class__.__name__}#{self._uid}: Please call set_data() directly after instantiation first."
            )
        if self.is_ghost():
            if self._load_callback is None:
                raise BadMethodCallError("Ghosts need a load callback before their data can be accessed.")
            self._load_status = LoadStatus.LOADING
            self._load_callback(self)

    # Load status -------------------------------------------------------
    def is_virgin(self) -> bool:
        return self._load_status == LoadStatus.VIRGIN

    def is_ghost(self) -> bool:
        return self._load_status == LoadStatus.GHOST

    def is_loading(self) -> bool:
        return self._load_status == LoadStatus.LOADING

    def is_loaded(self) -> bool:
        return self._load_status == LoadStatus.LOADED

    def is_dead(self) -> bool:
        return self._load_status == LoadStatus.DEAD

    def mark_as_dead(self) -> None:
        self._load_status = LoadStatus.DEAD
        self.mark_as_clean()

    # Dirty tracking ----------------------------------------------------
    def mark_as_clean(self) -> None:
        self._dirty = False

    def mark_as_dirty(self) -> None:
        self._dirty = True

    def is_dirty(self) -> bool:
        return self._dirty

    # Flags -------------------------------------------------------------
    def set_to_deleted(self) -> None:
        if self.is_loaded():
            self._data["deleted"] = True
            self.mark_as_dirty()
        else:
            self.mark_as_dead()

    def is_deleted(self) -> bool:
        return to_bool(self._get("deleted"))

    def is_read_only(self) -> bool:
        return self._meta.read_only

    def is_hidden(self) -> bool:
        return to_bool(self._get("hidden"))

    def mark_as_hidden(self) -> None:
        self._set("hidden", True)

    def mark_as_visible(self) -> None:
        self._set("hidden", False)

    # Common columns ----------------------------------------------------
    @property
    def modification_date(self) -> int:
        return to_int(self._get("tstamp"))

    def set_timestamp(self, timestamp: int) -> None:
        self._set("tstamp", int(timestamp))

    @property
    def creation_date(self) -> int:
        return to_int(self._get("crdate"))

    def set_creation_date(self, timestamp: int) -> None:
        if self.has_uid():
            raise BadMethodCallError('Only new models (without UID) may receive "crdate".')
        self._set("crdate", int(timestamp))

    @property
    def page_uid(self) -> int:
        return to_int(self._get("pid"))

    @page_uid.setter
    def page_uid(self, page_uid: int) -> None:
        if page_uid < 0:
            raise ValueError("The page UID must be >= 0.")
        self._set("pid", int(page_uid))
