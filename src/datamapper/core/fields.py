"""
Field accessor descriptors for datamapper models.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, cast

from ..utils.coercion import to_bool, to_int

if TYPE_CHECKING:
    from .collection import Collection
    from .model import Model


class FieldError(Exception):
    """Internal exception for field configuration issues."""


class Field:
    """
    Base class for model field descriptors.

    A field maps an attribute of a model class to one entry of the model's
    data. Reading goes through :meth:`Model._get`, which loads ghosts on
    demand, and writing through :meth:`Model._set`, which marks the model
    dirty.
    """

    _creation_counter = 0

    def __init__(self, *, column: Optional[str] = None, help_text: Optional[str] = None) -> None:
        self.column = column
        self.help_text = help_text

        self.model: type["Model"] | None = None  # Will be set during contribute_to_class
        self.name: str | None = None
        self.creation_counter = Field._creation_counter
        Field._creation_counter += 1

    # Descriptor protocol -------------------------------------------------
    def __get__(self, instance: object | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        model_instance = cast("Model", instance)
        return self.to_python(model_instance._get(self.column_name()))

    def __set__(self, instance: object, value: Any) -> None:
        model_instance = cast("Model", instance)
        model_instance._set(self.column_name(), self.to_storage(value))

    # Metadata helpers ----------------------------------------------------
    def bind(self, model: type["Model"], name: str) -> None:
        self.model = model
        self.name = name
        if self.column is None:
            self.column = name

    def contribute_to_class(self, model: type["Model"], name: str) -> None:
        """
        Attach the field to the model class as a descriptor.
        """
        self.bind(model, name)
        setattr(model, name, self)

    def require_name(self) -> str:
        if self.name is None:
            raise FieldError("Field name is not set.")
        return self.name

    def column_name(self) -> str:
        if self.column:
            return self.column
        return self.require_name()

    # Conversion ----------------------------------------------------------
    def to_python(self, value: Any) -> Any:
        return value

    def to_storage(self, value: Any) -> Any:
        return value


class StringField(Field):
    def to_python(self, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    def to_storage(self, value: Any) -> str:
        return "" if value is None else str(value)


class IntegerField(Field):
    def to_python(self, value: Any) -> int:
        return to_int(value)

    def to_storage(self, value: Any) -> int:
        return int(value)


class FloatField(Field):
    def to_python(self, value: Any) -> float:
        if value in (None, ""):
            return 0.0
        return float(value)

    def to_storage(self, value: Any) -> float:
        return float(value)


class BooleanField(Field):
    def to_python(self, value: Any) -> bool:
        return to_bool(value)

    def to_storage(self, value: Any) -> bool:
        return bool(value)


class ModelField(Field):
    """
    Accessor for a to-one relation; the value is a model or ``None``.
    """

    def __get__(self, instance: object | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return cast("Model", instance).get_as_model(self.column_name())

    def to_storage(self, value: Any) -> Optional["Model"]:
        from .model import Model

        if value is not None and not isinstance(value, Model):
            raise TypeError(f"Field '{self.require_name()}' only accepts model instances or None.")
        return value


class CollectionField(Field):
    """
    Accessor for a to-many relation; the value is a :class:`Collection`.
    """

    def __get__(self, instance: object | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return cast("Model", instance).get_as_collection(self.column_name())

    def to_storage(self, value: Any) -> "Collection":
        from .collection import Collection

        if not isinstance(value, Collection):
            raise TypeError(f"Field '{self.require_name()}' only accepts collections.")
        return value
