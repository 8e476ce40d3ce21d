"""
Ordered model collections used for to-many relations.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, List, Optional

from .model import Model


class Collection:
    """
    Ordered container holding each model instance at most once.

    A collection may point back to the model owning the relation; adding,
    removing or reordering members marks that parent dirty. Collections
    marked as owned by their parent delete members that were removed from
    them when the parent is saved.
    """

    def __init__(self, models: Iterable[Model] = ()) -> None:
        self._items: List[Model] = []
        self._members: set[int] = set()
        self._parent_model: Optional[Model] = None
        self._owned_by_parent = False
        for model in models:
            self.add(model)

    def __repr__(self) -> str:
        return f"<Collection uids={self.get_uids()!r}>"

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Model]:
        return iter(list(self._items))

    def __contains__(self, model: object) -> bool:
        return id(model) in self._members

    # Mutation ----------------------------------------------------------
    def add(self, model: Model) -> None:
        if id(model) not in self._members:
            self._items.append(model)
            self._members.add(id(model))
        self._mark_parent_as_dirty()

    def append(self, models: Iterable[Model]) -> None:
        for model in models:
            self.add(model)

    def remove(self, model: Model) -> None:
        if id(model) not in self._members:
            raise ValueError(f"{model!r} is not part of this collection.")
        self._items = [item for item in self._items if item is not model]
        self._members.discard(id(model))
        self._mark_parent_as_dirty()

    def sort(self, key: Callable[[Model], Any], *, reverse: bool = False) -> None:
        self._items.sort(key=key, reverse=reverse)
        self._mark_parent_as_dirty()

    # Access ------------------------------------------------------------
    def count(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def first(self) -> Optional[Model]:
        return self._items[0] if self._items else None

    def at(self, position: int) -> Optional[Model]:
        return self.in_range(position, 1).first()

    def in_range(self, start: int, length: int) -> "Collection":
        if start < 0:
            raise ValueError("start must be >= 0.")
        if length < 0:
            raise ValueError("length must be >= 0.")
        return Collection(self._items[start : start + length])

    def to_list(self) -> List[Model]:
        return list(self._items)

    def get_uids(self) -> List[int]:
        return [model.uid for model in self._items if model.has_uid()]

    def uids_as_string(self) -> str:
        return ",".join(str(uid) for uid in self.get_uids())

    def has_uid(self, uid: int) -> bool:
        return uid in self.get_uids()

    # Parent relation ---------------------------------------------------
    @property
    def parent_model(self) -> Optional[Model]:
        return self._parent_model

    def set_parent_model(self, model: Model) -> None:
        self._parent_model = model

    def is_owned_by_parent(self) -> bool:
        return self._owned_by_parent

    def mark_as_owned_by_parent(self) -> None:
        self._owned_by_parent = True

    def _mark_parent_as_dirty(self) -> None:
        if self._parent_model is not None:
            self._parent_model.mark_as_dirty()
