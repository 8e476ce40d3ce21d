"""
Identity map ensuring a single in-memory instance per UID.
"""

from __future__ import annotations

from threading import RLock
from typing import Dict

from ..core.model import Model
from ..exceptions import NotFoundError


class IdentityMap:
    """
    Stores the model instances of one mapper keyed by UID.

    The map also remembers the highest UID it has seen so that memory-only
    models can be given UIDs that are not taken (yet).
    """

    def __init__(self) -> None:
        self._items: Dict[int, Model] = {}
        self._highest_uid = 0
        self._lock = RLock()

    def add(self, model: Model) -> None:
        """
        Register a model, replacing any model previously stored for its UID.
        """

        if not model.has_uid():
            raise ValueError("add() requires a model that has a UID.")
        uid = model.uid
        with self._lock:
            self._items[uid] = model
            self._highest_uid = max(self._highest_uid, uid)

    def get(self, uid: int) -> Model:
        if uid <= 0:
            raise ValueError("The UID must be > 0.")
        with self._lock:
            try:
                return self._items[uid]
            except KeyError:
                raise NotFoundError(
                    f"This map currently does not contain a model with the UID {uid}."
                ) from None

    def get_new_uid(self) -> int:
        with self._lock:
            return self._highest_uid + 1

    def __contains__(self, uid: object) -> bool:
        with self._lock:
            return uid in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
