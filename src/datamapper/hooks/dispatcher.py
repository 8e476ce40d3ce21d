"""
Hook dispatcher for mapper lifecycle events.
"""

from __future__ import annotations

from collections import defaultdict
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Type

from ..core.model import Model

HookHandler = Callable[..., None]

EVENTS = ("after_load", "before_save", "after_save", "after_delete")


class HookDispatcher:
    """
    Keeps the handlers mappers call around loading, saving and deleting.

    Handlers registered without a model class run for every model; the
    others run for instances of the class and its subclasses. Handlers are
    called as ``handler(model, mapper=..., **context)`` and their exceptions
    propagate to the mapper call that fired the event.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._handlers: Dict[Optional[Type[Model]], Dict[str, List[HookHandler]]] = defaultdict(
            lambda: defaultdict(list)
        )

    def register(self, event: str, handler: HookHandler, *, model: Optional[Type[Model]] = None) -> None:
        self._check_event(event)
        with self._lock:
            self._handlers[model][event].append(handler)

    def unregister(self, event: str, handler: HookHandler, *, model: Optional[Type[Model]] = None) -> None:
        self._check_event(event)
        with self._lock:
            handlers = self._handlers.get(model, {}).get(event, [])
            if handler not in handlers:
                raise ValueError(f"The handler is not registered for '{event}'.")
            handlers.remove(handler)

    def fire(self, event: str, instance: Model, **context: Any) -> None:
        with self._lock:
            handlers = list(self._handlers.get(None, {}).get(event, []))
            for model in type(instance).__mro__:
                handlers.extend(self._handlers.get(model, {}).get(event, []))
        for handler in handlers:
            handler(instance, **context)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    @staticmethod
    def _check_event(event: str) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown hook event '{event}'; expected one of {', '.join(EVENTS)}.")
