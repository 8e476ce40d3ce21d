"""
Lifecycle hooks for mapped models.
"""

from .dispatcher import EVENTS, HookDispatcher

__all__ = ["EVENTS", "HookDispatcher"]
