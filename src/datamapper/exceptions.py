"""
Error hierarchy shared by the mapping layer.

Only :class:`NotFoundError` is expected during normal operation; mappers
catch it close to where it is raised and turn it into a fallback query, a
missing relation or a dead model. The other errors signal programming or
configuration mistakes and are left to propagate.
"""

from __future__ import annotations


class NotFoundError(LookupError):
    """Raised when a cached or stored record does not exist."""


class BadMethodCallError(RuntimeError):
    """Raised when a method is called in a state that does not allow it."""


class MapperConfigurationError(RuntimeError):
    """Raised when a mapper declaration does not match the schema metadata."""


__all__ = ["BadMethodCallError", "MapperConfigurationError", "NotFoundError"]
