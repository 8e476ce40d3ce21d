"""
Persistence layer components: identity map, mapper registry and data mappers.
"""

from .identity_map import IdentityMap
from .mapper import DataMapper
from .registry import MapperRegistry
from .testing import TestingFramework

__all__ = ["DataMapper", "IdentityMap", "MapperRegistry", "TestingFramework"]
