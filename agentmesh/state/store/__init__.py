"""
State Store backends.
"""

from .base_store import BaseStateStore, glob_to_regex
from .memory_store import InMemoryStateStore
from .store_factory import StoreFactory

__all__ = [
    "BaseStateStore",
    "InMemoryStateStore",
    "StoreFactory",
    "glob_to_regex",
]
