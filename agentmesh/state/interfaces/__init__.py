"""
State Interfaces.
"""

from .state_store_interfaces import IStateStore

__all__ = ["IStateStore"]
