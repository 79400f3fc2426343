"""
State Store Factory.

Provides a centralized way to create and register state store backends by name.
"""

from typing import Any, Callable, Dict, List

from ..constants import MEMORY_BACKEND, UNKNOWN_BACKEND_ERROR, COMMA, SPACE
from ..exceptions import UnknownBackendError
from ..interfaces import IStateStore
from .memory_store import InMemoryStateStore

StoreBuilder = Callable[..., IStateStore]


class StoreFactory:
    """
    Factory for creating state store instances.

    Backends are registered as builders (a class or any callable returning
    an IStateStore), so every create_store() call yields a fresh store.

    Built-in backends:
        - 'memory': InMemoryStateStore

    Usage:
        store = StoreFactory.create_store('memory')

        StoreFactory.register('redis', lambda **kw: RedisStateStore(client, **kw))
        store = StoreFactory.create_store('redis')
    """

    _builders: Dict[str, StoreBuilder] = {
        MEMORY_BACKEND: InMemoryStateStore,
    }

    @classmethod
    def create_store(cls, name: str = MEMORY_BACKEND, **kwargs: Any) -> IStateStore:
        """
        Create a state store by backend name.

        Raises:
            UnknownBackendError: If the backend name is not registered
        """
        builder = cls._builders.get(name)

        if not builder:
            available = cls.list_available()
            raise UnknownBackendError(
                UNKNOWN_BACKEND_ERROR.format(
                    BACKEND_NAME=name,
                    AVAILABLE_BACKENDS=(COMMA + SPACE).join(available),
                ),
                backend=name,
                available=available,
            )

        return builder(**kwargs)

    @classmethod
    def register(cls, name: str, builder: StoreBuilder) -> None:
        cls._builders[name] = builder

    @classmethod
    def unregister(cls, name: str) -> None:
        if name == MEMORY_BACKEND:
            raise ValueError("Cannot unregister built-in 'memory' backend")
        cls._builders.pop(name, None)

    @classmethod
    def list_available(cls) -> List[str]:
        """List all registered backend names."""
        return list(cls._builders.keys())
