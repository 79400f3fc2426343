"""
State Store Interfaces.

Defines the protocol every key-value backend implements. Keys are flat
namespaced strings (conversation:{id}, agent:{id}:{type}, shared:{id}:{key},
events:{id}); values are opaque serialized payloads.

Version: 1.0.0
"""

from __future__ import annotations
from typing import Any, List, Optional, Protocol, Type, TypeVar, runtime_checkable

from agentmesh.utils.cancellation import CancellationToken

T = TypeVar("T")


@runtime_checkable
class IStateStore(Protocol):
    """
    Interface for state store backends.

    Read failures (missing key, expired entry, undecodable payload) are
    reported as a miss, never as an exception. Write failures raise
    StateStoreError.

    Built-in implementations:
    - InMemoryStateStore: process-local dictionary with expiry

    Example:
        class RedisStateStore(BaseStateStore):
            async def _read(self, key):
                return await self.redis.get(key)

            async def _write(self, key, raw, ttl_s):
                await self.redis.set(key, raw, ex=ttl_s)
    """

    async def get(
        self,
        key: str,
        value_type: Type[T] = Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[T]:
        """
        Get a value, validated into value_type.

        Returns:
            The value, or None if absent, expired or undecodable
        """
        ...

    async def set(
        self,
        key: str,
        value: Any,
        ttl_s: Optional[float] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        """
        Store a value with optional time-to-live (None = no expiration).
        """
        ...

    async def set_if_absent(
        self,
        key: str,
        value: Any,
        ttl_s: Optional[float] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> bool:
        """
        Store a value only if the key does not exist (atomic).

        Returns:
            True if the value was stored, False if the key already existed
        """
        ...

    async def remove(self, key: str, cancellation: Optional[CancellationToken] = None) -> bool:
        """Remove a key. Returns True if it existed."""
        ...

    async def exists(self, key: str, cancellation: Optional[CancellationToken] = None) -> bool:
        ...

    async def keys(
        self,
        pattern: str = "*",
        cancellation: Optional[CancellationToken] = None,
    ) -> List[str]:
        """
        List keys matching a glob pattern (* and ? wildcards, whole-key match).
        """
        ...

    async def clear(
        self,
        pattern: str = "*",
        cancellation: Optional[CancellationToken] = None,
    ) -> int:
        """Remove every key matching a glob pattern. Returns the number removed."""
        ...

    async def purge_expired(self, cancellation: Optional[CancellationToken] = None) -> int:
        """Evict expired entries eagerly. Returns the number evicted."""
        ...
