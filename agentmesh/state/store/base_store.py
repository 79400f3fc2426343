"""
Base State Store.

Shared behavior for every backend: cancellation checks, JSON encoding of
values, typed decoding with "undecodable means absent" semantics and glob
pattern translation. Backends only move opaque strings.

Version: 1.0.0
"""

import logging
import re
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, List, Optional, Pattern, Type, TypeVar

from agentmesh.utils.cancellation import CancellationToken
from agentmesh.utils.serialization import SerializationError, dumps_value, loads_value
from ..constants import GLOB_ANY, GLOB_SINGLE
from ..exceptions import StateSerializationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@lru_cache(maxsize=512)
def glob_to_regex(pattern: str) -> Pattern[str]:
    """
    Translate a key glob into an anchored regex.

    Only * (any run of characters) and ? (one character) are wildcards;
    every other character, including regex metacharacters and brackets,
    matches literally.
    """
    parts = []
    for char in pattern:
        if char == GLOB_ANY:
            parts.append(".*")
        elif char == GLOB_SINGLE:
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("^" + "".join(parts) + "$", re.DOTALL)


def _check(cancellation: Optional[CancellationToken]) -> None:
    if cancellation is not None:
        cancellation.raise_if_cancelled()


class BaseStateStore(ABC):
    """
    Template for state store backends.

    Subclasses implement the raw primitives (_read, _write, _write_if_absent,
    _delete, _contains, _match_keys, _purge). Public operations live here.
    """

    # ------------------------------------------------------------------
    # Raw primitives
    # ------------------------------------------------------------------

    @abstractmethod
    async def _read(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def _write(self, key: str, raw: str, ttl_s: Optional[float]) -> None:
        ...

    @abstractmethod
    async def _write_if_absent(self, key: str, raw: str, ttl_s: Optional[float]) -> bool:
        ...

    @abstractmethod
    async def _delete(self, key: str) -> bool:
        ...

    @abstractmethod
    async def _contains(self, key: str) -> bool:
        ...

    @abstractmethod
    async def _match_keys(self, regex: Pattern[str]) -> List[str]:
        ...

    @abstractmethod
    async def _delete_matching(self, regex: Pattern[str]) -> int:
        ...

    @abstractmethod
    async def _purge(self) -> int:
        ...

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def get(
        self,
        key: str,
        value_type: Type[T] = Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[T]:
        _check(cancellation)
        raw = await self._read(key)
        if raw is None:
            return None
        try:
            return loads_value(raw, value_type)
        except SerializationError as e:
            logger.warning(f"Treating undecodable state at '{key}' as missing: {e}")
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl_s: Optional[float] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        _check(cancellation)
        await self._write(key, self._encode(key, value), ttl_s)

    async def set_if_absent(
        self,
        key: str,
        value: Any,
        ttl_s: Optional[float] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> bool:
        _check(cancellation)
        return await self._write_if_absent(key, self._encode(key, value), ttl_s)

    async def remove(self, key: str, cancellation: Optional[CancellationToken] = None) -> bool:
        _check(cancellation)
        return await self._delete(key)

    async def exists(self, key: str, cancellation: Optional[CancellationToken] = None) -> bool:
        _check(cancellation)
        return await self._contains(key)

    async def keys(
        self,
        pattern: str = GLOB_ANY,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[str]:
        _check(cancellation)
        return sorted(await self._match_keys(glob_to_regex(pattern)))

    async def clear(
        self,
        pattern: str = GLOB_ANY,
        cancellation: Optional[CancellationToken] = None,
    ) -> int:
        _check(cancellation)
        removed = await self._delete_matching(glob_to_regex(pattern))
        if removed:
            logger.debug(f"Cleared {removed} key(s) matching '{pattern}'")
        return removed

    async def purge_expired(self, cancellation: Optional[CancellationToken] = None) -> int:
        _check(cancellation)
        return await self._purge()

    @staticmethod
    def _encode(key: str, value: Any) -> str:
        try:
            return dumps_value(value)
        except SerializationError as e:
            raise StateSerializationError(key, str(e)) from e
