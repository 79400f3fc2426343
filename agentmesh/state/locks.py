"""
Per-key async locks.

Serializes read-modify-write cycles on one id (a conversation, an
(conversation, agent) pair, an event log) without making unrelated ids
contend on a shared lock. Locks are reference counted and dropped once
nobody holds or waits on them.

Version: 1.0.0
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from agentmesh.utils.cancellation import CancellationToken


class KeyedLock:
    """
    Registry of asyncio locks addressed by string key.

    Example:
        locks = KeyedLock()
        async with locks.hold("conversation:c-1"):
            state = await store.get(...)
            await store.set(...)
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._refs: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(
        self,
        key: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> AsyncIterator[None]:
        if cancellation is not None:
            cancellation.raise_if_cancelled()
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._refs[key] = self._refs.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
