"""
In-Memory State Store.

Process-local backend. A single entry map is the only index: a key is
listed by keys() exactly when exists() reports it, and an expired entry is
evicted from that map under the same lock that every operation takes.

Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern

from agentmesh.utils.clock import MonotonicClock, monotonic
from .base_store import BaseStateStore

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    raw: str
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class InMemoryStateStore(BaseStateStore):
    """
    Dictionary-backed state store with per-entry expiry.

    Args:
        clock: Monotonic clock used for expiry deadlines (injectable for tests)

    Example:
        store = InMemoryStateStore()
        await store.set("conversation:c-1", state, ttl_s=3600)
        state = await store.get("conversation:c-1", ConversationState)
    """

    def __init__(self, clock: Optional[MonotonicClock] = None):
        self._clock = clock or monotonic
        self._entries: Dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    def _deadline(self, ttl_s: Optional[float]) -> Optional[float]:
        if ttl_s is None:
            return None
        return self._clock() + ttl_s

    def _live(self, key: str) -> Optional[_Entry]:
        """Return the entry for key, evicting it if expired. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def _evict_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def _read(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._live(key)
            return entry.raw if entry else None

    async def _write(self, key: str, raw: str, ttl_s: Optional[float]) -> None:
        async with self._lock:
            self._entries[key] = _Entry(raw=raw, expires_at=self._deadline(ttl_s))

    async def _write_if_absent(self, key: str, raw: str, ttl_s: Optional[float]) -> bool:
        async with self._lock:
            if self._live(key) is not None:
                return False
            self._entries[key] = _Entry(raw=raw, expires_at=self._deadline(ttl_s))
            return True

    async def _delete(self, key: str) -> bool:
        async with self._lock:
            if self._live(key) is None:
                return False
            del self._entries[key]
            return True

    async def _contains(self, key: str) -> bool:
        async with self._lock:
            return self._live(key) is not None

    async def _match_keys(self, regex: Pattern[str]) -> List[str]:
        async with self._lock:
            self._evict_expired()
            return [k for k in self._entries if regex.match(k)]

    async def _delete_matching(self, regex: Pattern[str]) -> int:
        async with self._lock:
            self._evict_expired()
            matched = [k for k in self._entries if regex.match(k)]
            for key in matched:
                del self._entries[key]
            return len(matched)

    async def _purge(self) -> int:
        async with self._lock:
            evicted = self._evict_expired()
        if evicted:
            logger.debug(f"Purged {evicted} expired state entries")
        return evicted

    def __len__(self) -> int:
        return len(self._entries)
