"""
Shared Memory.

A conversation-scoped blackboard plus a bounded event log that lets
dispatched agents see each other's output without being wired together.

Key namespace (within one conversation):
    orchestration:*        reserved for the orchestrator
                           (orchestration:previous_results, orchestration:run)
    <agent_type>:*         each agent's own output
                           (<agent_type>:last_response is written on dispatch)

Events are kept in publish order, bounded by max_events; the oldest are
dropped first and reads return the newest first.

Version: 1.0.0
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from agentmesh.config import get_settings
from agentmesh.utils.cancellation import CancellationToken
from agentmesh.utils.clock import WallClock, utc_now
from ..constants import KEY_SEPARATOR
from ..interfaces import IStateStore
from ..keys import events_key, shared_key, shared_pattern, tag_value
from ..locks import KeyedLock
from ..spec import SharedMemoryEvent

logger = logging.getLogger(__name__)

T = TypeVar("T")

ORCHESTRATION_NAMESPACE = "orchestration"
PREVIOUS_RESULTS_KEY = "orchestration:previous_results"
RUN_INFO_KEY = "orchestration:run"
LAST_RESPONSE_SUFFIX = "last_response"


def agent_key(agent_type: Any, name: str) -> str:
    """Blackboard key owned by an agent, e.g. 'compliance:last_response'."""
    return f"{tag_value(agent_type)}{KEY_SEPARATOR}{name}"


class SharedMemory:
    """
    Cross-agent blackboard and event log.

    Args:
        store: Backing state store
        max_events: Event log capacity per conversation (settings, 100)
        ttl_s: Optional store-level expiry for blackboard values
        clock: Wall clock for event timestamps

    Example:
        memory = SharedMemory(store)
        await memory.set("c-1", "compliance:score", 92)
        await memory.publish_event("c-1", "scan_done", {"score": 92}, source_agent="compliance")
        latest = await memory.get_events("c-1", max_events=5)
    """

    def __init__(
        self,
        store: IStateStore,
        max_events: Optional[int] = None,
        ttl_s: Optional[float] = None,
        clock: Optional[WallClock] = None,
    ):
        settings = get_settings()
        self._store = store
        self._max_events = max_events or settings.max_shared_events
        self._ttl_s = ttl_s if ttl_s is not None else settings.shared_memory_ttl_s
        self._clock = clock or utc_now
        self._locks = KeyedLock()

    @property
    def max_events(self) -> int:
        return self._max_events

    # =========================================================================
    # Blackboard
    # =========================================================================

    async def set(
        self,
        conversation_id: str,
        key: str,
        value: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        await self._store.set(
            shared_key(conversation_id, key), value, ttl_s=self._ttl_s, cancellation=cancellation
        )

    async def get(
        self,
        conversation_id: str,
        key: str,
        value_type: Type[T] = Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[T]:
        return await self._store.get(shared_key(conversation_id, key), value_type, cancellation=cancellation)

    async def remove(
        self,
        conversation_id: str,
        key: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> bool:
        return await self._store.remove(shared_key(conversation_id, key), cancellation=cancellation)

    async def exists(
        self,
        conversation_id: str,
        key: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> bool:
        return await self._store.exists(shared_key(conversation_id, key), cancellation=cancellation)

    async def keys(
        self,
        conversation_id: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[str]:
        """Blackboard keys of the conversation, without the shared:{id}: prefix."""
        prefix = shared_key(conversation_id, "")
        full_keys = await self._store.keys(shared_pattern(conversation_id), cancellation=cancellation)
        return [k[len(prefix):] for k in full_keys]

    async def snapshot(
        self,
        conversation_id: str,
        exclude_prefixes: Iterable[str] = (),
        cancellation: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        """All blackboard values of the conversation, keyed by short key."""
        excluded = tuple(exclude_prefixes)
        values: Dict[str, Any] = {}
        for key in await self.keys(conversation_id, cancellation):
            if excluded and key.startswith(excluded):
                continue
            value = await self.get(conversation_id, key, cancellation=cancellation)
            if value is not None:
                values[key] = value
        return values

    # =========================================================================
    # Event log
    # =========================================================================

    async def publish_event(
        self,
        conversation_id: str,
        event_type: str,
        data: Any = None,
        source_agent: Optional[Any] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> SharedMemoryEvent:
        event = SharedMemoryEvent(
            event_type=event_type,
            data=data,
            timestamp=self._clock(),
            source_agent=tag_value(source_agent) if source_agent is not None else None,
            conversation_id=conversation_id,
        )
        key = events_key(conversation_id)
        async with self._locks.hold(key, cancellation):
            events = await self._store.get(key, List[SharedMemoryEvent], cancellation=cancellation) or []
            events.append(event)
            if len(events) > self._max_events:
                events = sorted(events, key=lambda e: e.timestamp)[-self._max_events:]
            await self._store.set(key, events, ttl_s=self._ttl_s, cancellation=cancellation)
        logger.debug(f"Published '{event_type}' to conversation {conversation_id}")
        return event

    async def get_events(
        self,
        conversation_id: str,
        max_events: Optional[int] = None,
        event_type: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[SharedMemoryEvent]:
        """Up to max_events most recent events, newest first."""
        events = await self._store.get(
            events_key(conversation_id), List[SharedMemoryEvent], cancellation=cancellation
        ) or []
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        newest_first = list(reversed(events))
        if max_events is not None:
            newest_first = newest_first[:max(max_events, 0)]
        return newest_first

    async def clear(
        self,
        conversation_id: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> int:
        """Remove every blackboard key and the event log of the conversation."""
        removed = await self._store.clear(shared_pattern(conversation_id), cancellation=cancellation)
        key = events_key(conversation_id)
        async with self._locks.hold(key, cancellation):
            if await self._store.remove(key, cancellation=cancellation):
                removed += 1
        logger.info(f"Cleared shared memory for conversation {conversation_id} ({removed} keys)")
        return removed

    def handle(
        self,
        conversation_id: str,
        source_agent: Optional[Any] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> 'SharedMemoryHandle':
        return SharedMemoryHandle(self, conversation_id, source_agent, cancellation)


class SharedMemoryHandle:
    """
    Conversation-scoped view of SharedMemory handed to a capability agent.

    Events published through the handle carry the agent as their source.
    Calls observe the dispatch's cancellation token unless one is passed.
    """

    def __init__(
        self,
        memory: SharedMemory,
        conversation_id: str,
        source_agent: Optional[Any] = None,
        cancellation: Optional[CancellationToken] = None,
    ):
        self._memory = memory
        self._conversation_id = conversation_id
        self._source_agent = tag_value(source_agent) if source_agent is not None else None
        self._cancellation = cancellation

    @property
    def conversation_id(self) -> str:
        return self._conversation_id

    @property
    def source_agent(self) -> Optional[str]:
        return self._source_agent

    def _token(self, cancellation: Optional[CancellationToken]) -> Optional[CancellationToken]:
        return cancellation if cancellation is not None else self._cancellation

    def for_agent(self, agent_type: Any) -> 'SharedMemoryHandle':
        return SharedMemoryHandle(self._memory, self._conversation_id, agent_type, self._cancellation)

    async def set(self, key: str, value: Any, cancellation: Optional[CancellationToken] = None) -> None:
        await self._memory.set(self._conversation_id, key, value, self._token(cancellation))

    async def set_own(self, name: str, value: Any, cancellation: Optional[CancellationToken] = None) -> None:
        """Write under this agent's own namespace (<agent_type>:<name>)."""
        if self._source_agent is None:
            raise ValueError("Handle has no source agent to namespace the key with")
        await self.set(agent_key(self._source_agent, name), value, cancellation)

    async def get(
        self,
        key: str,
        value_type: Type[T] = Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[T]:
        return await self._memory.get(self._conversation_id, key, value_type, self._token(cancellation))

    async def remove(self, key: str, cancellation: Optional[CancellationToken] = None) -> bool:
        return await self._memory.remove(self._conversation_id, key, self._token(cancellation))

    async def exists(self, key: str, cancellation: Optional[CancellationToken] = None) -> bool:
        return await self._memory.exists(self._conversation_id, key, self._token(cancellation))

    async def keys(self, cancellation: Optional[CancellationToken] = None) -> List[str]:
        return await self._memory.keys(self._conversation_id, self._token(cancellation))

    async def snapshot(
        self,
        exclude_prefixes: Iterable[str] = (),
        cancellation: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        return await self._memory.snapshot(self._conversation_id, exclude_prefixes, self._token(cancellation))

    async def publish_event(
        self,
        event_type: str,
        data: Any = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> SharedMemoryEvent:
        return await self._memory.publish_event(
            self._conversation_id, event_type, data, self._source_agent, self._token(cancellation)
        )

    async def get_events(
        self,
        max_events: Optional[int] = None,
        event_type: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[SharedMemoryEvent]:
        return await self._memory.get_events(
            self._conversation_id, max_events, event_type, self._token(cancellation)
        )
