"""
Conversation State Manager.

Owns per-conversation history, variables and status on top of an
IStateStore. Every read-modify-write cycle on a conversation runs under a
lock for that conversation id, so concurrent appends never lose each other.
Conversations are never deleted implicitly; only delete() removes one.

Version: 1.0.0
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from agentmesh.config import get_settings
from agentmesh.utils.cancellation import CancellationToken
from agentmesh.utils.clock import WallClock, utc_now
from agentmesh.utils.serialization import SerializationError, coerce_value
from ..enum import ConversationStatus
from ..interfaces import IStateStore
from ..keys import conversation_key, conversation_pattern, tag_value
from ..locks import KeyedLock
from ..spec import ConversationState, ConversationSummary, Message

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConversationStateManager:
    """
    Manages ConversationState records.

    Args:
        store: Backing state store
        max_messages: History cap (default from settings, 100)
        ttl_s: Optional store-level expiry for conversation records
        clock: Wall clock for timestamps (injectable for tests)

    Example:
        manager = ConversationStateManager(InMemoryStateStore())
        await manager.add_message("c-1", "user", "Provision a VM")
        history = await manager.get_messages("c-1")
    """

    def __init__(
        self,
        store: IStateStore,
        max_messages: Optional[int] = None,
        ttl_s: Optional[float] = None,
        clock: Optional[WallClock] = None,
    ):
        settings = get_settings()
        self._store = store
        self._max_messages = max_messages or settings.max_conversation_messages
        self._ttl_s = ttl_s if ttl_s is not None else settings.conversation_ttl_s
        self._clock = clock or utc_now
        self._locks = KeyedLock()

    @property
    def max_messages(self) -> int:
        return self._max_messages

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def get_or_create(
        self,
        conversation_id: str,
        user_id: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> ConversationState:
        """
        Return the conversation, creating it with status ACTIVE if absent.

        Concurrent calls for the same id all observe the one stored state.
        """
        key = conversation_key(conversation_id)
        existing = await self._store.get(key, ConversationState, cancellation=cancellation)
        if existing is not None:
            return existing
        async with self._locks.hold(key, cancellation):
            return await self._load_or_create(key, conversation_id, user_id, cancellation)

    async def _load_or_create(
        self,
        key: str,
        conversation_id: str,
        user_id: Optional[str],
        cancellation: Optional[CancellationToken],
    ) -> ConversationState:
        """Caller holds the lock for key."""
        existing = await self._store.get(key, ConversationState, cancellation=cancellation)
        if existing is not None:
            return existing

        now = self._clock()
        state = ConversationState(
            conversation_id=conversation_id,
            user_id=user_id,
            created_at=now,
            last_activity_at=now,
        )
        created = await self._store.set_if_absent(key, state, ttl_s=self._ttl_s, cancellation=cancellation)
        if not created:
            stored = await self._store.get(key, ConversationState, cancellation=cancellation)
            if stored is not None:
                return stored
            # An undecodable record is replaced rather than left blocking the id
            logger.warning(f"Replacing unreadable conversation state for {conversation_id}")
            await self._store.set(key, state, ttl_s=self._ttl_s, cancellation=cancellation)

        logger.info(f"Created conversation {conversation_id}")
        return state

    async def _mutate(
        self,
        conversation_id: str,
        mutation: Callable[[ConversationState], T],
        cancellation: Optional[CancellationToken] = None,
        touch: bool = True,
    ) -> T:
        key = conversation_key(conversation_id)
        async with self._locks.hold(key, cancellation):
            state = await self._load_or_create(key, conversation_id, None, cancellation)
            result = mutation(state)
            if touch:
                state.touch(self._clock())
            await self._store.set(key, state, ttl_s=self._ttl_s, cancellation=cancellation)
            return result

    async def get(
        self,
        conversation_id: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[ConversationState]:
        return await self._store.get(
            conversation_key(conversation_id), ConversationState, cancellation=cancellation
        )

    async def save(
        self,
        state: ConversationState,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        """Persist a whole state, enforcing the message cap."""
        key = conversation_key(state.conversation_id)
        async with self._locks.hold(key, cancellation):
            state.trim_messages(self._max_messages)
            state.touch(self._clock())
            await self._store.set(key, state, ttl_s=self._ttl_s, cancellation=cancellation)

    async def delete(
        self,
        conversation_id: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> bool:
        key = conversation_key(conversation_id)
        async with self._locks.hold(key, cancellation):
            removed = await self._store.remove(key, cancellation=cancellation)
        if removed:
            logger.info(f"Deleted conversation {conversation_id}")
        return removed

    # =========================================================================
    # History
    # =========================================================================

    async def add_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        agent_type: Optional[Any] = None,
        metadata: Optional[Dict[str, Any]] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Message:
        """
        Append a message, trimming history to the most recent max_messages.

        Returns:
            The stored Message
        """
        message = Message(
            role=role,
            content=content,
            timestamp=self._clock(),
            agent_type=tag_value(agent_type) if agent_type is not None else None,
            metadata=metadata or {},
        )

        def append(state: ConversationState) -> None:
            state.messages.append(message)
            dropped = state.trim_messages(self._max_messages)
            if dropped:
                logger.debug(f"Trimmed {dropped} message(s) from conversation {conversation_id}")

        await self._mutate(conversation_id, append, cancellation)
        return message

    async def get_messages(
        self,
        conversation_id: str,
        limit: Optional[int] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[Message]:
        """Messages in chronological order, optionally only the last `limit`."""
        state = await self.get(conversation_id, cancellation)
        if state is None:
            return []
        messages = state.messages
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return list(messages)

    # =========================================================================
    # Variables
    # =========================================================================

    async def set_variable(
        self,
        conversation_id: str,
        name: str,
        value: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        def assign(state: ConversationState) -> None:
            state.variables[name] = value

        await self._mutate(conversation_id, assign, cancellation)

    async def get_variable(
        self,
        conversation_id: str,
        name: str,
        value_type: Type[T] = Any,
        default: Optional[T] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[T]:
        """
        Read a variable validated into value_type.

        A missing variable, or one that does not validate, yields default.
        """
        state = await self.get(conversation_id, cancellation)
        if state is None or name not in state.variables:
            return default
        try:
            return coerce_value(state.variables[name], value_type)
        except SerializationError as e:
            logger.warning(f"Variable '{name}' in conversation {conversation_id} unreadable: {e}")
            return default

    async def get_variables(
        self,
        conversation_id: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        state = await self.get(conversation_id, cancellation)
        return dict(state.variables) if state else {}

    # =========================================================================
    # Status
    # =========================================================================

    async def set_status(
        self,
        conversation_id: str,
        status: ConversationStatus,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        def assign(state: ConversationState) -> None:
            if state.status != status:
                logger.info(
                    f"Conversation {conversation_id}: {state.status.value} -> {status.value}"
                )
            state.status = status

        await self._mutate(conversation_id, assign, cancellation)

    async def set_active_agent(
        self,
        conversation_id: str,
        agent_type: Optional[Any],
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        def assign(state: ConversationState) -> None:
            state.active_agent_type = tag_value(agent_type) if agent_type is not None else None

        await self._mutate(conversation_id, assign, cancellation)

    async def list_active(
        self,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[ConversationSummary]:
        """Summaries of ACTIVE conversations, most recently active first."""
        summaries = []
        for key in await self._store.keys(conversation_pattern(), cancellation=cancellation):
            state = await self._store.get(key, ConversationState, cancellation=cancellation)
            if state is not None and state.status == ConversationStatus.ACTIVE:
                summaries.append(state.to_summary())
        summaries.sort(key=lambda s: s.last_activity_at, reverse=True)
        return summaries

    async def expire_idle(
        self,
        max_idle: Union[timedelta, float, None] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> int:
        """
        Mark ACTIVE conversations idle for longer than max_idle as EXPIRED.

        Expired conversations keep their history; nothing is deleted.
        last_activity_at is left as it was so the idle period stays visible.

        Returns:
            Number of conversations expired
        """
        if max_idle is None:
            max_idle = get_settings().conversation_idle_timeout_s
        if not isinstance(max_idle, timedelta):
            max_idle = timedelta(seconds=max_idle)
        cutoff: datetime = self._clock() - max_idle

        def expire(state: ConversationState) -> bool:
            if state.status == ConversationStatus.ACTIVE and state.last_activity_at < cutoff:
                state.status = ConversationStatus.EXPIRED
                return True
            return False

        expired = 0
        for summary in await self.list_active(cancellation):
            if summary.last_activity_at >= cutoff:
                continue
            if await self._mutate(summary.conversation_id, expire, cancellation, touch=False):
                expired += 1
        if expired:
            logger.info(f"Expired {expired} idle conversation(s)")
        return expired
