"""
Agent State Manager.

Owns per-(conversation, agent) working state: a data bag, memoized tool
results, the agent-internal workflow and pending confirmable actions.
State is created lazily on first access and every mutation refreshes
last_activity_at.

Version: 1.0.0
"""

import logging
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from agentmesh.config import get_settings
from agentmesh.utils.cancellation import CancellationToken
from agentmesh.utils.clock import WallClock, utc_now
from agentmesh.utils.serialization import SerializationError, coerce_value
from ..enum import PendingActionStatus, WorkflowStatus
from ..exceptions import (
    InvalidStateTransitionError,
    PendingActionNotFoundError,
    WorkflowNotStartedError,
)
from ..interfaces import IStateStore
from ..keys import agent_state_key, agent_state_pattern, tag_value
from ..locks import KeyedLock
from ..spec import AgentState, PendingAction, ToolExecutionResult, WorkflowState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AgentStateManager:
    """
    Manages AgentState records keyed by (conversation_id, agent_type).

    Args:
        store: Backing state store
        pending_action_ttl: Default lifetime of a pending action (settings, 1 hour)
        ttl_s: Optional store-level expiry for agent state records
        clock: Wall clock for timestamps (injectable for tests)

    Example:
        manager = AgentStateManager(store)
        action = await manager.create_pending_action(
            "c-1", AgentType.INFRASTRUCTURE, "delete_vm", "Delete vm-42"
        )
        await manager.confirm_action("c-1", AgentType.INFRASTRUCTURE, action.action_id)
    """

    def __init__(
        self,
        store: IStateStore,
        pending_action_ttl: Union[timedelta, float, None] = None,
        ttl_s: Optional[float] = None,
        clock: Optional[WallClock] = None,
    ):
        settings = get_settings()
        if pending_action_ttl is None:
            pending_action_ttl = settings.pending_action_ttl_s
        if not isinstance(pending_action_ttl, timedelta):
            pending_action_ttl = timedelta(seconds=pending_action_ttl)
        self._store = store
        self._pending_action_ttl = pending_action_ttl
        self._ttl_s = ttl_s if ttl_s is not None else settings.agent_state_ttl_s
        self._clock = clock or utc_now
        self._locks = KeyedLock()

    # =========================================================================
    # State records
    # =========================================================================

    def _new_state(self, conversation_id: str, agent_type: Any) -> AgentState:
        return AgentState(
            agent_type=tag_value(agent_type),
            conversation_id=conversation_id,
            last_activity_at=self._clock(),
        )

    async def _load_or_create(
        self,
        key: str,
        conversation_id: str,
        agent_type: Any,
        cancellation: Optional[CancellationToken],
    ) -> AgentState:
        state = await self._store.get(key, AgentState, cancellation=cancellation)
        if state is not None:
            return state
        state = self._new_state(conversation_id, agent_type)
        if not await self._store.set_if_absent(key, state, ttl_s=self._ttl_s, cancellation=cancellation):
            stored = await self._store.get(key, AgentState, cancellation=cancellation)
            if stored is not None:
                return stored
            await self._store.set(key, state, ttl_s=self._ttl_s, cancellation=cancellation)
        return state

    async def _mutate(
        self,
        conversation_id: str,
        agent_type: Any,
        mutation: Callable[[AgentState], T],
        cancellation: Optional[CancellationToken] = None,
    ) -> T:
        key = agent_state_key(conversation_id, agent_type)
        async with self._locks.hold(key, cancellation):
            state = await self._load_or_create(key, conversation_id, agent_type, cancellation)
            result = mutation(state)
            state.touch(self._clock())
            await self._store.set(key, state, ttl_s=self._ttl_s, cancellation=cancellation)
            return result

    async def get_agent_state(
        self,
        conversation_id: str,
        agent_type: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> AgentState:
        """Return the agent's state, creating an empty one on first access."""
        key = agent_state_key(conversation_id, agent_type)
        state = await self._store.get(key, AgentState, cancellation=cancellation)
        if state is not None:
            return state
        async with self._locks.hold(key, cancellation):
            return await self._load_or_create(key, conversation_id, agent_type, cancellation)

    async def save_agent_state(
        self,
        state: AgentState,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        key = agent_state_key(state.conversation_id, state.agent_type)
        async with self._locks.hold(key, cancellation):
            state.touch(self._clock())
            await self._store.set(key, state, ttl_s=self._ttl_s, cancellation=cancellation)

    async def touch(
        self,
        conversation_id: str,
        agent_type: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        """Refresh last_activity_at without changing anything else."""
        await self._mutate(conversation_id, agent_type, lambda state: None, cancellation)

    async def clear_agent_state(
        self,
        conversation_id: str,
        agent_type: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> bool:
        key = agent_state_key(conversation_id, agent_type)
        async with self._locks.hold(key, cancellation):
            return await self._store.remove(key, cancellation=cancellation)

    async def list_agent_states(
        self,
        conversation_id: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[AgentState]:
        states = []
        for key in await self._store.keys(agent_state_pattern(conversation_id), cancellation=cancellation):
            state = await self._store.get(key, AgentState, cancellation=cancellation)
            if state is not None:
                states.append(state)
        return states

    # =========================================================================
    # Data bag
    # =========================================================================

    async def set_data(
        self,
        conversation_id: str,
        agent_type: Any,
        name: str,
        value: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        def assign(state: AgentState) -> None:
            state.data[name] = value

        await self._mutate(conversation_id, agent_type, assign, cancellation)

    async def get_data(
        self,
        conversation_id: str,
        agent_type: Any,
        name: str,
        value_type: Type[T] = Any,
        default: Optional[T] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[T]:
        state = await self.get_agent_state(conversation_id, agent_type, cancellation)
        if name not in state.data:
            return default
        try:
            return coerce_value(state.data[name], value_type)
        except SerializationError as e:
            logger.warning(f"Agent data '{name}' for {tag_value(agent_type)} unreadable: {e}")
            return default

    # =========================================================================
    # Tool results
    # =========================================================================

    async def set_tool_result(
        self,
        conversation_id: str,
        agent_type: Any,
        result: ToolExecutionResult,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        """Memoize a tool outcome for the lifetime of this agent state."""
        def assign(state: AgentState) -> None:
            state.tool_results[result.tool_name] = result

        await self._mutate(conversation_id, agent_type, assign, cancellation)

    async def get_tool_result(
        self,
        conversation_id: str,
        agent_type: Any,
        tool_name: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[ToolExecutionResult]:
        state = await self.get_agent_state(conversation_id, agent_type, cancellation)
        return state.tool_results.get(tool_name)

    # =========================================================================
    # Workflow
    # =========================================================================

    async def start_workflow(
        self,
        conversation_id: str,
        agent_type: Any,
        total_steps: int,
        name: Optional[str] = None,
        first_step: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> WorkflowState:
        """
        Start a new workflow for the agent.

        Raises:
            InvalidStateTransitionError: If a non-terminal workflow is already running
        """
        def start(state: AgentState) -> WorkflowState:
            current = state.current_workflow
            if current is not None and not current.is_terminal:
                raise InvalidStateTransitionError(
                    f"Workflow {current.workflow_id} is still {current.status.value}",
                    current_state=current.status.value,
                    target_state=WorkflowStatus.IN_PROGRESS.value,
                )
            workflow = WorkflowState(
                name=name,
                current_step=first_step,
                total_steps=total_steps,
                context=context or {},
            )
            workflow.transition_to(WorkflowStatus.IN_PROGRESS)
            state.current_workflow = workflow
            return workflow

        workflow = await self._mutate(conversation_id, agent_type, start, cancellation)
        logger.info(
            f"Started workflow {workflow.workflow_id} for {tag_value(agent_type)} "
            f"in conversation {conversation_id} ({total_steps} steps)"
        )
        return workflow

    async def _update_workflow(
        self,
        conversation_id: str,
        agent_type: Any,
        update: Callable[[WorkflowState], None],
        cancellation: Optional[CancellationToken],
    ) -> WorkflowState:
        def apply(state: AgentState) -> WorkflowState:
            if state.current_workflow is None:
                raise WorkflowNotStartedError(conversation_id, tag_value(agent_type))
            update(state.current_workflow)
            return state.current_workflow

        return await self._mutate(conversation_id, agent_type, apply, cancellation)

    async def advance_workflow(
        self,
        conversation_id: str,
        agent_type: Any,
        step_name: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> WorkflowState:
        return await self._update_workflow(
            conversation_id, agent_type, lambda wf: wf.advance(step_name), cancellation
        )

    async def await_confirmation(
        self,
        conversation_id: str,
        agent_type: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> WorkflowState:
        return await self._update_workflow(
            conversation_id,
            agent_type,
            lambda wf: wf.transition_to(WorkflowStatus.AWAITING_CONFIRMATION),
            cancellation,
        )

    async def complete_workflow(
        self,
        conversation_id: str,
        agent_type: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> WorkflowState:
        return await self._update_workflow(
            conversation_id, agent_type, lambda wf: wf.complete(), cancellation
        )

    async def fail_workflow(
        self,
        conversation_id: str,
        agent_type: Any,
        reason: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> WorkflowState:
        def fail(wf: WorkflowState) -> None:
            wf.transition_to(WorkflowStatus.FAILED)
            if reason:
                wf.context["failure_reason"] = reason

        workflow = await self._update_workflow(conversation_id, agent_type, fail, cancellation)
        logger.warning(f"Workflow {workflow.workflow_id} failed: {reason or 'no reason given'}")
        return workflow

    async def cancel_workflow(
        self,
        conversation_id: str,
        agent_type: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> WorkflowState:
        return await self._update_workflow(
            conversation_id,
            agent_type,
            lambda wf: wf.transition_to(WorkflowStatus.CANCELLED),
            cancellation,
        )

    # =========================================================================
    # Pending actions
    # =========================================================================

    async def create_pending_action(
        self,
        conversation_id: str,
        agent_type: Any,
        action_type: str,
        description: str = "",
        parameters: Optional[Dict[str, Any]] = None,
        ttl: Union[timedelta, float, None] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> PendingAction:
        if ttl is None:
            ttl = self._pending_action_ttl
        elif not isinstance(ttl, timedelta):
            ttl = timedelta(seconds=ttl)
        action = PendingAction.create(
            action_type=action_type,
            description=description,
            ttl=ttl,
            parameters=parameters,
            now=self._clock(),
        )

        def append(state: AgentState) -> None:
            state.pending_actions.append(action)

        await self._mutate(conversation_id, agent_type, append, cancellation)
        logger.info(
            f"Pending action {action.action_id} ({action_type}) awaiting confirmation "
            f"until {action.expires_at.isoformat()}"
        )
        return action

    async def _update_action(
        self,
        conversation_id: str,
        agent_type: Any,
        action_id: str,
        update: Callable[[PendingAction], None],
        cancellation: Optional[CancellationToken],
    ) -> PendingAction:
        def apply(state: AgentState) -> PendingAction:
            action = state.find_action(action_id)
            if action is None:
                raise PendingActionNotFoundError(
                    action_id,
                    details={"conversation_id": conversation_id, "agent_type": tag_value(agent_type)},
                )
            update(action)
            return action

        return await self._mutate(conversation_id, agent_type, apply, cancellation)

    async def confirm_action(
        self,
        conversation_id: str,
        agent_type: Any,
        action_id: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> PendingAction:
        """
        Confirm a pending action.

        Raises:
            PendingActionNotFoundError: Unknown action id
            InvalidStateTransitionError: Action is not pending or has expired
        """
        return await self._update_action(
            conversation_id, agent_type, action_id,
            lambda action: action.confirm(self._clock()),
            cancellation,
        )

    async def reject_action(
        self,
        conversation_id: str,
        agent_type: Any,
        action_id: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> PendingAction:
        return await self._update_action(
            conversation_id, agent_type, action_id,
            lambda action: action.reject(self._clock()),
            cancellation,
        )

    async def mark_action_executed(
        self,
        conversation_id: str,
        agent_type: Any,
        action_id: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> PendingAction:
        return await self._update_action(
            conversation_id, agent_type, action_id,
            lambda action: action.mark_executed(),
            cancellation,
        )

    async def get_pending_actions(
        self,
        conversation_id: str,
        agent_type: Any,
        include_resolved: bool = False,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[PendingAction]:
        """
        Actions still awaiting confirmation (not expired), or every action
        when include_resolved is set.
        """
        state = await self.get_agent_state(conversation_id, agent_type, cancellation)
        if include_resolved:
            return list(state.pending_actions)
        now = self._clock()
        return [
            action for action in state.pending_actions
            if action.effective_status(now) == PendingActionStatus.PENDING
        ]

    async def expire_pending_actions(
        self,
        conversation_id: str,
        agent_type: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> int:
        """Persist EXPIRED on every pending action past its deadline."""
        def expire(state: AgentState) -> int:
            now = self._clock()
            expired = 0
            for action in state.pending_actions:
                if action.status == PendingActionStatus.PENDING and action.is_expired_at(now):
                    action.expire(now)
                    expired += 1
            return expired

        expired = await self._mutate(conversation_id, agent_type, expire, cancellation)
        if expired:
            logger.info(f"Expired {expired} pending action(s) for {tag_value(agent_type)}")
        return expired
