"""
State Layer.

Pluggable key-value State Store plus the managers built on it:

- ConversationStateManager: history, variables and status per conversation
- AgentStateManager: per-(conversation, agent) working state, workflows
  and pending confirmable actions
- SharedMemory: cross-agent blackboard and bounded event log

Version: 1.0.0
"""

from .enum import ConversationStatus, WorkflowStatus, PendingActionStatus
from .exceptions import (
    StateError,
    StateStoreError,
    StateSerializationError,
    UnknownBackendError,
    InvalidStateTransitionError,
    PendingActionNotFoundError,
    WorkflowNotStartedError,
    InvalidConversationIdError,
    OperationCancelledError,
)
from .interfaces import IStateStore
from .keys import (
    agent_state_key,
    conversation_key,
    events_key,
    shared_key,
    validate_conversation_id,
)
from .locks import KeyedLock
from .spec import (
    AgentState,
    ConversationState,
    ConversationSummary,
    Message,
    PendingAction,
    SharedMemoryEvent,
    ToolExecutionResult,
    WorkflowState,
)
from .store import BaseStateStore, InMemoryStateStore, StoreFactory, glob_to_regex
from .conversation import ConversationStateManager
from .agent import AgentStateManager
from .shared_memory import SharedMemory, SharedMemoryHandle, agent_key

__all__ = [
    # Enums
    "ConversationStatus",
    "WorkflowStatus",
    "PendingActionStatus",
    # Exceptions
    "StateError",
    "StateStoreError",
    "StateSerializationError",
    "UnknownBackendError",
    "InvalidStateTransitionError",
    "PendingActionNotFoundError",
    "WorkflowNotStartedError",
    "InvalidConversationIdError",
    "OperationCancelledError",
    # Store
    "IStateStore",
    "BaseStateStore",
    "InMemoryStateStore",
    "StoreFactory",
    "glob_to_regex",
    "KeyedLock",
    # Keys
    "conversation_key",
    "agent_state_key",
    "shared_key",
    "events_key",
    "validate_conversation_id",
    "agent_key",
    # Models
    "AgentState",
    "ConversationState",
    "ConversationSummary",
    "Message",
    "PendingAction",
    "SharedMemoryEvent",
    "ToolExecutionResult",
    "WorkflowState",
    # Managers
    "ConversationStateManager",
    "AgentStateManager",
    "SharedMemory",
    "SharedMemoryHandle",
]
