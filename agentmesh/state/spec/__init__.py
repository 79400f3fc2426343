"""
State Models.

Pydantic models persisted by the state layer.
"""

from .conversation_models import Message, ConversationState, ConversationSummary
from .agent_state_models import (
    AgentState,
    PendingAction,
    ToolExecutionResult,
    WorkflowState,
)
from .shared_memory_models import SharedMemoryEvent

__all__ = [
    "Message",
    "ConversationState",
    "ConversationSummary",
    "AgentState",
    "PendingAction",
    "ToolExecutionResult",
    "WorkflowState",
    "SharedMemoryEvent",
]
