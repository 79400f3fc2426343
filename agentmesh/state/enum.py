"""
State Module Enumerations

Version: 1.0.0
"""

from enum import Enum

from .constants import (
    CONVERSATION_STATUS_ACTIVE,
    CONVERSATION_STATUS_PAUSED,
    CONVERSATION_STATUS_COMPLETED,
    CONVERSATION_STATUS_EXPIRED,
    CONVERSATION_STATUS_ERROR,
    WORKFLOW_STATUS_NOT_STARTED,
    WORKFLOW_STATUS_IN_PROGRESS,
    WORKFLOW_STATUS_AWAITING_CONFIRMATION,
    WORKFLOW_STATUS_COMPLETED,
    WORKFLOW_STATUS_FAILED,
    WORKFLOW_STATUS_CANCELLED,
    ACTION_STATUS_PENDING,
    ACTION_STATUS_CONFIRMED,
    ACTION_STATUS_REJECTED,
    ACTION_STATUS_EXPIRED,
    ACTION_STATUS_EXECUTED,
)


class ConversationStatus(str, Enum):
    """
    Lifecycle of a conversation.

    ACTIVE -> PAUSED -> ACTIVE ... -> COMPLETED | EXPIRED | ERROR
    """
    ACTIVE = CONVERSATION_STATUS_ACTIVE
    PAUSED = CONVERSATION_STATUS_PAUSED
    COMPLETED = CONVERSATION_STATUS_COMPLETED
    EXPIRED = CONVERSATION_STATUS_EXPIRED
    ERROR = CONVERSATION_STATUS_ERROR


class WorkflowStatus(str, Enum):
    """
    Status of an agent-internal workflow.

    COMPLETED, FAILED and CANCELLED are terminal.
    """
    NOT_STARTED = WORKFLOW_STATUS_NOT_STARTED
    IN_PROGRESS = WORKFLOW_STATUS_IN_PROGRESS
    AWAITING_CONFIRMATION = WORKFLOW_STATUS_AWAITING_CONFIRMATION
    COMPLETED = WORKFLOW_STATUS_COMPLETED
    FAILED = WORKFLOW_STATUS_FAILED
    CANCELLED = WORKFLOW_STATUS_CANCELLED

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_WORKFLOW_STATUSES


_TERMINAL_WORKFLOW_STATUSES = frozenset({
    WorkflowStatus.COMPLETED,
    WorkflowStatus.FAILED,
    WorkflowStatus.CANCELLED,
})


class PendingActionStatus(str, Enum):
    """
    Status of an action awaiting user confirmation.

    PENDING -> CONFIRMED -> EXECUTED
    PENDING -> REJECTED
    PENDING -> EXPIRED
    """
    PENDING = ACTION_STATUS_PENDING
    CONFIRMED = ACTION_STATUS_CONFIRMED
    REJECTED = ACTION_STATUS_REJECTED
    EXPIRED = ACTION_STATUS_EXPIRED
    EXECUTED = ACTION_STATUS_EXECUTED
