"""
State Exceptions Module.

This module defines all custom exceptions used throughout the state subsystem.
Read-side failures (missing or undecodable values) are not exceptions: the
store reports them as misses. These exceptions cover write failures and
invalid state-machine transitions.
"""

from typing import Any, Dict, List, Optional

from agentmesh.utils.cancellation import OperationCancelledError  # noqa: F401


class StateError(Exception):
    """Base exception for all state-related errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        parts = [self.message]
        if self.error_code:
            parts.insert(0, f"[{self.error_code}]")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class StateStoreError(StateError):
    """Raised when a state store backend fails to complete an operation."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        all_details = details or {}
        if key:
            all_details["key"] = key
        super().__init__(
            message,
            error_code="STATE_STORE_ERROR",
            details=all_details,
        )
        self.key = key


class StateSerializationError(StateStoreError):
    """Raised when a value cannot be serialized for storage."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Cannot serialize value for key '{key}': {reason}", key=key)
        self.error_code = "STATE_SERIALIZATION_ERROR"


class UnknownBackendError(StateError):
    """Raised when a state store backend name is not registered."""

    def __init__(self, message: str, backend: str, available: Optional[List[str]] = None):
        super().__init__(
            message,
            error_code="UNKNOWN_BACKEND",
            details={"backend": backend, "available": available or []},
        )
        self.backend = backend


class InvalidStateTransitionError(StateError):
    """Raised when a workflow or pending action is moved to a status it cannot reach."""

    def __init__(
        self,
        message: str,
        current_state: str,
        target_state: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        all_details = details or {}
        all_details["current_state"] = current_state
        all_details["target_state"] = target_state
        super().__init__(
            message,
            error_code="INVALID_STATE_TRANSITION",
            details=all_details,
        )
        self.current_state = current_state
        self.target_state = target_state


class PendingActionNotFoundError(StateError):
    """Raised when a pending action id is not known for an agent."""

    def __init__(self, action_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Pending action not found: {action_id}",
            error_code="PENDING_ACTION_NOT_FOUND",
            details=details,
        )
        self.action_id = action_id


class WorkflowNotStartedError(StateError):
    """Raised when a workflow operation is attempted with no current workflow."""

    def __init__(self, conversation_id: str, agent_type: str):
        super().__init__(
            f"No workflow in progress for agent '{agent_type}' in conversation '{conversation_id}'",
            error_code="WORKFLOW_NOT_STARTED",
            details={"conversation_id": conversation_id, "agent_type": agent_type},
        )


class InvalidConversationIdError(StateError):
    """Raised when a conversation id is empty or contains a reserved key character."""

    def __init__(self, conversation_id: Any, reason: str):
        super().__init__(
            f"Invalid conversation id {conversation_id!r}: {reason}",
            error_code="INVALID_CONVERSATION_ID",
            details={"conversation_id": conversation_id},
        )
        self.conversation_id = conversation_id
