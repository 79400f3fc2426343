"""
Exceptions for Agents Subsystem.

This module defines all exception classes raised at the capability agent
boundary: registration and lookup.
"""

from typing import Any, Dict, List, Optional

from .constants import AGENT_NOT_REGISTERED_ERROR, DUPLICATE_AGENT_ERROR


class AgentError(Exception):
    """
    Base exception for all agent-related errors.

    Attributes:
        message: Error message
        details: Additional error details
        retryable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


class AgentNotRegisteredError(AgentError):
    """Raised when no capability agent is registered for an agent type."""

    def __init__(self, agent_type: str, registered: Optional[List[str]] = None):
        super().__init__(
            AGENT_NOT_REGISTERED_ERROR.format(AGENT_TYPE=agent_type),
            details={"agent_type": agent_type, "registered": registered or []},
        )
        self.agent_type = agent_type


class DuplicateAgentError(AgentError):
    """Raised when registering a second agent for the same agent type."""

    def __init__(self, agent_type: str):
        super().__init__(
            DUPLICATE_AGENT_ERROR.format(AGENT_TYPE=agent_type),
            details={"agent_type": agent_type},
        )
        self.agent_type = agent_type
