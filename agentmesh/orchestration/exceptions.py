"""
Orchestration Exceptions Module.

Task failures are data (TaskResult / AgentResponse), not exceptions. The
exceptions here cover planning, plan validation and unrecoverable synthesis.
"""

from typing import Any, Dict, List, Optional


class OrchestrationError(Exception):
    """Base exception for all orchestration errors."""

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


class PlanningError(OrchestrationError):
    """Raised when the planner fails or returns something that is not a plan."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="PLANNING_FAILED", details=details)


class PlanValidationError(OrchestrationError):
    """Raised when a plan is empty, names unknown agents or an unsupported pattern."""

    def __init__(self, errors: List[str], details: Optional[Dict[str, Any]] = None):
        all_details = details or {}
        all_details["errors"] = errors
        super().__init__(
            f"Plan validation failed: {'; '.join(errors)}",
            error_code="PLAN_INVALID",
            details=all_details,
        )
        self.errors = errors


class SynthesisError(OrchestrationError):
    """Raised when not even the concatenation fallback can build a response."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="SYNTHESIS_FAILED", details=details)
