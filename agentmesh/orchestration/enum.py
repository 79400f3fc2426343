"""
Orchestration Enumerations

Version: 1.0.0
"""

from enum import Enum

from .constants import (
    OUTCOME_COMPLETED,
    OUTCOME_FAILED,
    OUTCOME_CANCELLED,
    OUTCOME_REJECTED,
    TASK_STATUS_SUCCEEDED,
    TASK_STATUS_FAILED,
    TASK_STATUS_TIMED_OUT,
    TASK_STATUS_CANCELLED,
    TASK_STATUS_AWAITING_INPUT,
    TASK_STATUS_SKIPPED,
)


class OrchestrationOutcome(str, Enum):
    """
    Terminal outcome of one request.

    COMPLETED: every critical task succeeded
    FAILED: a critical task failed (whatever completed is still returned)
    CANCELLED: the cancellation signal was observed
    REJECTED: planning or validation failed; nothing was dispatched
    """
    COMPLETED = OUTCOME_COMPLETED
    FAILED = OUTCOME_FAILED
    CANCELLED = OUTCOME_CANCELLED
    REJECTED = OUTCOME_REJECTED


class TaskStatus(str, Enum):
    """Per-task result in the orchestration report."""
    SUCCEEDED = TASK_STATUS_SUCCEEDED
    FAILED = TASK_STATUS_FAILED
    TIMED_OUT = TASK_STATUS_TIMED_OUT
    CANCELLED = TASK_STATUS_CANCELLED
    AWAITING_INPUT = TASK_STATUS_AWAITING_INPUT
    SKIPPED = TASK_STATUS_SKIPPED

    @property
    def was_dispatched(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.TIMED_OUT)
