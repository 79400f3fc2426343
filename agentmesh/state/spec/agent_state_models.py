"""
Agent State Models.

Per-(conversation, agent) working state: data bag, memoized tool results,
the agent-internal workflow state machine and pending confirmable actions.

Workflow transitions:
    NOT_STARTED -> IN_PROGRESS
    IN_PROGRESS -> IN_PROGRESS (advance) | AWAITING_CONFIRMATION | COMPLETED
    AWAITING_CONFIRMATION -> IN_PROGRESS (advance) | COMPLETED
    any non-terminal -> FAILED | CANCELLED

Pending action transitions:
    PENDING -> CONFIRMED -> EXECUTED
    PENDING -> REJECTED
    PENDING -> EXPIRED

Version: 1.0.0
"""

import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, Field, model_validator

from agentmesh.utils.clock import utc_now
from ..constants import INVALID_TRANSITION_ERROR
from ..enum import PendingActionStatus, WorkflowStatus
from ..exceptions import InvalidStateTransitionError


_WORKFLOW_TRANSITIONS: Dict[WorkflowStatus, FrozenSet[WorkflowStatus]] = {
    WorkflowStatus.NOT_STARTED: frozenset({
        WorkflowStatus.IN_PROGRESS,
        WorkflowStatus.FAILED,
        WorkflowStatus.CANCELLED,
    }),
    WorkflowStatus.IN_PROGRESS: frozenset({
        WorkflowStatus.IN_PROGRESS,
        WorkflowStatus.AWAITING_CONFIRMATION,
        WorkflowStatus.COMPLETED,
        WorkflowStatus.FAILED,
        WorkflowStatus.CANCELLED,
    }),
    WorkflowStatus.AWAITING_CONFIRMATION: frozenset({
        WorkflowStatus.IN_PROGRESS,
        WorkflowStatus.COMPLETED,
        WorkflowStatus.FAILED,
        WorkflowStatus.CANCELLED,
    }),
    WorkflowStatus.COMPLETED: frozenset(),
    WorkflowStatus.FAILED: frozenset(),
    WorkflowStatus.CANCELLED: frozenset(),
}


class ToolExecutionResult(BaseModel):
    """Memoized outcome of a named tool invocation."""
    tool_name: str
    success: bool = True
    result: Any = None
    error: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    executed_at: datetime = Field(default_factory=utc_now)
    duration_ms: float = 0.0


class WorkflowState(BaseModel):
    """Agent-internal multi-step workflow. Terminal statuses are final."""
    workflow_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: Optional[str] = None
    current_step: Optional[str] = None
    step_index: int = Field(default=0, ge=0)
    total_steps: int = Field(default=0, ge=0)
    status: WorkflowStatus = WorkflowStatus.NOT_STARTED
    context: Dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode='after')
    def _check_step_bounds(self) -> 'WorkflowState':
        if self.step_index > self.total_steps:
            raise ValueError(
                f"step_index ({self.step_index}) cannot exceed total_steps ({self.total_steps})"
            )
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def can_transition_to(self, target: WorkflowStatus) -> bool:
        return target in _WORKFLOW_TRANSITIONS[self.status]

    def transition_to(self, target: WorkflowStatus) -> None:
        if not self.can_transition_to(target):
            raise InvalidStateTransitionError(
                INVALID_TRANSITION_ERROR.format(
                    ENTITY=f"workflow {self.workflow_id}",
                    CURRENT=self.status.value,
                    TARGET=target.value,
                ),
                current_state=self.status.value,
                target_state=target.value,
            )
        self.status = target
        self.updated_at = utc_now()

    def advance(self, step_name: Optional[str] = None) -> None:
        """Move to the next step, staying within total_steps."""
        if self.step_index + 1 > self.total_steps:
            raise InvalidStateTransitionError(
                f"Workflow {self.workflow_id} has no step after {self.step_index}/{self.total_steps}",
                current_state=self.status.value,
                target_state=WorkflowStatus.IN_PROGRESS.value,
                details={"step_index": self.step_index, "total_steps": self.total_steps},
            )
        self.transition_to(WorkflowStatus.IN_PROGRESS)
        self.step_index += 1
        self.current_step = step_name

    def complete(self) -> None:
        self.transition_to(WorkflowStatus.COMPLETED)
        self.step_index = self.total_steps


class PendingAction(BaseModel):
    """
    A proposed change awaiting explicit confirmation.

    Expiry is derived from expires_at; the stored status only moves to
    EXPIRED when the manager sweeps expired actions.
    """
    action_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    action_type: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
    status: PendingActionStatus = PendingActionStatus.PENDING

    @model_validator(mode='after')
    def _check_expiry(self) -> 'PendingAction':
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be later than created_at")
        return self

    @classmethod
    def create(
        cls,
        action_type: str,
        description: str = "",
        ttl: timedelta = timedelta(hours=1),
        parameters: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> 'PendingAction':
        created = now or utc_now()
        return cls(
            action_type=action_type,
            description=description,
            parameters=parameters or {},
            created_at=created,
            expires_at=created + ttl,
        )

    def is_expired_at(self, now: datetime) -> bool:
        return now > self.expires_at

    @property
    def is_expired(self) -> bool:
        return self.is_expired_at(utc_now())

    @property
    def is_resolved(self) -> bool:
        return self.status != PendingActionStatus.PENDING

    def effective_status(self, now: Optional[datetime] = None) -> PendingActionStatus:
        """Stored status, or EXPIRED for a pending action past its deadline."""
        if self.status == PendingActionStatus.PENDING and self.is_expired_at(now or utc_now()):
            return PendingActionStatus.EXPIRED
        return self.status

    def _transition(
        self,
        allowed_from: PendingActionStatus,
        target: PendingActionStatus,
        now: Optional[datetime] = None,
    ) -> None:
        current = self.effective_status(now)
        if current != allowed_from:
            raise InvalidStateTransitionError(
                INVALID_TRANSITION_ERROR.format(
                    ENTITY=f"action {self.action_id}",
                    CURRENT=current.value,
                    TARGET=target.value,
                ),
                current_state=current.value,
                target_state=target.value,
            )
        self.status = target

    def confirm(self, now: Optional[datetime] = None) -> None:
        self._transition(PendingActionStatus.PENDING, PendingActionStatus.CONFIRMED, now)

    def reject(self, now: Optional[datetime] = None) -> None:
        self._transition(PendingActionStatus.PENDING, PendingActionStatus.REJECTED, now)

    def expire(self, now: Optional[datetime] = None) -> None:
        self._transition(PendingActionStatus.EXPIRED, PendingActionStatus.EXPIRED, now)

    def mark_executed(self) -> None:
        self._transition(PendingActionStatus.CONFIRMED, PendingActionStatus.EXECUTED)


class AgentState(BaseModel):
    """Working state of one agent within one conversation."""
    agent_type: str
    conversation_id: str
    data: Dict[str, Any] = Field(default_factory=dict)
    tool_results: Dict[str, ToolExecutionResult] = Field(default_factory=dict)
    current_workflow: Optional[WorkflowState] = None
    pending_actions: List[PendingAction] = Field(default_factory=list)
    last_activity_at: datetime = Field(default_factory=utc_now)

    def touch(self, now: Optional[datetime] = None) -> None:
        self.last_activity_at = now or utc_now()

    def find_action(self, action_id: str) -> Optional[PendingAction]:
        for action in self.pending_actions:
            if action.action_id == action_id:
                return action
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump(mode='json')
