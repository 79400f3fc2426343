"""
Task and Response Contract.

The stable task-in / response-out contract between the orchestrator and
every capability agent, plus the execution plan produced by the planner.
"""

import uuid
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import DEFAULT_TASK_PRIORITY, METADATA_FOLLOW_UP_PROMPT, METADATA_MISSING_FIELDS
from ..enum import AgentType, ExecutionPattern


def _squash(key: str) -> str:
    return key.replace("_", "").replace("-", "").lower()


def _normalize_keys(data: Mapping[str, Any], fields: Dict[str, str]) -> Dict[str, Any]:
    """Map PascalCase / camelCase / snake_case keys onto model field names."""
    normalized = {}
    for key, value in data.items():
        name = fields.get(_squash(str(key)))
        if name is not None:
            normalized[name] = value
    return normalized


class AgentTask(BaseModel):
    """
    One unit of work for one capability agent.

    Immutable once created; refinement produces a copy via refine().

    Attributes:
        task_id: Unique identifier
        agent_type: Capability kind that handles the task
        description: What the agent should do
        parameters: String-keyed inputs
        is_critical: A failure aborts remaining sequential dispatch
        priority: Planner-assigned priority (informational)
        conversation_id: Owning conversation
        timeout_seconds: Per-task timeout override
    """
    model_config = ConfigDict(frozen=True)

    task_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    agent_type: AgentType
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    is_critical: bool = False
    priority: int = DEFAULT_TASK_PRIORITY
    conversation_id: Optional[str] = None
    timeout_seconds: Optional[float] = Field(default=None, gt=0)

    @field_validator("agent_type", mode="before")
    @classmethod
    def _parse_agent_type(cls, value: Any) -> AgentType:
        return AgentType.parse(value)

    def refine(self, description: Optional[str] = None, **parameters: Any) -> 'AgentTask':
        """Copy of this task with extra parameters (and optionally a new description)."""
        update: Dict[str, Any] = {"parameters": {**self.parameters, **parameters}}
        if description is not None:
            update["description"] = description
        return self.model_copy(update=update)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], conversation_id: Optional[str] = None) -> 'AgentTask':
        values = _normalize_keys(data, _TASK_FIELDS)
        if conversation_id and not values.get("conversation_id"):
            values["conversation_id"] = conversation_id
        return cls(**values)


_TASK_FIELDS = {_squash(name): name for name in AgentTask.model_fields}


class AgentResponse(BaseModel):
    """
    Result of one dispatched task, produced by a capability agent.

    Domain fields (is_approved, is_within_budget, compliance_score,
    estimated_cost) are optional and only filled by agents that own them.
    """
    task_id: str
    agent_type: AgentType
    content: str = ""
    success: bool = True
    metadata: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    execution_time_ms: float = Field(default=0.0, ge=0)
    tools_invoked: List[str] = Field(default_factory=list)

    # Domain fields
    is_approved: Optional[bool] = None
    is_within_budget: Optional[bool] = None
    compliance_score: Optional[float] = None
    estimated_cost: Optional[float] = None

    @field_validator("agent_type", mode="before")
    @classmethod
    def _parse_agent_type(cls, value: Any) -> AgentType:
        return AgentType.parse(value)

    @classmethod
    def failure(
        cls,
        task: AgentTask,
        error: str,
        execution_time_ms: float = 0.0,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> 'AgentResponse':
        """Failed response on behalf of an agent that raised, timed out or was skipped."""
        return cls(
            task_id=task.task_id,
            agent_type=task.agent_type,
            success=False,
            errors=[error],
            execution_time_ms=execution_time_ms,
            metadata=metadata or {},
        )

    @property
    def approves(self) -> bool:
        """Succeeded without an explicit compliance or budget objection."""
        return self.success and self.is_approved is not False and self.is_within_budget is not False

    @property
    def missing_fields(self) -> List[str]:
        value = self.metadata.get(METADATA_MISSING_FIELDS) or []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]

    @property
    def follow_up_prompt(self) -> Optional[str]:
        """Agent-written question for the user, if it set one."""
        value = self.metadata.get(METADATA_FOLLOW_UP_PROMPT)
        return str(value) if value else None


class ExecutionPlan(BaseModel):
    """
    Planner output: the tasks to run and how to dispatch them.

    Consumed exactly once by the orchestrator.
    """
    primary_intent: str = ""
    tasks: List[AgentTask] = Field(default_factory=list)
    execution_pattern: ExecutionPattern = ExecutionPattern.SEQUENTIAL
    estimated_time_seconds: float = 0.0
    notes: Optional[str] = None

    @field_validator("execution_pattern", mode="before")
    @classmethod
    def _parse_pattern(cls, value: Any) -> ExecutionPattern:
        return ExecutionPattern.parse(value)

    @property
    def agent_types(self) -> List[AgentType]:
        seen: List[AgentType] = []
        for task in self.tasks:
            if task.agent_type not in seen:
                seen.append(task.agent_type)
        return seen

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], conversation_id: Optional[str] = None) -> 'ExecutionPlan':
        """
        Parse raw planner output with case-insensitive keys and names.

        Raises:
            ValueError: If the mapping does not describe a plan
        """
        values = _normalize_keys(data, _PLAN_FIELDS)
        raw_tasks = values.pop("tasks", None) or []
        if not isinstance(raw_tasks, list):
            raise ValueError("Plan 'tasks' must be a list")
        tasks = []
        for task in raw_tasks:
            if isinstance(task, AgentTask):
                tasks.append(task)
            elif isinstance(task, Mapping):
                tasks.append(AgentTask.from_mapping(task, conversation_id))
            else:
                raise ValueError(f"Plan task must be a mapping, got {type(task).__name__}")
        values["tasks"] = tasks
        return cls(**values)


_PLAN_FIELDS = {_squash(name): name for name in ExecutionPlan.model_fields}
