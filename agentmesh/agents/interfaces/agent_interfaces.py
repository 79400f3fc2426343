"""
Interfaces for Agents Subsystem.

The two external boundaries the orchestration core consumes:

- ICapabilityAgent: uniform task-in / response-out executor for one domain
- IPlanner: opaque (possibly nondeterministic) request -> plan oracle

The orchestrator never special-cases an AgentType beyond routing, and never
inspects how a plan was produced.
"""

from __future__ import annotations
from typing import (
    Any,
    Dict,
    Mapping,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
    TYPE_CHECKING,
)

if TYPE_CHECKING:
    from agentmesh.state.shared_memory import SharedMemoryHandle
    from agentmesh.utils.cancellation import CancellationToken
    from ..enum import AgentType
    from ..spec import AgentTask, AgentResponse, ExecutionPlan


@runtime_checkable
class ICapabilityAgent(Protocol):
    """
    Capability Agent Interface.

    Every capability agent, regardless of domain, implements exactly this
    signature. Agents may additionally expose ``required_parameters`` (a
    sequence of parameter names); tasks missing any of them are held back
    and reported as a follow-up instead of being dispatched.

    Example:
        class ComplianceAgent(BaseCapabilityAgent):
            agent_type = AgentType.COMPLIANCE
            required_parameters = ("resource_id",)

            async def _execute(self, task, memory, cancellation):
                findings = await self.scanner.scan(task.parameters["resource_id"])
                await memory.set_own("findings", findings)
                return self.respond(task, content=summarize(findings), is_approved=not findings)
    """

    @property
    def agent_type(self) -> 'AgentType':
        ...

    async def process(
        self,
        task: 'AgentTask',
        memory: 'SharedMemoryHandle',
        cancellation: 'CancellationToken',
    ) -> 'AgentResponse':
        """
        Execute one task.

        Args:
            task: The task to execute (immutable)
            memory: Conversation-scoped Shared Memory view
            cancellation: Signal to observe at suspension points

        Returns:
            AgentResponse for task.task_id
        """
        ...


@runtime_checkable
class IPlanner(Protocol):
    """
    Planner Interface.

    Turns a request into an ExecutionPlan. A raw mapping is also accepted
    and parsed with case-insensitive keys and names.
    """

    async def plan(
        self,
        message: str,
        conversation_id: str,
        context: Dict[str, Any],
        cancellation: 'CancellationToken',
    ) -> Union['ExecutionPlan', Mapping[str, Any]]:
        ...


def required_parameters_of(agent: Any) -> Sequence[str]:
    """Declared required parameters of an agent, or none."""
    return tuple(getattr(agent, "required_parameters", None) or ())
