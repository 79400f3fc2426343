"""
Base Capability Agent.

Optional base class for capability agents. Subclasses set ``agent_type``
(and optionally ``required_parameters``) and implement ``_execute``; the
base fills in execution timing and the response's task/agent identity.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Sequence

from agentmesh.state.shared_memory import SharedMemoryHandle
from agentmesh.utils.cancellation import CancellationToken
from ..enum import AgentType
from ..spec import AgentResponse, AgentTask


class BaseCapabilityAgent(ABC):
    """
    Template for ICapabilityAgent implementations.

    Example:
        class CostAgent(BaseCapabilityAgent):
            agent_type = AgentType.COST_MANAGEMENT
            required_parameters = ("monthly_budget",)

            async def _execute(self, task, memory, cancellation):
                estimate = await self.pricing.estimate(task.parameters)
                return self.respond(
                    task,
                    content=f"Estimated ${estimate:.2f}/month",
                    estimated_cost=estimate,
                    is_within_budget=estimate <= task.parameters["monthly_budget"],
                )
    """

    agent_type: ClassVar[AgentType]
    required_parameters: ClassVar[Sequence[str]] = ()

    async def process(
        self,
        task: AgentTask,
        memory: SharedMemoryHandle,
        cancellation: CancellationToken,
    ) -> AgentResponse:
        cancellation.raise_if_cancelled()
        start = time.perf_counter()
        response = await self._execute(task, memory, cancellation)
        if not response.execution_time_ms:
            response.execution_time_ms = (time.perf_counter() - start) * 1000
        return response

    @abstractmethod
    async def _execute(
        self,
        task: AgentTask,
        memory: SharedMemoryHandle,
        cancellation: CancellationToken,
    ) -> AgentResponse:
        ...

    def respond(self, task: AgentTask, content: str = "", success: bool = True, **fields: Any) -> AgentResponse:
        return AgentResponse(
            task_id=task.task_id,
            agent_type=self.agent_type,
            content=content,
            success=success,
            **fields,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(agent_type={self.agent_type.value!r})"
