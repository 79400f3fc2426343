"""
Synthesis Interfaces.
"""

from __future__ import annotations
from typing import List, Protocol, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from agentmesh.agents.spec import AgentResponse, ExecutionPlan
    from agentmesh.utils.cancellation import CancellationToken


@runtime_checkable
class IResponseSynthesizer(Protocol):
    """
    Merges per-agent contents into one final response text.

    Implementations may call out to a language model. If one raises, the
    orchestrator falls back to plain concatenation of the agent contents.

    Example:
        class LlmSynthesizer:
            async def synthesize(self, message, plan, responses, cancellation):
                prompt = build_prompt(message, responses)
                return await self.llm.complete(prompt)
    """

    async def synthesize(
        self,
        message: str,
        plan: 'ExecutionPlan',
        responses: List['AgentResponse'],
        cancellation: 'CancellationToken',
    ) -> str:
        """
        Args:
            message: The user's request
            plan: The executed plan
            responses: Dispatched responses with content (failed ones included), in plan order

        Returns:
            Final response text
        """
        ...
