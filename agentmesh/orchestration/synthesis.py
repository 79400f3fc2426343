"""
Response Synthesis.

Merges per-agent results into the pieces of an OrchestratedResponse:

- final text: the content of every dispatched response, failed ones
  included, passed to a pluggable IResponseSynthesizer, falling back to
  plain concatenation when it raises; one response is returned as-is, several
  are rendered as "**<Agent> Agent:**" sections in task order
- metadata: merged with each key namespaced as <agent_type>.<key>
- errors and warnings: concatenated in task order, errors prefixed with
  the agent type
- quick replies: looked up from the configured intent table
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from agentmesh.agents.spec import AgentResponse, ExecutionPlan
from agentmesh.config import Defaults
from agentmesh.utils.cancellation import CancellationToken
from .constants import (
    AGENT_SECTION_TEMPLATE,
    SECTION_SEPARATOR,
    SYNTHESIS_DEGRADED_WARNING,
    TASK_ERROR_TEMPLATE,
)
from .enum import TaskStatus
from .exceptions import SynthesisError
from .interfaces import IResponseSynthesizer
from .spec import TaskResult

logger = logging.getLogger(__name__)


def concatenate_responses(responses: Sequence[AgentResponse]) -> str:
    """Plain merge of agent contents in the given order."""
    contents = [r for r in responses if r.content]
    if not contents:
        return ""
    if len(contents) == 1:
        return contents[0].content
    return SECTION_SEPARATOR.join(
        AGENT_SECTION_TEMPLATE.format(AGENT_NAME=r.agent_type.display_name, CONTENT=r.content)
        for r in contents
    )


class ConcatenatingSynthesizer:
    """Default synthesizer: concatenation, no external calls."""

    async def synthesize(
        self,
        message: str,
        plan: ExecutionPlan,
        responses: List[AgentResponse],
        cancellation: CancellationToken,
    ) -> str:
        return concatenate_responses(responses)


@dataclass
class Synthesis:
    final_response: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    quick_replies: List[str] = field(default_factory=list)
    degraded: bool = False


class ResponseAggregator:
    """
    Builds a Synthesis from task results.

    Args:
        synthesizer: Text synthesizer (default: concatenation)
        quick_replies: Intent fragment -> suggested replies (settings defaults)
    """

    def __init__(
        self,
        synthesizer: Optional[IResponseSynthesizer] = None,
        quick_replies: Optional[Mapping[str, List[str]]] = None,
    ):
        self._synthesizer = synthesizer or ConcatenatingSynthesizer()
        self._quick_replies = dict(quick_replies if quick_replies is not None else Defaults.QUICK_REPLIES)

    async def aggregate(
        self,
        message: str,
        plan: ExecutionPlan,
        results: Sequence[TaskResult],
        cancellation: CancellationToken,
    ) -> Synthesis:
        """
        Raises:
            SynthesisError: If even the concatenation fallback fails
        """
        responses = [r.response for r in results if r.response is not None]
        contributing = [r for r in responses if r.content]

        synthesis = Synthesis(
            metadata=self.merge_metadata(responses),
            errors=self.collect_errors(results),
            warnings=[w for r in responses for w in r.warnings],
            quick_replies=self.quick_replies_for(plan.primary_intent),
        )

        try:
            synthesis.final_response = await self._synthesizer.synthesize(
                message, plan, contributing, cancellation
            )
        except Exception as e:
            logger.warning(f"Synthesizer failed, falling back to concatenation: {e}")
            synthesis.degraded = True
            synthesis.warnings.append(SYNTHESIS_DEGRADED_WARNING)
            try:
                synthesis.final_response = concatenate_responses(contributing)
            except Exception as fallback_error:
                raise SynthesisError(
                    f"Could not build a response: {fallback_error}",
                    details={"synthesizer_error": str(e)},
                ) from fallback_error

        return synthesis

    @staticmethod
    def merge_metadata(responses: Sequence[AgentResponse]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for response in responses:
            for key, value in response.metadata.items():
                merged[f"{response.agent_type.value}.{key}"] = value
        return merged

    @staticmethod
    def collect_errors(results: Sequence[TaskResult]) -> List[str]:
        errors: List[str] = []
        for result in results:
            if result.succeeded or result.status == TaskStatus.AWAITING_INPUT:
                continue
            for error in result.errors:
                errors.append(TASK_ERROR_TEMPLATE.format(AGENT_TYPE=result.agent_type.value, ERROR=error))
        return errors

    def quick_replies_for(self, intent: str) -> List[str]:
        text = (intent or "").lower()
        for fragment, replies in self._quick_replies.items():
            if fragment in text:
                return list(replies)
        return []
