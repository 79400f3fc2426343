"""
Collaborative Pattern.

Agents refine each other's work over a bounded number of rounds. Each round:

1. read: snapshot the agent-owned part of the blackboard (everything
   outside orchestration:*) and the previous round's responses
2. dispatch: run refined copies of every task concurrently; copies carry
   the round number, the peers' latest output and a description extended
   with the peers' feedback
3. write: the dispatcher stores each response on the blackboard

The loop stops when the cap is reached, when a round leaves the agent-owned
blackboard unchanged, when every response approves (succeeded with no
compliance or budget objection), when a critical task fails, or on
cancellation. The reported results are those of the last round.
"""

import logging
from typing import Any, Dict, List, Sequence

from agentmesh.agents.spec import AgentTask
from agentmesh.state import StateError
from agentmesh.state.shared_memory import ORCHESTRATION_NAMESPACE
from agentmesh.state.constants import KEY_SEPARATOR
from agentmesh.utils.cancellation import OperationCancelledError
from ..constants import (
    EVENT_ROUND_COMPLETED,
    FEEDBACK_LINE_TEMPLATE,
    PARAM_PEER_FEEDBACK,
    PARAM_ROUND,
    PREVIOUS_FEEDBACK_TEMPLATE,
)
from ..dispatcher import TaskDispatcher
from ..enum import TaskStatus
from ..spec import RunContext, TaskResult
from .base_pattern import BasePattern, PatternOutcome

logger = logging.getLogger(__name__)

_RESERVED_PREFIXES = (ORCHESTRATION_NAMESPACE + KEY_SEPARATOR,)


class CollaborativePattern(BasePattern):
    """
    Args:
        dispatcher: Task dispatcher
        max_concurrency: Concurrent dispatches within a round
        max_rounds: Round cap (settings, 3)
    """

    def __init__(self, dispatcher: TaskDispatcher, max_concurrency: int = 5, max_rounds: int = 3):
        super().__init__(dispatcher, max_concurrency)
        self._max_rounds = max_rounds

    async def execute(self, tasks: Sequence[AgentTask], run: RunContext) -> PatternOutcome:
        outcome = PatternOutcome()
        previous: List[TaskResult] = []

        for round_number in range(1, self._max_rounds + 1):
            if run.cancellation.is_cancelled:
                outcome.cancelled = True
                break

            before = await self._agent_blackboard(run)
            if before is None:
                outcome.cancelled = True
                break

            refined = [self._refine(task, round_number, previous) for task in tasks]
            results = await self._dispatch_concurrently(refined, run, round=round_number)

            outcome.rounds = round_number
            outcome.results = results
            outcome.all_results.extend(results)
            previous = results

            if any(r.status == TaskStatus.CANCELLED for r in results):
                outcome.cancelled = True
                break
            if any(r.failed and r.is_critical for r in results):
                logger.warning(f"Critical failure in collaboration round {round_number}; stopping")
                outcome.aborted = True
                break

            await self._publish_round(run, round_number, results)

            if all(r.response is not None and r.response.approves for r in results):
                logger.info(f"All agents approved in round {round_number}")
                break

            after = await self._agent_blackboard(run)
            if after is None:
                outcome.cancelled = True
                break
            if after == before:
                logger.info(f"Round {round_number} produced no new shared memory writes; stopping")
                break

        if outcome.cancelled and not outcome.results:
            outcome.results = self._cancelled_remaining(tasks, round=outcome.rounds or None)
        return outcome

    async def _agent_blackboard(self, run: RunContext):
        """Agent-owned blackboard values, or None if the run was cancelled."""
        try:
            return await self._dispatcher.shared_memory.snapshot(
                run.conversation_id,
                exclude_prefixes=_RESERVED_PREFIXES,
                cancellation=run.cancellation,
            )
        except OperationCancelledError:
            return None
        except StateError as e:
            logger.warning(f"Could not read shared memory for collaboration: {e}")
            return {}

    @staticmethod
    def _refine(task: AgentTask, round_number: int, previous: List[TaskResult]) -> AgentTask:
        if not previous:
            return task.refine(**{PARAM_ROUND: round_number})

        peer_feedback: Dict[str, Any] = {}
        lines: List[str] = []
        for result in previous:
            if result.task_id == task.task_id or result.response is None:
                continue
            name = result.agent_type.display_name
            text = result.response.content or "; ".join(result.response.errors)
            peer_feedback[result.agent_type.value] = text
            lines.append(FEEDBACK_LINE_TEMPLATE.format(AGENT_NAME=name, CONTENT=text))

        description = None
        if lines:
            description = PREVIOUS_FEEDBACK_TEMPLATE.format(
                DESCRIPTION=task.description, FEEDBACK="\n".join(lines)
            )
        return task.refine(
            description=description,
            **{PARAM_ROUND: round_number, PARAM_PEER_FEEDBACK: peer_feedback},
        )

    async def _publish_round(self, run: RunContext, round_number: int, results: List[TaskResult]) -> None:
        await self._publish_previous_results(run, results)
        try:
            await self._dispatcher.shared_memory.publish_event(
                run.conversation_id,
                EVENT_ROUND_COMPLETED,
                {
                    "round": round_number,
                    "succeeded": sum(1 for r in results if r.succeeded),
                    "failed": sum(1 for r in results if r.failed),
                },
                cancellation=run.cancellation,
            )
        except OperationCancelledError:
            logger.debug("Skipped round event: run cancelled")
        except StateError as e:
            logger.warning(f"Could not publish collaboration round event: {e}")
