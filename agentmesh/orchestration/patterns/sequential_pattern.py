"""
Sequential Pattern.

Tasks run strictly in list order. Before each task the results gathered so
far are published to the blackboard, so every task sees its predecessors'
output. A failed critical task stops dispatch; the remaining tasks are
reported as skipped.
"""

import logging
from typing import Sequence

from agentmesh.agents.spec import AgentTask
from ..enum import TaskStatus
from ..spec import RunContext, TaskResult
from .base_pattern import BasePattern, PatternOutcome

logger = logging.getLogger(__name__)


class SequentialPattern(BasePattern):

    async def execute(self, tasks: Sequence[AgentTask], run: RunContext) -> PatternOutcome:
        outcome = PatternOutcome(rounds=1)

        for index, task in enumerate(tasks):
            if run.cancellation.is_cancelled:
                outcome.cancelled = True
                outcome.results.extend(self._cancelled_remaining(tasks[index:]))
                break

            await self._publish_previous_results(run, outcome.results)
            result = await self._dispatcher.dispatch(task, run)
            outcome.results.append(result)

            if result.status == TaskStatus.CANCELLED:
                outcome.cancelled = True
                outcome.results.extend(self._cancelled_remaining(tasks[index + 1:]))
                break

            if result.failed and task.is_critical:
                logger.warning(
                    f"Critical task {task.task_id} ({task.agent_type.value}) failed; "
                    f"skipping {len(tasks) - index - 1} remaining task(s)"
                )
                outcome.aborted = True
                outcome.results.extend(
                    TaskResult.not_dispatched(t, TaskStatus.SKIPPED, f"Skipped after critical failure of {task.task_id}")
                    for t in tasks[index + 1:]
                )
                break

        outcome.all_results = list(outcome.results)
        return outcome
