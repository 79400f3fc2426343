"""
Parallel Pattern.

All tasks are dispatched concurrently, bounded by max_concurrency, and all
are awaited. A critical failure flips the overall outcome but never
cancels siblings that are already running.
"""

from typing import Sequence

from agentmesh.agents.spec import AgentTask
from ..enum import TaskStatus
from ..spec import RunContext
from .base_pattern import BasePattern, PatternOutcome


class ParallelPattern(BasePattern):

    async def execute(self, tasks: Sequence[AgentTask], run: RunContext) -> PatternOutcome:
        if run.cancellation.is_cancelled:
            results = self._cancelled_remaining(tasks)
            return PatternOutcome(results=results, all_results=list(results), cancelled=True)

        results = await self._dispatch_concurrently(tasks, run)
        await self._publish_previous_results(run, results)

        return PatternOutcome(
            results=results,
            all_results=list(results),
            rounds=1,
            cancelled=any(r.status == TaskStatus.CANCELLED for r in results),
            aborted=any(r.failed and r.is_critical for r in results),
        )
