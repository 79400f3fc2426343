"""
Base Execution Pattern.

A pattern executor takes the tasks that passed follow-up detection and
decides when each is dispatched. It reports results in original task
order, whatever the completion order was.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from agentmesh.agents.spec import AgentTask
from agentmesh.state import StateError
from agentmesh.state.shared_memory import PREVIOUS_RESULTS_KEY
from agentmesh.utils.cancellation import OperationCancelledError
from ..constants import CANCELLED_ERROR
from ..dispatcher import TaskDispatcher, response_summary
from ..enum import TaskStatus
from ..spec import RunContext, TaskResult

logger = logging.getLogger(__name__)


@dataclass
class PatternOutcome:
    """
    Attributes:
        results: One entry per task in original order (final round for
            collaborative runs)
        all_results: Every dispatch attempt across all rounds
        rounds: Number of rounds executed
        cancelled: The cancellation signal was observed
        aborted: Dispatch stopped early because a critical task failed
    """
    results: List[TaskResult] = field(default_factory=list)
    all_results: List[TaskResult] = field(default_factory=list)
    rounds: int = 0
    cancelled: bool = False
    aborted: bool = False

    @property
    def dispatch_count(self) -> int:
        return sum(1 for r in self.all_results if r.dispatched)


class BasePattern(ABC):
    """Common plumbing for pattern executors."""

    def __init__(self, dispatcher: TaskDispatcher, max_concurrency: int = 5):
        self._dispatcher = dispatcher
        self._max_concurrency = max_concurrency

    @abstractmethod
    async def execute(self, tasks: Sequence[AgentTask], run: RunContext) -> PatternOutcome:
        ...

    async def _dispatch_concurrently(
        self,
        tasks: Sequence[AgentTask],
        run: RunContext,
        round: Optional[int] = None,
    ) -> List[TaskResult]:
        """Dispatch tasks with bounded concurrency; results in task order."""
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run_one(task: AgentTask) -> TaskResult:
            async with semaphore:
                return await self._dispatcher.dispatch(task, run, round=round)

        gathered = await asyncio.gather(*[run_one(t) for t in tasks], return_exceptions=True)

        results: List[TaskResult] = []
        for task, outcome in zip(tasks, gathered):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error(f"Dispatch of task {task.task_id} failed unexpectedly: {outcome}")
                results.append(TaskResult.not_dispatched(task, TaskStatus.FAILED, str(outcome), round))
            else:
                results.append(outcome)
        return results

    async def _publish_previous_results(self, run: RunContext, results: List[TaskResult]) -> None:
        """Make completed results of this run visible under orchestration:previous_results."""
        summaries = [response_summary(r.response) for r in results if r.response is not None]
        try:
            await self._dispatcher.shared_memory.set(
                run.conversation_id, PREVIOUS_RESULTS_KEY, summaries, cancellation=run.cancellation
            )
        except OperationCancelledError:
            logger.debug("Skipped publishing previous results: run cancelled")
        except StateError as e:
            logger.warning(f"Could not publish previous results: {e}")

    @staticmethod
    def _cancelled_remaining(tasks: Sequence[AgentTask], round: Optional[int] = None) -> List[TaskResult]:
        return [
            TaskResult.not_dispatched(task, TaskStatus.CANCELLED, CANCELLED_ERROR, round)
            for task in tasks
        ]
