"""
Task Dispatcher.

Runs one AgentTask against its capability agent and turns whatever happens
into a TaskResult:

- the agent's own response (success or failure)
- an exception escaping the agent -> failed response
- the per-task timeout -> TIMED_OUT with a failed response
- the run's cancellation signal -> CANCELLED, the in-flight agent call is
  cancelled cooperatively and awaited until it unwinds

After a dispatched task the response is written to the blackboard under
<agent_type>:last_response, a task_completed / task_failed event is
published and the agent's state is touched. State failures during this
bookkeeping are logged and never fail the task.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Dict, Optional

from agentmesh.agents.runtimes import AgentRegistry
from agentmesh.agents.spec import AgentResponse, AgentTask
from agentmesh.config import get_settings
from agentmesh.state import AgentStateManager, SharedMemory, StateError
from agentmesh.state.shared_memory import LAST_RESPONSE_SUFFIX, agent_key
from agentmesh.utils.cancellation import CancellationToken, OperationCancelledError
from agentmesh.utils.logging import metrics_context
from .constants import (
    CANCELLED_ERROR,
    EVENT_TASK_COMPLETED,
    EVENT_TASK_FAILED,
    TIMEOUT_ERROR,
)
from .enum import TaskStatus
from .spec import RunContext, TaskResult

logger = logging.getLogger(__name__)


def response_summary(response: AgentResponse) -> Dict[str, Any]:
    """Blackboard form of a response; stable across identical outputs."""
    return {
        "task_id": response.task_id,
        "agent_type": response.agent_type.value,
        "success": response.success,
        "content": response.content,
        "errors": list(response.errors),
        "metadata": dict(response.metadata),
        "is_approved": response.is_approved,
        "is_within_budget": response.is_within_budget,
    }


async def race_cancellation(work: Awaitable[Any], token: CancellationToken) -> Any:
    """
    Await work unless token is cancelled first.

    On cancellation (or if this coroutine is itself cancelled, e.g. by a
    timeout) the work is cancelled and awaited so it can unwind cleanly.

    Raises:
        OperationCancelledError: If the token fired before work finished
    """
    work_task = asyncio.ensure_future(work)
    watcher = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({work_task, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        watcher.cancel()
        if not work_task.done():
            work_task.cancel()
            await asyncio.wait({work_task})
    if work_task in done:
        return work_task.result()
    raise OperationCancelledError(token.reason)


class TaskDispatcher:
    """
    Dispatches single tasks with timeout, cancellation and bookkeeping.

    Args:
        registry: AgentType -> agent resolution
        shared_memory: Blackboard and event log
        agent_states: Optional agent state manager whose records are touched
        default_timeout_s: Timeout for tasks without timeout_seconds (settings, 120s)
    """

    def __init__(
        self,
        registry: AgentRegistry,
        shared_memory: SharedMemory,
        agent_states: Optional[AgentStateManager] = None,
        default_timeout_s: Optional[float] = None,
    ):
        self._registry = registry
        self._memory = shared_memory
        self._agent_states = agent_states
        self._default_timeout_s = default_timeout_s or get_settings().default_task_timeout_s

    @property
    def shared_memory(self) -> SharedMemory:
        return self._memory

    async def dispatch(
        self,
        task: AgentTask,
        run: RunContext,
        round: Optional[int] = None,
    ) -> TaskResult:
        if run.cancellation.is_cancelled:
            return TaskResult.not_dispatched(task, TaskStatus.CANCELLED, CANCELLED_ERROR, round)

        agent = self._registry.get(task.agent_type)
        token = run.cancellation.child()
        handle = self._memory.handle(run.conversation_id, task.agent_type, token)
        timeout = task.timeout_seconds or self._default_timeout_s
        start = time.perf_counter()

        with metrics_context(
            task_id=task.task_id,
            agent_type=task.agent_type.value,
            conversation_id=run.conversation_id,
            trace_id=run.trace_id,
            pattern=run.pattern,
            round=round,
            is_critical=task.is_critical,
        ) as metrics:
            try:
                response = await asyncio.wait_for(
                    race_cancellation(agent.process(task, handle, token), token),
                    timeout=timeout,
                )
                status = TaskStatus.SUCCEEDED if response.success else TaskStatus.FAILED
            except asyncio.TimeoutError:
                token.cancel("timed out")
                elapsed = (time.perf_counter() - start) * 1000
                response = AgentResponse.failure(task, TIMEOUT_ERROR.format(TIMEOUT=timeout), elapsed)
                status = TaskStatus.TIMED_OUT
                metrics.timed_out = True
            except OperationCancelledError:
                metrics.cancelled = True
                metrics.success = False
                return TaskResult(
                    task=task,
                    status=TaskStatus.CANCELLED,
                    error=CANCELLED_ERROR,
                    round=round,
                    duration_ms=(time.perf_counter() - start) * 1000,
                )
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                logger.error(f"Agent {task.agent_type.value} raised on task {task.task_id}: {e}")
                response = AgentResponse.failure(task, str(e) or type(e).__name__, elapsed)
                status = TaskStatus.FAILED
                metrics.error = str(e)
                metrics.error_type = type(e).__name__

            response = self._own(task, response)
            metrics.success = response.success
            metrics.tools_invoked = len(response.tools_invoked)

        result = TaskResult(
            task=task,
            status=status,
            response=response,
            round=round,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        await self._record(result, run)
        return result

    @staticmethod
    def _own(task: AgentTask, response: AgentResponse) -> AgentResponse:
        """Pin the response to the task it answers."""
        if response.task_id == task.task_id and response.agent_type == task.agent_type:
            return response
        logger.warning(
            f"Response for task {task.task_id} carried task_id={response.task_id} "
            f"agent_type={response.agent_type.value}; correcting"
        )
        return response.model_copy(update={"task_id": task.task_id, "agent_type": task.agent_type})

    async def _record(self, result: TaskResult, run: RunContext) -> None:
        response = result.response
        agent_type = result.agent_type
        try:
            await self._memory.set(
                run.conversation_id,
                agent_key(agent_type, LAST_RESPONSE_SUFFIX),
                response_summary(response),
                cancellation=run.cancellation,
            )
            await self._memory.publish_event(
                run.conversation_id,
                EVENT_TASK_COMPLETED if result.succeeded else EVENT_TASK_FAILED,
                {
                    "task_id": result.task_id,
                    "status": result.status.value,
                    "round": result.round,
                    "errors": result.errors,
                },
                source_agent=agent_type,
                cancellation=run.cancellation,
            )
            if self._agent_states is not None:
                await self._agent_states.touch(run.conversation_id, agent_type, cancellation=run.cancellation)
        except OperationCancelledError:
            logger.debug(f"Bookkeeping for task {result.task_id} stopped by cancellation")
        except StateError as e:
            logger.warning(f"Could not record result of task {result.task_id}: {e}")
