"""
Orchestrator.

Turns one request into one OrchestratedResponse:

1. plan: ask the external planner (a raw mapping is parsed leniently);
   a planner failure degrades to a plain conversational reply
2. validate: empty plans, unregistered agent types and unsupported
   patterns are rejected without dispatching anything
3. follow-up: tasks whose agents' required parameters cannot be resolved
   from the request context are held back and reported
4. dispatch: under the plan's pattern (sequential / parallel /
   collaborative) with per-task timeouts and cooperative cancellation
5. synthesize: merge contents, metadata, errors and warnings
6. record: append the exchange to the conversation history

Task failures are data. Only an unrecoverable synthesis error is reported
as an orchestrator-level failure, and state problems are logged and
never fail the turn.

Usage:
    orchestrator = Orchestrator(planner, AgentRegistry([...]))
    token = CancellationToken()
    response = await orchestrator.process_request("Deploy a VM", "c-1", cancellation=token)
"""

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from agentmesh.agents.enum import AgentType, ExecutionPattern
from agentmesh.agents.interfaces import IPlanner
from agentmesh.agents.runtimes import AgentRegistry
from agentmesh.agents.spec import AgentTask, ExecutionPlan
from agentmesh.config import Defaults, Settings, get_settings
from agentmesh.state import (
    AgentStateManager,
    ConversationStateManager,
    InvalidConversationIdError,
    IStateStore,
    SharedMemory,
    StateError,
    StoreFactory,
    validate_conversation_id,
)
from agentmesh.state.shared_memory import RUN_INFO_KEY
from agentmesh.utils.cancellation import CancellationToken, OperationCancelledError, ensure_token
from agentmesh.utils.logging import LoggerAdaptor
from .constants import (
    CONTEXT_CONVERSATION_VARIABLES,
    CONTEXT_HISTORY,
    EVENT_RUN_FINISHED,
    EVENT_RUN_STARTED,
    ROLE_ASSISTANT,
    ROLE_USER,
)
from .dispatcher import TaskDispatcher, race_cancellation
from .enum import OrchestrationOutcome, TaskStatus
from .exceptions import PlanningError, SynthesisError
from .followup import FollowUpDetector
from .interfaces import IResponseSynthesizer
from .patterns import (
    BasePattern,
    CollaborativePattern,
    ParallelPattern,
    PatternOutcome,
    SequentialPattern,
)
from .spec import OrchestratedResponse, RunContext, TaskResult
from .synthesis import ResponseAggregator
from .validation import PlanValidator

logger = logging.getLogger(__name__)

HISTORY_CONTEXT_LIMIT = 10


class Orchestrator:
    """
    Top-level coordinator.

    Args:
        planner: External request -> plan oracle
        registry: AgentType -> capability agent
        store: State store shared by the managers (default: settings backend)
        conversations / agent_states / shared_memory: Pre-built managers
        synthesizer: Final-text synthesizer (default: concatenation)
        settings: Engine settings (default: get_settings())
        max_parallel_tasks, max_collaboration_rounds, default_task_timeout_s,
        supported_patterns, quick_replies: Explicit overrides of settings
    """

    def __init__(
        self,
        planner: IPlanner,
        registry: AgentRegistry,
        store: Optional[IStateStore] = None,
        conversations: Optional[ConversationStateManager] = None,
        agent_states: Optional[AgentStateManager] = None,
        shared_memory: Optional[SharedMemory] = None,
        synthesizer: Optional[IResponseSynthesizer] = None,
        settings: Optional[Settings] = None,
        max_parallel_tasks: Optional[int] = None,
        max_collaboration_rounds: Optional[int] = None,
        default_task_timeout_s: Optional[float] = None,
        supported_patterns: Optional[Sequence[Union[str, ExecutionPattern]]] = None,
        quick_replies: Optional[Mapping[str, List[str]]] = None,
    ):
        settings = settings or get_settings()
        if store is None:
            store = StoreFactory.create_store(settings.state_backend)

        self._planner = planner
        self._registry = registry
        self._conversations = conversations or ConversationStateManager(store)
        self._agent_states = agent_states or AgentStateManager(store)
        self._memory = shared_memory or SharedMemory(store)

        self._validator = PlanValidator(
            registry,
            supported_patterns if supported_patterns is not None else settings.supported_patterns,
        )
        self._followups = FollowUpDetector(registry)
        self._dispatcher = TaskDispatcher(
            registry,
            self._memory,
            self._agent_states,
            default_timeout_s=default_task_timeout_s or settings.default_task_timeout_s,
        )
        concurrency = max_parallel_tasks or settings.max_parallel_tasks
        self._patterns: Dict[ExecutionPattern, BasePattern] = {
            ExecutionPattern.SEQUENTIAL: SequentialPattern(self._dispatcher, concurrency),
            ExecutionPattern.PARALLEL: ParallelPattern(self._dispatcher, concurrency),
            ExecutionPattern.COLLABORATIVE: CollaborativePattern(
                self._dispatcher,
                concurrency,
                max_rounds=max_collaboration_rounds or settings.max_collaboration_rounds,
            ),
        }
        self._aggregator = ResponseAggregator(synthesizer, quick_replies)
        self._log = LoggerAdaptor.get_logger("orchestrator")

    @property
    def conversations(self) -> ConversationStateManager:
        return self._conversations

    @property
    def agent_states(self) -> AgentStateManager:
        return self._agent_states

    @property
    def shared_memory(self) -> SharedMemory:
        return self._memory

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    # =========================================================================
    # Entry points
    # =========================================================================

    async def process_request(
        self,
        message: str,
        conversation_id: str,
        context: Optional[Dict[str, Any]] = None,
        cancellation: Optional[CancellationToken] = None,
        user_id: Optional[str] = None,
    ) -> OrchestratedResponse:
        """Plan, dispatch and synthesize one user request."""
        token = ensure_token(cancellation)
        start = time.perf_counter()

        try:
            validate_conversation_id(conversation_id)
        except InvalidConversationIdError as e:
            self._log.warning("Request rejected", error=str(e))
            return self._rejected(None, [e.message], start)

        if token.is_cancelled:
            return self._cancelled(None, [], PatternOutcome(cancelled=True), start)

        try:
            variables, history = await self._load_conversation(conversation_id, user_id, token)
            known = {**variables, **(context or {})}
            planner_context = {
                **(context or {}),
                CONTEXT_CONVERSATION_VARIABLES: variables,
                CONTEXT_HISTORY: history,
            }
            plan = await self._plan(message, conversation_id, planner_context, token)
        except OperationCancelledError:
            return self._cancelled(None, [], PatternOutcome(cancelled=True), start)
        except PlanningError as e:
            self._log.warning("Planning failed", conversation_id=conversation_id, error=str(e))
            response = self._rejected(None, [e.message], start)
        else:
            response = await self.execute_plan(
                plan,
                conversation_id,
                message=message,
                context=known,
                cancellation=token,
                _start=start,
            )

        if not response.cancelled:
            await self._record_exchange(conversation_id, message, response, token)
        return response

    async def execute_plan(
        self,
        plan: Union[ExecutionPlan, Mapping[str, Any]],
        conversation_id: str,
        message: str = "",
        context: Optional[Dict[str, Any]] = None,
        cancellation: Optional[CancellationToken] = None,
        _start: Optional[float] = None,
    ) -> OrchestratedResponse:
        """
        Validate and run an already-produced plan.

        Does not touch conversation history; process_request records the
        exchange.
        """
        token = ensure_token(cancellation)
        start = _start if _start is not None else time.perf_counter()

        try:
            validate_conversation_id(conversation_id)
            plan = self._coerce_plan(plan, conversation_id)
        except (InvalidConversationIdError, PlanningError) as e:
            return self._rejected(None, [e.message], start)

        if token.is_cancelled:
            return self._cancelled(plan, [], PatternOutcome(cancelled=True), start)

        errors = self._validator.validate(plan)
        if errors:
            return self._rejected(plan, errors, start)

        check = self._followups.check(plan.tasks, context or {})
        run = RunContext(
            conversation_id=conversation_id,
            plan=plan,
            cancellation=token,
            message=message,
            context=dict(context or {}),
        )
        self._log.info(
            "Plan accepted",
            conversation_id=conversation_id,
            trace_id=run.trace_id,
            pattern=plan.execution_pattern.value,
            tasks=len(plan.tasks),
            held=len(check.held),
        )
        await self._announce(run, EVENT_RUN_STARTED, {"task_ids": [t.task_id for t in plan.tasks]})

        if check.ready:
            outcome = await self._patterns[plan.execution_pattern].execute(check.ready, run)
        else:
            outcome = PatternOutcome()

        report = self._report(plan.tasks, check.held, outcome.results)

        if outcome.cancelled or token.is_cancelled:
            return self._cancelled(plan, report, outcome, start)

        try:
            response = await self._synthesize(run, report, outcome, check.missing_fields, start)
        except SynthesisError as e:
            self._log.error("Synthesis failed", conversation_id=conversation_id, error=str(e))
            response = self._base_response(plan, report, outcome, start)
            response.final_response = Defaults.EMPTY_RESPONSE_MESSAGE
            response.success = False
            response.outcome = OrchestrationOutcome.FAILED
            response.errors.append(e.message)

        await self._announce(run, EVENT_RUN_FINISHED, {"outcome": response.outcome.value})
        self._log.log_duration(
            "orchestration",
            response.execution_time_ms / 1000,
            conversation_id=conversation_id,
            trace_id=run.trace_id,
            outcome=response.outcome.value,
            agent_calls=response.total_agent_calls,
        )
        return response

    # =========================================================================
    # Planning
    # =========================================================================

    async def _plan(
        self,
        message: str,
        conversation_id: str,
        context: Dict[str, Any],
        token: CancellationToken,
    ) -> ExecutionPlan:
        try:
            raw = await race_cancellation(
                self._planner.plan(message, conversation_id, context, token), token
            )
        except OperationCancelledError:
            raise
        except Exception as e:
            raise PlanningError(f"Planner failed: {e}", details={"error_type": type(e).__name__}) from e
        return self._coerce_plan(raw, conversation_id)

    @staticmethod
    def _coerce_plan(raw: Any, conversation_id: str) -> ExecutionPlan:
        """
        Accept an ExecutionPlan or a raw mapping; bind tasks to the conversation.

        Raises:
            PlanningError: If raw is not a plan
        """
        try:
            if isinstance(raw, ExecutionPlan):
                plan = raw
            elif isinstance(raw, Mapping):
                plan = ExecutionPlan.from_mapping(raw, conversation_id)
            else:
                raise ValueError(f"expected an ExecutionPlan, got {type(raw).__name__}")
        except ValueError as e:
            raise PlanningError(f"Unusable plan: {e}") from e

        if all(task.conversation_id == conversation_id for task in plan.tasks):
            return plan
        bound = [
            task if task.conversation_id == conversation_id
            else task.model_copy(update={"conversation_id": conversation_id})
            for task in plan.tasks
        ]
        return plan.model_copy(update={"tasks": bound})

    # =========================================================================
    # Results
    # =========================================================================

    @staticmethod
    def _report(
        tasks: Sequence[AgentTask],
        held: Sequence[TaskResult],
        dispatched: Sequence[TaskResult],
    ) -> List[TaskResult]:
        """One result per planned task, in plan order."""
        by_id = {r.task_id: r for r in held}
        by_id.update({r.task_id: r for r in dispatched})
        return [
            by_id.get(task.task_id) or TaskResult.not_dispatched(task, TaskStatus.SKIPPED)
            for task in tasks
        ]

    @staticmethod
    def _agents_invoked(outcome: PatternOutcome) -> List[AgentType]:
        invoked: List[AgentType] = []
        for result in outcome.all_results:
            if result.dispatched and result.agent_type not in invoked:
                invoked.append(result.agent_type)
        return invoked

    def _base_response(
        self,
        plan: Optional[ExecutionPlan],
        report: List[TaskResult],
        outcome: PatternOutcome,
        start: float,
    ) -> OrchestratedResponse:
        return OrchestratedResponse(
            primary_intent=plan.primary_intent if plan else "",
            execution_pattern=plan.execution_pattern if plan else None,
            agents_invoked=self._agents_invoked(outcome),
            total_agent_calls=outcome.dispatch_count,
            execution_time_ms=(time.perf_counter() - start) * 1000,
            task_results=report,
            rounds=outcome.rounds,
        )

    async def _synthesize(
        self,
        run: RunContext,
        report: List[TaskResult],
        outcome: PatternOutcome,
        held_fields: List[str],
        start: float,
    ) -> OrchestratedResponse:
        synthesis = await self._aggregator.aggregate(run.message, run.plan, report, run.cancellation)
        responses = [r.response for r in report if r.response is not None]

        missing = list(held_fields)
        for name in self._followups.reported_missing(responses):
            if name not in missing:
                missing.append(name)

        follow_up_prompt = None
        if missing:
            follow_up_prompt = next(
                (r.follow_up_prompt for r in responses if r.follow_up_prompt),
                None,
            ) or self._followups.prompt_for(missing)

        final_response = synthesis.final_response
        if not final_response:
            final_response = follow_up_prompt or Defaults.EMPTY_RESPONSE_MESSAGE

        success = not any(r.failed and r.is_critical for r in report)
        response = self._base_response(run.plan, report, outcome, start)
        response.final_response = final_response
        response.success = success
        response.outcome = OrchestrationOutcome.COMPLETED if success else OrchestrationOutcome.FAILED
        response.requires_follow_up = bool(missing)
        response.follow_up_prompt = follow_up_prompt
        response.missing_fields = missing
        response.metadata = synthesis.metadata
        response.errors = synthesis.errors
        response.warnings = synthesis.warnings
        response.quick_replies = synthesis.quick_replies
        return response

    def _rejected(
        self,
        plan: Optional[ExecutionPlan],
        errors: List[str],
        start: float,
    ) -> OrchestratedResponse:
        response = self._base_response(plan, [], PatternOutcome(), start)
        response.final_response = Defaults.REJECTED_PLAN_MESSAGE
        response.success = False
        response.outcome = OrchestrationOutcome.REJECTED
        response.errors = list(errors)
        return response

    def _cancelled(
        self,
        plan: Optional[ExecutionPlan],
        report: List[TaskResult],
        outcome: PatternOutcome,
        start: float,
    ) -> OrchestratedResponse:
        response = self._base_response(plan, report, outcome, start)
        response.final_response = Defaults.CANCELLED_MESSAGE
        response.success = False
        response.cancelled = True
        response.outcome = OrchestrationOutcome.CANCELLED
        self._log.warning(
            "Request cancelled",
            primary_intent=response.primary_intent,
            agent_calls=response.total_agent_calls,
        )
        return response

    # =========================================================================
    # State
    # =========================================================================

    async def _load_conversation(
        self,
        conversation_id: str,
        user_id: Optional[str],
        token: CancellationToken,
    ):
        """Conversation variables and recent history; empty on state failure."""
        try:
            state = await self._conversations.get_or_create(conversation_id, user_id, cancellation=token)
        except StateError as e:
            logger.warning(f"Conversation {conversation_id} unavailable, continuing without it: {e}")
            return {}, []
        history = [
            {"role": m.role, "content": m.content}
            for m in state.messages[-HISTORY_CONTEXT_LIMIT:]
        ]
        return dict(state.variables), history

    async def _record_exchange(
        self,
        conversation_id: str,
        message: str,
        response: OrchestratedResponse,
        token: CancellationToken,
    ) -> None:
        active_agent = next(
            (r.agent_type for r in reversed(response.task_results) if r.dispatched),
            None,
        )
        try:
            await self._conversations.add_message(
                conversation_id, ROLE_USER, message, cancellation=token
            )
            await self._conversations.add_message(
                conversation_id,
                ROLE_ASSISTANT,
                response.final_response,
                agent_type=active_agent,
                metadata={
                    "outcome": response.outcome.value,
                    "agents_invoked": [a.value for a in response.agents_invoked],
                },
                cancellation=token,
            )
            if active_agent is not None:
                await self._conversations.set_active_agent(conversation_id, active_agent, cancellation=token)
        except OperationCancelledError:
            logger.debug(f"Recording of conversation {conversation_id} stopped by cancellation")
        except StateError as e:
            logger.warning(f"Could not record exchange for conversation {conversation_id}: {e}")

    async def _announce(self, run: RunContext, event_type: str, data: Dict[str, Any]) -> None:
        payload = {
            "trace_id": run.trace_id,
            "pattern": run.pattern,
            "primary_intent": run.plan.primary_intent,
            **data,
        }
        try:
            if event_type == EVENT_RUN_STARTED:
                await self._memory.set(run.conversation_id, RUN_INFO_KEY, payload, cancellation=run.cancellation)
            await self._memory.publish_event(
                run.conversation_id,
                event_type,
                payload,
                source_agent=AgentType.ORCHESTRATOR,
                cancellation=run.cancellation,
            )
        except OperationCancelledError:
            logger.debug(f"Skipped '{event_type}' event: run cancelled")
        except StateError as e:
            logger.warning(f"Could not publish '{event_type}' event: {e}")
