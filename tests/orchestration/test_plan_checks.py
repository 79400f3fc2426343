"""
Tests for the building blocks around dispatch.

Tests PlanValidator, FollowUpDetector, ResponseAggregator and
race_cancellation in isolation from the Orchestrator.

Version: 1.0.0
"""

import asyncio

import pytest

from agentmesh.agents import AgentRegistry, AgentResponse, AgentTask, AgentType, ExecutionPattern, ExecutionPlan
from agentmesh.orchestration import (
    FollowUpDetector,
    PlanValidationError,
    PlanValidator,
    ResponseAggregator,
    SynthesisError,
    TaskResult,
    TaskStatus,
    concatenate_responses,
    race_cancellation,
)
from agentmesh.utils.cancellation import CancellationToken, OperationCancelledError


# =============================================================================
# PLAN VALIDATOR TESTS
# =============================================================================

class TestPlanValidator:
    """Tests for PlanValidator."""

    @pytest.fixture
    def validator(self, scripted):
        return PlanValidator(AgentRegistry([scripted(AgentType.COMPLIANCE)]))

    def test_valid_plan_has_no_errors(self, validator):
        plan = ExecutionPlan(tasks=[AgentTask(agent_type="compliance")])

        assert validator.validate(plan) == []
        validator.check(plan)

    def test_all_problems_are_reported(self, validator):
        task = AgentTask(agent_type="compliance")
        plan = ExecutionPlan(tasks=[task, task, AgentTask(agent_type="environment")])

        errors = validator.validate(plan)

        assert "No agent registered for type: environment" in errors
        assert f"Duplicate task id: {task.task_id}" in errors

    def test_check_raises(self, validator):
        with pytest.raises(PlanValidationError) as exc_info:
            validator.check(ExecutionPlan())

        assert exc_info.value.errors == ["Plan has no tasks"]

    def test_restricted_patterns(self, scripted):
        validator = PlanValidator(AgentRegistry([scripted(AgentType.COMPLIANCE)]), ["sequential"])
        plan = ExecutionPlan(
            execution_pattern=ExecutionPattern.COLLABORATIVE,
            tasks=[AgentTask(agent_type="compliance")],
        )

        assert validator.validate(plan) == ["Unsupported execution pattern: collaborative"]


# =============================================================================
# FOLLOW-UP DETECTOR TESTS
# =============================================================================

class TestFollowUpDetector:
    """Tests for FollowUpDetector."""

    @pytest.fixture
    def detector(self, scripted):
        registry = AgentRegistry([
            scripted(AgentType.COST_MANAGEMENT, required=("monthly_budget", "region")),
            scripted(AgentType.COMPLIANCE),
        ])
        return FollowUpDetector(registry)

    def test_tasks_without_requirements_are_ready(self, detector):
        task = AgentTask(agent_type="compliance")

        check = detector.check([task], {})

        assert check.ready == [task]
        assert check.requires_follow_up is False

    def test_parameters_on_task_satisfy_requirements(self, detector):
        task = AgentTask(agent_type="cost_management", parameters={"monthly_budget": 100, "region": "east"})

        assert detector.check([task], {}).ready == [task]

    def test_known_values_fill_missing_parameters(self, detector):
        task = AgentTask(agent_type="cost_management", parameters={"region": "east"})

        check = detector.check([task], {"monthly_budget": 250})

        assert check.ready[0].parameters == {"region": "east", "monthly_budget": 250}
        assert check.ready[0].task_id == task.task_id

    def test_blank_values_count_as_missing(self, detector):
        task = AgentTask(agent_type="cost_management", parameters={"region": "  "})

        check = detector.check([task], {"monthly_budget": None})

        assert check.ready == []
        assert check.missing_fields == ["monthly_budget", "region"]
        held = check.held[0]
        assert held.status == TaskStatus.AWAITING_INPUT
        assert held.error == "Not dispatched: missing monthly_budget, region"

    def test_prompt(self):
        assert FollowUpDetector.prompt_for(["monthly_budget", "region"]) == (
            "To continue, I need a bit more information: monthly budget, region."
        )

    def test_reported_missing_is_deduplicated(self):
        responses = [
            AgentResponse(task_id="a", agent_type="infrastructure", metadata={"missing_fields": ["region", "cidr"]}),
            AgentResponse(task_id="b", agent_type="discovery", metadata={"missing_fields": ["region"]}),
        ]

        assert FollowUpDetector.reported_missing(responses) == ["region", "cidr"]


# =============================================================================
# AGGREGATOR TESTS
# =============================================================================

def _result(agent_type, content="", success=True, errors=(), status=None, warnings=()):
    task = AgentTask(agent_type=agent_type)
    response = AgentResponse(
        task_id=task.task_id,
        agent_type=agent_type,
        content=content,
        success=success,
        errors=list(errors),
        warnings=list(warnings),
    )
    if status is None:
        status = TaskStatus.SUCCEEDED if success else TaskStatus.FAILED
    return TaskResult(task=task, status=status, response=response)


class BrokenConcatenation:
    async def synthesize(self, message, plan, responses, cancellation):
        raise RuntimeError("down")


class TestResponseAggregator:
    """Tests for ResponseAggregator."""

    def test_concatenation_of_single_response(self):
        responses = [AgentResponse(task_id="a", agent_type="infrastructure", content="10.0.0.0/16")]

        assert concatenate_responses(responses) == "10.0.0.0/16"

    def test_concatenation_skips_empty_content(self):
        responses = [
            AgentResponse(task_id="a", agent_type="infrastructure", content="vnet ready"),
            AgentResponse(task_id="b", agent_type="discovery", content=""),
            AgentResponse(task_id="c", agent_type="cost_management", content="$12/month"),
        ]

        assert concatenate_responses(responses) == (
            "**Infrastructure Agent:**\nvnet ready\n\n**CostManagement Agent:**\n$12/month"
        )

    @pytest.mark.asyncio
    async def test_errors_and_warnings_in_task_order(self):
        results = [
            _result("infrastructure", errors=["no quota"], success=False),
            _result("discovery", content="ok", warnings=["port 22 open"]),
            _result("compliance", errors=["scan timed out"], success=False, status=TaskStatus.TIMED_OUT),
        ]

        synthesis = await ResponseAggregator().aggregate("m", ExecutionPlan(), results, CancellationToken())

        assert synthesis.errors == ["infrastructure: no quota", "compliance: scan timed out"]
        assert synthesis.warnings == ["port 22 open"]
        assert synthesis.final_response == "ok"

    @pytest.mark.asyncio
    async def test_failed_responses_with_content_are_merged(self):
        results = [
            _result("infrastructure", content="VM created"),
            _result("compliance", content="3 controls failed: AC-2, AC-3, SC-7", success=False, errors=["3 failures"]),
        ]

        synthesis = await ResponseAggregator().aggregate("m", ExecutionPlan(), results, CancellationToken())

        assert synthesis.final_response == (
            "**Infrastructure Agent:**\nVM created\n\n**Compliance Agent:**\n3 controls failed: AC-2, AC-3, SC-7"
        )
        assert synthesis.errors == ["compliance: 3 failures"]

    @pytest.mark.asyncio
    async def test_held_tasks_do_not_count_as_errors(self):
        task = AgentTask(agent_type="cost_management")
        held = TaskResult.not_dispatched(task, TaskStatus.AWAITING_INPUT, "Not dispatched: missing region")

        synthesis = await ResponseAggregator().aggregate("m", ExecutionPlan(), [held], CancellationToken())

        assert synthesis.errors == []

    @pytest.mark.asyncio
    async def test_degraded_synthesis_is_flagged(self):
        aggregator = ResponseAggregator(synthesizer=BrokenConcatenation())

        synthesis = await aggregator.aggregate(
            "m", ExecutionPlan(), [_result("infrastructure", content="vnet ready")], CancellationToken()
        )

        assert synthesis.degraded is True
        assert synthesis.final_response == "vnet ready"

    @pytest.mark.asyncio
    async def test_unbuildable_response_raises(self, monkeypatch):
        from agentmesh.orchestration import synthesis as synthesis_module

        def explode(responses):
            raise ValueError("bad content")

        monkeypatch.setattr(synthesis_module, "concatenate_responses", explode)
        aggregator = ResponseAggregator(synthesizer=BrokenConcatenation())

        with pytest.raises(SynthesisError):
            await aggregator.aggregate("m", ExecutionPlan(), [_result("infrastructure", content="x")], CancellationToken())

    def test_quick_replies_match_intent_fragment(self):
        aggregator = ResponseAggregator(quick_replies={"cost": ["Set up budget alerts"]})

        assert aggregator.quick_replies_for("Reduce my Cost") == ["Set up budget alerts"]
        assert aggregator.quick_replies_for("hello") == []


# =============================================================================
# RACE CANCELLATION TESTS
# =============================================================================

class TestRaceCancellation:
    """Tests for race_cancellation."""

    @pytest.mark.asyncio
    async def test_returns_work_result(self):
        async def work():
            return 42

        assert await race_cancellation(work(), CancellationToken()) == 42

    @pytest.mark.asyncio
    async def test_cancellation_stops_work(self):
        finished = []

        async def work():
            await asyncio.sleep(5)
            finished.append(True)

        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.05, token.cancel, "stop")

        with pytest.raises(OperationCancelledError) as exc_info:
            await race_cancellation(work(), token)

        assert exc_info.value.reason == "stop"
        assert finished == []

    @pytest.mark.asyncio
    async def test_work_errors_propagate(self):
        async def work():
            raise KeyError("missing")

        with pytest.raises(KeyError):
            await race_cancellation(work(), CancellationToken())
