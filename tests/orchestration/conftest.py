"""
Shared fixtures for orchestration tests.

ScriptedAgent is a capability agent whose behavior is set per test
(content, failure, exceptions, delays, approval by round, declared
required parameters). A failing agent reports content only when it was
given explicitly. FakePlanner returns a fixed plan or raises.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

import pytest

from agentmesh.agents import AgentRegistry, AgentResponse, AgentTask, AgentType, BaseCapabilityAgent
from agentmesh.orchestration import Orchestrator
from agentmesh.state import InMemoryStateStore
from agentmesh.state.shared_memory import PREVIOUS_RESULTS_KEY


class ScriptedAgent(BaseCapabilityAgent):
    """Capability agent with configurable behavior that records every task it gets."""

    def __init__(
        self,
        agent_type: AgentType,
        content: Optional[str] = None,
        success: bool = True,
        error: str = "Request could not be completed",
        raises: Optional[str] = None,
        delay: float = 0.0,
        required: Sequence[str] = (),
        approve_on_round: Optional[int] = None,
        content_per_round: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.agent_type = agent_type
        self.required_parameters = tuple(required)
        self.content = content if content is not None else f"{agent_type.display_name} done"
        self.content_on_failure = content or ""
        self.success = success
        self.error = error
        self.raises = raises
        self.delay = delay
        self.approve_on_round = approve_on_round
        self.content_per_round = content_per_round
        self.metadata = metadata or {}
        self.calls: List[AgentTask] = []
        self.seen_previous_results: List[Any] = []
        self.finished = False

    async def _execute(self, task, memory, cancellation) -> AgentResponse:
        self.calls.append(task)
        self.seen_previous_results.append(await memory.get(PREVIOUS_RESULTS_KEY))

        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises:
            raise RuntimeError(self.raises)

        round_number = task.parameters.get("round")
        content = self.content
        if self.content_per_round and round_number is not None:
            content = f"{content} (round {round_number})"

        is_approved = None
        if self.approve_on_round is not None:
            is_approved = round_number is not None and round_number >= self.approve_on_round

        self.finished = True
        return self.respond(
            task,
            content=content if self.success else self.content_on_failure,
            success=self.success,
            errors=[] if self.success else [self.error],
            metadata=dict(self.metadata),
            is_approved=is_approved,
        )


class FakePlanner:
    """Planner returning a fixed plan (or raising) and recording what it was asked."""

    def __init__(self, plan: Any = None, error: Optional[Exception] = None, delay: float = 0.0):
        self.result = plan
        self.error = error
        self.delay = delay
        self.requests: List[Dict[str, Any]] = []

    async def plan(self, message, conversation_id, context, cancellation):
        self.requests.append({"message": message, "conversation_id": conversation_id, "context": context})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def store():
    return InMemoryStateStore()


@pytest.fixture
def build(store):
    """Build an Orchestrator over the given agents and planner."""

    def _build(agents, planner=None, **kwargs) -> Orchestrator:
        return Orchestrator(planner or FakePlanner(), AgentRegistry(agents), store=store, **kwargs)

    return _build


@pytest.fixture
def scripted():
    """ScriptedAgent factory."""
    return ScriptedAgent


@pytest.fixture
def planner():
    """FakePlanner factory."""
    return FakePlanner
