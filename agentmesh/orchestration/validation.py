"""
Plan Validation.

A plan is accepted only if it has at least one task, every task's agent
type has a registered agent and its execution pattern is one the
orchestrator is configured to run. Rejected plans are never dispatched.
"""

import logging
from typing import Iterable, List, Optional

from agentmesh.agents.enum import ExecutionPattern
from agentmesh.agents.runtimes import AgentRegistry
from agentmesh.agents.spec import ExecutionPlan
from .exceptions import PlanValidationError

logger = logging.getLogger(__name__)


class PlanValidator:
    """
    Checks plan shape against the registry and supported patterns.

    Example:
        validator = PlanValidator(registry)
        errors = validator.validate(plan)
        validator.check(plan)  # raises PlanValidationError
    """

    def __init__(
        self,
        registry: AgentRegistry,
        supported_patterns: Optional[Iterable[ExecutionPattern]] = None,
    ):
        self._registry = registry
        if supported_patterns is None:
            supported_patterns = list(ExecutionPattern)
        self._supported = frozenset(ExecutionPattern.parse(p) for p in supported_patterns)

    @property
    def supported_patterns(self) -> frozenset:
        return self._supported

    def validate(self, plan: ExecutionPlan) -> List[str]:
        """Return validation errors (empty list when the plan is acceptable)."""
        errors: List[str] = []

        if not plan.tasks:
            errors.append("Plan has no tasks")

        if plan.execution_pattern not in self._supported:
            errors.append(f"Unsupported execution pattern: {plan.execution_pattern.value}")

        unregistered = []
        for task in plan.tasks:
            if not self._registry.is_registered(task.agent_type) and task.agent_type not in unregistered:
                unregistered.append(task.agent_type)
        for agent_type in unregistered:
            errors.append(f"No agent registered for type: {agent_type.value}")

        seen_ids = set()
        for task in plan.tasks:
            if task.task_id in seen_ids:
                errors.append(f"Duplicate task id: {task.task_id}")
            seen_ids.add(task.task_id)

        if errors:
            logger.warning(f"Rejected plan '{plan.primary_intent}': {'; '.join(errors)}")
        return errors

    def check(self, plan: ExecutionPlan) -> None:
        """
        Raises:
            PlanValidationError: If the plan is not acceptable
        """
        errors = self.validate(plan)
        if errors:
            raise PlanValidationError(errors, details={"primary_intent": plan.primary_intent})
