"""
Enumerations for Agents Subsystem.

All enum values are imported from constants.py to maintain single source of truth.
"""

from enum import Enum
from typing import Any

from .constants import (
    AGENT_TYPE_ORCHESTRATOR,
    AGENT_TYPE_INFRASTRUCTURE,
    AGENT_TYPE_COMPLIANCE,
    AGENT_TYPE_COST_MANAGEMENT,
    AGENT_TYPE_ENVIRONMENT,
    AGENT_TYPE_DISCOVERY,
    AGENT_TYPE_ONBOARDING,
    AGENT_TYPE_KNOWLEDGE_BASE,
    AGENT_TYPE_SERVICE_CREATION,
    PATTERN_SEQUENTIAL,
    PATTERN_PARALLEL,
    PATTERN_COLLABORATIVE,
    UNKNOWN_AGENT_TYPE_ERROR,
    UNKNOWN_PATTERN_ERROR,
)


def _normalize(value: str) -> str:
    return value.strip().lower().replace("-", "_").replace(" ", "_")


class AgentType(str, Enum):
    """
    Closed set of capability kinds the orchestrator can route to.

    Parsing is case-insensitive and tolerant of CamelCase planner output
    ("CostManagement" -> COST_MANAGEMENT).
    """
    ORCHESTRATOR = AGENT_TYPE_ORCHESTRATOR
    INFRASTRUCTURE = AGENT_TYPE_INFRASTRUCTURE
    COMPLIANCE = AGENT_TYPE_COMPLIANCE
    COST_MANAGEMENT = AGENT_TYPE_COST_MANAGEMENT
    ENVIRONMENT = AGENT_TYPE_ENVIRONMENT
    DISCOVERY = AGENT_TYPE_DISCOVERY
    ONBOARDING = AGENT_TYPE_ONBOARDING
    KNOWLEDGE_BASE = AGENT_TYPE_KNOWLEDGE_BASE
    SERVICE_CREATION = AGENT_TYPE_SERVICE_CREATION

    @property
    def display_name(self) -> str:
        """'cost_management' -> 'CostManagement'."""
        return "".join(part.title() for part in self.value.split("_"))

    @classmethod
    def parse(cls, value: Any) -> 'AgentType':
        if isinstance(value, cls):
            return value
        text = _normalize(str(value))
        squashed = text.replace("_", "")
        for member in cls:
            if member.value == text or member.value.replace("_", "") == squashed:
                return member
        raise ValueError(UNKNOWN_AGENT_TYPE_ERROR.format(AGENT_TYPE=value))


class ExecutionPattern(str, Enum):
    """Dispatch discipline for a plan's tasks."""
    SEQUENTIAL = PATTERN_SEQUENTIAL
    PARALLEL = PATTERN_PARALLEL
    COLLABORATIVE = PATTERN_COLLABORATIVE

    @classmethod
    def parse(cls, value: Any) -> 'ExecutionPattern':
        if isinstance(value, cls):
            return value
        text = _normalize(str(value))
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(UNKNOWN_PATTERN_ERROR.format(PATTERN=value))
