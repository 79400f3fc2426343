"""
Orchestration.

Plan validation, follow-up detection, pattern-based dispatch, synthesis and
the top-level Orchestrator.

Version: 1.0.0
"""

from .enum import OrchestrationOutcome, TaskStatus
from .exceptions import (
    OrchestrationError,
    PlanningError,
    PlanValidationError,
    SynthesisError,
)
from .interfaces import IResponseSynthesizer
from .spec import OrchestratedResponse, RunContext, TaskResult
from .validation import PlanValidator
from .followup import FollowUpCheck, FollowUpDetector
from .dispatcher import TaskDispatcher, race_cancellation
from .patterns import (
    BasePattern,
    PatternOutcome,
    SequentialPattern,
    ParallelPattern,
    CollaborativePattern,
)
from .synthesis import ConcatenatingSynthesizer, ResponseAggregator, concatenate_responses
from .orchestrator import Orchestrator

__all__ = [
    "OrchestrationOutcome",
    "TaskStatus",
    "OrchestrationError",
    "PlanningError",
    "PlanValidationError",
    "SynthesisError",
    "IResponseSynthesizer",
    "OrchestratedResponse",
    "RunContext",
    "TaskResult",
    "PlanValidator",
    "FollowUpCheck",
    "FollowUpDetector",
    "TaskDispatcher",
    "race_cancellation",
    "BasePattern",
    "PatternOutcome",
    "SequentialPattern",
    "ParallelPattern",
    "CollaborativePattern",
    "ConcatenatingSynthesizer",
    "ResponseAggregator",
    "concatenate_responses",
    "Orchestrator",
]
