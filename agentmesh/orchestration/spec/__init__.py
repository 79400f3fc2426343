"""
Orchestration models.
"""

from .result_models import TaskResult, OrchestratedResponse
from .run_context import RunContext

__all__ = [
    "TaskResult",
    "OrchestratedResponse",
    "RunContext",
]
