"""
Agent contract models.
"""

from .task_models import AgentTask, AgentResponse, ExecutionPlan

__all__ = [
    "AgentTask",
    "AgentResponse",
    "ExecutionPlan",
]
