"""
Capability Agents boundary.

Contract models (AgentTask, AgentResponse, ExecutionPlan), the closed
AgentType tag set, the ICapabilityAgent / IPlanner protocols and the
composition-time AgentRegistry.

Version: 1.0.0
"""

from .enum import AgentType, ExecutionPattern
from .exceptions import AgentError, AgentNotRegisteredError, DuplicateAgentError
from .interfaces import ICapabilityAgent, IPlanner, required_parameters_of
from .spec import AgentTask, AgentResponse, ExecutionPlan
from .implementations import BaseCapabilityAgent
from .runtimes import AgentRegistry

__all__ = [
    "AgentType",
    "ExecutionPattern",
    "AgentError",
    "AgentNotRegisteredError",
    "DuplicateAgentError",
    "ICapabilityAgent",
    "IPlanner",
    "required_parameters_of",
    "AgentTask",
    "AgentResponse",
    "ExecutionPlan",
    "BaseCapabilityAgent",
    "AgentRegistry",
]
