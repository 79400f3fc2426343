"""
Agent Interfaces.
"""

from .agent_interfaces import ICapabilityAgent, IPlanner, required_parameters_of

__all__ = [
    "ICapabilityAgent",
    "IPlanner",
    "required_parameters_of",
]
