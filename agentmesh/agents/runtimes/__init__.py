"""
Agent runtimes.
"""

from .agent_registry import AgentRegistry

__all__ = ["AgentRegistry"]
