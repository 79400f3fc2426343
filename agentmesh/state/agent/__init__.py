"""
Agent State.
"""

from .manager import AgentStateManager

__all__ = ["AgentStateManager"]
