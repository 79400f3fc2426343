"""
Capability agent base implementations.
"""

from .base_capability_agent import BaseCapabilityAgent

__all__ = ["BaseCapabilityAgent"]
