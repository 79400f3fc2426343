"""
Shared Memory: cross-agent blackboard and event log.
"""

from .shared_memory import (
    SharedMemory,
    SharedMemoryHandle,
    agent_key,
    ORCHESTRATION_NAMESPACE,
    PREVIOUS_RESULTS_KEY,
    RUN_INFO_KEY,
    LAST_RESPONSE_SUFFIX,
)

__all__ = [
    "SharedMemory",
    "SharedMemoryHandle",
    "agent_key",
    "ORCHESTRATION_NAMESPACE",
    "PREVIOUS_RESULTS_KEY",
    "RUN_INFO_KEY",
    "LAST_RESPONSE_SUFFIX",
]
