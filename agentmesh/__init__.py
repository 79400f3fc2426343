"""
agentmesh: multi-agent orchestration and cross-agent state coordination.

Subsystems:
- agentmesh.config: settings and defaults
- agentmesh.state: State Store, conversation / agent state managers, Shared Memory
- agentmesh.agents: task / response contract, AgentType, agent registry
- agentmesh.orchestration: validation, dispatch patterns, synthesis, Orchestrator

Version: 1.0.0
"""

__version__ = "1.0.0"

from .utils.cancellation import CancellationToken, OperationCancelledError
from .agents import (
    AgentRegistry,
    AgentResponse,
    AgentTask,
    AgentType,
    BaseCapabilityAgent,
    ExecutionPattern,
    ExecutionPlan,
)
from .state import (
    AgentStateManager,
    ConversationStateManager,
    InMemoryStateStore,
    SharedMemory,
    StoreFactory,
)
from .orchestration import OrchestratedResponse, OrchestrationOutcome, Orchestrator

__all__ = [
    "__version__",
    "CancellationToken",
    "OperationCancelledError",
    "AgentRegistry",
    "AgentResponse",
    "AgentTask",
    "AgentType",
    "BaseCapabilityAgent",
    "ExecutionPattern",
    "ExecutionPlan",
    "AgentStateManager",
    "ConversationStateManager",
    "InMemoryStateStore",
    "SharedMemory",
    "StoreFactory",
    "OrchestratedResponse",
    "OrchestrationOutcome",
    "Orchestrator",
]
