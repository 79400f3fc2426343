"""
Agent Registry.

Resolves AgentType -> capability agent. Built once at composition time and
handed to the Orchestrator; no runtime discovery or reflection.

Example:
    registry = AgentRegistry([InfrastructureAgent(), ComplianceAgent()])
    registry.register(CostAgent())

    agent = registry.get(AgentType.COMPLIANCE)
    registry.is_registered("cost_management")  # True
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..enum import AgentType
from ..exceptions import AgentNotRegisteredError, DuplicateAgentError
from ..interfaces import ICapabilityAgent

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Mapping from AgentType to the one agent that handles it."""

    def __init__(self, agents: Iterable[ICapabilityAgent] = ()):
        self._agents: Dict[AgentType, ICapabilityAgent] = {}
        for agent in agents:
            self.register(agent)

    def register(self, agent: ICapabilityAgent, replace: bool = False) -> None:
        """
        Register an agent under its agent_type.

        Raises:
            DuplicateAgentError: If the type is taken and replace is False
        """
        agent_type = AgentType.parse(agent.agent_type)
        if agent_type in self._agents and not replace:
            raise DuplicateAgentError(agent_type.value)
        self._agents[agent_type] = agent
        logger.debug(f"Registered capability agent for {agent_type.value}: {agent!r}")

    def unregister(self, agent_type: Any) -> Optional[ICapabilityAgent]:
        return self._agents.pop(self._coerce(agent_type), None)

    def find(self, agent_type: Any) -> Optional[ICapabilityAgent]:
        key = self._coerce(agent_type)
        return self._agents.get(key) if key is not None else None

    def get(self, agent_type: Any) -> ICapabilityAgent:
        """
        Raises:
            AgentNotRegisteredError: If no agent handles agent_type
        """
        agent = self.find(agent_type)
        if agent is None:
            raise AgentNotRegisteredError(
                str(getattr(agent_type, "value", agent_type)),
                registered=[t.value for t in self._agents],
            )
        return agent

    def is_registered(self, agent_type: Any) -> bool:
        return self.find(agent_type) is not None

    def list_types(self) -> List[AgentType]:
        return list(self._agents.keys())

    @staticmethod
    def _coerce(agent_type: Any) -> Optional[AgentType]:
        try:
            return AgentType.parse(agent_type)
        except ValueError:
            return None

    def __contains__(self, agent_type: Any) -> bool:
        return self.is_registered(agent_type)

    def __iter__(self) -> Iterator[ICapabilityAgent]:
        return iter(self._agents.values())

    def __len__(self) -> int:
        return len(self._agents)
