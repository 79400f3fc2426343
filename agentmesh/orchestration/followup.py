"""
Follow-up Detection.

Before dispatch, every task is checked against the required parameters its
agent declares. Missing values are filled from what the request already
knows (caller context and conversation variables). Tasks that still lack
a value are held back and reported as awaiting input; the rest run.

After dispatch, agents can also ask for more input by listing field names
under metadata["missing_fields"].
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from agentmesh.agents.interfaces import required_parameters_of
from agentmesh.agents.runtimes import AgentRegistry
from agentmesh.agents.spec import AgentResponse, AgentTask
from .constants import FOLLOW_UP_PROMPT_TEMPLATE, SKIPPED_ERROR
from .enum import TaskStatus
from .spec import TaskResult

logger = logging.getLogger(__name__)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _merge_unique(target: List[str], names: Iterable[str]) -> None:
    for name in names:
        if name not in target:
            target.append(name)


@dataclass
class FollowUpCheck:
    """Outcome of checking a plan's tasks for missing parameters."""
    ready: List[AgentTask] = field(default_factory=list)
    held: List[TaskResult] = field(default_factory=list)
    missing_fields: List[str] = field(default_factory=list)

    @property
    def requires_follow_up(self) -> bool:
        return bool(self.missing_fields)


class FollowUpDetector:
    """
    Resolves declared required parameters and holds back underspecified tasks.

    Example:
        detector = FollowUpDetector(registry)
        check = detector.check(plan.tasks, {"region": "usgovvirginia"})
        if check.requires_follow_up:
            prompt = detector.prompt_for(check.missing_fields)
    """

    def __init__(self, registry: AgentRegistry):
        self._registry = registry

    def check(self, tasks: Iterable[AgentTask], known: Mapping[str, Any]) -> FollowUpCheck:
        result = FollowUpCheck()
        for task in tasks:
            agent = self._registry.find(task.agent_type)
            required = required_parameters_of(agent) if agent is not None else ()

            resolved: Dict[str, Any] = {}
            missing: List[str] = []
            for name in required:
                if not _is_missing(task.parameters.get(name)):
                    continue
                if not _is_missing(known.get(name)):
                    resolved[name] = known[name]
                else:
                    missing.append(name)

            if missing:
                logger.info(
                    f"Holding task {task.task_id} ({task.agent_type.value}): missing {', '.join(missing)}"
                )
                result.held.append(TaskResult.not_dispatched(
                    task,
                    TaskStatus.AWAITING_INPUT,
                    error=SKIPPED_ERROR.format(FIELDS=", ".join(missing)),
                ))
                _merge_unique(result.missing_fields, missing)
            else:
                result.ready.append(task.refine(**resolved) if resolved else task)
        return result

    @staticmethod
    def reported_missing(responses: Iterable[AgentResponse]) -> List[str]:
        """Field names agents asked for through metadata["missing_fields"]."""
        fields: List[str] = []
        for response in responses:
            _merge_unique(fields, response.missing_fields)
        return fields

    @staticmethod
    def prompt_for(missing_fields: List[str]) -> str:
        readable = [name.replace("_", " ") for name in missing_fields]
        return FOLLOW_UP_PROMPT_TEMPLATE.format(FIELDS=", ".join(readable))
