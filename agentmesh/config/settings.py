"""
Application Settings

Centralized settings with environment variable support.
Priority: Environment Variables > Defaults

Usage:
    from agentmesh.config import get_settings

    settings = get_settings()
    timeout = settings.default_task_timeout_s

Version: 1.0.0
"""

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from .defaults import Defaults


class Settings(BaseSettings):
    """
    Engine settings with automatic environment variable loading.

    Environment variables are automatically loaded with the prefix AGENTMESH_.
    Example: AGENTMESH_MAX_PARALLEL_TASKS overrides max_parallel_tasks
    """

    # =========================================================================
    # State Store Configuration
    # =========================================================================
    state_backend: str = Field(
        default=Defaults.STATE_BACKEND,
        description="Name of the registered state store backend"
    )
    conversation_ttl_s: Optional[float] = Field(default=Defaults.CONVERSATION_TTL_S)
    agent_state_ttl_s: Optional[float] = Field(default=Defaults.AGENT_STATE_TTL_S)
    shared_memory_ttl_s: Optional[float] = Field(default=Defaults.SHARED_MEMORY_TTL_S)

    # =========================================================================
    # Conversation / Shared Memory / Agent State
    # =========================================================================
    max_conversation_messages: int = Field(default=Defaults.MAX_CONVERSATION_MESSAGES, gt=0)
    conversation_idle_timeout_s: float = Field(default=Defaults.CONVERSATION_IDLE_TIMEOUT_S, gt=0)
    max_shared_events: int = Field(default=Defaults.MAX_SHARED_EVENTS, gt=0)
    pending_action_ttl_s: float = Field(default=Defaults.PENDING_ACTION_TTL_S, gt=0)

    # =========================================================================
    # Orchestration
    # =========================================================================
    default_task_timeout_s: float = Field(default=Defaults.DEFAULT_TASK_TIMEOUT_S, gt=0)
    max_parallel_tasks: int = Field(default=Defaults.MAX_PARALLEL_TASKS, gt=0)
    max_collaboration_rounds: int = Field(default=Defaults.MAX_COLLABORATION_ROUNDS, gt=0)
    supported_patterns: List[str] = Field(default_factory=lambda: list(Defaults.SUPPORTED_PATTERNS))

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = Field(default=Defaults.LOG_LEVEL)
    log_backend: str = Field(default=Defaults.LOG_BACKEND)

    model_config = {
        "env_prefix": "AGENTMESH_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def to_dict(self) -> Dict[str, Any]:
        """Export settings to dictionary."""
        return self.model_dump()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded from environment variables once per process.
    Call Settings() directly if you need a fresh instance.

    Returns:
        Settings instance
    """
    return Settings()
