"""
Default Configuration Values

These are fallback values when environment variables are not provided.
All values can be overridden via:
1. Environment variables (highest priority, prefix AGENTMESH_)
2. Explicit constructor arguments on each component
3. These defaults (lowest priority)

Version: 1.0.0
"""

import os
from typing import Dict, List


class Environment:
    """Environment detection and configuration."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"

    @classmethod
    def get_current(cls) -> str:
        """Get current environment from AGENTMESH_ENVIRONMENT or default to production."""
        return os.getenv("AGENTMESH_ENVIRONMENT", cls.PRODUCTION).lower()

    @classmethod
    def is_development(cls) -> bool:
        return cls.get_current() == cls.DEVELOPMENT

    @classmethod
    def is_test(cls) -> bool:
        return cls.get_current() == cls.TEST

    @classmethod
    def is_production(cls) -> bool:
        return cls.get_current() == cls.PRODUCTION


class Defaults:
    """
    Default configuration values for the orchestration engine.
    """

    # =========================================================================
    # State Store Configuration
    # =========================================================================
    STATE_BACKEND = "memory"
    CONVERSATION_TTL_S = None       # Conversations are never evicted implicitly
    AGENT_STATE_TTL_S = None
    SHARED_MEMORY_TTL_S = None

    # =========================================================================
    # Conversation Configuration
    # =========================================================================
    MAX_CONVERSATION_MESSAGES = 100
    CONVERSATION_IDLE_TIMEOUT_S = 24 * 60 * 60

    # =========================================================================
    # Shared Memory Configuration
    # =========================================================================
    MAX_SHARED_EVENTS = 100

    # =========================================================================
    # Agent State Configuration
    # =========================================================================
    PENDING_ACTION_TTL_S = 60 * 60

    # =========================================================================
    # Orchestration Configuration
    # =========================================================================
    DEFAULT_TASK_TIMEOUT_S = 120.0
    MAX_PARALLEL_TASKS = 5
    MAX_COLLABORATION_ROUNDS = 3
    SUPPORTED_PATTERNS: List[str] = ["sequential", "parallel", "collaborative"]

    EMPTY_RESPONSE_MESSAGE = "I couldn't process your request. Please try rephrasing it."
    REJECTED_PLAN_MESSAGE = (
        "I'm not sure how to help with that yet. "
        "Could you tell me a bit more about what you need?"
    )
    CANCELLED_MESSAGE = "The request was cancelled before it completed."

    # =========================================================================
    # Quick Replies (keyed by a fragment of the plan's primary intent)
    # =========================================================================
    QUICK_REPLIES: Dict[str, List[str]] = {
        "infrastructure": [
            "Check compliance status",
            "Estimate costs",
            "View in Azure Portal",
        ],
        "provision": [
            "Check compliance status",
            "Estimate costs",
            "View in Azure Portal",
        ],
        "compliance": [
            "Generate remediation plan",
            "Create eMASS package",
            "View detailed findings",
        ],
        "cost": [
            "Show optimization suggestions",
            "Set up budget alerts",
            "Compare pricing tiers",
        ],
    }

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    LOG_LEVEL = "INFO"
    LOG_BACKEND = "standard"
    SLOW_TASK_THRESHOLD_S = 1.0
    WARN_TASK_THRESHOLD_S = 5.0
    ERROR_TASK_THRESHOLD_S = 30.0
