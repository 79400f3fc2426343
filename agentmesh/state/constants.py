"""
Constants for State Module.

This module defines all constants used throughout the State subsystem including
key namespaces, status values and error messages.
"""

# ============================================================================
# KEY NAMESPACES
# ============================================================================

KEY_SEPARATOR = ":"
CONVERSATION_KEY_PREFIX = "conversation"
AGENT_KEY_PREFIX = "agent"
SHARED_KEY_PREFIX = "shared"
EVENTS_KEY_PREFIX = "events"

CONVERSATION_KEY = "conversation:{conversation_id}"
AGENT_STATE_KEY = "agent:{conversation_id}:{agent_type}"
SHARED_KEY = "shared:{conversation_id}:{key}"
EVENTS_KEY = "events:{conversation_id}"

# ============================================================================
# GLOB WILDCARDS
# ============================================================================

GLOB_ANY = "*"
GLOB_SINGLE = "?"

# Characters a conversation id may not contain (key separator and glob wildcards)
RESERVED_ID_CHARACTERS = (KEY_SEPARATOR, GLOB_ANY, GLOB_SINGLE)

# ============================================================================
# CONVERSATION STATUSES
# ============================================================================

CONVERSATION_STATUS_ACTIVE = "active"
CONVERSATION_STATUS_PAUSED = "paused"
CONVERSATION_STATUS_COMPLETED = "completed"
CONVERSATION_STATUS_EXPIRED = "expired"
CONVERSATION_STATUS_ERROR = "error"

# ============================================================================
# WORKFLOW STATUSES
# ============================================================================

WORKFLOW_STATUS_NOT_STARTED = "not_started"
WORKFLOW_STATUS_IN_PROGRESS = "in_progress"
WORKFLOW_STATUS_AWAITING_CONFIRMATION = "awaiting_confirmation"
WORKFLOW_STATUS_COMPLETED = "completed"
WORKFLOW_STATUS_FAILED = "failed"
WORKFLOW_STATUS_CANCELLED = "cancelled"

# ============================================================================
# PENDING ACTION STATUSES
# ============================================================================

ACTION_STATUS_PENDING = "pending"
ACTION_STATUS_CONFIRMED = "confirmed"
ACTION_STATUS_REJECTED = "rejected"
ACTION_STATUS_EXPIRED = "expired"
ACTION_STATUS_EXECUTED = "executed"

# ============================================================================
# MESSAGE ROLES
# ============================================================================

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"
ROLE_AGENT = "agent"

# ============================================================================
# BACKENDS
# ============================================================================

MEMORY_BACKEND = "memory"

# ============================================================================
# ERROR MESSAGES
# ============================================================================

UNKNOWN_BACKEND_ERROR = "Unknown state store backend: {BACKEND_NAME}. Available: {AVAILABLE_BACKENDS}"
INVALID_TRANSITION_ERROR = "Cannot move {ENTITY} from '{CURRENT}' to '{TARGET}'"
COMMA = ","
SPACE = " "
