"""
Constants for Orchestration Module.

This module defines all constants used throughout the orchestration subsystem
including outcomes, task statuses, event types and message templates.
"""

# ============================================================================
# ORCHESTRATION OUTCOMES
# ============================================================================

OUTCOME_COMPLETED = "completed"
OUTCOME_FAILED = "failed"
OUTCOME_CANCELLED = "cancelled"
OUTCOME_REJECTED = "rejected"

# ============================================================================
# TASK STATUSES
# ============================================================================

TASK_STATUS_SUCCEEDED = "succeeded"
TASK_STATUS_FAILED = "failed"
TASK_STATUS_TIMED_OUT = "timed_out"
TASK_STATUS_CANCELLED = "cancelled"
TASK_STATUS_AWAITING_INPUT = "awaiting_input"
TASK_STATUS_SKIPPED = "skipped"

# ============================================================================
# SHARED MEMORY EVENT TYPES
# ============================================================================

EVENT_RUN_STARTED = "orchestration_started"
EVENT_RUN_FINISHED = "orchestration_finished"
EVENT_TASK_COMPLETED = "task_completed"
EVENT_TASK_FAILED = "task_failed"
EVENT_ROUND_COMPLETED = "collaboration_round_completed"

# ============================================================================
# TASK PARAMETERS ADDED DURING COLLABORATION
# ============================================================================

PARAM_ROUND = "round"
PARAM_PEER_FEEDBACK = "peer_feedback"

# ============================================================================
# CONTEXT KEYS
# ============================================================================

CONTEXT_CONVERSATION_VARIABLES = "conversation_variables"
CONTEXT_HISTORY = "history"

# ============================================================================
# MESSAGE TEMPLATES
# ============================================================================

AGENT_SECTION_TEMPLATE = "**{AGENT_NAME} Agent:**\n{CONTENT}"
SECTION_SEPARATOR = "\n\n"
PREVIOUS_FEEDBACK_TEMPLATE = "{DESCRIPTION}\n\nPrevious feedback:\n{FEEDBACK}"
FEEDBACK_LINE_TEMPLATE = "- {AGENT_NAME}: {CONTENT}"
TASK_ERROR_TEMPLATE = "{AGENT_TYPE}: {ERROR}"
FOLLOW_UP_PROMPT_TEMPLATE = "To continue, I need a bit more information: {FIELDS}."
TIMEOUT_ERROR = "Timed out after {TIMEOUT}s"
CANCELLED_ERROR = "Cancelled before completion"
SKIPPED_ERROR = "Not dispatched: missing {FIELDS}"
SYNTHESIS_DEGRADED_WARNING = "Response synthesis failed; showing individual agent results"

# ============================================================================
# ROLES
# ============================================================================

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
