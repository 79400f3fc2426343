"""
Constants for Agents Subsystem.

This module defines all constants used throughout the Agents subsystem including
capability agent types, execution patterns and contract field names.
"""

# ============================================================================
# AGENT TYPES (capability kinds)
# ============================================================================

AGENT_TYPE_ORCHESTRATOR = "orchestrator"
AGENT_TYPE_INFRASTRUCTURE = "infrastructure"
AGENT_TYPE_COMPLIANCE = "compliance"
AGENT_TYPE_COST_MANAGEMENT = "cost_management"
AGENT_TYPE_ENVIRONMENT = "environment"
AGENT_TYPE_DISCOVERY = "discovery"
AGENT_TYPE_ONBOARDING = "onboarding"
AGENT_TYPE_KNOWLEDGE_BASE = "knowledge_base"
AGENT_TYPE_SERVICE_CREATION = "service_creation"

# ============================================================================
# EXECUTION PATTERNS
# ============================================================================

PATTERN_SEQUENTIAL = "sequential"
PATTERN_PARALLEL = "parallel"
PATTERN_COLLABORATIVE = "collaborative"

# ============================================================================
# TASK DEFAULTS
# ============================================================================

DEFAULT_TASK_PRIORITY = 1

# ============================================================================
# RESPONSE METADATA KEYS
# ============================================================================

METADATA_MISSING_FIELDS = "missing_fields"
METADATA_FOLLOW_UP_PROMPT = "follow_up_prompt"

# ============================================================================
# ERROR MESSAGES
# ============================================================================

AGENT_NOT_REGISTERED_ERROR = "No capability agent registered for type: {AGENT_TYPE}"
DUPLICATE_AGENT_ERROR = "A capability agent is already registered for type: {AGENT_TYPE}"
UNKNOWN_AGENT_TYPE_ERROR = "Unknown agent type: {AGENT_TYPE}"
UNKNOWN_PATTERN_ERROR = "Unknown execution pattern: {PATTERN}"
