"""
Key builders for the state persistence layout.

    conversation:{conversation_id}
    agent:{conversation_id}:{agent_type}
    shared:{conversation_id}:{key}
    events:{conversation_id}

Conversation ids are checked before they are placed in a key: an id holding
the separator or a glob wildcard would make one conversation's patterns
match another conversation's keys.
"""

from enum import Enum
from typing import Any

from .constants import (
    AGENT_STATE_KEY,
    CONVERSATION_KEY,
    EVENTS_KEY,
    GLOB_ANY,
    RESERVED_ID_CHARACTERS,
    SHARED_KEY,
)
from .exceptions import InvalidConversationIdError


def tag_value(tag: Any) -> str:
    """Plain string form of an enum tag or string."""
    if isinstance(tag, Enum):
        return str(tag.value)
    return str(tag)


def validate_conversation_id(conversation_id: Any) -> str:
    """
    Return conversation_id unchanged if it can be used in a key.

    Raises:
        InvalidConversationIdError: If the id is not a non-empty string or
            contains ':', '*' or '?'
    """
    if not isinstance(conversation_id, str) or not conversation_id:
        raise InvalidConversationIdError(conversation_id, "must be a non-empty string")
    reserved = [c for c in RESERVED_ID_CHARACTERS if c in conversation_id]
    if reserved:
        raise InvalidConversationIdError(conversation_id, f"contains reserved character(s) {' '.join(reserved)}")
    return conversation_id


def conversation_key(conversation_id: str) -> str:
    return CONVERSATION_KEY.format(conversation_id=validate_conversation_id(conversation_id))


def agent_state_key(conversation_id: str, agent_type: Any) -> str:
    return AGENT_STATE_KEY.format(
        conversation_id=validate_conversation_id(conversation_id),
        agent_type=tag_value(agent_type),
    )


def shared_key(conversation_id: str, key: str) -> str:
    return SHARED_KEY.format(conversation_id=validate_conversation_id(conversation_id), key=key)


def events_key(conversation_id: str) -> str:
    return EVENTS_KEY.format(conversation_id=validate_conversation_id(conversation_id))


def conversation_pattern() -> str:
    return CONVERSATION_KEY.format(conversation_id=GLOB_ANY)


def agent_state_pattern(conversation_id: str) -> str:
    return agent_state_key(conversation_id, GLOB_ANY)


def shared_pattern(conversation_id: str) -> str:
    return shared_key(conversation_id, GLOB_ANY)
