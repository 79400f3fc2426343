"""
Conversation State Models.

Pydantic models for conversation history, variables and status.

Version: 1.0.0
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from agentmesh.utils.clock import utc_now
from ..enum import ConversationStatus


class Message(BaseModel):
    """A single conversation message."""
    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: str = Field(..., description="Message role (user, assistant, system, agent)")
    content: str = Field(..., description="Message content")
    timestamp: datetime = Field(default_factory=utc_now)
    agent_type: Optional[str] = Field(default=None, description="Agent that produced the message")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ConversationSummary(BaseModel):
    """Lightweight view of a conversation for operational listings."""
    conversation_id: str
    user_id: Optional[str] = None
    created_at: datetime
    last_activity_at: datetime
    message_count: int = 0
    active_agent_type: Optional[str] = None
    status: ConversationStatus = ConversationStatus.ACTIVE


class ConversationState(BaseModel):
    """
    Complete state of one conversation.

    Owned by the ConversationStateManager. Messages are kept in ascending
    timestamp order and bounded by the manager's message cap.
    """
    conversation_id: str = Field(..., description="Conversation identifier")
    user_id: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    last_activity_at: datetime = Field(default_factory=utc_now)
    status: ConversationStatus = Field(default=ConversationStatus.ACTIVE)

    # History
    messages: List[Message] = Field(default_factory=list)

    # Typed variable bag
    variables: Dict[str, Any] = Field(default_factory=dict)

    active_agent_type: Optional[str] = Field(default=None)

    def touch(self, now: Optional[datetime] = None) -> None:
        """Mark the conversation as active right now."""
        self.last_activity_at = now or utc_now()

    def trim_messages(self, max_messages: int) -> int:
        """
        Keep only the most recent max_messages by timestamp.

        The sort is stable, so messages sharing a timestamp keep insertion order.

        Returns:
            Number of messages dropped
        """
        if len(self.messages) <= max_messages:
            return 0
        ordered = sorted(self.messages, key=lambda m: m.timestamp)
        dropped = len(ordered) - max_messages
        self.messages = ordered[dropped:]
        return dropped

    def to_summary(self) -> ConversationSummary:
        return ConversationSummary(
            conversation_id=self.conversation_id,
            user_id=self.user_id,
            created_at=self.created_at,
            last_activity_at=self.last_activity_at,
            message_count=len(self.messages),
            active_agent_type=self.active_agent_type,
            status=self.status,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump(mode='json')
