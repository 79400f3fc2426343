"""
Shared Memory Models.

Version: 1.0.0
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from agentmesh.utils.clock import utc_now


class SharedMemoryEvent(BaseModel):
    """An entry in a conversation's bounded event log."""
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str
    data: Any = None
    timestamp: datetime = Field(default_factory=utc_now)
    source_agent: Optional[str] = None
    conversation_id: Optional[str] = None
