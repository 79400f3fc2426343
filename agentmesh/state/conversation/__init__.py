"""
Conversation State.
"""

from .manager import ConversationStateManager

__all__ = ["ConversationStateManager"]
