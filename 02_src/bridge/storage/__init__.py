"""Storage module."""

from .storage import ConversationStore, IConversationStore

__all__ = ["ConversationStore", "IConversationStore"]
