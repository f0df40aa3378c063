"""Core data models for the chat bridge."""

from .dialogue import ConversationHistory, ConversationTurn
from .messages import InboundMessage, OutboundReply

__all__ = [
    # Messages
    "InboundMessage",
    "OutboundReply",
    # Dialogue
    "ConversationTurn",
    "ConversationHistory",
]
