"""WeChat to LLM chat bridge."""

from .app import Application, IApplication
from .cache import ITTLCache, TTLCache
from .config import Settings
from .dialogue import DialoguePipeline, IDialoguePipeline
from .errors import (
    BridgeError,
    CacheError,
    InvalidSignature,
    MalformedMessage,
    NotFound,
    StoreError,
    UnsupportedModel,
    UpstreamError,
)
from .llm import AnthropicChatProvider, IChatProvider, TextCompletionProvider, create_provider
from .models import ConversationHistory, ConversationTurn, InboundMessage, OutboundReply
from .storage import ConversationStore, IConversationStore

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Models
    "InboundMessage",
    "OutboundReply",
    "ConversationTurn",
    "ConversationHistory",
    # Components
    "ITTLCache",
    "TTLCache",
    "IConversationStore",
    "ConversationStore",
    "IChatProvider",
    "AnthropicChatProvider",
    "TextCompletionProvider",
    "create_provider",
    "IDialoguePipeline",
    "DialoguePipeline",
    # Errors
    "BridgeError",
    "CacheError",
    "StoreError",
    "NotFound",
    "UpstreamError",
    "UnsupportedModel",
    "InvalidSignature",
    "MalformedMessage",
]
