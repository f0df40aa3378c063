"""LLM module."""

from .llm_provider import (
    SUPPORTED_MODELS,
    AnthropicChatProvider,
    IChatProvider,
    TextCompletionProvider,
    create_provider,
)

__all__ = [
    "IChatProvider",
    "AnthropicChatProvider",
    "TextCompletionProvider",
    "SUPPORTED_MODELS",
    "create_provider",
]
