"""Error taxonomy for the chat bridge."""


class BridgeError(Exception):
    """Base class for every error the bridge surfaces to the API layer."""


class CacheError(BridgeError):
    """Reserved for the dedup cache. Cache operations are total and never raise it."""


class StoreError(BridgeError):
    """Conversation store connectivity or constraint failure."""


class NotFound(StoreError):
    """No persisted record for the requested message id."""

    def __init__(self, message_id: int):
        super().__init__(f"No conversation record for message {message_id}")
        self.message_id = message_id


class UpstreamError(BridgeError):
    """Network, parse or provider failure while calling the LLM."""


class UnsupportedModel(BridgeError):
    """Configured model name does not match any provider variant."""

    def __init__(self, model: str):
        super().__init__(f"Unsupported model: {model!r}")
        self.model = model


class InvalidSignature(BridgeError):
    """Platform signature check failed."""


class MalformedMessage(BridgeError):
    """Inbound payload could not be decoded."""
