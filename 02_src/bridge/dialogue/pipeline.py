"""Dedup-and-dispatch pipeline for inbound messages."""

import time
from typing import Protocol

from ..cache import ITTLCache
from ..config import DEFAULT_DEDUP_TTL_SECONDS, DEFAULT_HISTORY_LIMIT
from ..errors import UnsupportedModel
from ..llm import IChatProvider
from ..logging_config import get_logger
from ..models import InboundMessage, OutboundReply
from ..storage import IConversationStore

logger = get_logger(__name__)

DEDUP_KEY_PREFIX = "MSGID_"


def dedup_key(message_id: int) -> str:
    """Cache key marking that a reply for message_id is in progress or done."""
    return f"{DEDUP_KEY_PREFIX}{message_id}"


class IDialoguePipeline(Protocol):
    """Turns one inbound message into one reply."""

    async def handle(self, message: InboundMessage) -> OutboundReply:
        """Answer the message, calling upstream at most once per message id."""
        ...


class DialoguePipeline:
    """
    Answers inbound messages, deduplicating platform retries.

    A fresh message id is claimed in the cache before any slow work, so a
    retry arriving while upstream is still running sees the claim and reads
    the persisted reply instead of calling upstream again. There is no
    compare-and-swap: two deliveries that both read the cache before either
    claims it will both proceed.

    If the first delivery has not persisted yet, the retry's lookup raises
    NotFound. A claim is never rolled back on failure, so retries within the
    TTL after a failed first attempt also end in NotFound.
    """

    def __init__(
        self,
        cache: ITTLCache,
        store: IConversationStore,
        provider: IChatProvider | None,
        model: str = "",
        dedup_ttl: float = DEFAULT_DEDUP_TTL_SECONDS,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self._cache = cache
        self._store = store
        self._provider = provider
        self._model = model
        self._dedup_ttl = dedup_ttl
        self._history_limit = history_limit

    async def handle(self, message: InboundMessage) -> OutboundReply:
        """
        Produce the reply for an inbound message.

        Raises:
            UnsupportedModel: No provider is configured for the model name.
            NotFound: Duplicate delivery whose first attempt has no persisted reply.
            StoreError: Store failure.
            UpstreamError: LLM call failure.
        """
        if self._provider is None:
            raise UnsupportedModel(self._model)

        key = dedup_key(message.message_id)

        if await self._cache.get(key) is not None:
            return await self._handle_duplicate(message, key)

        await self._cache.set(key, self._cache.now(), self._dedup_ttl)
        logger.debug("Claimed %s", key)

        return await self._handle_fresh(message)

    async def _handle_duplicate(self, message: InboundMessage, key: str) -> OutboundReply:
        logger.warning("Duplicate delivery from platform, key is %s", key)
        content = await self._store.get_by_message_id(message.message_id)
        logger.warning("Duplicate delivery answered from store, key is %s", key)
        return OutboundReply.reply_to(message, content)

    async def _handle_fresh(self, message: InboundMessage) -> OutboundReply:
        history = await self._store.get_recent(
            message.user_id, message.topic_id, self._history_limit
        )

        logger.debug("Sending message %s upstream", message.message_id)
        started = time.monotonic()
        response_text = await self._provider.complete(history, message.text)
        elapsed = time.monotonic() - started
        logger.debug("Upstream replied to message %s", message.message_id)

        await self._store.append(
            message.message_id,
            message.user_id,
            message.topic_id,
            message.text,
            response_text,
            elapsed,
        )

        logger.info(
            "Answered message %s",
            message.message_id,
            extra={
                "context": {
                    "message_id": message.message_id,
                    "user_id": message.user_id,
                    "topic_id": message.topic_id,
                    "history_turns": len(history),
                    "elapsed_ms": int(elapsed * 1000),
                }
            },
        )

        return OutboundReply.reply_to(message, response_text)
