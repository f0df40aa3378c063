"""Application bootstrap and lifecycle management."""

import asyncio
import contextlib
from typing import Protocol

from .cache import TTLCache
from .config import Settings
from .dialogue import DialoguePipeline, IDialoguePipeline
from .errors import UnsupportedModel
from .llm import IChatProvider, create_provider
from .logging_config import get_logger
from .storage import ConversationStore, IConversationStore

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Clear persisted turns and dedup markers."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: Settings | None = None,
        provider: IChatProvider | None = None,
    ):
        self._settings = settings or Settings.from_env()
        # An injected provider skips model resolution (tests, embedding)
        self._injected_provider = provider

        # Components (will be initialized in start())
        self._store: IConversationStore | None = None
        self._cache: TTLCache | None = None
        self._sweep_task: asyncio.Task | None = None
        self._provider: IChatProvider | None = None
        self._pipeline: IDialoguePipeline | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Store (no dependencies)
        self._store = ConversationStore(self._settings.db_path)
        await self._store.init()
        logger.info("Conversation store initialized")

        # 2. Dedup cache and its sweep
        self._cache = TTLCache()
        self._sweep_task = asyncio.create_task(
            self._cache.sweep(self._settings.dedup_ttl_seconds)
        )
        logger.info("Dedup cache initialized")

        # 3. Provider, resolved once. An unknown model does not stop the
        # service; every request is rejected with UnsupportedModel instead.
        if self._injected_provider is not None:
            self._provider = self._injected_provider
        else:
            try:
                self._provider = create_provider(self._settings)
                logger.info("LLM provider initialized for %s", self._settings.upstream_model)
            except UnsupportedModel as e:
                logger.error("%s, all messages will be rejected", e)
                self._provider = None

        # 4. Pipeline (depends on everything above)
        self._pipeline = DialoguePipeline(
            cache=self._cache,
            store=self._store,
            provider=self._provider,
            model=self._settings.upstream_model,
            dedup_ttl=self._settings.dedup_ttl_seconds,
            history_limit=self._settings.history_limit,
        )
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._sweep_task:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None
        if self._provider is not None and self._injected_provider is None:
            await self._provider.close()
        if self._store is not None:
            await self._store.close()
            logger.info("Conversation store closed")

    async def reset(self) -> None:
        """Clear persisted turns and dedup markers."""
        await self.store.clear()
        await self.cache.clear()
        logger.info("Reset complete")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def store(self) -> IConversationStore:
        """Get store instance."""
        if self._store is None:
            raise RuntimeError("Application not started")
        return self._store

    @property
    def cache(self) -> TTLCache:
        """Get dedup cache instance."""
        if self._cache is None:
            raise RuntimeError("Application not started")
        return self._cache

    @property
    def provider(self) -> IChatProvider | None:
        """Resolved provider, None when the model is unsupported."""
        return self._provider

    @property
    def pipeline(self) -> IDialoguePipeline:
        """Get pipeline instance."""
        if self._pipeline is None:
            raise RuntimeError("Application not started")
        return self._pipeline
