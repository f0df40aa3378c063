"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def cache(clock):
    """Create a TTL cache driven by the fake clock."""
    from bridge.cache import TTLCache

    return TTLCache(clock=clock)


@pytest_asyncio.fixture
async def store():
    """Create in-memory conversation store for testing."""
    from bridge.storage import ConversationStore

    st = ConversationStore(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def mock_provider():
    """Create mock chat provider."""
    provider = Mock()
    provider.complete = AsyncMock(return_value="Test response")
    provider.close = AsyncMock()
    return provider


@pytest.fixture
def pipeline(cache, store, mock_provider):
    """Create DialoguePipeline for testing."""
    from bridge.dialogue import DialoguePipeline

    return DialoguePipeline(
        cache=cache,
        store=store,
        provider=mock_provider,
        model="claude-3-5-sonnet-20241022",
        dedup_ttl=60,
        history_limit=10,
    )


@pytest.fixture
def inbound():
    """Create an inbound text message."""
    from bridge.models import InboundMessage

    return InboundMessage(message_id=42, to_user="A", from_user="B", text="hi")


@pytest.fixture
def settings():
    """Create settings backed by an in-memory database."""
    from bridge.config import Settings

    return Settings(db_path=":memory:", wechat_token="test_token")
