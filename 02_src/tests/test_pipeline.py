"""Tests for DialoguePipeline."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from bridge.cache import TTLCache
from bridge.dialogue import DialoguePipeline, dedup_key
from bridge.errors import NotFound, StoreError, UnsupportedModel, UpstreamError
from bridge.models import ConversationTurn, InboundMessage


class TestPipelineFresh:
    """Tests for first delivery of a message."""

    async def test_round_trip_reply(self, pipeline, inbound, mock_provider):
        """Test that the reply swaps to/from and carries the upstream text."""
        mock_provider.complete.return_value = "hello"

        reply = await pipeline.handle(inbound)

        assert reply.to_user == "B"
        assert reply.from_user == "A"
        assert reply.content == "hello"
        assert reply.message_kind == "text"
        assert reply.created_time > 0

    async def test_claims_dedup_key(self, pipeline, inbound, cache, clock):
        """Test that the marker is set with the configured TTL."""
        await pipeline.handle(inbound)

        assert dedup_key(42) == "MSGID_42"
        assert await cache.get("MSGID_42") == clock.now + 60

    async def test_persists_turn(self, pipeline, inbound, store):
        """Test that the exchange is recorded under the message id."""
        await pipeline.handle(inbound)

        assert await store.get_by_message_id(42) == "Test response"
        assert await store.get_recent("B", "A", 10) == [
            ConversationTurn("hi", "Test response")
        ]

    async def test_sends_history(self, pipeline, store, mock_provider):
        """Test that previous turns of the same conversation reach upstream."""
        await store.append(1, "B", "A", "first", "one", 0.1)
        await store.append(2, "B", "A", "second", "two", 0.1)
        await store.append(3, "C", "A", "someone else", "x", 0.1)

        await pipeline.handle(InboundMessage(10, to_user="A", from_user="B", text="third"))

        mock_provider.complete.assert_awaited_once_with(
            [ConversationTurn("first", "one"), ConversationTurn("second", "two")],
            "third",
        )

    async def test_history_limited(self, cache, store, mock_provider):
        """Test that only history_limit turns are sent."""
        pipeline = DialoguePipeline(cache, store, mock_provider, history_limit=3)
        for i in range(5):
            await store.append(i, "B", "A", f"q{i}", f"a{i}", 0.1)

        await pipeline.handle(InboundMessage(99, to_user="A", from_user="B", text="next"))

        history = mock_provider.complete.call_args.args[0]
        assert [t.request_text for t in history] == ["q2", "q3", "q4"]


class TestPipelineDuplicate:
    """Tests for repeated delivery of the same message id."""

    async def test_retry_after_completion_reads_store(
        self, pipeline, inbound, mock_provider
    ):
        """Test that a retry is answered from the store without upstream."""
        first = await pipeline.handle(inbound)
        second = await pipeline.handle(inbound)

        assert mock_provider.complete.await_count == 1
        assert second.content == first.content
        assert second.to_user == "B"
        assert second.from_user == "A"

    async def test_concurrent_retry_does_not_call_upstream(self, store, inbound):
        """Test that a retry 10ms into a 500ms upstream call takes the duplicate branch."""
        provider = Mock()

        async def slow_complete(history, text):
            await asyncio.sleep(0.5)
            return "hello"

        provider.complete = AsyncMock(side_effect=slow_complete)
        pipeline = DialoguePipeline(TTLCache(), store, provider)

        async def delayed_retry():
            await asyncio.sleep(0.01)
            return await pipeline.handle(inbound)

        first, second = await asyncio.gather(
            pipeline.handle(inbound), delayed_retry(), return_exceptions=True
        )

        assert provider.complete.await_count == 1
        assert first.content == "hello"
        # The first delivery had not persisted yet when the retry looked it up
        assert isinstance(second, NotFound)

        third = await pipeline.handle(inbound)
        assert third.content == "hello"
        assert provider.complete.await_count == 1
        assert await store.count() == 1

    async def test_marker_not_rolled_back_on_failure(
        self, pipeline, inbound, mock_provider, store
    ):
        """Test that a failed first attempt leaves retries in the duplicate branch."""
        mock_provider.complete.side_effect = UpstreamError("timeout")

        with pytest.raises(UpstreamError):
            await pipeline.handle(inbound)

        with pytest.raises(NotFound):
            await pipeline.handle(inbound)

        assert mock_provider.complete.await_count == 1
        assert await store.count() == 0

    async def test_expired_marker_is_fresh_again(
        self, pipeline, inbound, mock_provider, clock, store
    ):
        """Test that a retry after the TTL redoes the work."""
        mock_provider.complete.side_effect = [UpstreamError("timeout"), "recovered"]

        with pytest.raises(UpstreamError):
            await pipeline.handle(inbound)

        clock.advance(60)
        reply = await pipeline.handle(inbound)

        assert reply.content == "recovered"
        assert mock_provider.complete.await_count == 2
        assert await store.get_by_message_id(42) == "recovered"

    async def test_deleted_marker_is_fresh_again(self, pipeline, inbound, cache, mock_provider):
        """Test that removing the marker makes the next delivery fresh."""
        mock_provider.complete.side_effect = [UpstreamError("timeout"), "recovered"]

        with pytest.raises(UpstreamError):
            await pipeline.handle(inbound)

        await cache.delete(dedup_key(42))

        assert (await pipeline.handle(inbound)).content == "recovered"


class TestPipelineErrors:
    """Tests for error propagation."""

    async def test_unsupported_model_fails_fast(self, cache, inbound):
        """Test that a pipeline without provider rejects every call untouched."""
        store = Mock()
        store.get_recent = AsyncMock()
        store.get_by_message_id = AsyncMock()
        store.append = AsyncMock()
        pipeline = DialoguePipeline(cache, store, provider=None, model="not-a-real-model")

        for _ in range(2):
            with pytest.raises(UnsupportedModel, match="not-a-real-model"):
                await pipeline.handle(inbound)

        store.get_recent.assert_not_awaited()
        store.get_by_message_id.assert_not_awaited()
        store.append.assert_not_awaited()
        assert cache.size == 0

    async def test_history_failure_propagates(self, cache, inbound, mock_provider):
        """Test that a store failure while fetching history aborts the request."""
        store = Mock()
        store.get_recent = AsyncMock(side_effect=StoreError("db down"))
        pipeline = DialoguePipeline(cache, store, mock_provider)

        with pytest.raises(StoreError):
            await pipeline.handle(inbound)

        mock_provider.complete.assert_not_awaited()

    async def test_persist_failure_propagates(self, cache, inbound, mock_provider):
        """Test that a persist failure surfaces after the upstream call."""
        store = Mock()
        store.get_recent = AsyncMock(return_value=[])
        store.append = AsyncMock(side_effect=StoreError("disk full"))
        pipeline = DialoguePipeline(cache, store, mock_provider)

        with pytest.raises(StoreError, match="disk full"):
            await pipeline.handle(inbound)

        mock_provider.complete.assert_awaited_once()
