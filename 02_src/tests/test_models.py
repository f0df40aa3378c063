"""Tests for data models."""

import dataclasses
import time

import pytest

from bridge.models import ConversationTurn, InboundMessage, OutboundReply


class TestInboundMessage:
    """Tests for InboundMessage model."""

    def test_user_and_topic(self):
        """Test that the sender is the user and the account is the topic."""
        msg = InboundMessage(message_id=42, to_user="A", from_user="B", text="hi")
        assert msg.user_id == "B"
        assert msg.topic_id == "A"
        assert msg.msg_type == "text"

    def test_immutable(self):
        """Test that inbound messages cannot be mutated."""
        msg = InboundMessage(message_id=42, to_user="A", from_user="B", text="hi")
        with pytest.raises(dataclasses.FrozenInstanceError):
            msg.text = "changed"  # type: ignore[misc]


class TestOutboundReply:
    """Tests for OutboundReply model."""

    def test_reply_to_swaps_addresses(self):
        """Test that a reply goes back to the sender from the account."""
        inbound = InboundMessage(message_id=42, to_user="A", from_user="B", text="hi")

        before = int(time.time())
        reply = OutboundReply.reply_to(inbound, "hello")

        assert reply.to_user == "B"
        assert reply.from_user == "A"
        assert reply.content == "hello"
        assert reply.message_kind == "text"
        assert reply.created_time >= before


class TestConversationTurn:
    """Tests for ConversationTurn model."""

    def test_dict_shape(self):
        """Test the persisted payload keys."""
        turn = ConversationTurn("q", "a")
        assert turn.to_dict() == {"request_text": "q", "response_text": "a"}
        assert ConversationTurn.from_dict(turn.to_dict()) == turn
