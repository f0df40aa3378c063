"""Message-related data models."""

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class InboundMessage:
    """A message delivered by the platform. Retries reuse message_id."""

    message_id: int
    to_user: str  # the official account that received the message
    from_user: str  # the subscriber who sent it
    text: str
    create_time: int = 0
    msg_type: str = "text"

    @property
    def user_id(self) -> str:
        return self.from_user

    @property
    def topic_id(self) -> str:
        return self.to_user


@dataclass(frozen=True)
class OutboundReply:
    """A passive text reply, addressed back to the sender."""

    to_user: str
    from_user: str
    content: str
    created_time: int = field(default_factory=lambda: int(time.time()))
    message_kind: str = "text"

    @classmethod
    def reply_to(cls, inbound: InboundMessage, content: str) -> "OutboundReply":
        """Build a reply with to/from swapped relative to the inbound envelope."""
        return cls(to_user=inbound.from_user, from_user=inbound.to_user, content=content)
