"""Dialogue-related data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConversationTurn:
    """One persisted request/response pair."""

    request_text: str
    response_text: str

    def to_dict(self) -> dict:
        return {"request_text": self.request_text, "response_text": self.response_text}

    @classmethod
    def from_dict(cls, data: dict) -> "ConversationTurn":
        return cls(request_text=data["request_text"], response_text=data["response_text"])


ConversationHistory = list[ConversationTurn]
