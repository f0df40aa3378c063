"""Upstream chat-completion providers."""

import os
from typing import Protocol

import anthropic
import httpx

from ..config import DEFAULT_OPENAI_API_URL, Settings
from ..errors import UnsupportedModel, UpstreamError
from ..logging_config import get_logger
from ..models import ConversationTurn

logger = get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a friendly assistant answering messages sent to a WeChat official "
    "account. Keep replies short enough to read comfortably on a phone."
)


class IChatProvider(Protocol):
    """Accepts ordered history plus a new utterance, returns reply text or fails."""

    async def complete(self, history: list[ConversationTurn], text: str) -> str:
        """Generate a reply. Raises UpstreamError on any failure."""
        ...

    async def close(self) -> None:
        """Release the underlying HTTP client."""
        ...


class AnthropicChatProvider:
    """Anthropic Claude Messages API provider."""

    MODEL = "claude-3-5-sonnet-20241022"

    def __init__(
        self,
        api_key: str | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_tokens: int = 1024,
    ):
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self._api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")

        self._model = self.MODEL
        self._system = system_prompt
        self._max_tokens = max_tokens
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)

    @staticmethod
    def build_messages(history: list[ConversationTurn], text: str) -> list[dict]:
        """Each past turn becomes a user/assistant pair, followed by the new message."""
        messages = []
        for turn in history:
            messages.append({"role": "user", "content": turn.request_text})
            messages.append({"role": "assistant", "content": turn.response_text})
        messages.append({"role": "user", "content": text})
        return messages

    async def complete(self, history: list[ConversationTurn], text: str) -> str:
        """Generate a reply using the Claude API."""
        messages = self.build_messages(history, text)
        logger.debug("Sending %d messages to %s", len(messages), self._model)

        try:
            response = await self._client.messages.create(
                model=self._model,
                system=self._system,
                messages=messages,
                max_tokens=self._max_tokens,
            )
            return response.content[0].text

        except Exception as e:
            raise UpstreamError(f"LLM API error: {e}") from e

    async def close(self) -> None:
        await self._client.close()


class TextCompletionProvider:
    """
    OpenAI-style text completion provider.

    The conversation is flattened into one prompt where every question is
    prefixed with QUESTION_MARK and every answer with ANSWER_MARK. Both
    markers are passed as stop sequences so the model produces exactly one
    answer.
    """

    MODEL = "text-davinci-003"
    QUESTION_MARK = "Q:"
    ANSWER_MARK = "A:"

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str = DEFAULT_OPENAI_API_URL,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_tokens: int = 100,
        client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self._api_key:
            raise ValueError("OPENAI_API_KEY environment variable not set")

        self._api_url = api_url
        self._system = system_prompt
        self._max_tokens = max_tokens
        self._client = client or httpx.AsyncClient()

    def build_prompt(self, history: list[ConversationTurn], text: str) -> str:
        parts = [self._system, "\n"]
        for turn in history:
            parts.append(f"{self.QUESTION_MARK}{turn.request_text}\n")
            parts.append(f"{self.ANSWER_MARK}{turn.response_text}\n")
        parts.append(f"{self.QUESTION_MARK}{text}\n{self.ANSWER_MARK}")
        return "".join(parts)

    async def complete(self, history: list[ConversationTurn], text: str) -> str:
        """Generate a reply using the completions endpoint."""
        body = {
            "model": self.MODEL,
            "prompt": self.build_prompt(history, text),
            "temperature": 0,
            "max_tokens": self._max_tokens,
            "stop": [self.QUESTION_MARK, self.ANSWER_MARK],
        }
        logger.debug("Sending prompt with %d history turns to %s", len(history), self.MODEL)

        try:
            response = await self._client.post(
                self._api_url,
                json=body,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            response.raise_for_status()
            data = response.json()
            return data["choices"][0]["text"].strip()

        except httpx.HTTPError as e:
            raise UpstreamError(f"LLM API error: {e}") from e
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamError(f"Unexpected LLM response: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()


SUPPORTED_MODELS = (AnthropicChatProvider.MODEL, TextCompletionProvider.MODEL)


def create_provider(settings: Settings) -> IChatProvider:
    """
    Resolve the configured model name to a provider variant.

    Raises:
        UnsupportedModel: If the name does not exactly match a supported model.
    """
    model = settings.upstream_model
    if model == AnthropicChatProvider.MODEL:
        return AnthropicChatProvider(api_key=settings.anthropic_api_key)
    if model == TextCompletionProvider.MODEL:
        return TextCompletionProvider(
            api_key=settings.openai_api_key,
            api_url=settings.openai_api_url,
        )
    raise UnsupportedModel(model)
