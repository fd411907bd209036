"""Text generation bridge used by recommendations and the chatbot."""
from __future__ import annotations

import logging
from typing import Protocol, Sequence

from openai import AsyncOpenAI, OpenAIError

from app.core.config import OpenAIConfig
from app.core.exceptions import UpstreamException

logger = logging.getLogger(__name__)

ASSISTANT_PROMPT = (
    "You are a helpful travel assistant for a tourism destination directory. "
    "Answer briefly and only recommend destinations that are provided to you."
)

EXTRACT_PROMPT = (
    "Extract the destination name, category (singular form) or district the user "
    "is asking about. Reply with that single term only, or 'None' if there is nothing."
)

CLASSIFY_PROMPT = (
    "Pick the option that best matches the text. Reply with the option exactly as "
    "written, or 'None' if no option fits."
)


class TextGenerator(Protocol):
    """Narrow interface over a text-generation provider."""

    async def respond(self, prompt: str, system: str | None = None, max_tokens: int = 150) -> str:
        ...

    async def extract(self, text: str) -> str | None:
        ...

    async def classify(self, text: str, candidates: Sequence[str]) -> str | None:
        ...


def _none_if_empty(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip().strip(".\"'")
    if not cleaned or cleaned.lower() == "none":
        return None
    return cleaned


class OpenAITextGenerator:
    """OpenAI chat-completions implementation of TextGenerator."""

    def __init__(self, config: OpenAIConfig, client: AsyncOpenAI | None = None) -> None:
        self.model = config.model
        self._client = client
        if self._client is None and config.api_key:
            self._client = AsyncOpenAI(api_key=config.api_key)
            logger.info("OpenAI client initialized")

    async def _complete(
        self, system: str, user: str, max_tokens: int, temperature: float = 0.7
    ) -> str:
        if self._client is None:
            raise UpstreamException("Text generation is not configured")
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise UpstreamException(f"Text generation failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip()

    async def respond(self, prompt: str, system: str | None = None, max_tokens: int = 150) -> str:
        return await self._complete(system or ASSISTANT_PROMPT, prompt, max_tokens)

    async def extract(self, text: str) -> str | None:
        raw = await self._complete(EXTRACT_PROMPT, text, max_tokens=30, temperature=0.3)
        return _none_if_empty(raw)

    async def classify(self, text: str, candidates: Sequence[str]) -> str | None:
        if not candidates:
            return None
        options = "\n".join(f"- {candidate}" for candidate in candidates)
        raw = await self._complete(
            CLASSIFY_PROMPT, f"Options:\n{options}\n\nText: {text}", max_tokens=30, temperature=0.0
        )
        answer = _none_if_empty(raw)
        if answer is None:
            return None
        for candidate in candidates:
            if candidate.lower() == answer.lower():
                return candidate
        return None
