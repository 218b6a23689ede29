"""External text-generation service client."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from openai import AsyncOpenAI

from core.answers.pool import AnswerPool
from core.forms.models import QuestionKind
from core.settings import Settings

logger = logging.getLogger("formfill.answers")

SYSTEM_PROMPT = (
    "You are helping to fill out a survey form. Generate realistic, natural-sounding "
    "answers that would be typical responses from a real person. Keep answers concise "
    "and relevant to the question asked."
)
_ELLIPSIS = "..."


class TextGenerator(Protocol):
    """Role-tagged completion call against some text-generation backend."""

    async def complete(self, *, system: str, prompt: str, max_tokens: int) -> str:
        """Return the generated text for one prompt."""


class OpenAITextGenerator:
    """``TextGenerator`` backed by the OpenAI chat completions API."""

    def __init__(self, *, api_key: str, model: str, timeout_seconds: float) -> None:
        self.model = model
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)

    async def complete(self, *, system: str, prompt: str, max_tokens: int) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            max_completion_tokens=max_tokens,
        )
        if not response.choices:
            raise ValueError("completion response has no choices")
        content = response.choices[0].message.content
        return (content or "").strip()


def build_text_generator(settings: Settings) -> TextGenerator | None:
    """Return the configured generator, or None when no credential is set."""

    if not settings.openai_api_key:
        return None
    return OpenAITextGenerator(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout_seconds=settings.generation_timeout_seconds,
    )


def build_prompt(label: str, kind: QuestionKind, max_length: int) -> str:
    if kind is QuestionKind.PARAGRAPH:
        return (
            f"Answer this survey question with 2-4 sentences "
            f'(max {max_length} characters): "{label}"'
        )
    if kind is QuestionKind.SHORT_TEXT:
        return (
            f"Answer this survey question briefly in 1-2 sentences "
            f'(max {max_length} characters): "{label}"'
        )
    return (
        f"Provide a brief, natural answer to this question "
        f'(max {max_length} characters): "{label}"'
    )


def truncate_answer(text: str, max_length: int) -> str:
    """Cap ``text`` at ``max_length`` characters, marking the cut with an ellipsis."""

    if len(text) <= max_length:
        return text
    return text[: max(0, max_length - len(_ELLIPSIS))] + _ELLIPSIS


async def generate_text_answer(
    *,
    label: str,
    kind: QuestionKind,
    max_length: int,
    generator: TextGenerator | None,
    pool: AnswerPool,
    timeout_seconds: float,
) -> str:
    """Generate a natural-language answer, substituting a canned one on any failure."""

    if generator is None:
        logger.warning("text generation unavailable; using fallback for %s", kind.value)
        return pool.generation_fallback(kind)

    try:
        text = await asyncio.wait_for(
            generator.complete(
                system=SYSTEM_PROMPT,
                prompt=build_prompt(label, kind, max_length),
                max_tokens=500 if max_length > 100 else 150,
            ),
            timeout=timeout_seconds,
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "text generation failed (%s); using fallback for %s", type(exc).__name__, kind.value
        )
        return pool.generation_fallback(kind)

    return truncate_answer(text, max_length)
