"""Per-question answer generation."""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from core.answers import sampler
from core.answers.pool import AnswerPool, default_answer_pool
from core.answers.text_generation import TextGenerator, generate_text_answer
from core.forms.models import (
    DEFAULT_SCALE_MAX,
    DEFAULT_SCALE_MIN,
    AnswerSet,
    AnswerValue,
    Question,
    QuestionKind,
    UserData,
)

logger = logging.getLogger("formfill.answers")

SHORT_TEXT_MAX_LENGTH = 150
PARAGRAPH_MAX_LENGTH = 500
_DEFAULT_GENERATION_TIMEOUT_SECONDS = 20.0


@dataclass(frozen=True)
class GenerationContext:
    """Collaborators shared by every answer in one fill run."""

    pool: AnswerPool = field(default_factory=default_answer_pool)
    text_generator: TextGenerator | None = None
    generation_timeout_seconds: float = _DEFAULT_GENERATION_TIMEOUT_SECONDS
    rng: random.Random | None = None


KindHandler = Callable[[Question, bool, GenerationContext], Awaitable[AnswerValue]]


async def generate_answer(
    question: Question,
    user_data: UserData | None = None,
    use_external_generation: bool = True,
    *,
    context: GenerationContext | None = None,
) -> AnswerValue:
    """Produce a value satisfying ``question``'s kind contract."""

    context = context or GenerationContext()
    label = question.label.lower()

    if question.kind is QuestionKind.EMAIL or "email" in label:
        if user_data is not None and user_data.email:
            return user_data.email
        return sampler.random_email(rng=context.rng)

    if "name" in label and user_data is not None and user_data.name:
        return user_data.name

    handler = _KIND_HANDLERS[question.kind]
    return await handler(question, use_external_generation, context)


async def generate_form_answers(
    questions: Sequence[Question],
    user_data: UserData | None = None,
    use_external_generation: bool = True,
    *,
    context: GenerationContext | None = None,
) -> AnswerSet:
    """Build one complete answer set; a failing question gets the fixed fallback."""

    context = context or GenerationContext()
    answers: AnswerSet = {}
    for question in questions:
        try:
            answers[question.field_key] = await generate_answer(
                question, user_data, use_external_generation, context=context
            )
        except Exception:  # noqa: BLE001
            logger.exception("answer generation failed for %s", question.field_key)
            answers[question.field_key] = context.pool.question_fallback
    return answers


async def _short_text(question: Question, use_external: bool, context: GenerationContext) -> str:
    if use_external:
        return await _external(question, SHORT_TEXT_MAX_LENGTH, context)
    choice = sampler.random_choice(context.pool.short_text, rng=context.rng)
    return choice if choice is not None else context.pool.question_fallback


async def _paragraph(question: Question, use_external: bool, context: GenerationContext) -> str:
    if use_external:
        return await _external(question, PARAGRAPH_MAX_LENGTH, context)
    return context.pool.paragraph


async def _single_choice(
    question: Question, use_external: bool, context: GenerationContext
) -> str:
    choice = sampler.random_choice(question.options, rng=context.rng)
    return choice if choice is not None else context.pool.choice_placeholder


async def _multi_choice(
    question: Question, use_external: bool, context: GenerationContext
) -> list[str]:
    if not question.options:
        return [context.pool.choice_placeholder]
    return sampler.random_choices(
        question.options, min_count=1, max_count=min(3, len(question.options)), rng=context.rng
    )


async def _linear_scale(
    question: Question, use_external: bool, context: GenerationContext
) -> str:
    low = question.scale_min if question.scale_min is not None else DEFAULT_SCALE_MIN
    high = question.scale_max if question.scale_max is not None else DEFAULT_SCALE_MAX
    return str(sampler.random_int(low, high, rng=context.rng))


async def _date(question: Question, use_external: bool, context: GenerationContext) -> str:
    return sampler.random_date(rng=context.rng)


async def _time(question: Question, use_external: bool, context: GenerationContext) -> str:
    return sampler.random_time(rng=context.rng)


async def _email(question: Question, use_external: bool, context: GenerationContext) -> str:
    return sampler.random_email(rng=context.rng)


async def _external(question: Question, max_length: int, context: GenerationContext) -> str:
    return await generate_text_answer(
        label=question.label,
        kind=question.kind,
        max_length=max_length,
        generator=context.text_generator,
        pool=context.pool,
        timeout_seconds=context.generation_timeout_seconds,
    )


_KIND_HANDLERS: dict[QuestionKind, KindHandler] = {
    QuestionKind.SHORT_TEXT: _short_text,
    QuestionKind.PARAGRAPH: _paragraph,
    QuestionKind.SINGLE_CHOICE: _single_choice,
    QuestionKind.DROPDOWN: _single_choice,
    QuestionKind.MULTI_CHOICE: _multi_choice,
    QuestionKind.LINEAR_SCALE: _linear_scale,
    QuestionKind.DATE: _date,
    QuestionKind.TIME: _time,
    QuestionKind.EMAIL: _email,
}


def _assert_kind_coverage() -> None:
    """Fail fast when a question kind has no generation handler."""

    missing = set(QuestionKind) - set(_KIND_HANDLERS)
    if missing:
        raise RuntimeError(
            f"Answer handlers missing for kinds: {sorted(kind.value for kind in missing)}"
        )


_assert_kind_coverage()
