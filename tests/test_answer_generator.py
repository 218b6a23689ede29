from __future__ import annotations

import random
import re

import pytest

import core.answers.generator as generator_module
from core.answers.generator import GenerationContext, generate_answer, generate_form_answers
from core.answers.pool import default_answer_pool
from core.forms.models import Question, QuestionKind, UserData


def _question(
    kind: QuestionKind,
    label: str = "Question",
    *,
    key: str = "entry.1",
    options: list[str] | None = None,
    scale: tuple[int, int] | None = None,
) -> Question:
    return Question(
        id="q1",
        kind=kind,
        label=label,
        field_key=key,
        options=options or [],
        scale_min=scale[0] if scale else None,
        scale_max=scale[1] if scale else None,
    )


@pytest.fixture
def context() -> GenerationContext:
    return GenerationContext(rng=random.Random(42))


@pytest.mark.anyio
async def test_email_label_uses_caller_email(context: GenerationContext) -> None:
    question = _question(QuestionKind.SHORT_TEXT, "Your Email address")

    answer = await generate_answer(
        question, UserData(email="me@example.org"), False, context=context
    )

    assert answer == "me@example.org"


@pytest.mark.anyio
async def test_email_kind_without_user_data_generates_address(
    context: GenerationContext,
) -> None:
    answer = await generate_answer(_question(QuestionKind.EMAIL, "Contact"), context=context)

    assert isinstance(answer, str)
    assert re.fullmatch(r"[a-z]+\d{1,3}@[a-z]+\.(com|org)", answer)


@pytest.mark.anyio
async def test_name_label_uses_caller_name_verbatim(context: GenerationContext) -> None:
    question = _question(QuestionKind.SINGLE_CHOICE, "Full NAME", options=["A", "B"])

    answer = await generate_answer(question, UserData(name="Ada Lovelace"), context=context)

    assert answer == "Ada Lovelace"


@pytest.mark.anyio
async def test_name_label_without_user_name_uses_kind_rule(context: GenerationContext) -> None:
    question = _question(QuestionKind.SHORT_TEXT, "Your name")

    answer = await generate_answer(question, UserData(email="x@y.z"), False, context=context)

    assert answer in default_answer_pool().short_text


@pytest.mark.anyio
async def test_text_kinds_without_external_generation(context: GenerationContext) -> None:
    pool = default_answer_pool()

    short = await generate_answer(_question(QuestionKind.SHORT_TEXT), None, False, context=context)
    paragraph = await generate_answer(
        _question(QuestionKind.PARAGRAPH), None, False, context=context
    )

    assert short in pool.short_text
    assert paragraph == pool.paragraph


@pytest.mark.anyio
async def test_external_generation_without_generator_uses_fallback(
    context: GenerationContext,
) -> None:
    answer = await generate_answer(_question(QuestionKind.SHORT_TEXT), None, True, context=context)

    assert answer == "This is a sample response"


@pytest.mark.anyio
async def test_external_generation_uses_context_generator() -> None:
    class _Generator:
        async def complete(self, *, system: str, prompt: str, max_tokens: int) -> str:
            return "Generated reply"

    context = GenerationContext(text_generator=_Generator(), rng=random.Random(1))

    answer = await generate_answer(_question(QuestionKind.PARAGRAPH), None, True, context=context)

    assert answer == "Generated reply"


@pytest.mark.anyio
@pytest.mark.parametrize("kind", [QuestionKind.SINGLE_CHOICE, QuestionKind.DROPDOWN])
async def test_single_choice_kinds(kind: QuestionKind, context: GenerationContext) -> None:
    options = ["Red", "Green", "Blue"]

    picked = await generate_answer(_question(kind, options=options), context=context)
    placeholder = await generate_answer(_question(kind), context=context)

    assert picked in options
    assert placeholder == "Option 1"


@pytest.mark.anyio
async def test_multi_choice_picks_one_to_three_distinct(context: GenerationContext) -> None:
    options = ["a", "b", "c", "d", "e"]
    question = _question(QuestionKind.MULTI_CHOICE, options=options)

    for _ in range(30):
        answer = await generate_answer(question, context=context)
        assert isinstance(answer, list)
        assert 1 <= len(answer) <= 3
        assert len(set(answer)) == len(answer)
        assert set(answer) <= set(options)

    empty = await generate_answer(_question(QuestionKind.MULTI_CHOICE), context=context)
    assert empty == ["Option 1"]


@pytest.mark.anyio
async def test_linear_scale_is_string_within_bounds(context: GenerationContext) -> None:
    bounded = _question(QuestionKind.LINEAR_SCALE, scale=(0, 10))
    unbounded = _question(QuestionKind.LINEAR_SCALE)

    for _ in range(30):
        value = await generate_answer(bounded, context=context)
        assert isinstance(value, str) and 0 <= int(value) <= 10
        default = await generate_answer(unbounded, context=context)
        assert isinstance(default, str) and 1 <= int(default) <= 5


@pytest.mark.anyio
async def test_date_and_time_formats(context: GenerationContext) -> None:
    date_value = await generate_answer(_question(QuestionKind.DATE, "Visit"), context=context)
    time_value = await generate_answer(_question(QuestionKind.TIME, "Arrival"), context=context)

    assert re.fullmatch(r"\d{2}/\d{2}/\d{4}", str(date_value))
    assert re.fullmatch(r"\d{2}:\d{2}", str(time_value))


@pytest.mark.anyio
async def test_form_answers_cover_every_key_and_isolate_failures(
    context: GenerationContext, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def _broken(question: Question, use_external: bool, ctx: GenerationContext) -> str:
        raise RuntimeError("boom")

    monkeypatch.setitem(generator_module._KIND_HANDLERS, QuestionKind.DATE, _broken)
    questions = [
        _question(QuestionKind.DATE, "Visit", key="entry.10"),
        _question(QuestionKind.SINGLE_CHOICE, "Pick", key="entry.20", options=["x"]),
    ]

    answers = await generate_form_answers(questions, None, False, context=context)

    assert answers == {"entry.10": "Response provided", "entry.20": "x"}
