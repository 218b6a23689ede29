from __future__ import annotations

from pathlib import Path

import pytest

from core.answers.pool import default_answer_pool, load_answer_pool
from core.forms.models import QuestionKind


def test_load_default_pool() -> None:
    pool = load_answer_pool()

    assert pool.short_text == [
        "This is a sample response",
        "Response provided",
        "Sample answer",
        "Test response",
    ]
    assert pool.paragraph.startswith("This is a sample paragraph response.")
    assert pool.choice_placeholder == "Option 1"
    assert pool.question_fallback == "Response provided"
    assert default_answer_pool() == pool


def test_generation_fallback_by_kind() -> None:
    pool = default_answer_pool()

    assert pool.generation_fallback(QuestionKind.SHORT_TEXT) == "This is a sample response"
    assert pool.generation_fallback(QuestionKind.EMAIL) == "example@email.com"
    assert pool.generation_fallback(QuestionKind.TIME) == "Response provided"


def test_custom_pool_file(tmp_path: Path) -> None:
    path = tmp_path / "pool.yaml"
    path.write_text(
        """
short_text: ["Ja"]
paragraph: Lange Antwort
choice_placeholder: Erste Option
question_fallback: Keine Angabe
""",
        encoding="utf-8",
    )

    pool = load_answer_pool(path)

    assert pool.short_text == ["Ja"]
    assert pool.generation_fallbacks == {}
    assert pool.generation_fallback(QuestionKind.PARAGRAPH) == "Keine Angabe"


def test_load_pool_raises_for_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Answer pool file not found"):
        load_answer_pool(tmp_path / "missing.yaml")


def test_load_pool_raises_for_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "pool.yaml"
    path.write_text("short_text: [unclosed\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML in answer pool file"):
        load_answer_pool(path)


def test_load_pool_raises_for_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "pool.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load_answer_pool(path)


def test_load_pool_raises_for_invalid_schema(tmp_path: Path) -> None:
    path = tmp_path / "pool.yaml"
    path.write_text(
        """
short_text: []
paragraph: text
choice_placeholder: Option 1
question_fallback: Response provided
""",
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="Invalid answer pool schema"):
        load_answer_pool(path)
