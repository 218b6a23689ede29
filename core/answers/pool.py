"""Canned answer pool loading."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.forms.models import QuestionKind


class AnswerPool(BaseModel):
    """Fixed strings for algorithmic answers and fallbacks."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    short_text: list[str] = Field(min_length=1)
    paragraph: str
    choice_placeholder: str
    question_fallback: str
    generation_fallbacks: dict[QuestionKind, str] = Field(default_factory=dict)

    def generation_fallback(self, kind: QuestionKind) -> str:
        return self.generation_fallbacks.get(kind, self.question_fallback)


_DEFAULT_POOL_PATH = Path(__file__).with_name("answer_pool.yaml")


def load_answer_pool(path: Path | None = None) -> AnswerPool:
    """Load and validate an answer pool from YAML."""

    pool_path = path or _DEFAULT_POOL_PATH

    try:
        raw = yaml.safe_load(pool_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Answer pool file not found: {pool_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in answer pool file: {pool_path}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Answer pool file must contain a mapping: {pool_path}")

    try:
        return AnswerPool.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid answer pool schema: {pool_path}") from exc


@lru_cache(maxsize=1)
def default_answer_pool() -> AnswerPool:
    return load_answer_pool()
