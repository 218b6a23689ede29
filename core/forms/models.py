"""Data models for parsed forms and generated answers."""

from __future__ import annotations

from enum import Enum
from typing import TypeAlias

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AnswerValue: TypeAlias = str | list[str]
AnswerSet: TypeAlias = dict[str, AnswerValue]


class QuestionKind(str, Enum):
    """Answer-generation contract of one form field."""

    SHORT_TEXT = "SHORT_TEXT"
    PARAGRAPH = "PARAGRAPH"
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTI_CHOICE = "MULTI_CHOICE"
    DROPDOWN = "DROPDOWN"
    LINEAR_SCALE = "LINEAR_SCALE"
    DATE = "DATE"
    TIME = "TIME"
    EMAIL = "EMAIL"


CHOICE_KINDS = frozenset(
    {QuestionKind.SINGLE_CHOICE, QuestionKind.MULTI_CHOICE, QuestionKind.DROPDOWN}
)
DEFAULT_SCALE_MIN = 1
DEFAULT_SCALE_MAX = 5


class _WireModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Question(_WireModel):
    """One form field to answer.

    ``field_key`` is the exact parameter name the target expects on submission
    and is kept byte-for-byte as found in the source document.
    """

    id: str
    kind: QuestionKind
    label: str
    field_key: str
    required: bool = False
    options: list[str] = Field(default_factory=list)
    scale_min: int | None = None
    scale_max: int | None = None


class ParsedForm(_WireModel):
    """Result of parsing one target document."""

    form_id: str
    title: str | None = None
    questions: list[Question] = Field(default_factory=list)
    submit_endpoint: str


class UserData(_WireModel):
    """Caller-supplied values that override generated name/email answers."""

    name: str | None = None
    email: str | None = None
