"""Fill run request, outcome, summary, and progress event models."""

from __future__ import annotations

from enum import Enum
from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.forms.models import AnswerSet, UserData


class _WireModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FillState(str, Enum):
    PARSING = "parsing"
    GENERATING = "generating"
    SUBMITTING = "submitting"
    COMPLETE = "complete"
    FAILED = "failed"


class FillRequest(_WireModel):
    """One caller's request: which form, how many responses, and how to answer."""

    model_config = ConfigDict(extra="ignore")

    form_url: str
    num_responses: int = Field(ge=1, strict=True)
    user_data: UserData | None = None
    use_external_generation: bool = Field(default=True, alias="useAI")


class SubmissionOutcome(_WireModel):
    success: bool
    response_number: int
    timestamp: str
    answers: AnswerSet | None = None
    error_detail: str | None = Field(default=None, alias="error")


class FillSummary(_WireModel):
    total_requested: int
    success_count: int
    failed_count: int
    submissions: list[SubmissionOutcome] = Field(default_factory=list)
    duration_millis: int


class ProgressEvent(_WireModel):
    type: Literal["status", "progress"]
    message: str
    current: int
    total: int


class SubmissionEvent(_WireModel):
    type: Literal["submission"] = "submission"
    success: bool
    response_number: int
    error: str | None = None
    current: int
    total: int


class CompleteEvent(_WireModel):
    type: Literal["complete"] = "complete"
    data: FillSummary


class ErrorEvent(_WireModel):
    type: Literal["error"] = "error"
    error: str


FillEvent: TypeAlias = ProgressEvent | SubmissionEvent | CompleteEvent | ErrorEvent
