"""Shared result type for the form extraction strategies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from core.forms.models import Question

ExtractionSource = Literal["payload", "dom"]


@dataclass(frozen=True)
class ExtractedForm:
    """Questions recovered from one document by one strategy."""

    source: ExtractionSource
    title: str | None = None
    questions: list[Question] = field(default_factory=list)
