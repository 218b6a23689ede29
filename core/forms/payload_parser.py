"""Structured-payload extraction from the form's embedded load-data blob.

The blob is an undocumented nested array. Offsets used here:
- ``data[1][1]``: question items, in document order
- ``data[1][8]``: form title
- per item: ``[1]`` label, ``[3]`` type code, ``[4][0]`` answer block
- answer block: ``[0]`` field id, ``[1]`` options, ``[2]`` required flag,
  ``[3]`` scale bounds
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from core.forms.extraction import ExtractedForm
from core.forms.models import (
    CHOICE_KINDS,
    DEFAULT_SCALE_MAX,
    DEFAULT_SCALE_MIN,
    Question,
    QuestionKind,
)

logger = logging.getLogger("formfill.forms")

_LOAD_DATA_RE = re.compile(r"FB_PUBLIC_LOAD_DATA_\s*=\s*(\[.*?\]);", re.DOTALL)

_TYPE_CODE_TO_KIND: dict[int, QuestionKind] = {
    0: QuestionKind.SHORT_TEXT,
    1: QuestionKind.PARAGRAPH,
    2: QuestionKind.SINGLE_CHOICE,
    3: QuestionKind.LINEAR_SCALE,
    4: QuestionKind.MULTI_CHOICE,
    5: QuestionKind.DROPDOWN,
    7: QuestionKind.DROPDOWN,
    9: QuestionKind.DATE,
    10: QuestionKind.TIME,
}


def kind_for_type_code(type_code: object) -> QuestionKind:
    """Map an internal type code to a question kind; unknown codes are short text."""

    if isinstance(type_code, bool) or not isinstance(type_code, int):
        return QuestionKind.SHORT_TEXT
    return _TYPE_CODE_TO_KIND.get(type_code, QuestionKind.SHORT_TEXT)


def extract_from_payload(html: str) -> ExtractedForm | None:
    """Return questions from the embedded blob, or None when it is absent or unreadable."""

    match = _LOAD_DATA_RE.search(html)
    if match is None:
        return None

    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError:
        logger.info("load-data blob found but is not valid JSON; falling back")
        return None

    items = _at(data, 1, 1)
    if not isinstance(items, list):
        logger.info("load-data blob has no question list; falling back")
        return None

    questions: list[Question] = []
    for index, item in enumerate(items):
        question = _question_from_item(item, index)
        if question is not None:
            questions.append(question)

    title = _at(data, 1, 8)
    if not isinstance(title, str) or not title.strip():
        title = None
    return ExtractedForm(
        source="payload",
        title=title.strip() if title else None,
        questions=questions,
    )


def _question_from_item(item: Any, index: int) -> Question | None:
    if not isinstance(item, list) or len(item) < 4:
        return None

    label = item[1]
    field_id = _at(item, 4, 0, 0)
    if not isinstance(label, str) or not label.strip() or not field_id:
        return None

    kind = kind_for_type_code(item[3])
    options: list[str] = []
    if kind in CHOICE_KINDS:
        raw_options = _at(item, 4, 0, 1)
        if isinstance(raw_options, list):
            options = [
                str(option[0])
                for option in raw_options
                if isinstance(option, list) and option and option[0]
            ]

    scale_min: int | None = None
    scale_max: int | None = None
    if kind is QuestionKind.LINEAR_SCALE:
        bounds = _at(item, 4, 0, 3)
        scale_min = _as_int(_at(bounds, 0))
        scale_max = _as_int(_at(bounds, 1))
        if scale_min is None:
            scale_min = DEFAULT_SCALE_MIN
        if scale_max is None:
            scale_max = DEFAULT_SCALE_MAX

    return Question(
        id=f"q{index + 1}",
        kind=kind,
        label=label.strip(),
        field_key=f"entry.{field_id}",
        required=_at(item, 4, 0, 2) == 1,
        options=options,
        scale_min=scale_min,
        scale_max=scale_max,
    )


def _at(value: Any, *path: int) -> Any:
    """Index into nested lists, returning None on any missing step."""

    current = value
    for index in path:
        if not isinstance(current, list) or index >= len(current):
            return None
        current = current[index]
    return current


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None
