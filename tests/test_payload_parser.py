from __future__ import annotations

import json
from typing import Any

import pytest

from core.forms.models import QuestionKind
from core.forms.payload_parser import extract_from_payload, kind_for_type_code


def _form_html(items: list[Any], title: Any = "Customer Feedback") -> str:
    data = [None, ["Tell us what you think", items, None, None, None, None, None, None, title]]
    return (
        "<html><head><script>"
        f"var FB_PUBLIC_LOAD_DATA_ = {json.dumps(data)};"
        "</script></head><body></body></html>"
    )


def test_extracts_questions_in_document_order() -> None:
    html = _form_html(
        [
            [101, "  Your name  ", None, 0, [[1001, None, 1]]],
            [102, "Favorite color", None, 2, [[1002, [["Red"], ["Blue"], [""]], 0]]],
            [103, "Comments", None, 1, [[1003, None, 0]]],
        ]
    )

    extracted = extract_from_payload(html)

    assert extracted is not None
    assert extracted.source == "payload"
    assert extracted.title == "Customer Feedback"
    assert [question.id for question in extracted.questions] == ["q1", "q2", "q3"]

    name, color, comments = extracted.questions
    assert name.label == "Your name"
    assert name.kind is QuestionKind.SHORT_TEXT
    assert name.field_key == "entry.1001"
    assert name.required is True
    assert color.kind is QuestionKind.SINGLE_CHOICE
    assert color.options == ["Red", "Blue"]
    assert color.required is False
    assert comments.kind is QuestionKind.PARAGRAPH


def test_items_without_field_id_or_label_are_skipped_but_keep_numbering() -> None:
    html = _form_html(
        [
            [201, "Section header", None, 8],
            [202, "", None, 0, [[2002, None, 0]]],
            "not an item",
            [204, "When did you visit?", None, 9, [[2004]]],
        ]
    )

    extracted = extract_from_payload(html)

    assert extracted is not None
    assert len(extracted.questions) == 1
    question = extracted.questions[0]
    assert question.id == "q4"
    assert question.kind is QuestionKind.DATE
    assert question.required is False


def test_linear_scale_bounds_read_from_payload() -> None:
    html = _form_html([[301, "Rate us", None, 3, [[3001, [["1"], ["2"]], 1, [0, 10]]]]])

    extracted = extract_from_payload(html)

    assert extracted is not None
    scale = extracted.questions[0]
    assert scale.kind is QuestionKind.LINEAR_SCALE
    assert scale.options == []
    assert (scale.scale_min, scale.scale_max) == (0, 10)


def test_linear_scale_defaults_when_bounds_missing() -> None:
    html = _form_html([[302, "How likely?", None, 3, [[3002, None, 0]]]])

    extracted = extract_from_payload(html)

    assert extracted is not None
    scale = extracted.questions[0]
    assert (scale.scale_min, scale.scale_max) == (1, 5)


def test_blank_title_is_reported_as_missing() -> None:
    extracted = extract_from_payload(_form_html([], title="   "))

    assert extracted is not None
    assert extracted.title is None
    assert extracted.questions == []


def test_returns_none_without_blob() -> None:
    assert extract_from_payload("<html><body>No data here</body></html>") is None


def test_returns_none_for_invalid_json() -> None:
    html = "<script>var FB_PUBLIC_LOAD_DATA_ = [1, 2, oops];</script>"

    assert extract_from_payload(html) is None


def test_returns_none_when_question_list_missing() -> None:
    html = "<script>var FB_PUBLIC_LOAD_DATA_ = [null, 7];</script>"

    assert extract_from_payload(html) is None


@pytest.mark.parametrize(
    ("type_code", "kind"),
    [
        (0, QuestionKind.SHORT_TEXT),
        (1, QuestionKind.PARAGRAPH),
        (2, QuestionKind.SINGLE_CHOICE),
        (3, QuestionKind.LINEAR_SCALE),
        (4, QuestionKind.MULTI_CHOICE),
        (5, QuestionKind.DROPDOWN),
        (7, QuestionKind.DROPDOWN),
        (9, QuestionKind.DATE),
        (10, QuestionKind.TIME),
        (42, QuestionKind.SHORT_TEXT),
        ("2", QuestionKind.SHORT_TEXT),
        (True, QuestionKind.SHORT_TEXT),
        (None, QuestionKind.SHORT_TEXT),
    ],
)
def test_kind_for_type_code(type_code: object, kind: QuestionKind) -> None:
    assert kind_for_type_code(type_code) is kind
