"""Form-urlencoded body encoding for answer sets."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode

from core.forms.models import AnswerSet


def answer_pairs(answers: AnswerSet) -> list[tuple[str, str]]:
    """Flatten answers to key/value pairs; list values repeat the key in order."""

    pairs: list[tuple[str, str]] = []
    for key, value in answers.items():
        if isinstance(value, list):
            pairs.extend((key, str(item)) for item in value)
        else:
            pairs.append((key, str(value)))
    return pairs


def encode_answer_set(answers: AnswerSet) -> str:
    return urlencode(answer_pairs(answers))


def decode_answer_body(body: str) -> dict[str, list[str]]:
    """Group a form-urlencoded body by key, keeping value order."""

    decoded: dict[str, list[str]] = {}
    for key, value in parse_qsl(body, keep_blank_values=True):
        decoded.setdefault(key, []).append(value)
    return decoded
