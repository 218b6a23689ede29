"""DOM fallback extraction for documents without a readable load-data blob.

Keys recovered here are best effort. When a field group has no named control a
placeholder key is synthesized, and the target will not accept answers sent
under it.
"""

from __future__ import annotations

from bs4 import BeautifulSoup
from bs4.element import Tag

from core.forms.extraction import ExtractedForm
from core.forms.models import Question, QuestionKind

_ITEM_SELECTOR = '[role="listitem"]'
_HEADING_SELECTOR = '[role="heading"]'
_LEGACY_TITLE_SELECTOR = ".freebirdFormviewerComponentsQuestionBaseTitle"
_CONTROL_SELECTOR = "input, textarea, select"
_PLACEHOLDER_KEY_BASE = 1000000
DEFAULT_FORM_TITLE = "Google Form"


def extract_from_dom(html: str) -> ExtractedForm:
    """Scan field groups in document order and infer their kinds."""

    soup = BeautifulSoup(html, "html.parser")
    questions: list[Question] = []

    for index, item in enumerate(soup.select(_ITEM_SELECTOR)):
        label = _item_label(item)
        if not label:
            continue

        kind, options = _infer_kind(item)
        control = item.select_one(_CONTROL_SELECTOR)
        name = control.get("name") if control is not None else None
        field_key = name if isinstance(name, str) and name else _placeholder_key(index)

        questions.append(
            Question(
                id=f"q{index + 1}",
                kind=kind,
                label=label,
                field_key=field_key,
                required=(
                    "*" in item.get_text()
                    or item.select_one('[aria-required="true"]') is not None
                ),
                options=options,
            )
        )

    return ExtractedForm(source="dom", title=document_title(soup), questions=questions)


def title_from_html(html: str) -> str:
    return document_title(BeautifulSoup(html, "html.parser"))


def document_title(soup: BeautifulSoup) -> str:
    for selector in (_HEADING_SELECTOR, "h1"):
        node = soup.select_one(selector)
        if node is not None:
            text = node.get_text(strip=True)
            if text:
                return text
    return DEFAULT_FORM_TITLE


def _item_label(item: Tag) -> str:
    for selector in (_HEADING_SELECTOR, _LEGACY_TITLE_SELECTOR):
        text = "".join(node.get_text() for node in item.select(selector)).strip()
        if text:
            return text
    return ""


def _infer_kind(item: Tag) -> tuple[QuestionKind, list[str]]:
    # Priority: radio, checkbox, textarea, select.
    radios = item.select('input[type="radio"]')
    if radios:
        return QuestionKind.SINGLE_CHOICE, _control_labels(radios)

    checkboxes = item.select('input[type="checkbox"]')
    if checkboxes:
        return QuestionKind.MULTI_CHOICE, _control_labels(checkboxes)

    if item.select_one("textarea") is not None:
        return QuestionKind.PARAGRAPH, []

    if item.select_one("select") is not None:
        texts = (option.get_text(strip=True) for option in item.select("option"))
        options = [text for text in texts if text]
        return QuestionKind.DROPDOWN, options

    return QuestionKind.SHORT_TEXT, []


def _control_labels(controls: list[Tag]) -> list[str]:
    labels: list[str] = []
    for control in controls:
        container = control.find_parent("div")
        if container is None:
            continue
        text = "".join(span.get_text() for span in container.find_all("span")).strip()
        if text:
            labels.append(text)
    return labels


def _placeholder_key(index: int) -> str:
    return f"entry.{_PLACEHOLDER_KEY_BASE + index}"
