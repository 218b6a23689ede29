"""Form URL handling: id extraction and submission endpoint derivation."""

from __future__ import annotations

import re

from core.utils.errors import InvalidUrlError

# Published-form shape is tried before the editor shape; first match wins.
_FORM_ID_PATTERNS = (
    re.compile(r"/forms/d/e/([^/?#]+)"),
    re.compile(r"/forms/d/([^/?#]+)"),
)
_SUBMIT_ENDPOINT_TEMPLATE = "https://docs.google.com/forms/d/e/{form_id}/formResponse"


def extract_form_id(form_url: str) -> str:
    """Return the form id embedded in ``form_url``."""

    for pattern in _FORM_ID_PATTERNS:
        match = pattern.search(form_url)
        if match:
            return match.group(1)
    raise InvalidUrlError("Invalid Google Form URL", url=form_url)


def submit_endpoint_for(form_id: str) -> str:
    """Build the response endpoint for a form id."""

    return _SUBMIT_ENDPOINT_TEMPLATE.format(form_id=form_id)
