"""Fetch a target form and turn it into a ``ParsedForm``."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

import httpx

from core.forms.dom_parser import extract_from_dom, title_from_html
from core.forms.extraction import ExtractedForm
from core.forms.models import ParsedForm
from core.forms.payload_parser import extract_from_payload
from core.forms.urls import extract_form_id, submit_endpoint_for
from core.settings import Settings, load_settings
from core.utils.errors import FetchError

logger = logging.getLogger("formfill.forms")

ExtractionStrategy = Callable[[str], ExtractedForm | None]

# Ordered by preference; the DOM scan always yields a result.
_STRATEGIES: tuple[ExtractionStrategy, ...] = (extract_from_payload, extract_from_dom)


async def parse_form(
    form_url: str,
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> ParsedForm:
    """Fetch ``form_url`` and extract its questions.

    Raises ``InvalidUrlError`` before any network access when the URL carries
    no form id, and ``FetchError`` when the document cannot be retrieved. A
    document with no identifiable fields yields an empty ``questions`` list.
    """

    settings = settings or load_settings()
    form_id = extract_form_id(form_url)
    html = await fetch_form_document(form_url, client=client, settings=settings)
    extracted = select_extraction(html)

    logger.info(
        "parsed form %s via %s: %d questions",
        form_id,
        extracted.source,
        len(extracted.questions),
    )
    return ParsedForm(
        form_id=form_id,
        title=extracted.title,
        questions=extracted.questions,
        submit_endpoint=submit_endpoint_for(form_id),
    )


def select_extraction(html: str) -> ExtractedForm:
    """Return the result of the first strategy that can read ``html``."""

    for strategy in _STRATEGIES:
        result = strategy(html)
        if result is not None:
            if result.title is None:
                result = replace(result, title=title_from_html(html))
            return result
    raise RuntimeError("no extraction strategy produced a result")


async def fetch_form_document(
    form_url: str,
    *,
    client: httpx.AsyncClient | None,
    settings: Settings,
) -> str:
    headers = {"User-Agent": settings.user_agent}
    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=settings.http_timeout_seconds, follow_redirects=True
            ) as own_client:
                response = await own_client.get(form_url, headers=headers)
        else:
            response = await client.get(form_url, headers=headers, follow_redirects=True)
    except httpx.HTTPError as exc:
        raise FetchError(f"Failed to fetch form: {exc}", url=form_url) from exc

    if not response.is_success:
        raise FetchError(
            f"Failed to fetch form: HTTP {response.status_code}",
            url=form_url,
            status_code=response.status_code,
        )
    return response.text
