"""Submission of one answer set to the target endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from core.forms.models import AnswerSet
from core.settings import Settings, load_settings
from core.submit.encoding import encode_answer_set

logger = logging.getLogger("formfill.submit")

# The target redirects to a confirmation page on success.
_SUCCESS_STATUSES = frozenset({200, 302})


@dataclass(frozen=True)
class SubmitResult:
    success: bool
    error_detail: str | None = None


async def submit_answers(
    endpoint: str,
    answers: AnswerSet,
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> SubmitResult:
    """POST ``answers`` to ``endpoint`` without following redirects."""

    settings = settings or load_settings()
    body = encode_answer_set(answers)
    headers = {
        "Content-Type": "application/x-www-form-urlencoded",
        "User-Agent": settings.user_agent,
    }

    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=settings.http_timeout_seconds, follow_redirects=False
            ) as own_client:
                response = await own_client.post(endpoint, content=body, headers=headers)
        else:
            response = await client.post(
                endpoint, content=body, headers=headers, follow_redirects=False
            )
    except httpx.HTTPError as exc:
        detail = str(exc) or type(exc).__name__
        logger.warning("submission to %s failed: %s", endpoint, detail)
        return SubmitResult(success=False, error_detail=f"Submission failed: {detail}")

    if response.status_code in _SUCCESS_STATUSES:
        return SubmitResult(success=True)

    logger.warning("submission to %s rejected with HTTP %d", endpoint, response.status_code)
    return SubmitResult(
        success=False,
        error_detail=f"Submission failed: HTTP {response.status_code}",
    )
