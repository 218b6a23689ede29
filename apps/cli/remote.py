"""Client helpers for driving a running formfill API."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx

from core.utils.sse import iter_sse_events

logger = logging.getLogger("formfill.cli")

DEFAULT_API_CANDIDATES: tuple[str, ...] = (
    "http://localhost:5000",
    "http://127.0.0.1:5000",
)
_HEALTH_TIMEOUT_SECONDS = 3.0


class ApiDiscoveryError(RuntimeError):
    """Raised when no candidate base URL answers the health check."""


async def discover_api_base(
    candidates: Sequence[str],
    *,
    client: httpx.AsyncClient,
) -> str:
    """Return the first candidate whose ``/api/health`` reports ``ok``."""

    tried: list[str] = []
    for candidate in candidates:
        base = candidate.rstrip("/")
        if not base or base in tried:
            continue
        tried.append(base)
        try:
            response = await client.get(f"{base}/api/health", timeout=_HEALTH_TIMEOUT_SECONDS)
        except httpx.HTTPError as exc:
            logger.debug("health check failed for %s: %s", base, exc)
            continue
        if response.status_code != 200:
            continue
        try:
            payload = response.json()
        except ValueError:
            continue
        if isinstance(payload, dict) and payload.get("status") == "ok":
            return base

    raise ApiDiscoveryError(f"No reachable API among: {', '.join(tried)}")


async def stream_fill(
    base_url: str,
    payload: dict[str, Any],
    *,
    client: httpx.AsyncClient,
) -> AsyncIterator[dict[str, Any]]:
    """POST a fill request and yield decoded progress events as they arrive."""

    async with client.stream("POST", f"{base_url}/api/fill-form", json=payload) as response:
        if response.status_code != 200:
            await response.aread()
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("error") if isinstance(body, dict) else None
            message = message or f"HTTP {response.status_code}"
            yield {"type": "error", "error": message}
            return
        async for event in iter_sse_events(response.aiter_text()):
            yield event
