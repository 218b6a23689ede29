"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
_DEFAULT_GENERATION_TIMEOUT_SECONDS = 20.0
_DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0
_DEFAULT_SUBMIT_DELAY_SECONDS = 0.5
_DEFAULT_MAX_RESPONSES = 100
_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None
    openai_model: str
    generation_timeout_seconds: float
    http_timeout_seconds: float
    submit_delay_seconds: float
    max_responses: int
    answer_pool_path: Path | None
    user_agent: str


def load_settings() -> Settings:
    """Read settings from the process environment."""

    pool_raw = os.getenv("FORMFILL_ANSWER_POOL", "").strip()
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("FORMFILL_OPENAI_MODEL", "").strip() or _DEFAULT_OPENAI_MODEL,
        generation_timeout_seconds=_positive_float(
            "FORMFILL_GENERATION_TIMEOUT_SECONDS", _DEFAULT_GENERATION_TIMEOUT_SECONDS
        ),
        http_timeout_seconds=_positive_float(
            "FORMFILL_HTTP_TIMEOUT_SECONDS", _DEFAULT_HTTP_TIMEOUT_SECONDS
        ),
        submit_delay_seconds=_non_negative_float(
            "FORMFILL_SUBMIT_DELAY_SECONDS", _DEFAULT_SUBMIT_DELAY_SECONDS
        ),
        max_responses=_positive_int("FORMFILL_MAX_RESPONSES", _DEFAULT_MAX_RESPONSES),
        answer_pool_path=Path(pool_raw) if pool_raw else None,
        user_agent=os.getenv("FORMFILL_USER_AGENT", "").strip() or _DEFAULT_USER_AGENT,
    )


def env_flag(name: str, default: str = "0") -> bool:
    raw = os.getenv(name, default).strip().lower()
    return raw not in {"0", "false", "off", "no", ""}


def _positive_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        parsed = float(raw)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _non_negative_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        parsed = float(raw)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    return parsed if parsed > 0 else default
