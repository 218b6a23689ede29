"""Randomized primitive values for algorithmic answers."""

from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import TypeVar

T = TypeVar("T")

_DATE_RANGE_START = datetime(2020, 1, 1)
_EMAIL_NAMES = ("john", "jane", "alex", "sarah", "mike", "emily", "david", "lisa")
_EMAIL_DOMAINS = ("example.com", "test.com", "demo.com", "sample.org")

_default_rng = random.Random()


def random_int(low: int, high: int, *, rng: random.Random | None = None) -> int:
    """Uniform integer in ``[low, high]``; bounds may be given in either order."""

    if low > high:
        low, high = high, low
    return (rng or _default_rng).randint(low, high)


def random_choice(items: Sequence[T], *, rng: random.Random | None = None) -> T | None:
    if not items:
        return None
    return (rng or _default_rng).choice(items)


def random_choices(
    items: Sequence[T],
    *,
    min_count: int = 1,
    max_count: int | None = None,
    rng: random.Random | None = None,
) -> list[T]:
    """Pick a random subset without repeats, sized between ``min_count`` and ``max_count``.

    ``max_count`` defaults to ``min(3, len(items))``.
    """

    if not items:
        return []
    generator = rng or _default_rng
    upper = min(len(items), max_count if max_count is not None else 3)
    lower = max(1, min(min_count, upper))
    count = generator.randint(lower, upper)
    return generator.sample(list(items), count)


def random_date(*, rng: random.Random | None = None, now: datetime | None = None) -> str:
    """Date between 2020-01-01 and ``now`` formatted as ``MM/DD/YYYY``."""

    end = now or datetime.now()
    span = max(0, int((end - _DATE_RANGE_START).total_seconds()))
    offset = (rng or _default_rng).randint(0, span)
    picked = _DATE_RANGE_START + timedelta(seconds=offset)
    return picked.strftime("%m/%d/%Y")


def random_time(*, rng: random.Random | None = None) -> str:
    """24-hour ``HH:MM`` time."""

    generator = rng or _default_rng
    return f"{generator.randint(0, 23):02d}:{generator.randint(0, 59):02d}"


def random_email(*, rng: random.Random | None = None) -> str:
    generator = rng or _default_rng
    name = generator.choice(_EMAIL_NAMES)
    domain = generator.choice(_EMAIL_DOMAINS)
    return f"{name}{generator.randint(1, 999)}@{domain}"
