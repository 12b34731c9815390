"""
Utility functions shared across the store. This includes:
- generate_id: prefixed, practically-unique record identifiers.
- utc_now / to_iso / parse_iso: the ISO timestamp convention used by every record.
"""

from __future__ import annotations

import random
import string
import time
from datetime import datetime, timezone
from typing import Callable, Optional

BASE36_ALPHABET = string.digits + string.ascii_lowercase
ID_SUFFIX_LENGTH = 9


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """
    Format a datetime the way records store it: UTC, millisecond precision, trailing 'Z'.

    Example: 2026-10-19T08:15:30.123Z
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_iso(value: str | None) -> Optional[datetime]:
    """
    Parse a stored timestamp or date string back to an aware datetime.

    Accepts full ISO timestamps ('...Z' or with offset) and plain dates ('2026-12-31').
    Returns None for empty or unparseable input.
    """
    if not value:
        return None
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def generate_id(
    prefix: str,
    *,
    now: Callable[[], datetime] | None = None,
    rng: random.Random | None = None,
) -> str:
    """
    Return '{prefix}-{epochMillis}-{base36 suffix}'.

    Uniqueness comes from the millisecond clock plus the random suffix; ids are NOT
    guaranteed to sort by creation order within the same millisecond.
    """
    millis = epoch_millis(now()) if now else int(time.time() * 1000)
    source = rng or random
    suffix = "".join(source.choice(BASE36_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
    return f"{prefix}-{millis}-{suffix}"
