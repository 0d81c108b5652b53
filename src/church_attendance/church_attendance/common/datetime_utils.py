from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.constants import ADULT_AGE_THRESHOLD
from ..core.enums import AgeBracket


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def parse_client_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp sent by a client device into naive local time.

    Accepts the JS ``toISOString()`` form (``2024-01-07T09:05:00.000Z``) and
    explicit offsets; aware values are converted to local time so they compare
    with ``now_local()``. Raises ``ValueError`` for anything else.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def age_bracket(dob: Optional[date], *, today: date) -> AgeBracket:
    """Adult/child bracket from calendar-year subtraction only.

    Birthdays are ignored on purpose: someone born in December 2008 counts as
    18 for the whole of 2026. A missing date of birth counts as adult.
    """
    if dob is None:
        return AgeBracket.ADULT
    if today.year - dob.year < ADULT_AGE_THRESHOLD:
        return AgeBracket.CHILD
    return AgeBracket.ADULT
