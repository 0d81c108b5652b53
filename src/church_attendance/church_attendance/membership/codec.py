"""Membership identifier codec.

Operators see identifiers in the hyphenated display form ``PP-DDDD-YYYY``
(2-letter organisation prefix, 4 digits, 4-digit join year). Storage and
comparison use the canonical compact form ``PPDDDDYYYY``: uppercase, with
every non-alphanumeric character removed.

The display form is printed on badges and read aloud at the door, so it must
not change without a migration plan.

Everything here is pure. ``generate`` does not check uniqueness; callers
persist under a unique constraint and regenerate on collision
(see ``people.service.MemberService.assign_membership_id``).
"""
from __future__ import annotations

import random
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.constants import DEFAULT_MEMBERSHIP_PREFIX

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")
_NON_DIGIT = re.compile(r"[^0-9]+")
_CANONICAL = re.compile(r"^[A-Z]{2}[0-9]{8}$")


@dataclass(frozen=True)
class MembershipId:
    prefix: str
    digits: str
    year: str
    full: str

    @property
    def display(self) -> str:
        return f"{self.prefix}-{self.digits}-{self.year}"


def normalize(raw: Optional[str]) -> str:
    if not raw:
        return ""
    # ASCII only: str.isalnum() would also keep accented letters and other digits.
    return _NON_ALNUM.sub("", raw).upper()


def is_valid(raw: Optional[str], *, prefix: Optional[str] = None) -> bool:
    """Shape check: 2 letters then 8 digits after normalization.

    ``prefix`` additionally pins the letter pair (e.g. ``"EA"``). It is off by
    default, so ``AB12342021`` is valid by shape.
    """
    canonical = normalize(raw)
    if not _CANONICAL.match(canonical):
        return False
    if prefix is not None and canonical[:2] != prefix.upper():
        return False
    return True


def parse(raw: Optional[str], *, prefix: Optional[str] = None) -> Optional[MembershipId]:
    canonical = normalize(raw)
    if not is_valid(canonical, prefix=prefix):
        return None
    return MembershipId(
        prefix=canonical[0:2],
        digits=canonical[2:6],
        year=canonical[6:10],
        full=canonical,
    )


def format_for_display(raw: str) -> str:
    """``PP-DDDD-YYYY`` for valid input; anything else is returned unchanged."""
    parsed = parse(raw)
    if parsed is None:
        return raw
    return parsed.display


def extract_year(raw: Optional[str]) -> Optional[int]:
    parsed = parse(raw)
    if parsed is None:
        return None
    return int(parsed.year)


def equals(a: Optional[str], b: Optional[str]) -> bool:
    return normalize(a) == normalize(b)


def generate(
    contact_number: Optional[str] = None,
    year: Optional[int] = None,
    *,
    prefix: str = DEFAULT_MEMBERSHIP_PREFIX,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
) -> str:
    """Build a display-form identifier.

    The digit segment is the last 4 digits of ``contact_number`` when it has at
    least 4 digits, else a uniformly random zero-padded value from ``rng``.
    """
    join_year = year or (today or date.today()).year

    phone_digits = _NON_DIGIT.sub("", contact_number or "")
    if len(phone_digits) >= 4:
        digits = phone_digits[-4:]
    else:
        digits = f"{(rng or random).randrange(10000):04d}"

    return f"{prefix.upper()}-{digits}-{int(join_year):04d}"
