from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import PersonKind


@dataclass(frozen=True)
class PersonSnapshot:
    """Domain entity: a member or dependant as seen by the attendance engine.

    Note: Adapters normalize whatever shape the store returns into this one
    value; services never see raw rows.
    """

    person_id: int
    kind: PersonKind
    full_name: str
    gender: Optional[str] = None
    dob: Optional[date] = None
    groups: tuple[str, ...] = field(default_factory=tuple)
    membership_id: Optional[str] = None
    phone: Optional[str] = None
    parent_member_id: Optional[int] = None

    @property
    def is_member(self) -> bool:
        return self.kind == PersonKind.MEMBER

    @property
    def first_name(self) -> str:
        parts = self.full_name.split()
        return parts[0] if parts else self.full_name
