from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..attendance.model import ServiceOccurrence
from .model import AbsenteeRecord


class AbsenteeRepository(Protocol):
    def upsert(
        self,
        *,
        person_id: int,
        occurrence: ServiceOccurrence,
        reason: Optional[str],
        follow_up_required: bool,
        recorded_by: str,
        now: datetime,
    ) -> AbsenteeRecord:
        """Insert, or update reason/follow-up flag/timestamp of the existing row.

        Must be atomic per (person, occurrence). ``follow_up_completed`` and
        ``notification_sent`` of an existing row are left untouched.
        """

        raise NotImplementedError

    def get_by_id(self, absentee_id: int) -> Optional[AbsenteeRecord]:
        raise NotImplementedError

    def mark_notification_sent(self, absentee_id: int, *, now: datetime) -> bool:
        raise NotImplementedError

    def complete_follow_up(self, absentee_id: int, *, now: datetime) -> bool:
        raise NotImplementedError

    def pending_follow_ups(self, limit: int) -> Sequence[AbsenteeRecord]:
        raise NotImplementedError
