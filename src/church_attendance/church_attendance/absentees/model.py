from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..attendance.model import ServiceOccurrence


@dataclass(frozen=True)
class AbsenteeRecord:
    """Domain entity: a person marked absent for one service occurrence.

    At most one per (person, occurrence); marking again updates this row.
    """

    absentee_id: int
    person_id: int
    occurrence: ServiceOccurrence
    reason: Optional[str]
    follow_up_required: bool
    follow_up_completed: bool
    notification_sent: bool
    recorded_by: str
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "absentee_id": self.absentee_id,
            "person_id": self.person_id,
            "service_date": self.occurrence.service_date.isoformat(),
            "service_type": self.occurrence.service_type.value,
            "reason": self.reason,
            "follow_up_required": self.follow_up_required,
            "follow_up_completed": self.follow_up_completed,
            "notification_sent": self.notification_sent,
            "recorded_by": self.recorded_by,
            "created_at": self.created_at.isoformat(timespec="seconds"),
            "updated_at": self.updated_at.isoformat(timespec="seconds"),
        }


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"sent": self.sent, "failed": self.failed, "errors": list(self.errors)}
