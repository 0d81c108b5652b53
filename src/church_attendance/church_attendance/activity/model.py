from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..core.enums import ActivityType, ServiceType


@dataclass(frozen=True)
class ActivityEntry:
    """Audit trail line shown on the attendance dashboard."""

    activity_type: ActivityType
    description: str
    created_by: str
    created_at: datetime
    person_id: Optional[int] = None
    service_date: Optional[date] = None
    service_type: Optional[ServiceType] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    activity_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "activity_id": self.activity_id,
            "type": self.activity_type.value,
            "person_id": self.person_id,
            "service_date": self.service_date.isoformat() if self.service_date else None,
            "service_type": self.service_type.value if self.service_type else None,
            "description": self.description,
            "metadata": dict(self.metadata),
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }
