from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..attendance.model import ServiceOccurrence, make_occurrence
from ..common.datetime_utils import parse_client_timestamp
from ..common.validators import require_enum, require_int, require_non_empty
from ..core.enums import AttendanceMethod
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class QueuedCheckIn:
    """A check-in captured by a kiosk or scanner while offline."""

    client_uuid: str
    person_id: int
    occurrence: ServiceOccurrence
    method: AttendanceMethod
    captured_at: datetime
    retry_count: int = 0

    @classmethod
    def from_dict(cls, data: Any, *, default_time: datetime) -> "QueuedCheckIn":
        if not isinstance(data, dict):
            raise ValidationError("queued item must be an object")

        captured = data.get("captured_at")
        if captured in (None, ""):
            captured_at = default_time
        elif not isinstance(captured, str):
            raise ValidationError("captured_at must be an ISO-8601 timestamp")
        else:
            try:
                captured_at = parse_client_timestamp(captured)
            except ValueError:
                raise ValidationError(f"captured_at is not a valid timestamp: {captured!r}")

        return cls(
            client_uuid=require_non_empty(data.get("client_uuid"), "client_uuid"),
            person_id=require_int(data.get("person_id"), "person_id"),
            occurrence=make_occurrence(data.get("service_date"), data.get("service_type")),
            method=require_enum(data.get("method", AttendanceMethod.KIOSK.value), AttendanceMethod, "method"),
            captured_at=captured_at,
            retry_count=require_int(data.get("retry_count", 0), "retry_count"),
        )


@dataclass
class SyncReport:
    synced: int = 0
    duplicates: int = 0
    failed: int = 0
    retry: list[str] = field(default_factory=list)
    abandoned: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "synced": self.synced,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "retry": list(self.retry),
            "abandoned": list(self.abandoned),
            "errors": list(self.errors),
        }


def item_label(item: Optional[QueuedCheckIn], raw: Any) -> str:
    if item is not None:
        return item.client_uuid
    if isinstance(raw, dict) and raw.get("client_uuid"):
        return str(raw["client_uuid"])
    return "<missing client_uuid>"
