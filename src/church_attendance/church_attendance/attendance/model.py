from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.validators import require_date, require_enum
from ..core.enums import AdmissionOutcome, AttendanceMethod, AttendanceStatus, ServiceType


@dataclass(frozen=True)
class ServiceOccurrence:
    """One concrete gathering. Together with a person id it is the dedup key."""

    service_date: date
    service_type: ServiceType

    def key(self, person_id: int) -> tuple[int, date, ServiceType]:
        return (int(person_id), self.service_date, self.service_type)

    def __str__(self) -> str:
        return f"{self.service_type.value}@{self.service_date.isoformat()}"


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one admission. Immutable; never updated in place.

    ``metadata`` snapshots gender, age category and groups at check-in time so
    statistics reflect what was true then.
    """

    person_id: int
    occurrence: ServiceOccurrence
    check_in_time: datetime
    method: AttendanceMethod
    recorded_by: str
    metadata: Mapping[str, Any] = field(default_factory=dict)
    status: AttendanceStatus = AttendanceStatus.PRESENT
    client_uuid: Optional[str] = None
    attendance_id: Optional[int] = None


@dataclass(frozen=True)
class EntryResult:
    person_id: int
    outcome: Optional[AdmissionOutcome]
    error: Optional[str] = None

    @property
    def admitted(self) -> bool:
        return self.outcome == AdmissionOutcome.ADMITTED

    def to_dict(self) -> dict:
        return {
            "person_id": self.person_id,
            "outcome": self.outcome.value if self.outcome else "error",
            "error": self.error,
        }


@dataclass(frozen=True)
class CheckInResult:
    """Per-person outcome of a single check-in (primary plus dependants)."""

    occurrence: ServiceOccurrence
    primary: EntryResult
    dependants: tuple[EntryResult, ...] = ()

    @property
    def entries(self) -> tuple[EntryResult, ...]:
        return (self.primary,) + self.dependants

    @property
    def errors(self) -> list[str]:
        return [e.error for e in self.entries if e.error]

    def to_dict(self) -> dict:
        return {
            "service_date": self.occurrence.service_date.isoformat(),
            "service_type": self.occurrence.service_type.value,
            "primary": self.primary.to_dict(),
            "dependants": [d.to_dict() for d in self.dependants],
        }


@dataclass
class BulkResult:
    """Accounting for one bulk submission. Never persisted.

    Invariant: ``successful + duplicates + errors`` equals the number of ids
    submitted.
    """

    successful: int = 0
    duplicates: int = 0
    errors: int = 0
    error_messages: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.successful + self.duplicates + self.errors

    def to_dict(self) -> dict:
        return {
            "successful": self.successful,
            "duplicates": self.duplicates,
            "errors": self.errors,
            "error_messages": list(self.error_messages),
            "total": self.total,
        }


def make_occurrence(service_date: Any, service_type: Any) -> ServiceOccurrence:
    """Build an occurrence from loosely typed input (``ValidationError`` if malformed)."""
    return ServiceOccurrence(
        service_date=require_date(service_date, "service_date"),
        service_type=require_enum(service_type, ServiceType, "service_type"),
    )
