from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import AgeBracket, ServiceType


def _empty_age_counts() -> dict[str, int]:
    return {AgeBracket.ADULT.value: 0, AgeBracket.CHILD.value: 0}


@dataclass
class AggregatedStats:
    """Read-model computed from present attendance rows. Never persisted."""

    start_date: date
    end_date: date
    service_type: Optional[ServiceType] = None
    total: int = 0
    by_gender: dict[str, int] = field(default_factory=dict)
    by_age_bracket: dict[str, int] = field(default_factory=_empty_age_counts)
    by_group: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "service_type": self.service_type.value if self.service_type else None,
            "total": self.total,
            "by_gender": dict(self.by_gender),
            "by_age_bracket": dict(self.by_age_bracket),
            "by_group": dict(self.by_group),
        }
