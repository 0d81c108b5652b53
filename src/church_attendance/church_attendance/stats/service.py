from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Mapping, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import age_bracket
from ..core.enums import ServiceType
from ..core.exceptions import ValidationError
from ..people.model import PersonSnapshot
from ..people.repository import PersonRepository
from .model import AggregatedStats

logger = logging.getLogger(__name__)

UNKNOWN_GENDER = "unknown"


def _needs_live_lookup(meta: Mapping) -> bool:
    return not meta.get("gender") or not meta.get("age_category") or "groups" not in meta


class StatisticsService:
    """Folds admitted attendance into gender / age bracket / group totals.

    Demographics come from the metadata snapshot taken at check-in. Rows
    without a snapshot (or with missing fields) fall back to the person's
    current data, with age computed as of ``today``.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        people: PersonRepository,
        *,
        today: Callable[[], date] = date.today,
    ):
        self._attendance = attendance
        self._people = people
        self._today = today

    def _load(self, start: date, end: date, service_type: Optional[ServiceType]) -> Sequence[AttendanceRecord]:
        if start > end:
            raise ValidationError("start date must not be after end date")
        return self._attendance.query(start_date=start, end_date=end, service_type=service_type)

    def _live_people(self, records: Iterable[AttendanceRecord]) -> Mapping[int, PersonSnapshot]:
        ids = {r.person_id for r in records if _needs_live_lookup(r.metadata)}
        if not ids:
            return {}
        logger.debug("Live demographic lookup for %s people without snapshot", len(ids))
        return self._people.get_many(ids)

    def _fold(self, stats: AggregatedStats, records: Iterable[AttendanceRecord], live: Mapping[int, PersonSnapshot]) -> None:
        today = self._today()
        for r in records:
            meta = r.metadata or {}
            person = live.get(r.person_id)

            gender = meta.get("gender") or (person.gender if person else None) or UNKNOWN_GENDER
            bracket = meta.get("age_category") or age_bracket(person.dob if person else None, today=today).value
            if "groups" in meta:
                groups = list(meta.get("groups") or [])
            else:
                groups = list(person.groups) if person else []

            stats.total += 1
            gender = str(gender).lower()
            stats.by_gender[gender] = stats.by_gender.get(gender, 0) + 1
            stats.by_age_bracket[bracket] = stats.by_age_bracket.get(bracket, 0) + 1
            for g in groups:
                stats.by_group[g] = stats.by_group.get(g, 0) + 1

    def aggregate(self, start: date, end: date, *, service_type: Optional[ServiceType] = None) -> AggregatedStats:
        """Totals over ``start..end`` inclusive. Store failures propagate: no partial stats."""
        records = self._load(start, end, service_type)
        stats = AggregatedStats(start_date=start, end_date=end, service_type=service_type)
        self._fold(stats, records, self._live_people(records))
        return stats

    def daily_breakdown(
        self, start: date, end: date, *, service_type: Optional[ServiceType] = None
    ) -> list[AggregatedStats]:
        """One ``AggregatedStats`` per service date that has attendance, oldest first."""
        records = self._load(start, end, service_type)
        live = self._live_people(records)

        by_day: dict[date, list[AttendanceRecord]] = {}
        for r in records:
            by_day.setdefault(r.occurrence.service_date, []).append(r)

        out: list[AggregatedStats] = []
        for day in sorted(by_day):
            stats = AggregatedStats(start_date=day, end_date=day, service_type=service_type)
            self._fold(stats, by_day[day], live)
            out.append(stats)
        return out
