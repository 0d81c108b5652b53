from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from ..activity.service import ActivityLog
from ..common.datetime_utils import age_bracket, now_local
from ..common.validators import require_enum, require_int, require_int_list, require_non_empty
from ..core.constants import DEFAULT_BULK_MAX_WORKERS
from ..core.enums import ActivityType, AdmissionOutcome, AttendanceMethod, PersonKind
from ..core.exceptions import StoreError, ValidationError
from ..people.model import PersonSnapshot
from ..people.repository import PersonRepository
from ..people.service import MemberService
from .guard import DeduplicationGuard
from .model import BulkResult, CheckInResult, EntryResult, ServiceOccurrence
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def metadata_snapshot(person: PersonSnapshot, *, today: date, notes: Optional[str] = None) -> dict[str, Any]:
    """Demographics frozen into the attendance row at check-in time."""
    meta: dict[str, Any] = {
        "gender": person.gender,
        "age_category": age_bracket(person.dob, today=today).value,
        "groups": list(person.groups),
    }
    if notes:
        meta["notes"] = notes
    return meta


def _unique(ids: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    out: list[int] = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


class AttendanceService:
    """Check-in operations for every input channel.

    Each person is admitted independently through the ``DeduplicationGuard``.
    There is no rollback: entries admitted before a failure stay admitted, and
    re-submitting the same request is safe (they come back as duplicates).
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        people: PersonRepository,
        *,
        guard: Optional[DeduplicationGuard] = None,
        activity: Optional[ActivityLog] = None,
        members: Optional[MemberService] = None,
        max_workers: int = DEFAULT_BULK_MAX_WORKERS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._people = people
        self._guard = guard or DeduplicationGuard(attendance)
        self._activity = activity
        self._members = members or MemberService(people)
        self._max_workers = max(1, int(max_workers))
        self._clock = clock

    def _admit(
        self,
        person: PersonSnapshot,
        occurrence: ServiceOccurrence,
        *,
        method: AttendanceMethod,
        actor: str,
        now: datetime,
        notes: Optional[str] = None,
        client_uuid: Optional[str] = None,
    ) -> EntryResult:
        try:
            outcome = self._guard.admit(
                person.person_id,
                occurrence,
                method=method,
                actor=actor,
                metadata=metadata_snapshot(person, today=now.date(), notes=notes),
                client_uuid=client_uuid,
                now=now,
            )
        except StoreError as e:
            logger.warning("Admission failed for person #%s at %s: %s", person.person_id, occurrence, e)
            return EntryResult(person_id=person.person_id, outcome=None, error=f"Person #{person.person_id}: {e}")

        if outcome == AdmissionOutcome.ADMITTED and self._activity:
            self._activity.record(
                ActivityType.CHECK_IN,
                f"{person.full_name} checked in via {method.value}",
                actor=actor,
                occurrence=occurrence,
                person_id=person.person_id,
                metadata={"method": method.value},
                now=now,
            )
        return EntryResult(person_id=person.person_id, outcome=outcome)

    def check_in(
        self,
        person_id: int,
        dependant_ids: Sequence[int],
        occurrence: ServiceOccurrence,
        method: AttendanceMethod,
        actor: str,
        *,
        notes: Optional[str] = None,
        client_uuid: Optional[str] = None,
    ) -> CheckInResult:
        """Admit one person plus any of their selected dependants.

        A primary who is already present does not stop the dependants from
        being admitted; each one is its own dedup key.
        """
        primary_id = require_int(person_id, "person_id")
        dep_ids = [d for d in _unique(require_int_list(dependant_ids, "dependant_ids")) if d != primary_id]
        method = require_enum(method, AttendanceMethod, "method")
        actor = require_non_empty(actor, "actor")

        people = self._people.get_many([primary_id] + dep_ids)
        primary = people.get(primary_id)
        if not primary:
            raise ValidationError(f"Person #{primary_id} does not exist")

        now = self._clock()
        primary_result = self._admit(
            primary, occurrence, method=method, actor=actor, now=now, notes=notes, client_uuid=client_uuid
        )

        dep_results: list[EntryResult] = []
        for dep_id in dep_ids:
            dep = people.get(dep_id)
            if not dep:
                dep_results.append(EntryResult(person_id=dep_id, outcome=None, error=f"Person #{dep_id}: not found"))
                continue
            if dep.kind != PersonKind.DEPENDANT or dep.parent_member_id != primary_id:
                dep_results.append(
                    EntryResult(
                        person_id=dep_id,
                        outcome=None,
                        error=f"Person #{dep_id}: not a dependant of person #{primary_id}",
                    )
                )
                continue
            dep_results.append(self._admit(dep, occurrence, method=method, actor=actor, now=now, notes=notes))

        result = CheckInResult(occurrence=occurrence, primary=primary_result, dependants=tuple(dep_results))
        for error in result.errors:
            logger.warning("Check-in for %s: %s", occurrence, error)
        return result

    def check_in_by_identifier(
        self,
        membership_id: str,
        occurrence: ServiceOccurrence,
        method: AttendanceMethod,
        actor: str,
        *,
        dependant_ids: Sequence[int] = (),
        notes: Optional[str] = None,
    ) -> CheckInResult:
        """Scanner/kiosk path: resolve the member from their badge identifier first."""
        member = self._members.resolve_identifier(require_non_empty(membership_id, "membership_id"))
        return self.check_in(member.person_id, dependant_ids, occurrence, method, actor, notes=notes)

    def bulk_check_in(
        self,
        person_ids: Sequence[int],
        occurrence: ServiceOccurrence,
        actor: str,
        *,
        method: AttendanceMethod = AttendanceMethod.BULK,
        max_workers: Optional[int] = None,
    ) -> BulkResult:
        """Admit a batch, one independent guarded admission per id.

        Only a failure before any admission is attempted (the batch person
        lookup) raises; everything after that lands in the returned counts.
        """
        ids = require_int_list(person_ids, "person_ids")
        method = require_enum(method, AttendanceMethod, "method")
        actor = require_non_empty(actor, "actor")

        if not ids:
            return BulkResult()

        people = self._people.get_many(ids)
        now = self._clock()

        def admit_one(pid: int) -> EntryResult:
            person = people.get(pid)
            if not person:
                return EntryResult(person_id=pid, outcome=None, error=f"Person #{pid}: not found")
            return self._admit(person, occurrence, method=method, actor=actor, now=now)

        workers = min(self._max_workers if max_workers is None else max(1, int(max_workers)), len(ids))
        if workers <= 1:
            entries = [admit_one(pid) for pid in ids]
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bulk-check-in") as pool:
                entries = list(pool.map(admit_one, ids))

        result = BulkResult()
        for entry in entries:
            if entry.outcome == AdmissionOutcome.ADMITTED:
                result.successful += 1
            elif entry.outcome == AdmissionOutcome.DUPLICATE:
                result.duplicates += 1
            else:
                result.errors += 1
                result.error_messages.append(entry.error or f"Person #{entry.person_id}: unknown error")

        logger.info(
            "Bulk check-in %s: %s successful, %s duplicates, %s errors",
            occurrence,
            result.successful,
            result.duplicates,
            result.errors,
        )
        if self._activity:
            self._activity.record(
                ActivityType.BULK_ATTENDANCE,
                f"Bulk attendance recorded: {result.successful} successful, "
                f"{result.duplicates} duplicates, {result.errors} errors",
                actor=actor,
                occurrence=occurrence,
                metadata={"total_members": len(ids), **{k: v for k, v in result.to_dict().items() if k != "error_messages"}},
                now=now,
            )
        return result

    def present_person_ids(self, occurrence: ServiceOccurrence) -> set[int]:
        return self._attendance.present_person_ids(occurrence)
