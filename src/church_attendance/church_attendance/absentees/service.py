from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..activity.service import ActivityLog
from ..attendance.model import ServiceOccurrence
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..common.validators import optional_str, require_bool, require_int, require_int_list, require_non_empty
from ..core.constants import ABSENTEE_MESSAGE, DEFAULT_FOLLOW_UP_LIMIT
from ..core.enums import ActivityType
from ..core.exceptions import NotificationError, StoreError, ValidationError
from ..notifications.sender import NotificationSender
from ..people.model import PersonSnapshot
from ..people.repository import PersonRepository
from .model import AbsenteeRecord, DispatchResult
from .repository import AbsenteeRepository

logger = logging.getLogger(__name__)

MessageBuilder = Callable[[PersonSnapshot, AbsenteeRecord], str]


def default_message(person: PersonSnapshot, record: AbsenteeRecord) -> str:
    return ABSENTEE_MESSAGE.format(
        name=person.first_name,
        service=record.occurrence.service_type.label,
        date=record.occurrence.service_date.strftime("%d %b %Y"),
    )


class AbsenteeService:
    def __init__(
        self,
        absentees: AbsenteeRepository,
        people: PersonRepository,
        attendance: AttendanceRepository,
        sender: NotificationSender,
        *,
        activity: Optional[ActivityLog] = None,
        message_builder: MessageBuilder = default_message,
        clock: Callable[[], datetime] = now_local,
    ):
        self._absentees = absentees
        self._people = people
        self._attendance = attendance
        self._sender = sender
        self._activity = activity
        self._message_builder = message_builder
        self._clock = clock

    def mark_absent(
        self,
        person_id: int,
        occurrence: ServiceOccurrence,
        actor: str,
        *,
        reason: Optional[str] = None,
        follow_up_required: bool = True,
    ) -> AbsenteeRecord:
        """Idempotent per (person, occurrence): a repeat call overwrites the reason."""
        pid = require_int(person_id, "person_id")
        actor = require_non_empty(actor, "actor")
        reason = optional_str(reason, "reason")
        follow_up_required = require_bool(follow_up_required, "follow_up_required")

        person = self._people.get_by_id(pid)
        if not person:
            raise ValidationError(f"Person #{pid} does not exist")
        if pid in self._attendance.present_person_ids(occurrence):
            raise ValidationError(f"{person.full_name} is already checked in for {occurrence}")

        now = self._clock()
        record = self._absentees.upsert(
            person_id=pid,
            occurrence=occurrence,
            reason=reason,
            follow_up_required=follow_up_required,
            recorded_by=actor,
            now=now,
        )
        if self._activity:
            self._activity.record(
                ActivityType.ABSENTEE_MARKED,
                f"{person.full_name} marked absent",
                actor=actor,
                occurrence=occurrence,
                person_id=pid,
                metadata={"reason": reason, "absentee_id": record.absentee_id},
                now=now,
            )
        return record

    def _contact_for(self, person: PersonSnapshot) -> Optional[str]:
        if person.phone:
            return person.phone
        # Dependants are reached through their parent member.
        if person.parent_member_id is not None:
            parent = self._people.get_by_id(person.parent_member_id)
            if parent:
                return parent.phone
        return None

    def _dispatch_one(self, absentee_id: int) -> None:
        record = self._absentees.get_by_id(absentee_id)
        if not record:
            raise NotificationError("absentee record not found")
        person = self._people.get_by_id(record.person_id)
        if not person:
            raise NotificationError(f"person #{record.person_id} not found")
        contact = self._contact_for(person)
        if not contact:
            raise NotificationError(f"no phone number for {person.full_name}")

        outcome = self._sender.send(contact, self._message_builder(person, record))
        if not outcome.ok:
            raise NotificationError(outcome.detail or "delivery failed")

        try:
            self._absentees.mark_notification_sent(absentee_id, now=self._clock())
        except StoreError as e:
            # The message went out; only the flag is stale.
            logger.error("Notification for absentee #%s sent but flag not saved: %s", absentee_id, e)

    def dispatch_notifications(self, absentee_ids: Sequence[int]) -> DispatchResult:
        """Send one follow-up message per selected absentee record.

        Records already flagged as notified are sent again when re-selected.
        """
        result = DispatchResult()
        for absentee_id in require_int_list(absentee_ids, "absentee_ids"):
            try:
                self._dispatch_one(absentee_id)
            except (NotificationError, StoreError) as e:
                logger.warning("Absentee #%s notification failed: %s", absentee_id, e)
                result.failed += 1
                result.errors.append(f"Absentee #{absentee_id}: {e}")
            else:
                result.sent += 1

        logger.info("Absentee notifications: %s sent, %s failed", result.sent, result.failed)
        return result

    def complete_follow_up(self, absentee_id: int, actor: str = "system") -> None:
        aid = require_int(absentee_id, "absentee_id")
        now = self._clock()
        if not self._absentees.complete_follow_up(aid, now=now):
            raise ValidationError(f"Absentee record #{aid} does not exist")
        if self._activity:
            self._activity.record(
                ActivityType.FOLLOW_UP,
                f"Follow-up completed for absentee #{aid}",
                actor=actor,
                metadata={"absentee_id": aid},
                now=now,
            )

    def list_candidates(self, occurrence: ServiceOccurrence, *, group: Optional[str] = None) -> list[PersonSnapshot]:
        """Active members not checked in for the occurrence."""
        present = self._attendance.present_person_ids(occurrence)
        return [m for m in self._people.list_members(group=group) if m.person_id not in present]

    def pending_follow_ups(self, limit: int = DEFAULT_FOLLOW_UP_LIMIT) -> Sequence[AbsenteeRecord]:
        return self._absentees.pending_follow_ups(max(1, int(limit)))
