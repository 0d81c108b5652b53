from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from ..activity.service import ActivityLog
from ..attendance.guard import DeduplicationGuard
from ..attendance.service import metadata_snapshot
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import MAX_SYNC_RETRIES
from ..core.enums import ActivityType, AdmissionOutcome
from ..core.exceptions import StoreError, ValidationError
from ..people.repository import PersonRepository
from .model import QueuedCheckIn, SyncReport, item_label

logger = logging.getLogger(__name__)


class OfflineSyncService:
    """Replays offline check-ins through the deduplication guard.

    Replaying the same queue twice is harmless: already-synced items come back
    as duplicates. Store failures are retried by the client until
    ``max_retries``; malformed items and unknown people are abandoned at once.
    """

    def __init__(
        self,
        guard: DeduplicationGuard,
        people: PersonRepository,
        *,
        activity: Optional[ActivityLog] = None,
        max_retries: int = MAX_SYNC_RETRIES,
        clock: Callable[[], datetime] = now_local,
    ):
        self._guard = guard
        self._people = people
        self._activity = activity
        self._max_retries = int(max_retries)
        self._clock = clock

    def _fail(self, report: SyncReport, label: str, message: str, *, retry_count: Optional[int]) -> None:
        report.failed += 1
        report.errors.append(f"{label}: {message}")
        if retry_count is not None and retry_count + 1 < self._max_retries:
            report.retry.append(label)
        else:
            report.abandoned.append(label)

    def sync(self, items: Sequence[Any], actor: str) -> SyncReport:
        actor = require_non_empty(actor, "actor")
        report = SyncReport()
        now = self._clock()

        for raw in items:
            item: Optional[QueuedCheckIn] = None
            try:
                item = QueuedCheckIn.from_dict(raw, default_time=now)
                person = self._people.get_by_id(item.person_id)
                if not person:
                    raise ValidationError(f"person #{item.person_id} not found")
                outcome = self._guard.admit(
                    person.person_id,
                    item.occurrence,
                    method=item.method,
                    actor=actor,
                    metadata=metadata_snapshot(person, today=item.captured_at.date()),
                    client_uuid=item.client_uuid,
                    now=item.captured_at,
                )
            except ValidationError as e:
                self._fail(report, item_label(item, raw), str(e), retry_count=None)
                continue
            except StoreError as e:
                logger.warning("Offline item %s failed: %s", item_label(item, raw), e)
                self._fail(report, item_label(item, raw), str(e), retry_count=item.retry_count if item else None)
                continue

            if outcome == AdmissionOutcome.ADMITTED:
                report.synced += 1
            else:
                report.duplicates += 1

        logger.info(
            "Offline sync: %s synced, %s duplicates, %s failed (%s to retry)",
            report.synced,
            report.duplicates,
            report.failed,
            len(report.retry),
        )
        if self._activity and items:
            self._activity.record(
                ActivityType.OFFLINE_SYNC,
                f"Offline queue synced: {report.synced} synced, {report.duplicates} duplicates, {report.failed} failed",
                actor=actor,
                metadata={"items": len(items), "synced": report.synced, "failed": report.failed},
                now=now,
            )
        return report
