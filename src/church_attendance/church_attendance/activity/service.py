from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..attendance.model import ServiceOccurrence
from ..core.constants import DEFAULT_ACTIVITY_LIMIT
from ..core.enums import ActivityType
from ..core.exceptions import StoreError
from .model import ActivityEntry
from .repository import ActivityRepository

logger = logging.getLogger(__name__)


class ActivityLog:
    """Append-only audit trail.

    A failed write is logged and dropped: the operation being described has
    already been committed and its result must still reach the caller.
    """

    def __init__(self, activities: ActivityRepository):
        self._activities = activities

    def record(
        self,
        activity_type: ActivityType,
        description: str,
        *,
        actor: str,
        occurrence: Optional[ServiceOccurrence] = None,
        person_id: Optional[int] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> None:
        entry = ActivityEntry(
            activity_type=activity_type,
            description=description,
            created_by=actor,
            created_at=now or datetime.now(),
            person_id=person_id,
            service_date=occurrence.service_date if occurrence else None,
            service_type=occurrence.service_type if occurrence else None,
            metadata=dict(metadata or {}),
        )
        try:
            self._activities.append(entry)
        except StoreError as e:
            logger.warning("Could not log %s activity: %s", activity_type.value, e)

    def recent(self, limit: int = DEFAULT_ACTIVITY_LIMIT) -> Sequence[ActivityEntry]:
        return self._activities.recent(max(1, int(limit)))
