from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import AdmissionOutcome, AttendanceMethod
from .model import AttendanceRecord, ServiceOccurrence
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class DeduplicationGuard:
    """Admits a person to a service occurrence at most once.

    The check-then-act lives entirely in ``insert_if_absent`` so scanner, kiosk
    and operator channels can call concurrently from any number of engine
    instances. Nothing is cached between calls.
    """

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def admit(
        self,
        person_id: int,
        occurrence: ServiceOccurrence,
        *,
        method: AttendanceMethod,
        actor: str,
        metadata: Optional[Mapping[str, Any]] = None,
        client_uuid: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AdmissionOutcome:
        record = AttendanceRecord(
            person_id=int(person_id),
            occurrence=occurrence,
            check_in_time=now or datetime.now(),
            method=method,
            recorded_by=actor,
            metadata=dict(metadata or {}),
            client_uuid=client_uuid,
        )
        outcome = self._attendance.insert_if_absent(record)
        logger.debug("admit person #%s for %s via %s -> %s", person_id, occurrence, method.value, outcome.value)
        return outcome
