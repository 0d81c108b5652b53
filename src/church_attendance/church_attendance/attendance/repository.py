from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AdmissionOutcome, AttendanceMethod, ServiceType
from .model import AttendanceRecord, ServiceOccurrence


class AttendanceRepository(Protocol):
    def insert_if_absent(self, record: AttendanceRecord) -> AdmissionOutcome:
        """Atomically insert ``record`` unless its (person, date, type) key exists.

        Must be a single conditional write at the store (unique key or
        equivalent), never a read followed by a write. Raises ``StoreError``
        for anything other than the key already being present.
        """

        raise NotImplementedError

    def query(
        self,
        *,
        start_date: date,
        end_date: date,
        service_type: Optional[ServiceType] = None,
        method: Optional[AttendanceMethod] = None,
    ) -> Sequence[AttendanceRecord]:
        """Present records with ``start_date <= service_date <= end_date``."""

        raise NotImplementedError

    def present_person_ids(self, occurrence: ServiceOccurrence) -> set[int]:
        raise NotImplementedError
