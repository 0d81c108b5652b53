"""Church attendance engine.

This package is organized by feature modules (membership, people, attendance,
absentees, stats, ...) with a thin Flask controller layer on top of
service/repository layers. Services depend on repository Protocols; the MySQL
adapters are wired in ``container.build_container``.
"""
from __future__ import annotations

from .attendance.model import BulkResult, CheckInResult, ServiceOccurrence, make_occurrence
from .container import Container, build_container, wire
from .core.enums import AdmissionOutcome, AttendanceMethod, ServiceType
from .core.exceptions import DomainError, NotificationError, StoreError, ValidationError

__all__ = [
    "AdmissionOutcome",
    "AttendanceMethod",
    "BulkResult",
    "CheckInResult",
    "Container",
    "DomainError",
    "NotificationError",
    "ServiceOccurrence",
    "ServiceType",
    "StoreError",
    "ValidationError",
    "build_container",
    "make_occurrence",
    "wire",
]
