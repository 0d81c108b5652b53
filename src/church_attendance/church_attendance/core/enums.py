from __future__ import annotations

from enum import Enum


class ServiceType(str, Enum):
    """Fixed set of service categories a person can attend."""

    SUNDAY_SERVICE = "sunday_service"
    MIDWEEK_SERVICE = "midweek_service"
    PRAYER_MEETING = "prayer_meeting"
    YOUTH_SERVICE = "youth_service"
    CHILDREN_SERVICE = "children_service"
    SPECIAL_EVENT = "special_event"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class AttendanceMethod(str, Enum):
    """Input channel an attendance event arrived through."""

    QR = "qr"
    KIOSK = "kiosk"
    ADMIN = "admin"
    PIN = "pin"
    MOBILE = "mobile"
    BULK = "bulk"


class AttendanceStatus(str, Enum):
    PRESENT = "present"


class PersonKind(str, Enum):
    MEMBER = "member"
    DEPENDANT = "dependant"


class AgeBracket(str, Enum):
    ADULT = "adult"
    CHILD = "child"


class AdmissionOutcome(str, Enum):
    """Result of a deduplicated admission. DUPLICATE is not an error."""

    ADMITTED = "admitted"
    DUPLICATE = "duplicate"


class ActivityType(str, Enum):
    CHECK_IN = "check_in"
    BULK_ATTENDANCE = "bulk_attendance"
    ABSENTEE_MARKED = "absentee_marked"
    FOLLOW_UP = "follow_up"
    OFFLINE_SYNC = "offline_sync"
