from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest
from fakes import (
    SUNDAY,
    InMemoryAbsentees,
    InMemoryActivities,
    InMemoryAttendance,
    InMemoryPeople,
    RecordingSender,
    dependant,
    member,
    record_for,
)

from src.church_attendance.church_attendance.absentees.service import AbsenteeService, default_message
from src.church_attendance.church_attendance.activity.service import ActivityLog
from src.church_attendance.church_attendance.core.enums import ActivityType
from src.church_attendance.church_attendance.core.exceptions import StoreError, ValidationError

NOW = datetime(2024, 1, 8, 12, 0)


def _people():
    return InMemoryPeople(
        [
            member(1, "Kwame Mensah", phone="024 555 0001", groups=("choir",)),
            member(2, "Esi Owusu", phone="024-555-0002", groups=("ushers",)),
            member(3, "Yaw Boateng"),
            dependant(4, 1, "Ama Mensah"),
        ]
    )


def _service(*, attendance=None, absentees=None, sender=None, activities=None, people=None):
    absentees = absentees or InMemoryAbsentees()
    sender = sender or RecordingSender()
    svc = AbsenteeService(
        absentees,
        people or _people(),
        attendance or InMemoryAttendance(),
        sender,
        activity=ActivityLog(activities or InMemoryActivities()),
        clock=lambda: NOW,
    )
    return svc, absentees, sender


def test_mark_absent_twice_keeps_one_record_with_latest_reason():
    svc, absentees, _ = _service()

    first = svc.mark_absent(1, SUNDAY, "pastor", reason="travelling")
    second = svc.mark_absent(1, SUNDAY, "pastor", reason="sick")

    assert len(absentees.all()) == 1
    assert first.absentee_id == second.absentee_id
    assert absentees.all()[0].reason == "sick"


def test_mark_absent_rejects_present_person():
    attendance = InMemoryAttendance()
    attendance.add(record_for(1))
    svc, absentees, _ = _service(attendance=attendance)

    with pytest.raises(ValidationError):
        svc.mark_absent(1, SUNDAY, "pastor")
    assert absentees.all() == []


def test_mark_absent_rejects_unknown_person():
    svc, _, _ = _service()

    with pytest.raises(ValidationError):
        svc.mark_absent(42, SUNDAY, "pastor")


def test_mark_absent_logs_activity():
    activities = InMemoryActivities()
    svc, _, _ = _service(activities=activities)

    svc.mark_absent(2, SUNDAY, "pastor", reason="  ")

    (entry,) = activities.entries
    assert entry.activity_type == ActivityType.ABSENTEE_MARKED
    assert entry.metadata["reason"] is None


def test_dispatch_counts_sent_and_failed():
    sender = RecordingSender(failing_phones={"024-555-0002"})
    svc, absentees, _ = _service(sender=sender)
    a1 = svc.mark_absent(1, SUNDAY, "pastor")
    a2 = svc.mark_absent(2, SUNDAY, "pastor")
    a3 = svc.mark_absent(3, SUNDAY, "pastor")

    result = svc.dispatch_notifications([a1.absentee_id, a2.absentee_id, a3.absentee_id, 999])

    assert result.sent == 1
    assert result.failed == 3
    assert len(result.errors) == 3
    assert absentees.get_by_id(a1.absentee_id).notification_sent
    assert not absentees.get_by_id(a2.absentee_id).notification_sent
    assert any("Absentee #999" in e for e in result.errors)
    assert any("no phone number" in e for e in result.errors)


def test_dispatch_message_names_person_and_service():
    svc, _, sender = _service()
    a1 = svc.mark_absent(1, SUNDAY, "pastor")

    svc.dispatch_notifications([a1.absentee_id])

    ((phone, message),) = sender.sent
    assert phone == "024 555 0001"
    assert message.startswith("Hello Kwame,")
    assert "sunday service" in message
    assert "07 Jan 2024" in message


def test_dependant_is_notified_through_parent_phone():
    svc, _, sender = _service()
    a4 = svc.mark_absent(4, SUNDAY, "pastor")

    result = svc.dispatch_notifications([a4.absentee_id])

    assert result.sent == 1
    assert sender.sent[0][0] == "024 555 0001"
    assert sender.sent[0][1].startswith("Hello Ama,")


def test_redispatch_sends_again():
    svc, _, sender = _service()
    a1 = svc.mark_absent(1, SUNDAY, "pastor")

    svc.dispatch_notifications([a1.absentee_id])
    result = svc.dispatch_notifications([a1.absentee_id])

    assert result.sent == 1
    assert len(sender.sent) == 2


def test_flag_save_failure_still_counts_as_sent():
    absentees = InMemoryAbsentees()
    svc, _, sender = _service(absentees=absentees)
    a1 = svc.mark_absent(1, SUNDAY, "pastor")
    absentees.fail_flag_update = True

    result = svc.dispatch_notifications([a1.absentee_id])

    assert result.sent == 1
    assert result.failed == 0
    assert len(sender.sent) == 1


def test_store_failure_during_dispatch_counts_as_failed():
    people = _people()
    svc, _, _ = _service(people=people)
    a1 = svc.mark_absent(1, SUNDAY, "pastor")
    people.unavailable = True

    result = svc.dispatch_notifications([a1.absentee_id])

    assert (result.sent, result.failed) == (0, 1)


def test_custom_message_builder_is_used():
    absentees = InMemoryAbsentees()
    sender = RecordingSender()
    svc = AbsenteeService(
        absentees,
        _people(),
        InMemoryAttendance(),
        sender,
        message_builder=lambda person, record: f"{person.full_name}/{record.occurrence}",
        clock=lambda: NOW,
    )
    a1 = svc.mark_absent(1, SUNDAY, "pastor")

    svc.dispatch_notifications([a1.absentee_id])

    assert sender.sent[0][1] == "Kwame Mensah/sunday_service@2024-01-07"


def test_complete_follow_up_and_pending_list():
    svc, absentees, _ = _service()
    a1 = svc.mark_absent(1, SUNDAY, "pastor")
    a2 = svc.mark_absent(2, SUNDAY, "pastor")
    svc.mark_absent(3, SUNDAY, "pastor", follow_up_required=False)

    svc.complete_follow_up(a1.absentee_id, "deacon")

    assert absentees.get_by_id(a1.absentee_id).follow_up_completed
    assert [r.absentee_id for r in svc.pending_follow_ups()] == [a2.absentee_id]


def test_complete_follow_up_unknown_record():
    svc, _, _ = _service()

    with pytest.raises(ValidationError):
        svc.complete_follow_up(12)


def test_candidates_exclude_present_members_and_dependants():
    attendance = InMemoryAttendance()
    attendance.add(record_for(2))
    svc, _, _ = _service(attendance=attendance)

    candidates = svc.list_candidates(SUNDAY)

    assert [p.person_id for p in candidates] == [1, 3]
    assert [p.person_id for p in svc.list_candidates(SUNDAY, group="choir")] == [1]


def test_default_message_format():
    svc, _, _ = _service()
    record = svc.mark_absent(3, SUNDAY, "pastor")

    text = default_message(member(3, "Yaw Boateng"), record)

    assert text.startswith("Hello Yaw, we noticed you were absent from sunday service on 07 Jan 2024.")


def test_mark_absent_surfaces_store_failure():
    people = _people()
    svc, _, _ = _service(people=people)
    people.unavailable = True

    with pytest.raises(StoreError):
        svc.mark_absent(1, SUNDAY, "pastor")


def test_concurrent_marks_leave_a_single_record():
    svc, absentees, _ = _service()
    start = threading.Barrier(6)
    reasons = ["sick", "travelling", "work", "family", "unknown", "weather"]

    def mark(reason):
        start.wait()
        return svc.mark_absent(1, SUNDAY, f"operator-{reason}", reason=reason)

    with ThreadPoolExecutor(max_workers=6) as pool:
        records = list(pool.map(mark, reasons))

    assert len(absentees.all()) == 1
    assert {r.absentee_id for r in records} == {absentees.all()[0].absentee_id}
    assert absentees.all()[0].reason in reasons


def test_remark_keeps_sent_and_completed_flags():
    svc, absentees, _ = _service()
    a1 = svc.mark_absent(1, SUNDAY, "pastor", reason="sick")
    svc.dispatch_notifications([a1.absentee_id])
    svc.complete_follow_up(a1.absentee_id)

    again = svc.mark_absent(1, SUNDAY, "deacon", reason="travelling")

    assert again.reason == "travelling"
    assert again.notification_sent
    assert again.follow_up_completed


@pytest.mark.parametrize("flag, expected", [(False, False), ("false", False), ("0", False), ("true", True), (1, True)])
def test_follow_up_flag_accepts_form_values(flag, expected):
    svc, _, _ = _service()

    record = svc.mark_absent(2, SUNDAY, "pastor", follow_up_required=flag)

    assert record.follow_up_required is expected


@pytest.mark.parametrize("field, value", [("reason", 42), ("reason", ["sick"]), ("follow_up_required", "maybe")])
def test_mark_absent_rejects_malformed_fields(field, value):
    svc, absentees, _ = _service()

    with pytest.raises(ValidationError):
        svc.mark_absent(2, SUNDAY, "pastor", **{field: value})
    assert absentees.all() == []
