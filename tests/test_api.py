from __future__ import annotations

from datetime import date

import pytest
from fakes import (
    InMemoryAttendance,
    RecordingSender,
    dependant,
    make_container,
    member,
)

from src.church_attendance.church_attendance.core.exceptions import StoreError
from src.church_attendance.church_attendance.main import create_app


def _people():
    return [
        member(1, "Kwame Mensah", gender="male", phone="0244551234", membership_id="EA12342021"),
        member(2, "Esi Owusu", gender="female", phone="0200991111"),
        member(4, "Yaw Boateng", gender="male", dob=date(2012, 1, 1)),
        member(5, "Abena Asare", gender="female"),
        dependant(6, 1, "Ama Mensah"),
    ]


@pytest.fixture
def container():
    return make_container(_people(), attendance=InMemoryAttendance(), sender=RecordingSender())


@pytest.fixture
def client(container):
    app = create_app(container=container, settings_module="config.testing")
    return app.test_client()


def test_bulk_returns_full_counts(client):
    payload = {
        "person_ids": [1, 2, 3, 4, 5],
        "service_date": "2024-01-07",
        "service_type": "sunday_service",
        "actor": "admin",
    }

    first = client.post("/api/attendance/bulk", json=payload)
    second = client.post("/api/attendance/bulk", json=payload)

    assert first.status_code == 200
    body = first.get_json()
    assert (body["successful"], body["duplicates"], body["errors"], body["total"]) == (4, 0, 1, 5)
    assert "#3" in body["error_messages"][0]
    assert second.get_json()["duplicates"] == 4


def test_check_in_with_dependant(client):
    resp = client.post(
        "/api/attendance/check-in",
        json={"person_id": 1, "dependant_ids": [6], "service_date": "2024-01-07", "service_type": "sunday_service"},
        headers={"X-Actor": "usher"},
    )

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["primary"]["outcome"] == "admitted"
    assert body["dependants"][0]["outcome"] == "admitted"


def test_check_in_by_identifier(client):
    resp = client.post(
        "/api/attendance/check-in/identifier",
        json={"membership_id": "ea-1234-2021", "service_type": "sunday_service", "actor": "kiosk-1"},
    )

    assert resp.status_code == 200
    assert resp.get_json()["primary"]["person_id"] == 1


def test_validation_errors_are_400(client):
    bad_type = client.post(
        "/api/attendance/check-in",
        json={"person_id": 1, "service_type": "brunch", "actor": "usher"},
    )
    bad_date = client.post(
        "/api/attendance/bulk",
        json={"person_ids": [1], "service_date": "07/01/2024", "service_type": "sunday_service", "actor": "x"},
    )
    no_actor = client.post("/api/attendance/bulk", json={"person_ids": [1], "service_type": "sunday_service"})

    for resp in (bad_type, bad_date, no_actor):
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False


def test_store_outage_is_503(client, container):
    container.people_repo.unavailable = True

    resp = client.post(
        "/api/attendance/bulk",
        json={"person_ids": [1], "service_type": "sunday_service", "actor": "admin"},
    )

    assert resp.status_code == 503
    assert resp.get_json()["success"] is False


def test_absentee_flow(client, container):
    occurrence = {"service_date": "2024-01-07", "service_type": "sunday_service"}
    client.post("/api/attendance/check-in", json={"person_id": 1, "actor": "usher", **occurrence})

    candidates = client.get("/api/absentees/candidates", query_string=occurrence).get_json()["items"]
    assert [c["person_id"] for c in candidates] == [5, 2, 4]

    marked = client.post("/api/absentees", json={"person_id": 2, "reason": "sick", "actor": "pastor", **occurrence})
    absentee_id = marked.get_json()["absentee"]["absentee_id"]

    present = client.post("/api/absentees", json={"person_id": 1, "actor": "pastor", **occurrence})
    assert present.status_code == 400

    notify = client.post("/api/absentees/notify", json={"absentee_ids": [absentee_id]}).get_json()
    assert (notify["sent"], notify["failed"]) == (1, 0)
    assert container.sender.sent[0][0] == "0200991111"

    pending = client.get("/api/absentees/follow-ups").get_json()["items"]
    assert [p["absentee_id"] for p in pending] == [absentee_id]

    done = client.post(f"/api/absentees/{absentee_id}/complete", json={"actor": "deacon"})
    assert done.status_code == 200
    assert client.get("/api/absentees/follow-ups").get_json()["items"] == []


def test_stats_endpoints(client):
    client.post(
        "/api/attendance/bulk",
        json={"person_ids": [1, 2, 4], "service_date": "2024-01-07", "service_type": "sunday_service", "actor": "a"},
    )

    stats = client.get("/api/stats", query_string={"start": "2024-01-01", "end": "2024-01-31"}).get_json()
    daily = client.get("/api/stats/daily", query_string={"start": "2024-01-01", "end": "2024-01-31"}).get_json()
    reversed_range = client.get("/api/stats", query_string={"start": "2024-02-01", "end": "2024-01-01"})

    assert stats["total"] == 3
    assert stats["by_gender"] == {"male": 2, "female": 1}
    assert [d["total"] for d in daily["days"]] == [3]
    assert reversed_range.status_code == 400


def test_member_lookup_and_assignment(client):
    lookup = client.get("/api/members/lookup", query_string={"membership_id": "EA 1234 2021"}).get_json()
    assert lookup["membership_id"] == "EA-1234-2021"
    assert lookup["dependants"] == [{"person_id": 6, "full_name": "Ama Mensah"}]

    assigned = client.post("/api/members/2/membership-id", json={"year": 2023}).get_json()
    assert assigned["membership_id"] == "EA-1111-2023"

    badge = client.get("/api/members/1/badge.png")
    assert badge.status_code == 200
    assert badge.mimetype == "image/png"


def test_offline_sync_and_activity(client):
    item = {
        "client_uuid": "k1-0001",
        "person_id": 2,
        "service_date": "2024-01-07",
        "service_type": "sunday_service",
    }

    first = client.post("/api/attendance/sync", json={"items": [item], "actor": "kiosk-1"}).get_json()
    again = client.post("/api/attendance/sync", json={"items": [item], "actor": "kiosk-1"}).get_json()
    activity = client.get("/api/attendance/activity", query_string={"limit": "5"}).get_json()["items"]

    assert first["synced"] == 1
    assert again["duplicates"] == 1
    assert activity[0]["type"] == "offline_sync"


def test_store_error_type_is_exported():
    from src.church_attendance.church_attendance import StoreError as exported

    assert exported is StoreError


def test_follow_up_flag_from_form_strings(client):
    occurrence = {"service_date": "2024-01-07", "service_type": "sunday_service", "actor": "pastor"}

    marked = client.post("/api/absentees", json={"person_id": 2, "follow_up_required": "false", **occurrence})
    bad_reason = client.post("/api/absentees", json={"person_id": 5, "reason": {"text": "sick"}, **occurrence})

    assert marked.status_code == 200
    assert marked.get_json()["absentee"]["follow_up_required"] is False
    assert bad_reason.status_code == 400


def test_sync_with_malformed_entries_still_reports(client):
    item = {"client_uuid": "k1-0002", "person_id": 2, "service_date": "2024-01-07", "service_type": "sunday_service"}

    resp = client.post("/api/attendance/sync", json={"items": [item, "garbage", 7], "actor": "kiosk-1"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert (body["synced"], body["failed"]) == (1, 2)
