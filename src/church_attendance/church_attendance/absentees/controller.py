from __future__ import annotations

from flask import Flask, jsonify, request

from ..attendance.model import make_occurrence
from ..common.http import actor_from, json_body, service_date_from
from ..common.validators import require_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.absentee_service

    @app.route("/api/absentees", methods=["POST"], endpoint="api_mark_absent")
    def api_mark_absent():
        data = json_body()
        record = svc.mark_absent(
            require_int(data.get("person_id"), "person_id"),
            make_occurrence(service_date_from(data), data.get("service_type")),
            actor_from(data),
            reason=data.get("reason"),
            follow_up_required=data.get("follow_up_required", True),
        )
        return jsonify({"success": True, "absentee": record.to_dict()}), 200

    @app.route("/api/absentees/candidates", methods=["GET"], endpoint="api_absentee_candidates")
    def api_absentee_candidates():
        occurrence = make_occurrence(service_date_from(request.args), request.args.get("service_type"))
        people = svc.list_candidates(occurrence, group=request.args.get("group") or None)
        return jsonify(
            {
                "success": True,
                "items": [
                    {"person_id": p.person_id, "full_name": p.full_name, "membership_id": p.membership_id}
                    for p in people
                ],
            }
        ), 200

    @app.route("/api/absentees/follow-ups", methods=["GET"], endpoint="api_pending_follow_ups")
    def api_pending_follow_ups():
        limit = require_int(request.args.get("limit", 100), "limit")
        return jsonify({"success": True, "items": [r.to_dict() for r in svc.pending_follow_ups(limit)]}), 200

    @app.route("/api/absentees/notify", methods=["POST"], endpoint="api_notify_absentees")
    def api_notify_absentees():
        data = json_body()
        result = svc.dispatch_notifications(data.get("absentee_ids") or [])
        return jsonify({"success": True, **result.to_dict()}), 200

    @app.route("/api/absentees/<int:absentee_id>/complete", methods=["POST"], endpoint="api_complete_follow_up")
    def api_complete_follow_up(absentee_id: int):
        data = json_body()
        svc.complete_follow_up(absentee_id, actor_from(data) or "system")
        return jsonify({"success": True}), 200
