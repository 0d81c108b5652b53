from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..common.http import json_body
from ..common.validators import require_int
from ..container import Container
from ..membership import codec


def register(app: Flask, container: Container) -> None:
    svc = container.member_service

    @app.route("/api/members/lookup", methods=["GET"], endpoint="api_member_lookup")
    def api_member_lookup():
        member = svc.resolve_identifier(request.args.get("membership_id", ""))
        return jsonify(
            {
                "success": True,
                "person_id": member.person_id,
                "full_name": member.full_name,
                "membership_id": codec.format_for_display(member.membership_id or ""),
                "dependants": [
                    {"person_id": d.person_id, "full_name": d.full_name}
                    for d in container.people_repo.list_dependants(member.person_id)
                ],
            }
        ), 200

    @app.route("/api/members/<int:person_id>/membership-id", methods=["POST"], endpoint="api_assign_membership_id")
    def api_assign_membership_id(person_id: int):
        data = json_body()
        year = data.get("year")
        display = svc.assign_membership_id(person_id, year=require_int(year, "year") if year else None)
        return jsonify({"success": True, "membership_id": display}), 200

    @app.route("/api/members/<int:person_id>/badge.png", methods=["GET"], endpoint="api_member_badge")
    def api_member_badge(person_id: int):
        return send_file(io.BytesIO(svc.badge_png(person_id)), mimetype="image/png")
