from __future__ import annotations

from flask import Flask, jsonify, request
from PIL import Image, UnidentifiedImageError

from ..common.http import actor_from, json_body, service_date_from
from ..common.validators import require_int
from ..core.enums import AttendanceMethod
from ..core.exceptions import ValidationError
from ..container import Container
from .model import make_occurrence


def _decode_badge(file) -> str:
    # pyzbar loads the native zbar library on import; keep it off the app import path.
    from pyzbar.pyzbar import decode as pyzbar_decode

    try:
        img = Image.open(file.stream).convert("RGB")
    except UnidentifiedImageError:
        raise ValidationError("Uploaded file is not an image")

    decoded = pyzbar_decode(img)
    if not decoded:
        raise ValidationError("No QR code found in image")
    return decoded[0].data.decode("utf-8").strip()


def register(app: Flask, container: Container) -> None:
    svc = container.attendance_service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="api_check_in")
    def api_check_in():
        data = json_body()
        result = svc.check_in(
            require_int(data.get("person_id"), "person_id"),
            data.get("dependant_ids") or [],
            make_occurrence(service_date_from(data), data.get("service_type")),
            data.get("method", AttendanceMethod.ADMIN.value),
            actor_from(data),
            notes=data.get("notes"),
        )
        return jsonify({"success": True, **result.to_dict()}), 200

    @app.route("/api/attendance/check-in/identifier", methods=["POST"], endpoint="api_check_in_identifier")
    def api_check_in_identifier():
        data = json_body()
        result = svc.check_in_by_identifier(
            str(data.get("membership_id") or ""),
            make_occurrence(service_date_from(data), data.get("service_type")),
            data.get("method", AttendanceMethod.KIOSK.value),
            actor_from(data),
            dependant_ids=data.get("dependant_ids") or [],
            notes=data.get("notes"),
        )
        return jsonify({"success": True, **result.to_dict()}), 200

    @app.route("/api/attendance/check-in/scan", methods=["POST"], endpoint="api_check_in_scan")
    def api_check_in_scan():
        """Accept an uploaded badge photo, decode its QR code and check the member in."""
        if "image" not in request.files:
            raise ValidationError("Missing image file")

        scanned = _decode_badge(request.files["image"])
        data = request.form.to_dict()
        result = svc.check_in_by_identifier(
            scanned,
            make_occurrence(service_date_from(data), data.get("service_type")),
            AttendanceMethod.QR,
            actor_from(data),
        )
        return jsonify({"success": True, "scanned": scanned, **result.to_dict()}), 200

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="api_bulk_check_in")
    def api_bulk_check_in():
        data = json_body()
        result = svc.bulk_check_in(
            data.get("person_ids") or [],
            make_occurrence(service_date_from(data), data.get("service_type")),
            actor_from(data),
            method=data.get("method", AttendanceMethod.BULK.value),
        )
        # Partial failure is still a 200: callers read the counts.
        return jsonify({"success": True, **result.to_dict()}), 200

    @app.route("/api/attendance/sync", methods=["POST"], endpoint="api_offline_sync")
    def api_offline_sync():
        data = json_body()
        items = data.get("items") or []
        if not isinstance(items, list):
            raise ValidationError("items must be a list")
        report = container.sync_service.sync(items, actor_from(data))
        return jsonify({"success": True, **report.to_dict()}), 200

    @app.route("/api/attendance/activity", methods=["GET"], endpoint="api_recent_activity")
    def api_recent_activity():
        limit = require_int(request.args.get("limit", 20), "limit")
        entries = container.activity_log.recent(limit)
        return jsonify({"success": True, "items": [e.to_dict() for e in entries]}), 200
