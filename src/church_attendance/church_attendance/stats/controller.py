from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from ..common.validators import require_date, require_enum
from ..container import Container
from ..core.enums import ServiceType


def _service_type_arg() -> Optional[ServiceType]:
    value = request.args.get("service_type")
    return require_enum(value, ServiceType, "service_type") if value else None


def register(app: Flask, container: Container) -> None:
    svc = container.statistics_service

    @app.route("/api/stats", methods=["GET"], endpoint="api_stats")
    def api_stats():
        stats = svc.aggregate(
            require_date(request.args.get("start"), "start"),
            require_date(request.args.get("end"), "end"),
            service_type=_service_type_arg(),
        )
        return jsonify({"success": True, **stats.to_dict()}), 200

    @app.route("/api/stats/daily", methods=["GET"], endpoint="api_stats_daily")
    def api_stats_daily():
        days = svc.daily_breakdown(
            require_date(request.args.get("start"), "start"),
            require_date(request.args.get("end"), "end"),
            service_type=_service_type_arg(),
        )
        return jsonify({"success": True, "days": [d.to_dict() for d in days]}), 200
