from __future__ import annotations

import logging
from datetime import date

from flask import Flask, jsonify, request

from ..core.exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def actor_from(data: dict) -> str:
    return str(data.get("actor") or request.headers.get("X-Actor") or "").strip()


def service_date_from(data: dict) -> str:
    return str(data.get("service_date") or date.today().isoformat())


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation_error(e: ValidationError):
        return jsonify({"success": False, "message": str(e)}), 400

    @app.errorhandler(StoreError)
    def _store_error(e: StoreError):
        logger.error("Store failure on %s %s: %s", request.method, request.path, e)
        return jsonify({"success": False, "message": "Attendance store unavailable", "detail": str(e)}), 503
