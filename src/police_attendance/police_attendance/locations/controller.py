from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, arg_int, current_user_id, json_body, login_required
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..container import Container
from .service import LocationService


def register(app: Flask, container: Container) -> None:
    @app.route("/api/locations", methods=["POST"], endpoint="location_report")
    @login_required
    def location_report():
        body = json_body()
        location_id = container.location_service.report(
            user_id=current_user_id(),
            latitude=body.get("latitude"),
            longitude=body.get("longitude"),
            accuracy=body.get("accuracy"),
        )
        return jsonify({"ok": True, "stored": location_id is not None, "location_id": location_id})

    @app.route("/api/admin/locations/<int:user_id>", methods=["GET"], endpoint="admin_officer_location")
    @admin_required
    def admin_officer_location(user_id: int):
        latest = container.location_service.latest(user_id)
        history = container.location_service.history(user_id, limit=arg_int("limit", DEFAULT_HISTORY_LIMIT))
        return jsonify(
            {
                "ok": True,
                "latest": LocationService.to_dict(latest) if latest else None,
                "history": [LocationService.to_dict(loc) for loc in history],
            }
        )
