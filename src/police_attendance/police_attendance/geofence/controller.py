from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import admin_required, arg_int, current_role, current_user_id, json_body, login_required
from ..core.exceptions import ValidationError
from ..container import Container
from .service import GeofenceService


def register(app: Flask, container: Container) -> None:
    @app.route("/api/geofences/check", methods=["POST"], endpoint="geofence_check")
    @login_required
    def geofence_check():
        body = json_body()
        check = container.geofence_service.validate_location(
            body.get("latitude"),
            body.get("longitude"),
            station_id=body.get("station_id") or None,
        )
        return jsonify({"ok": True, "geofence": GeofenceService.check_to_dict(check)})

    @app.route("/api/admin/geofences", methods=["GET"], endpoint="admin_geofences")
    @admin_required
    def admin_geofences():
        fences = container.geofence_service.list_geofences(station_id=request.args.get("station_id") or None)
        return jsonify({"ok": True, "geofences": [GeofenceService.geofence_to_dict(f) for f in fences]})

    @app.route("/api/admin/geofences", methods=["POST"], endpoint="admin_create_geofence")
    @admin_required
    def admin_create_geofence():
        body = json_body()
        polygon = body.get("polygon") or []
        if not isinstance(polygon, list) or any(not isinstance(p, (list, tuple)) or len(p) < 2 for p in polygon):
            raise ValidationError("polygon must be a list of [longitude, latitude] pairs")
        try:
            geofence_id = container.geofence_service.create_geofence(
                current_role=current_role(),
                admin_user_id=current_user_id(),
                station_id=body.get("station_id", ""),
                station_name=body.get("station_name", ""),
                center_latitude=body.get("center_latitude"),
                center_longitude=body.get("center_longitude"),
                radius_meters=body.get("radius_meters"),
                polygon=polygon,
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid geofence: {e}") from e
        return jsonify({"ok": True, "geofence_id": geofence_id}), 201

    @app.route("/api/admin/geofences/<int:geofence_id>", methods=["DELETE"], endpoint="admin_deactivate_geofence")
    @admin_required
    def admin_deactivate_geofence(geofence_id: int):
        container.geofence_service.deactivate_geofence(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            geofence_id=geofence_id,
        )
        return jsonify({"ok": True})

    @app.route("/api/admin/violations", methods=["GET"], endpoint="admin_violations")
    @admin_required
    def admin_violations():
        violations = container.geofence_service.list_violations(
            user_id=arg_int("user_id"),
            limit=arg_int("limit", 50),
        )
        return jsonify({"ok": True, "violations": [GeofenceService.violation_to_dict(v) for v in violations]})

    @app.route("/api/admin/violations/<int:violation_id>/acknowledge", methods=["POST"], endpoint="admin_ack_violation")
    @admin_required
    def admin_ack_violation(violation_id: int):
        container.geofence_service.acknowledge_violation(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            violation_id=violation_id,
        )
        return jsonify({"ok": True})
