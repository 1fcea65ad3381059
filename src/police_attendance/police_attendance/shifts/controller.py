from __future__ import annotations

from datetime import datetime, timedelta

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime, start_of_day, to_local
from ..common.web import admin_required, arg_date, arg_int, current_role, current_user_id, json_body, login_required
from ..core.exceptions import ValidationError
from ..container import Container
from .service import ShiftService


def _body_datetime(body: dict, name: str) -> datetime:
    raw = str(body.get(name) or "").strip()
    if not raw:
        raise ValidationError(f"{name} is required")
    try:
        return to_local(parse_iso_datetime(raw))
    except ValueError as e:
        raise ValidationError(f"{name} must be an ISO date-time") from e


def register(app: Flask, container: Container) -> None:
    @app.route("/api/shifts/mine", methods=["GET"], endpoint="shifts_mine")
    @login_required
    def shifts_mine():
        user_id = current_user_id()
        current = container.shift_service.current_shift(user_id)
        upcoming = container.shift_service.upcoming_shift(user_id)
        return jsonify(
            {
                "ok": True,
                "current": ShiftService.to_dict(current) if current else None,
                "upcoming": ShiftService.to_dict(upcoming) if upcoming else None,
                "shifts": [ShiftService.to_dict(s) for s in container.shift_service.list_shifts(user_id=user_id)],
            }
        )

    @app.route("/api/admin/shifts", methods=["GET"], endpoint="admin_shifts")
    @admin_required
    def admin_shifts():
        start = start_of_day(arg_date("start")) if request.args.get("start") else None
        end = start_of_day(arg_date("end") + timedelta(days=1)) if request.args.get("end") else None
        shifts = container.shift_service.list_shifts(start=start, end=end, user_id=arg_int("user_id"))
        return jsonify({"ok": True, "shifts": [ShiftService.to_dict(s) for s in shifts]})

    @app.route("/api/admin/shifts", methods=["POST"], endpoint="admin_create_shift")
    @admin_required
    def admin_create_shift():
        body = json_body()
        assigned = body.get("assigned_users") or []
        if not isinstance(assigned, list):
            raise ValidationError("assigned_users must be a list")
        try:
            users = [int(u) for u in assigned]
        except (TypeError, ValueError) as e:
            raise ValidationError("assigned_users must be officer ids") from e

        shift_id = container.shift_service.create_shift(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            station_id=body.get("station_id", ""),
            shift_name=body.get("shift_name", ""),
            shift_start=_body_datetime(body, "shift_start"),
            shift_end=_body_datetime(body, "shift_end"),
            assigned_users=users,
        )
        return jsonify({"ok": True, "shift_id": shift_id}), 201

    @app.route("/api/admin/shifts/<int:shift_id>", methods=["DELETE"], endpoint="admin_delete_shift")
    @admin_required
    def admin_delete_shift(shift_id: int):
        container.shift_service.delete_shift(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            shift_id=shift_id,
        )
        return jsonify({"ok": True})
