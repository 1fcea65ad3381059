from __future__ import annotations

from datetime import date, timedelta

from flask import Flask, jsonify, request

from ..capture.service import PunchResult
from ..capture.submitted import SubmittedCamera, SubmittedLocation
from ..common.web import admin_required, arg_date, arg_int, current_user_id, json_body, login_required
from ..core.enums import PunchType
from ..core.exceptions import ValidationError
from ..container import Container
from ..geofence.service import GeofenceService
from ..punch_state.model import PunchState
from ..shifts.service import ShiftService
from .service import AttendanceService


def _state_to_dict(state: PunchState) -> dict:
    return {
        "is_punched_in": state.is_punched_in,
        "last_punch_time": state.last_punch_time.isoformat() if state.last_punch_time else None,
        "last_punch_type": state.last_punch_type.value if state.last_punch_type else None,
        "next_punch_type": (PunchType.OUT if state.is_punched_in else PunchType.IN).value,
    }


def _punch_type(raw) -> PunchType | None:
    if raw in (None, ""):
        return None
    try:
        return PunchType(str(raw).upper())
    except ValueError as e:
        raise ValidationError("punch_type must be IN or OUT") from e


def _punch_result_to_dict(result: PunchResult) -> dict:
    e = result.event
    return {
        "ok": True,
        "event": {
            "event_id": e.event_id,
            "punch_type": e.punch_type.value,
            "timestamp": e.timestamp.isoformat(),
            "latitude": e.latitude,
            "longitude": e.longitude,
            "accuracy": e.accuracy,
            "photo_url": e.photo_url,
        },
        "state": _state_to_dict(result.state),
        "geofence": GeofenceService.check_to_dict(result.geofence),
        "shift": ShiftService.compliance_to_dict(result.compliance),
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/state", methods=["GET"], endpoint="attendance_state")
    @login_required
    def attendance_state():
        state = container.punch_service.current_state(current_user_id())
        return jsonify({"ok": True, "state": _state_to_dict(state)})

    @app.route("/api/attendance/punch", methods=["POST"], endpoint="attendance_punch")
    @login_required
    def attendance_punch():
        """Punch with the fix and still photo the browser captured.

        Body: punch_type?, latitude, longitude, accuracy?, location_error?, photo (data URL), camera_error?
        """

        body = json_body()
        location = SubmittedLocation(
            body.get("latitude"),
            body.get("longitude"),
            body.get("accuracy"),
            error=body.get("location_error"),
        )
        camera = SubmittedCamera(body.get("photo"), error=body.get("camera_error"))
        result = container.punch_service.punch(
            user_id=current_user_id(),
            location=location,
            camera=camera,
            punch_type=_punch_type(body.get("punch_type")),
        )
        return jsonify(_punch_result_to_dict(result)), 201

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def attendance_history():
        user_id = current_user_id()
        if request.args.get("start") or request.args.get("end"):
            end = arg_date("end", date.today())
            start = arg_date("start", end - timedelta(days=30))
            records = container.attendance_service.history_with_gaps(user_id, start=start, end=end)
        else:
            records = container.attendance_service.history(user_id)

        summary = container.attendance_service.summarize(records)
        return jsonify(
            {
                "ok": True,
                "records": [AttendanceService.to_ui(r) for r in records],
                "summary": {
                    "present": summary.present,
                    "late": summary.late,
                    "absent": summary.absent,
                    "total_hours": summary.total_hours,
                },
            }
        )

    @app.route("/api/admin/attendance/logs", methods=["GET"], endpoint="admin_attendance_logs")
    @admin_required
    def admin_attendance_logs():
        today = date.today()
        start = arg_date("start", today)
        end = arg_date("end", today)
        rows = container.attendance_service.admin_logs(
            start=start,
            end=end,
            user_id=arg_int("user_id"),
            punch_type=_punch_type(request.args.get("punch_type")),
        )
        return jsonify(
            {
                "ok": True,
                "start": start.isoformat(),
                "end": end.isoformat(),
                "rows": [AttendanceService.log_row_to_dict(r) for r in rows],
            }
        )
