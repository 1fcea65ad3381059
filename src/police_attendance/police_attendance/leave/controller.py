from __future__ import annotations

from datetime import date

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import admin_required, arg_int, current_role, current_user_id, json_body, login_required
from ..core.enums import LeaveStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .service import LeaveService


def _body_date(body: dict, name: str) -> date:
    raw = str(body.get(name) or "").strip()
    if not raw:
        raise ValidationError(f"{name} is required")
    try:
        return parse_iso_date(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be YYYY-MM-DD") from e


def register(app: Flask, container: Container) -> None:
    @app.route("/api/leave", methods=["POST"], endpoint="leave_create")
    @login_required
    def leave_create():
        body = json_body()
        request_id = container.leave_service.create_leave(
            user_id=current_user_id(),
            start_date=_body_date(body, "start_date"),
            end_date=_body_date(body, "end_date"),
            reason=body.get("reason", ""),
            attachment_url=body.get("attachment_url", ""),
        )
        return jsonify({"ok": True, "request_id": request_id}), 201

    @app.route("/api/leave/mine", methods=["GET"], endpoint="leave_mine")
    @login_required
    def leave_mine():
        leaves = container.leave_service.list_my_requests(user_id=current_user_id())
        return jsonify({"ok": True, "requests": [LeaveService.to_dict(lr) for lr in leaves]})

    @app.route("/api/admin/leave", methods=["GET"], endpoint="admin_leave_list")
    @admin_required
    def admin_leave_list():
        raw = (request.args.get("status") or "").strip().upper()
        try:
            status = LeaveStatus(raw) if raw else None
        except ValueError as e:
            raise ValidationError("status must be PENDING, APPROVED or REJECTED") from e
        leaves = container.leave_service.list_all(current_role=current_role(), status=status)
        return jsonify({"ok": True, "requests": [LeaveService.to_dict(lr) for lr in leaves]})

    @app.route("/api/admin/leave/pending", methods=["GET"], endpoint="admin_leave_pending")
    @admin_required
    def admin_leave_pending():
        leaves = container.leave_service.list_pending(current_role=current_role())
        return jsonify({"ok": True, "requests": [LeaveService.to_dict(lr) for lr in leaves]})

    @app.route("/api/admin/leave/<int:request_id>/approve", methods=["POST"], endpoint="admin_leave_approve")
    @admin_required
    def admin_leave_approve(request_id: int):
        container.leave_service.approve_leave(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            request_id=request_id,
        )
        return jsonify({"ok": True})

    @app.route("/api/admin/leave/<int:request_id>/reject", methods=["POST"], endpoint="admin_leave_reject")
    @admin_required
    def admin_leave_reject(request_id: int):
        body = json_body()
        container.leave_service.reject_leave(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            request_id=request_id,
            reject_reason=body.get("reject_reason", ""),
        )
        return jsonify({"ok": True})

    @app.route("/api/leave/calendar", methods=["GET"], endpoint="leave_calendar")
    @login_required
    def leave_calendar():
        today = date.today()
        year = arg_int("year", today.year)
        month = arg_int("month", today.month)
        days = container.leave_service.month_calendar(year=year, month=month)
        return jsonify(
            {
                "ok": True,
                "year": year,
                "month": month,
                "days": [
                    {
                        "date": d.day.isoformat(),
                        "is_current_month": d.is_current_month,
                        "leaves": [
                            {
                                "request_id": cl.request_id,
                                "user_name": cl.user_name,
                                "badge_number": cl.badge_number,
                                "is_start": cl.is_start,
                                "is_end": cl.is_end,
                                "is_continuing": cl.is_continuing,
                            }
                            for cl in d.leaves
                        ],
                    }
                    for d in days
                ],
            }
        )
