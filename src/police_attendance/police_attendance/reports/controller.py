from __future__ import annotations

from calendar import monthrange
from datetime import date

from flask import Flask

from ..common.web import admin_required, arg_date, arg_int, current_role, current_user_id, file_response, login_required
from ..container import Container


def _month_bounds(today: date) -> tuple[date, date]:
    last_day = monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/exports/attendance.csv", methods=["GET"], endpoint="export_attendance_csv")
    @admin_required
    def export_attendance_csv():
        default_start, default_end = _month_bounds(date.today())
        export = container.export_service.attendance_csv(
            current_role=current_role(),
            start=arg_date("start", default_start),
            end=arg_date("end", default_end),
        )
        return file_response(app, export)

    @app.route("/api/admin/exports/leave.csv", methods=["GET"], endpoint="export_leave_csv")
    @admin_required
    def export_leave_csv():
        default_start, default_end = _month_bounds(date.today())
        export = container.export_service.leave_csv(
            current_role=current_role(),
            start=arg_date("start", default_start),
            end=arg_date("end", default_end),
        )
        return file_response(app, export)

    @app.route("/api/attendance/report.pdf", methods=["GET"], endpoint="export_attendance_pdf")
    @login_required
    def export_attendance_pdf():
        default_start, default_end = _month_bounds(date.today())
        export = container.export_service.attendance_pdf(
            current_role=current_role(),
            current_user_id=current_user_id(),
            user_id=arg_int("user_id", current_user_id()),
            start=arg_date("start", default_start),
            end=arg_date("end", default_end),
        )
        return file_response(app, export)
