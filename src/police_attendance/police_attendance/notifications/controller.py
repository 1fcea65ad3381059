from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, arg_int, current_role, current_user_id, login_required
from ..container import Container
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from .service import NotificationService


def register(app: Flask, container: Container) -> None:
    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_list")
    @login_required
    def notifications_list():
        items = container.notification_service.list_for_user(current_user_id(), limit=arg_int("limit", DEFAULT_NOTIFICATION_LIMIT))
        return jsonify({"ok": True, "notifications": [NotificationService.to_dict(n) for n in items]})

    @app.route("/api/notifications/unread-count", methods=["GET"], endpoint="notifications_unread_count")
    @login_required
    def notifications_unread_count():
        return jsonify({"ok": True, "unread": container.notification_service.unread_count(current_user_id())})

    @app.route("/api/notifications/<int:notification_id>/read", methods=["POST"], endpoint="notifications_mark_read")
    @login_required
    def notifications_mark_read(notification_id: int):
        container.notification_service.mark_read(user_id=current_user_id(), notification_id=notification_id)
        return jsonify({"ok": True})

    @app.route("/api/notifications/read-all", methods=["POST"], endpoint="notifications_mark_all_read")
    @login_required
    def notifications_mark_all_read():
        updated = container.notification_service.mark_all_read(user_id=current_user_id())
        return jsonify({"ok": True, "updated": updated})

    @app.route("/api/admin/notifications/shift-reminders", methods=["POST"], endpoint="admin_shift_reminders")
    @admin_required
    def admin_shift_reminders():
        sent = container.notification_service.send_shift_reminders(current_role=current_role())
        return jsonify({"ok": True, "sent": sent})
