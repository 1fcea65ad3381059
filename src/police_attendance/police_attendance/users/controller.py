from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, session

from ..common.web import (
    admin_required,
    arg_int,
    current_role,
    current_user_id,
    error_response,
    json_body,
    login_required,
)
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from .model import Officer


def _officer_to_dict(o: Officer) -> dict:
    return {
        "user_id": o.user_id,
        "badge_number": o.badge_number,
        "full_name": o.full_name,
        "rank": o.rank,
        "role": o.role.value,
        "department": o.department,
        "phone": o.phone,
        "email": o.email,
        "is_active": o.is_active,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = json_body()
        s_user = container.auth_service.sign_in(body.get("badge_number", ""), body.get("password", ""))

        session.clear()
        session.permanent = bool(body.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

        session["user_id"] = s_user.user_id
        session["badge_number"] = s_user.badge_number
        session["name"] = s_user.full_name
        session["rank"] = s_user.rank
        session["role"] = s_user.role.value

        return jsonify(
            {
                "ok": True,
                "user": {
                    "user_id": s_user.user_id,
                    "badge_number": s_user.badge_number,
                    "full_name": s_user.full_name,
                    "rank": s_user.rank,
                    "role": s_user.role.value,
                },
            }
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"ok": True})

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        profile = container.auth_service.fetch_profile(current_user_id())
        return jsonify({"ok": True, "user": _officer_to_dict(profile)})

    @app.route("/api/admin/officers", methods=["GET"], endpoint="admin_officers")
    @admin_required
    def admin_officers():
        officers = container.user_service.list_officers()
        return jsonify({"ok": True, "officers": [_officer_to_dict(o) for o in officers]})

    @app.route("/api/admin/officers", methods=["POST"], endpoint="admin_create_officer")
    @admin_required
    def admin_create_officer():
        body = json_body()
        try:
            role = Role(str(body.get("role") or Role.STAFF.value).lower())
        except ValueError as e:
            raise ValidationError("Role must be admin or staff") from e

        user_id = container.user_service.create_officer(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            badge_number=body.get("badge_number", ""),
            full_name=body.get("full_name", ""),
            rank=body.get("rank", ""),
            password=body.get("password", ""),
            role=role,
            department=body.get("department", ""),
            phone=body.get("phone", ""),
            email=body.get("email", ""),
        )
        return jsonify({"ok": True, "user_id": user_id}), 201

    @app.route("/api/admin/officers/<int:user_id>/active", methods=["POST"], endpoint="admin_set_officer_active")
    @admin_required
    def admin_set_officer_active(user_id: int):
        body = json_body()
        if "is_active" not in body:
            return error_response("is_active is required", 400)
        container.user_service.set_active(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            user_id=user_id,
            is_active=str(body.get("is_active")).lower() in {"1", "true", "yes", "on"},
        )
        return jsonify({"ok": True})

    @app.route("/api/admin/audit", methods=["GET"], endpoint="admin_audit")
    @admin_required
    def admin_audit():
        limit = arg_int("limit", 100)
        entries = container.audit_repo.list_recent(limit=limit)
        return jsonify(
            {
                "ok": True,
                "entries": [
                    {
                        "log_id": e.log_id,
                        "user_id": e.user_id,
                        "action": e.action,
                        "details": dict(e.details),
                        "created_at": e.created_at.isoformat(),
                    }
                    for e in entries
                ],
            }
        )
