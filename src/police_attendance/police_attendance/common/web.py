"""Shared Flask helpers: session guards, request parsing, error responses."""

from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackendUnavailableError,
    DataIntegrityError,
    DomainError,
    InvalidTransitionError,
    LocationTimeoutError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
ERROR_STATUS = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (LocationTimeoutError, 408),
    (DataIntegrityError, 422),
    (BackendUnavailableError, 503),
)


def status_for(error: DomainError) -> int:
    for cls, status in ERROR_STATUS:
        if isinstance(error, cls):
            return status
    return 400


def error_response(message: str, status: int, **extra: Any):
    payload: Dict[str, Any] = {"ok": False, "error": message}
    payload.update(extra)
    return jsonify(payload), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, e)
        return error_response(str(e), status, kind=type(e).__name__)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("Please sign in to continue", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("Please sign in to continue", 401)
        if session.get("role") != Role.ADMIN.value:
            return error_response("You do not have permission", 403)
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role", Role.STAFF.value))


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def arg_date(name: str, default: Optional[date] = None) -> date:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        if default is None:
            raise ValidationError(f"{name} is required")
        return default
    try:
        return parse_iso_date(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be YYYY-MM-DD") from e


def arg_int(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be an integer") from e


def file_response(app: Flask, export):
    return app.response_class(
        export.content,
        mimetype=export.mimetype,
        headers={"Content-Disposition": f"attachment; filename={export.filename}"},
    )
