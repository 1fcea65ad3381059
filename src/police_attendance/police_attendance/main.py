from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify, send_from_directory

from config import get_settings_module

from .common.datetime_utils import parse_hhmm
from .common.web import register_error_handlers
from .container import build_container
from .database.bootstrap import apply_schema, ensure_demo_officers, list_tables
from .attendance.controller import register as register_attendance
from .geofence.controller import register as register_geofence
from .leave.controller import register as register_leave
from .locations.controller import register as register_locations
from .notifications.controller import register as register_notifications
from .reports.controller import register as register_reports
from .shifts.controller import register as register_shifts
from .users.controller import register as register_users

logger = logging.getLogger("police_attendance")

PROJECT_ROOT = Path(__file__).resolve().parents[3]


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=logging.DEBUG if app.config["DEBUG"] else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=PROJECT_ROOT / "database" / "schema.sql")
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        ensure_demo_officers(db_config)
        logger.info("demo officers ready")

    photo_dir = Path(getattr(settings, "PHOTO_UPLOAD_DIR", PROJECT_ROOT / "uploads" / "attendance-photos"))
    photo_public_url = getattr(settings, "PHOTO_PUBLIC_URL", "/photos")

    container = build_container(
        db_config=db_config,
        late_cutoff=parse_hhmm(getattr(settings, "LATE_CUTOFF", "09:15")),
        punch_state_path=getattr(settings, "PUNCH_STATE_PATH", None),
        photo_dir=photo_dir,
        photo_public_url=photo_public_url,
        location_timeout=float(getattr(settings, "LOCATION_TIMEOUT_SECONDS", 10)),
        profile_fetch_attempts=int(getattr(settings, "PROFILE_FETCH_ATTEMPTS", 3)),
        profile_fetch_backoff=float(getattr(settings, "PROFILE_FETCH_BACKOFF_SECONDS", 0.5)),
    )
    app.extensions["police_attendance"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_attendance(app, container)
    register_leave(app, container)
    register_shifts(app, container)
    register_geofence(app, container)
    register_locations(app, container)
    register_reports(app, container)
    register_notifications(app, container)

    @app.route(f"{photo_public_url.rstrip('/')}/<path:filename>", endpoint="punch_photo")
    def punch_photo(filename: str):
        return send_from_directory(photo_dir, filename)

    @app.route("/api/health", endpoint="health")
    def health():
        return jsonify({"ok": True})

    return app
