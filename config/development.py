import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "police_attendance"),
}

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also create the demo admin/staff officers on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Punches after this local time (HH:MM, minute resolution) are LATE
LATE_CUTOFF = os.getenv("LATE_CUTOFF", "09:15")
LOCATION_TIMEOUT_SECONDS = float(os.getenv("LOCATION_TIMEOUT_SECONDS", "10"))

# Punch state snapshots survive restarts when a path is set
PUNCH_STATE_PATH = os.getenv("PUNCH_STATE_PATH", "instance/punch_state.json")
PHOTO_UPLOAD_DIR = os.getenv("PHOTO_UPLOAD_DIR", "uploads/attendance-photos")
PHOTO_PUBLIC_URL = os.getenv("PHOTO_PUBLIC_URL", "/photos")

PROFILE_FETCH_ATTEMPTS = int(os.getenv("PROFILE_FETCH_ATTEMPTS", "3"))
PROFILE_FETCH_BACKOFF_SECONDS = float(os.getenv("PROFILE_FETCH_BACKOFF_SECONDS", "0.5"))
