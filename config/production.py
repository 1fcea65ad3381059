import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "police_attendance"),
}

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

LATE_CUTOFF = os.getenv("LATE_CUTOFF", "09:15")
LOCATION_TIMEOUT_SECONDS = float(os.getenv("LOCATION_TIMEOUT_SECONDS", "10"))

PUNCH_STATE_PATH = os.getenv("PUNCH_STATE_PATH", "/var/lib/police-attendance/punch_state.json")
PHOTO_UPLOAD_DIR = os.getenv("PHOTO_UPLOAD_DIR", "/var/lib/police-attendance/photos")
PHOTO_PUBLIC_URL = os.getenv("PHOTO_PUBLIC_URL", "/photos")

PROFILE_FETCH_ATTEMPTS = int(os.getenv("PROFILE_FETCH_ATTEMPTS", "3"))
PROFILE_FETCH_BACKOFF_SECONDS = float(os.getenv("PROFILE_FETCH_BACKOFF_SECONDS", "0.5"))
