import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "police_attendance_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

LATE_CUTOFF = "09:15"
LOCATION_TIMEOUT_SECONDS = 1.0

# In-memory punch state
PUNCH_STATE_PATH = None
PHOTO_UPLOAD_DIR = os.getenv("PHOTO_UPLOAD_DIR", "/tmp/police-attendance-test-photos")
PHOTO_PUBLIC_URL = "/photos"

PROFILE_FETCH_ATTEMPTS = 3
PROFILE_FETCH_BACKOFF_SECONDS = 0.0
