"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

LATE_CUTOFF = time(9, 15)

LOCATION_TIMEOUT_SECONDS = 10.0
CAMERA_WIDTH = 640
CAMERA_HEIGHT = 480
PHOTO_JPEG_QUALITY = 80

PUNCH_STATE_KEY_PREFIX = "punchState_"

PROFILE_FETCH_ATTEMPTS = 3
PROFILE_FETCH_BACKOFF_SECONDS = 0.5

SHIFT_GRACE_PERIOD_MINUTES = 20
EARLY_DEPARTURE_THRESHOLD_MINUTES = 15

LOCATION_UPDATE_INTERVAL_SECONDS = 30
EARTH_RADIUS_METERS = 6371000.0

CALENDAR_GRID_CELLS = 42

DEFAULT_HISTORY_LIMIT = 50
DEFAULT_ADMIN_LIMIT = 500
DEFAULT_SESSION_DAYS = 7

SHIFT_REMINDER_LEAD_MINUTES = 5
DEFAULT_NOTIFICATION_LIMIT = 50
