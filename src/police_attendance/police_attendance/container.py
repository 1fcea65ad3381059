from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from pathlib import Path
from typing import Optional

from .attendance.aggregator import AttendanceAggregator
from .attendance.factory import DisplayStatusFactory
from .attendance.mysql_attendance_repository import MySQLPunchEventRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditLogRepository
from .capture.photo_storage import LocalPhotoStorage
from .capture.service import PunchService
from .common.events import ChangeFeed
from .common.retry import RetryPolicy, linear_backoff
from .core.constants import (
    LATE_CUTOFF,
    LOCATION_TIMEOUT_SECONDS,
    PROFILE_FETCH_ATTEMPTS,
    PROFILE_FETCH_BACKOFF_SECONDS,
)
from .core.exceptions import BackendUnavailableError, NotFoundError
from .database.connection import DBConfig, DatabaseConnection
from .geofence.mysql_geofence_repository import MySQLGeofenceRepository
from .geofence.service import GeofenceService
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .leave.service import LeaveService
from .locations.mysql_location_repository import MySQLLocationRepository
from .locations.service import LocationService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.service import NotificationService
from .punch_state.store import InMemoryStateStore, JsonFileStateStore, StateStore
from .reports.service import ExportService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.service import ShiftService
from .users.mysql_officer_repository import MySQLOfficerRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    feed: ChangeFeed
    punch_state_store: StateStore

    officers_repo: MySQLOfficerRepository
    events_repo: MySQLPunchEventRepository
    leaves_repo: MySQLLeaveRepository
    shifts_repo: MySQLShiftRepository
    geofences_repo: MySQLGeofenceRepository
    locations_repo: MySQLLocationRepository
    audit_repo: MySQLAuditLogRepository
    notifications_repo: MySQLNotificationRepository

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    punch_service: PunchService
    leave_service: LeaveService
    shift_service: ShiftService
    geofence_service: GeofenceService
    location_service: LocationService
    export_service: ExportService
    notification_service: NotificationService


def build_container(
    *,
    db_config: dict,
    late_cutoff: time = LATE_CUTOFF,
    punch_state_path: Optional[str] = None,
    photo_dir: str | Path = "uploads/attendance-photos",
    photo_public_url: str = "/photos",
    location_timeout: float = LOCATION_TIMEOUT_SECONDS,
    profile_fetch_attempts: int = PROFILE_FETCH_ATTEMPTS,
    profile_fetch_backoff: float = PROFILE_FETCH_BACKOFF_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    feed = ChangeFeed()
    store: StateStore = JsonFileStateStore(punch_state_path) if punch_state_path else InMemoryStateStore()

    officers_repo = MySQLOfficerRepository(conn)
    events_repo = MySQLPunchEventRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    shifts_repo = MySQLShiftRepository(conn)
    geofences_repo = MySQLGeofenceRepository(conn)
    locations_repo = MySQLLocationRepository(conn)
    audit_repo = MySQLAuditLogRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)

    profile_retry = RetryPolicy(
        max_attempts=profile_fetch_attempts,
        backoff=linear_backoff(profile_fetch_backoff),
        retry_on=(NotFoundError, BackendUnavailableError),
    )
    auth_service = AuthService(officers_repo, profile_retry=profile_retry)
    user_service = UserService(officers_repo, audit_repo)

    aggregator = AttendanceAggregator(late_cutoff=late_cutoff, factory=DisplayStatusFactory())
    attendance_service = AttendanceService(events_repo, aggregator=aggregator, feed=feed)
    leave_service = LeaveService(leaves_repo, audit=audit_repo, feed=feed)
    shift_service = ShiftService(shifts_repo, audit=audit_repo)
    geofence_service = GeofenceService(geofences_repo, audit=audit_repo)
    location_service = LocationService(locations_repo)
    punch_service = PunchService(
        attendance=attendance_service,
        events=events_repo,
        store=store,
        photos=LocalPhotoStorage(photo_dir, public_base_url=photo_public_url),
        geofences=geofence_service,
        shifts=shift_service,
        location_timeout=location_timeout,
    )
    export_service = ExportService(attendance_service, leaves_repo, officers_repo)
    notification_service = NotificationService(notifications_repo, leaves=leaves_repo, shifts=shifts_repo)
    notification_service.watch_leave_decisions(feed)

    return Container(
        conn=conn,
        feed=feed,
        punch_state_store=store,
        officers_repo=officers_repo,
        events_repo=events_repo,
        leaves_repo=leaves_repo,
        shifts_repo=shifts_repo,
        geofences_repo=geofences_repo,
        locations_repo=locations_repo,
        audit_repo=audit_repo,
        notifications_repo=notifications_repo,
        auth_service=auth_service,
        user_service=user_service,
        attendance_service=attendance_service,
        punch_service=punch_service,
        leave_service=leave_service,
        shift_service=shift_service,
        geofence_service=geofence_service,
        location_service=location_service,
        export_service=export_service,
        notification_service=notification_service,
    )
