"""Police Attendance package.

Organized by feature modules (attendance, punch_state, capture, leave, shifts,
geofence, ...) with a thin Flask controller layer over service/repository layers.
"""
