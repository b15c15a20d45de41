# carwash/data.py

# Used when the schedule_settings row does not exist yet
DEFAULT_SCHEDULE = {
    "work_start_hour": 8,
    "work_end_hour": 18,
    "work_days": [1, 2, 3, 4, 5, 6],  # Mon ... Sat (0=Sun)
    "closed_dates": [],
    "max_concurrent_bookings": 1,
    "multi_worker_enabled": False,
}

SETTINGS_ROW_ID = 1
