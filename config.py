"""Global configuration for the reminder alarm service."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Local data directory (logs + alarm database)
DATA_DIR = Path(os.getenv("LOCALAPPDATA", ".")) / "reminder-alarms"

# Record store - one JSON blob in a SQLite key/value table
ALARM_STORE_DB = os.getenv("ALARM_STORE_DB", str(DATA_DIR / "alarms.db"))
ALARM_STORE_KEY = os.getenv("ALARM_STORE_KEY", "active_alarms")

# Wall-clock zone used for "daily at HH:MM"
ALARM_TIMEZONE = ZoneInfo(os.getenv("ALARM_TIMEZONE", "Europe/London"))

# Snooze length offered on every delivered notification
SNOOZE_MINUTES = int(os.getenv("SNOOZE_MINUTES", 10))

# Whether the host allows exact wake-ups. When False, daily reminders are
# armed best-effort and one-time reminders are refused.
EXACT_ALARMS_PERMITTED = _env_bool("EXACT_ALARMS_PERMITTED", True)

# How late an exact alarm may still fire before APScheduler drops it
EXACT_MISFIRE_GRACE_SECONDS = int(os.getenv("EXACT_MISFIRE_GRACE_SECONDS", 60))

# Optional HTTP notification sink (PUT/DELETE per notification id)
NOTIFY_WEBHOOK_URL = os.getenv("NOTIFY_WEBHOOK_URL")
NOTIFY_WEBHOOK_TOKEN = os.getenv("NOTIFY_WEBHOOK_TOKEN")

# Logging
LOG_DIR = DATA_DIR / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)
