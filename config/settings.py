"""
Event Manager - Django Settings
===============================
Django hosts the event manager as a library: it provides settings,
signals, validators and logging configuration. There is no database and no
URL routing; state lives in memory and in JSON snapshots.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("EVENT_MANAGER_SECRET_KEY", "event-manager-dev-key")

DEBUG = os.environ.get("EVENT_MANAGER_DEBUG", "0") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "rest_framework",
    "event_manager",
]

# ── Database ──────────────────────────────────────────────────
# None. The registry is in-memory and persisted through snapshots.
DATABASES = {}

# ── Internationalization ──────────────────────────────────────
# Event dates are naive local datetimes.
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = False

# ── Event Manager ─────────────────────────────────────────────
EVENT_MANAGER = {
    "MAX_SNAPSHOT_BYTES": 100 * 1024 * 1024,
    "JSON_INDENT": 2,
}

# ── Logging ───────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("EVENT_MANAGER_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "event_manager": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": True,
        },
    },
}
