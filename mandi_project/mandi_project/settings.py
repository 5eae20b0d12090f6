"""
Settings for the mandi ledger backend.

Values come from the environment (django-environ); a .env file next to
manage.py (or one level up) is read when present.
"""

from __future__ import annotations

import sys
from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parent.parent

TESTING = "test" in sys.argv or "pytest" in sys.modules

env = environ.Env(
    DEBUG=(bool, False),
    SECRET_KEY=(str, ""),
    TIME_ZONE=(str, "Asia/Kolkata"),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    LOG_LEVEL=(str, "INFO"),
    CELERY_BROKER_URL=(str, "redis://localhost:6379/0"),
    CELERY_TASK_ALWAYS_EAGER=(bool, TESTING),
    LEDGER_NOTIFIER=(str, "ledger_core.notifiers.LoggingNotifier"),
    LEDGER_NOTIFICATION_MAX_ATTEMPTS=(int, 5),
    LEDGER_NOTIFICATION_SWEEP_GRACE=(int, 300),
)

env_file_1 = BASE_DIR / ".env"
env_file_2 = BASE_DIR.parent / ".env"

if env_file_1.exists():
    env.read_env(str(env_file_1))
elif env_file_2.exists():
    env.read_env(str(env_file_2))

# -----------------------------------------
# CORE
# -----------------------------------------
SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")

LANGUAGE_CODE = "en-us"
TIME_ZONE = env("TIME_ZONE")
USE_I18N = True
USE_TZ = True

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "ledger_core.apps.LedgerCoreConfig",
]

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -----------------------------------------
# DATABASE
# -----------------------------------------
# PostgreSQL in deployment (row locks on the payment path), SQLite locally
DATABASES = {
    "default": env.db("DATABASE_URL"),
}
DATABASES["default"]["ATOMIC_REQUESTS"] = False

# -----------------------------------------
# CELERY
# -----------------------------------------
CELERY_BROKER_URL = env("CELERY_BROKER_URL")
CELERY_TASK_ALWAYS_EAGER = env.bool("CELERY_TASK_ALWAYS_EAGER")
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_BEAT_SCHEDULE = {
    # pick up outbox rows whose post-commit enqueue never reached the broker
    "sweep-pending-notifications": {
        "task": "ledger_core.tasks.dispatch_pending_notifications",
        "schedule": 300.0,
    },
}

# -----------------------------------------
# LEDGER
# -----------------------------------------
LEDGER_NOTIFIER = env("LEDGER_NOTIFIER")
LEDGER_NOTIFICATION_MAX_ATTEMPTS = env.int("LEDGER_NOTIFICATION_MAX_ATTEMPTS")
# seconds a pending row is left to its own post-commit delivery before the sweep
LEDGER_NOTIFICATION_SWEEP_GRACE = env.int("LEDGER_NOTIFICATION_SWEEP_GRACE")

# -----------------------------------------
# LOGGING
# -----------------------------------------
LOG_LEVEL = env("LOG_LEVEL").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {name} {process:d} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "verbose" if not DEBUG else "simple",
        },
    },
    "loggers": {
        "ledger_core": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        # tenant mismatches are always reported, whatever LOG_LEVEL says
        "ledger_core.security": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "celery": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
