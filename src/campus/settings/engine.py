"""Database and registration engine settings."""

from decouple import config

from .base import BASE_DIR

DB_ENGINE = config("DB_ENGINE", default="sqlite")

if DB_ENGINE == "postgres":  # pragma: no cover
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": config("DB_NAME", default="campus"),
            "USER": config("DB_USER", default="campus"),
            "PASSWORD": config("DB_PASSWORD", default="campus"),
            "HOST": config("DB_HOST", default="localhost"),
            "PORT": config("DB_PORT", default=5432, cast=int),
            "CONN_MAX_AGE": config("DB_CONN_MAX_AGE", default=60, cast=int),
            "OPTIONS": {
                # Bounds every storage call so no request waits indefinitely on a row lock.
                "options": f"-c statement_timeout={config('DB_STATEMENT_TIMEOUT_MS', default=5000, cast=int)}",
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": config("DB_NAME", default=str(BASE_DIR / "db.sqlite3")),
            "OPTIONS": {
                "timeout": config("DB_SQLITE_TIMEOUT", default=20, cast=int),
            },
        }
    }

# How many times ticket issuance is retried when a generated ticket number or
# check-in token collides with an existing one.
TICKET_ISSUE_MAX_ATTEMPTS = config("TICKET_ISSUE_MAX_ATTEMPTS", default=3, cast=int)
TICKET_NUMBER_PREFIX = config("TICKET_NUMBER_PREFIX", default="TKT")
EVENT_REMINDER_LEAD_HOURS = config("EVENT_REMINDER_LEAD_HOURS", default=24, cast=int)
