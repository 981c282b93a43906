"""Django settings for the Duebot project."""

from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parent.parent

env = environ.Env(
    DEBUG=(bool, False),
    REDMINE_SERVER_SIDE_FILTER=(bool, False),
    DIGEST_INCLUDE_UNSCHEDULED=(bool, False),
)
environ.Env.read_env(BASE_DIR / ".env")

# Only management commands run in this project; the key is never used to sign anything.
SECRET_KEY = env("DJANGO_SECRET_KEY", default="duebot-insecure-secret-key")
DEBUG = env("DEBUG")
ALLOWED_HOSTS: list[str] = []

INSTALLED_APPS = [
    "bot",
]

DATABASES: dict = {}

LANGUAGE_CODE = "ja"
TIME_ZONE = env("TIME_ZONE", default="Asia/Tokyo")
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Logging
LOG_LEVEL = env("LOG_LEVEL", default="INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "bot": {"level": LOG_LEVEL},
        "integrations": {"level": LOG_LEVEL},
    },
}

# Redmine
REDMINE_ENDPOINT = env("REDMINE_ENDPOINT", default="")
REDMINE_APIKEY = env("REDMINE_APIKEY", default="")
REDMINE_PROJECT = env("REDMINE_PROJECT", default="")
REDMINE_FINISHED_STATUS = env.list("REDMINE_FINISHED_STATUS", cast=int, default=[])
REDMINE_SERVER_SIDE_FILTER = env("REDMINE_SERVER_SIDE_FILTER")

# Slack
SLACK_BOT_TOKEN = env("SLACK_TOKEN", default="")
SLACK_CHANNEL = env("SLACK_CHANNEL", default="#general")

# Digest
USER_MAPPING_PATH = env("USER_MAPPING_PATH", default=str(BASE_DIR / "usermapping.json"))
DIGEST_LANGUAGE = env("DIGEST_LANGUAGE", default="ja")
DIGEST_INCLUDE_UNSCHEDULED = env("DIGEST_INCLUDE_UNSCHEDULED")
