"""Base settings shared by every environment.

The merge tool has no database, no web front end and no users: Django
provides the settings layer, logging configuration and the management
command runner.
"""
import os
from pathlib import Path

from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent.parent


def require_env(name):
    """Return an environment variable or fail loudly at startup."""
    value = os.environ.get(name)
    if not value:
        raise ImproperlyConfigured(f"Required environment variable {name} is not set.")
    return value


SECRET_KEY = require_env("SECRET_KEY")

DEBUG = False
ALLOWED_HOSTS = []

INSTALLED_APPS = [
    "apps.translations",
]

DATABASES = {}

USE_I18N = True
USE_TZ = True
TIME_ZONE = "UTC"
LANGUAGE_CODE = "en"

# ------------------------------------------------------------------
# Translation merge
# ------------------------------------------------------------------
TRANSLATION_MERGE = {
    # File extension of the catalogs paired between the two folders.
    "CATALOG_SUFFIX": os.environ.get("TRANSLATION_MERGE_CATALOG_SUFFIX", ".po"),
    # Default for --ends-with; blank means "empty messages only".
    "SEARCH_ENDS_WITH": os.environ.get("TRANSLATION_MERGE_ENDS_WITH", ""),
    # Folder under an extension that holds one directory per language.
    "LOCALES_DIR": os.environ.get("TRANSLATION_MERGE_LOCALES_DIR", "locales"),
}

# ------------------------------------------------------------------
# Logging
# ------------------------------------------------------------------
LOG_LEVEL = os.environ.get("TRANSLATION_MERGE_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "{levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
