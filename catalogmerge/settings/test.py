"""Test settings: quiet logging, no .env loading."""
import os

# Provide test defaults BEFORE importing base (which calls require_env).
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("TRANSLATION_MERGE_LOG_LEVEL", "WARNING")

from .base import *  # noqa: F401, F403

DEBUG = True

# Tests pass --ends-with explicitly; never pick up a developer's default.
TRANSLATION_MERGE = {**TRANSLATION_MERGE, "SEARCH_ENDS_WITH": ""}  # noqa: F405
