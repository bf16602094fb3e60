"""Development settings, local use only."""
import os

from dotenv import load_dotenv

# Load .env FIRST so its values take priority over the dev defaults below.
# (python-dotenv won't overwrite vars already in the environment, so .env
# values only apply when the shell hasn't already set them.)
load_dotenv()

# base.py requires SECRET_KEY via require_env(); this default only applies
# when the developer hasn't set it in .env or the shell.
os.environ.setdefault("SECRET_KEY", "insecure-dev-key-do-not-use-in-production")

from .base import *  # noqa: F401, F403

DEBUG = True
