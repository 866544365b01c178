# config/settings/local.py
from .base import *  # noqa

DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"

# Idempotent replays stay in-process while developing.
COMMON_IDEMPOTENCY_USE_DB = False
