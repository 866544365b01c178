# config/settings/test.py
from .base import *  # noqa

SECRET_KEY = "test-secret-key"
DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

COMMON_IDEMPOTENCY_USE_DB = True

PAYMENT_GATEWAY_BACKEND = "hc_core.payments.tests.fakes.FakeGateway"
PAYMENT_CURRENCY = "INR"
RAZORPAY_KEY_ID = "rzp_test_key"
RAZORPAY_KEY_SECRET = "rzp_test_secret"

LOGGING["loggers"]["hc_core"]["level"] = "WARNING"
