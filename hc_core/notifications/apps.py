# hc_core/notifications/apps.py
from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hc_core.notifications"

    def ready(self):
        # registers event subscribers
        from hc_core.notifications import subscribers  # noqa: F401
