from django.apps import AppConfig

class NotificationsConfig(AppConfig):
    """AppConfig for user notifications."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "SaberProApp.notifications"
    label = "notifications"
