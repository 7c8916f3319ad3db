from django.apps import AppConfig

class UsersConfig(AppConfig):
    """AppConfig for user accounts and role profiles."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "SaberProApp.users"
    label = "users"
