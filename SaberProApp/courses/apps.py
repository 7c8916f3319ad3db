from django.apps import AppConfig

class CoursesConfig(AppConfig):
    """AppConfig for subjects and enrollments."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "SaberProApp.courses"
    label = "courses"
