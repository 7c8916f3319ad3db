"""Learning app configuration."""

from django.apps import AppConfig

class LearningConfig(AppConfig):
    """AppConfig for the learning domain (homework, questions, submissions, grades)."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "SaberProApp.learning"
    label = "learning"
