"""Core app configuration and startup checks (exception handler wiring)."""

from django.apps import AppConfig
from django.conf import settings
from django.core.checks import register, Warning

class CoreConfig(AppConfig):
    """AppConfig registering a system check for the API exception handler."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "SaberProApp.core"

    def ready(self):
        """Warn when DRF is not routed through the SaberPro exception handler."""
        @register()
        def exception_handler_check(app_configs, **kwargs):
            handler = getattr(settings, "REST_FRAMEWORK", {}).get("EXCEPTION_HANDLER")
            if handler != "SaberProApp.api.exception_handler.saberpro_exception_handler":
                return [Warning(
                    "REST_FRAMEWORK['EXCEPTION_HANDLER'] is not the SaberPro handler; "
                    "store errors may leak internal detail.",
                    id="core.W001",
                )]
            return []
