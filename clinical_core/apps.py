# clinical_core/apps.py

from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class ClinicalCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinical_core"
    verbose_name = "Clinical records"

    def ready(self):
        # Audit receivers for lifecycle events
        from . import signals  # noqa

        logger.debug("clinical_core signal receivers connected")
