# review_core/apps.py

from django.apps import AppConfig


class ReviewCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "review_core"
    verbose_name = "Task review"

    def ready(self):
        from . import signals  # noqa
