# lms_review/celery.py
"""
Celery app for notification delivery.

Run a worker with:  celery -A lms_review worker -Q notifications
"""
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "lms_review.settings")

app = Celery("lms_review")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.conf.task_routes = {
    "review_core.tasks.deliver_domain_events": {"queue": "notifications"},
}
app.autodiscover_tasks(["review_core"])
