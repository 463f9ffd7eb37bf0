# review_core/tasks.py
from __future__ import annotations

from celery import shared_task

from review_core.notifications import DatabaseNotificationSink
from review_core.serializers import DomainEventSerializer


@shared_task
def deliver_domain_events(payload: list) -> int:
    serializer = DomainEventSerializer(data=payload, many=True)
    serializer.is_valid(raise_exception=True)
    events = serializer.save()
    return DatabaseNotificationSink().deliver(events)
