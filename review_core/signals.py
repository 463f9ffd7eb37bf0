# review_core/signals.py
from __future__ import annotations

import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from review_core.models import TaskStageEvent

logger = logging.getLogger("review_core.audit")


@receiver(post_save, sender=TaskStageEvent)
def audit_stage_event(sender, instance: TaskStageEvent, created: bool, **kwargs):
    """
    Audit log line for every persisted transition. Runs inside the store's
    transaction.
    """
    if not created:
        return

    logger.info(
        "TASK %s cycle %s: %s -> %s by %s (%s)",
        instance.task_id,
        instance.cycle,
        instance.from_status,
        instance.to_status,
        instance.performed_by_id or "system",
        instance.role,
    )
