# review_core/notifications.py
"""
Notification sinks for workflow domain events, plus the per-user
notification inbox operations (mark read, read all, clear all).
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Protocol, Tuple

from django.db import IntegrityError, transaction

from review_core.directory import default_directory
from review_core.models import Notification, Task
from review_core.workflows import Role, TaskStatus
from review_core.workflows.events import DomainEvent

logger = logging.getLogger(__name__)

Level = Notification.Level


class NotificationSink(Protocol):
    def deliver(self, events: Iterable[DomainEvent]) -> int:
        ...


def _label(status: str) -> str:
    return str(status).replace("_", " ").upper()


def recipients_for(event: DomainEvent, task: Task) -> List[Tuple[object, str, str, str]]:
    """
    (user, level, title, message) tuples for one event.

    Messages and the resubmission label come from the event, not from the
    task row, which may have moved on by delivery time.
    """
    status = event.resulting_status
    title = task.title
    feedback = event.feedback
    out: List[Tuple[object, str, str, str]] = []

    if status == TaskStatus.SUBMITTED:
        msg = "Resubmitted" if event.cycle > 1 else "Submitted"
        out.append((task.accessor, Level.INFO, f"{msg}: {title}", "A learner submission is awaiting your assessment."))

    elif status == TaskStatus.ACCESSOR_PASS:
        out.append((task.learner, Level.SUCCESS, f"Passed: {title}", feedback))
        for user in default_directory.users_with_role(Role.IQA):
            out.append((user, Level.INFO, f"Awaiting IQA review: {title}", "An accessor decision needs sampling."))

    elif status == TaskStatus.ACCESSOR_FAIL:
        out.append((task.learner, Level.WARNING, f"Resubmission required: {title}", feedback))

    elif status == TaskStatus.IQA_PASS:
        out.append((task.accessor, Level.SUCCESS, f"IQA confirmed: {title}", feedback))
        for user in default_directory.users_with_role(Role.EQA):
            out.append((user, Level.INFO, f"Awaiting EQA review: {title}", "An IQA decision needs approval."))

    elif status == TaskStatus.IQA_FAIL:
        # iqa_fail has no outgoing transition; the learner is informed, not asked to resubmit
        out.append((task.accessor, Level.WARNING, f"IQA failed: {title}", feedback))
        out.append((task.learner, Level.WARNING, f"Failed internal quality review: {title}", feedback))

    elif status in (TaskStatus.EQA_PASS, TaskStatus.EQA_FAIL):
        approved = status == TaskStatus.EQA_PASS
        level = Level.SUCCESS if approved else Level.ERROR
        verb = "Approved" if approved else "Rejected"
        for user in (task.learner, task.accessor, task.iqa):
            if user is not None:
                out.append((user, level, f"EQA {verb}: {title}", feedback))

    return out


class DatabaseNotificationSink:
    """
    Writes Notification rows. Redelivery of the same event is a no-op.
    """

    def deliver(self, events: Iterable[DomainEvent]) -> int:
        created = 0
        for event in events:
            task = Task.objects.select_related("learner", "accessor", "iqa").filter(pk=event.task_id).first()
            if task is None:
                logger.warning("Dropping %s for missing task %s", event.type, event.task_id)
                continue

            key = f"{event.dedup_key}@{event.timestamp.isoformat()}"
            for user, level, title, message in recipients_for(event, task):
                try:
                    with transaction.atomic():
                        _, was_created = Notification.objects.get_or_create(
                            user=user,
                            dedup_key=key,
                            defaults={
                                "task": task,
                                "level": level,
                                "title": title,
                                "message": message or "",
                            },
                        )
                except IntegrityError:
                    # lost a race with a concurrent redelivery
                    continue
                created += int(was_created)

        logger.debug("Delivered %d notification(s)", created)
        return created


class LoggingNotificationSink:
    def deliver(self, events: Iterable[DomainEvent]) -> int:
        n = 0
        for event in events:
            logger.info(
                "%s task=%s status=%s role=%s",
                event.type,
                event.task_id,
                _label(event.resulting_status),
                event.actor_role,
            )
            n += 1
        return n


# ===============================================================
# Inbox operations
# ===============================================================

def notifications_for(user, *, unread_only: bool = False):
    qs = Notification.objects.filter(user=user)
    if unread_only:
        qs = qs.filter(read=False)
    return qs


def mark_read(user, notification_id) -> bool:
    return bool(Notification.objects.filter(user=user, pk=notification_id).update(read=True))


def mark_all_read(user) -> int:
    return Notification.objects.filter(user=user, read=False).update(read=True)


def clear_all(user) -> int:
    deleted, _ = Notification.objects.filter(user=user).delete()
    return deleted
