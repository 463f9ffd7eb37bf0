# review_core/services/review_service.py
"""
Authoritative review execution service.

All task status transitions MUST go through this service (or the same
load -> apply -> save sequence). Never update Task.status directly.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from django.conf import settings
from django.db import transaction

from review_core.directory import UserDirectory, default_directory
from review_core.models import Task
from review_core.notifications import NotificationSink
from review_core.serializers import DomainEventSerializer
from review_core.store import TaskStore
from review_core.workflows import INITIAL_STATUS, Role
from review_core.workflows.engine import TaskWorkflow, TransitionResult
from review_core.workflows.errors import InvalidTransition, NotFound, ValidationFailed
from review_core.workflows.events import DomainEvent

logger = logging.getLogger(__name__)


# ===============================================================
# Helpers
# ===============================================================

def _dispatch(events: List[DomainEvent], sink: Optional[NotificationSink]) -> None:
    if not events or not getattr(settings, "REVIEW_NOTIFICATIONS_ENABLED", True):
        return

    if sink is not None:
        transaction.on_commit(lambda: _deliver_safely(sink, events))
        return

    from review_core.tasks import deliver_domain_events

    payload = [dict(item) for item in DomainEventSerializer(events, many=True).data]
    transaction.on_commit(lambda: deliver_domain_events.delay(payload))


def _deliver_safely(sink: NotificationSink, events: Iterable[DomainEvent]) -> None:
    """
    Notification delivery must never undo a committed transition.
    """
    try:
        sink.deliver(events)
    except Exception:
        logger.exception("Notification delivery failed (transition already committed).")


# ===============================================================
# Core service
# ===============================================================

def perform_review_action(
    *,
    task_id,
    actor,
    action: str,
    actor_role: Optional[Any] = None,
    feedback: Optional[str] = None,
    content: Optional[str] = None,
    files: Optional[Iterable[str]] = None,
    store: Optional[TaskStore] = None,
    workflow: Optional[TaskWorkflow] = None,
    directory: Optional[UserDirectory] = None,
    sink: Optional[NotificationSink] = None,
) -> TransitionResult:
    """
    Load, validate, apply, persist, and schedule notifications for one
    transition.

    actor_role defaults to the role UserDirectory resolves for the actor.
    Raises NotFound, InvalidTransition, ValidationFailed, PersistenceFailed.
    On PersistenceFailed nothing was written: reload and show the new state.
    """
    store = store or TaskStore()
    workflow = workflow or TaskWorkflow()
    directory = directory or default_directory

    task = store.load(task_id)

    role = actor_role if actor_role is not None else directory.role_of(actor)
    if role is None:
        raise InvalidTransition(current=task.status, action=action, role="none", reason="actor has no role")

    payload = {}
    if feedback is not None:
        payload["feedback"] = feedback
    if content is not None:
        payload["content"] = content
    if files is not None:
        payload["files"] = list(files)

    result = workflow.apply(task, role, actor, action, payload)

    with transaction.atomic():
        store.save(result.task, result.records)
        _dispatch(result.events, sink)

    return result


# ===============================================================
# Administrative operations
# ===============================================================

def create_task(
    *,
    title: str,
    learner,
    accessor,
    description: str = "",
    course_ref: str = "",
    resource_files: Optional[Iterable[str]] = None,
    directory: Optional[UserDirectory] = None,
) -> Task:
    directory = directory or default_directory

    if not (title or "").strip():
        raise ValidationFailed("title", "Title is required.")

    directory.require_role(learner, Role.LEARNER, field="learner")
    directory.require_role(accessor, Role.ACCESSOR, field="accessor")

    task = Task.objects.create(
        title=title.strip(),
        description=description or "",
        course_ref=course_ref or "",
        learner=learner,
        accessor=accessor,
        status=INITIAL_STATUS,
        resource_files=list(resource_files or []),
    )
    logger.info("Task %s created for learner %s", task.pk, learner.pk)
    return task


# Deleting anything past `assigned` would orphan the review trail.
DELETABLE_STATES = frozenset({INITIAL_STATUS.value})


def can_delete(task: Task) -> bool:
    return str(task.status) in DELETABLE_STATES


def delete_task(task_id) -> None:
    with transaction.atomic():
        task = Task.objects.select_for_update().filter(pk=task_id).first()
        if task is None:
            raise NotFound(task_id)
        if not can_delete(task):
            raise InvalidTransition(
                current=task.status,
                action="delete",
                role=Role.ADMIN.value,
                reason="only tasks not yet submitted can be deleted",
            )
        task.delete()
    logger.info("Task %s deleted", task_id)


__all__ = [
    "perform_review_action",
    "create_task",
    "delete_task",
    "can_delete",
    "DELETABLE_STATES",
]
