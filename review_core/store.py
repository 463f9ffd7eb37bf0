# review_core/store.py
"""
Django ORM task store.

save() is a compare-and-swap on (status, version) as originally loaded:
if another caller saved first, nothing is written and PersistenceFailed is
raised. Stage records are written in the same transaction.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from review_core.models import Task, TaskStageEvent
from review_core.workflows.errors import NotFound, PersistenceFailed
from review_core.workflows.events import StageRecord

# Columns the workflow may change. Everything else on Task is immutable here.
WORKFLOW_COLUMNS = (
    "status",
    "iqa_id",
    "eqa_id",
    "submission_content",
    "submission_files",
    "submitted_at",
    "accessor_feedback",
    "accessor_assessed_at",
    "iqa_feedback",
    "iqa_assessed_at",
    "eqa_feedback",
    "eqa_assessed_at",
    "resubmission_count",
)


class TaskStore:
    def load(self, task_id) -> Task:
        task = (
            Task.objects.select_related("learner", "accessor", "iqa", "eqa")
            .filter(pk=task_id)
            .first()
        )
        if task is None:
            raise NotFound(task_id)
        task._loaded_status = task.status
        task._loaded_version = task.version
        return task

    def load_many(self, **filters) -> List[Task]:
        return list(Task.objects.filter(**filters))

    def save(self, task: Task, records: Optional[Iterable[StageRecord]] = None) -> Task:
        expected_status = getattr(task, "_loaded_status", None)
        expected_version = getattr(task, "_loaded_version", task.version)

        lookup = {"pk": task.pk, "version": expected_version}
        if expected_status is not None:
            lookup["status"] = expected_status

        values = {name: getattr(task, name) for name in WORKFLOW_COLUMNS}

        with transaction.atomic():
            updated = Task.objects.filter(**lookup).update(
                version=F("version") + 1,
                updated_at=timezone.now(),
                **values,
            )
            if updated != 1:
                if not Task.objects.filter(pk=task.pk).exists():
                    raise NotFound(task.pk)
                raise PersistenceFailed(
                    task.pk,
                    expected_status=str(expected_status) if expected_status is not None else None,
                    expected_version=expected_version,
                )

            for r in records or []:
                TaskStageEvent.objects.create(
                    task_id=task.pk,
                    stage=r.stage.value,
                    action=r.action,
                    from_status=r.from_status.value,
                    to_status=r.to_status.value,
                    performed_by_id=r.actor_id,
                    role=r.actor_role.value,
                    text=r.text,
                    files=list(r.files),
                    cycle=r.cycle,
                    created_at=r.created_at,
                )

        task.version = expected_version + 1
        task._loaded_status = task.status
        task._loaded_version = task.version
        return task
