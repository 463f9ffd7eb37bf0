# review_core/models/core.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from django.conf import settings
from django.db import models

from review_core.workflows import DECISION_STAGES, Role, Stage, TaskStatus
from review_core.workflows.guards import WorkflowWriteGuardMixin


# ============================================================
# Base
# ============================================================
class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# ============================================================
# User roles (one role per user)
# ============================================================
class UserRole(TimeStampedModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="review_role",
    )
    role = models.CharField(max_length=16, choices=Role.choices, db_index=True)

    def __str__(self):
        return f"{self.user} ({self.role})"


# ============================================================
# Task
# ============================================================
@dataclass(frozen=True)
class Submission:
    content: str
    submitted_at: datetime
    files: List[str] = field(default_factory=list)


class Task(WorkflowWriteGuardMixin, TimeStampedModel):
    """
    A unit of assessable work assigned to a learner.

    Status, submission, feedback and version columns are only ever changed
    through the task store; direct save() of a change to any of them is
    rejected by the write guard.
    """

    WORKFLOW_FIELDS = (
        "status",
        "iqa",
        "eqa",
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
        "version",
    )

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    course_ref = models.CharField(max_length=64, blank=True, db_index=True)

    learner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="learner_tasks",
    )
    accessor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="accessor_tasks",
    )
    iqa = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="iqa_tasks",
    )
    eqa = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="eqa_tasks",
    )

    status = models.CharField(
        max_length=32,
        choices=TaskStatus.choices,
        default=TaskStatus.ASSIGNED,
        db_index=True,
    )

    submission_content = models.TextField(blank=True)
    submission_files = models.JSONField(default=list, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)

    resource_files = models.JSONField(default=list, blank=True)

    accessor_feedback = models.TextField(blank=True)
    accessor_assessed_at = models.DateTimeField(null=True, blank=True)
    iqa_feedback = models.TextField(blank=True)
    iqa_assessed_at = models.DateTimeField(null=True, blank=True)
    eqa_feedback = models.TextField(blank=True)
    eqa_assessed_at = models.DateTimeField(null=True, blank=True)

    resubmission_count = models.PositiveIntegerField(default=0)

    # Optimistic concurrency counter, bumped by the task store on every save.
    version = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["learner", "status"], name="task_learner_status_idx"),
            models.Index(fields=["accessor", "status"], name="task_accessor_status_idx"),
        ]

    def __str__(self):
        return f"{self.title} [{self.status}]"

    # --------------------------------------------------------
    # Projections
    # --------------------------------------------------------
    @property
    def submission(self) -> Optional[Submission]:
        if self.submitted_at is None:
            return None
        return Submission(
            content=self.submission_content,
            submitted_at=self.submitted_at,
            files=list(self.submission_files or []),
        )

    @property
    def feedback(self) -> Dict[str, str]:
        """
        Current feedback per decision stage. A stage key is present only once
        that stage has made a decision.
        """
        out: Dict[str, str] = {}
        for stage in DECISION_STAGES:
            if getattr(self, f"{stage.value}_assessed_at") is not None:
                out[stage.value] = getattr(self, f"{stage.value}_feedback")
        return out

    @property
    def stage_timestamps(self) -> Dict[str, Dict[str, datetime]]:
        assessed: Dict[str, datetime] = {}
        for stage in DECISION_STAGES:
            at = getattr(self, f"{stage.value}_assessed_at")
            if at is not None:
                assessed[stage.value] = at
        return {"assessed_at": assessed}

    def record_decision(self, stage: Stage, text: str, at: datetime) -> None:
        setattr(self, f"{stage.value}_feedback", text)
        setattr(self, f"{stage.value}_assessed_at", at)
