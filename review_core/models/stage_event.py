from django.conf import settings
from django.db import models

from review_core.workflows import Role, Stage, TaskStatus


class TaskStageEvent(models.Model):
    """
    Immutable audit trail: one row per applied transition, across every
    resubmission cycle. Task.feedback is only the latest projection.
    """

    task = models.ForeignKey(
        "review_core.Task",
        on_delete=models.CASCADE,
        related_name="stage_events",
    )

    stage = models.CharField(max_length=16, choices=Stage.choices)
    action = models.CharField(max_length=16)
    from_status = models.CharField(max_length=32, choices=TaskStatus.choices)
    to_status = models.CharField(max_length=32, choices=TaskStatus.choices)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="task_stage_events",
    )
    role = models.CharField(max_length=16, choices=Role.choices)

    # Feedback for decisions, submission content for submits.
    text = models.TextField(blank=True)
    files = models.JSONField(default=list, blank=True)

    cycle = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField()

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["task", "stage"], name="stage_event_task_stage_idx"),
        ]

    def __str__(self):
        return (
            f"Task {self.task_id} #{self.cycle}: "
            f"{self.from_status} → {self.to_status} ({self.role})"
        )
