from django.conf import settings
from django.db import models


class Notification(models.Model):
    class Level(models.TextChoices):
        INFO = "info", "Info"
        SUCCESS = "success", "Success"
        WARNING = "warning", "Warning"
        ERROR = "error", "Error"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="review_notifications",
    )
    task = models.ForeignKey(
        "review_core.Task",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )

    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    level = models.CharField(max_length=16, choices=Level.choices, default=Level.INFO)

    # "<taskId>:<resultingStatus>@<event timestamp ISO 8601>"; unique per user
    dedup_key = models.CharField(max_length=128, blank=True, db_index=True)

    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at", "-id")
        constraints = [
            models.UniqueConstraint(
                fields=["user", "dedup_key"],
                name="notification_unique_per_user_event",
                condition=~models.Q(dedup_key=""),
            ),
        ]

    def __str__(self):
        return f"{self.user}: {self.title}"
