from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


ROLE_CHOICES = [
    ("admin", "Admin"),
    ("learner", "Learner"),
    ("accessor", "Accessor"),
    ("iqa", "IQA"),
    ("eqa", "EQA"),
]

STATUS_CHOICES = [
    ("assigned", "Assigned"),
    ("submitted", "Submitted"),
    ("accessor_pass", "Accessor pass"),
    ("accessor_fail", "Accessor fail"),
    ("iqa_pass", "IQA pass"),
    ("iqa_fail", "IQA fail"),
    ("eqa_pass", "EQA pass"),
    ("eqa_fail", "EQA fail"),
    ("completed", "Completed"),
]

STAGE_CHOICES = [
    ("submission", "Submission"),
    ("accessor", "Accessor"),
    ("iqa", "IQA"),
    ("eqa", "EQA"),
]

LEVEL_CHOICES = [
    ("info", "Info"),
    ("success", "Success"),
    ("warning", "Warning"),
    ("error", "Error"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="UserRole",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("role", models.CharField(choices=ROLE_CHOICES, db_index=True, max_length=16)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="review_role",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Task",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("course_ref", models.CharField(blank=True, db_index=True, max_length=64)),
                ("status", models.CharField(choices=STATUS_CHOICES, db_index=True, default="assigned", max_length=32)),
                ("submission_content", models.TextField(blank=True)),
                ("submission_files", models.JSONField(blank=True, default=list)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("resource_files", models.JSONField(blank=True, default=list)),
                ("accessor_feedback", models.TextField(blank=True)),
                ("accessor_assessed_at", models.DateTimeField(blank=True, null=True)),
                ("iqa_feedback", models.TextField(blank=True)),
                ("iqa_assessed_at", models.DateTimeField(blank=True, null=True)),
                ("eqa_feedback", models.TextField(blank=True)),
                ("eqa_assessed_at", models.DateTimeField(blank=True, null=True)),
                ("resubmission_count", models.PositiveIntegerField(default=0)),
                ("version", models.PositiveIntegerField(default=1)),
                (
                    "accessor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="accessor_tasks",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "eqa",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="eqa_tasks",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "iqa",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="iqa_tasks",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "learner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="learner_tasks",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["learner", "status"], name="task_learner_status_idx"),
                    models.Index(fields=["accessor", "status"], name="task_accessor_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TaskStageEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("stage", models.CharField(choices=STAGE_CHOICES, max_length=16)),
                ("action", models.CharField(max_length=16)),
                ("from_status", models.CharField(choices=STATUS_CHOICES, max_length=32)),
                ("to_status", models.CharField(choices=STATUS_CHOICES, max_length=32)),
                ("role", models.CharField(choices=ROLE_CHOICES, max_length=16)),
                ("text", models.TextField(blank=True)),
                ("files", models.JSONField(blank=True, default=list)),
                ("cycle", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField()),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="task_stage_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "task",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stage_events",
                        to="review_core.task",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["task", "stage"], name="stage_event_task_stage_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("message", models.TextField(blank=True)),
                ("level", models.CharField(choices=LEVEL_CHOICES, default="info", max_length=16)),
                ("dedup_key", models.CharField(blank=True, db_index=True, max_length=128)),
                ("read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "task",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="review_core.task",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="review_notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at", "-id"),
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("dedup_key", ""), _negated=True),
                        fields=("user", "dedup_key"),
                        name="notification_unique_per_user_event",
                    ),
                ],
            },
        ),
    ]
