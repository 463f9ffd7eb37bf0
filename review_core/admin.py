# review_core/admin.py

from django.contrib import admin

from .models import Notification, Task, TaskStageEvent, UserRole
from .services.review_service import can_delete


# =============================================================
# Stage events (READ-ONLY AUDIT LOG)
# =============================================================

@admin.register(TaskStageEvent)
class TaskStageEventAdmin(admin.ModelAdmin):
    list_display = (
        "task",
        "cycle",
        "stage",
        "from_status",
        "to_status",
        "performed_by",
        "role",
        "created_at",
    )
    list_filter = ("stage", "to_status", "role")
    search_fields = ("task__title", "performed_by__username")
    ordering = ("-created_at",)

    readonly_fields = [f.name for f in TaskStageEvent._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class TaskStageEventInline(admin.TabularInline):
    model = TaskStageEvent
    extra = 0
    can_delete = False
    fields = ("cycle", "stage", "from_status", "to_status", "performed_by", "text", "created_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================
# Tasks (workflow fields are read-only here)
# =============================================================

@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ("title", "course_ref", "learner", "accessor", "status", "resubmission_count", "created_at")
    list_filter = ("status", "course_ref")
    search_fields = ("title", "learner__username", "accessor__username")
    ordering = ("-created_at",)
    inlines = [TaskStageEventInline]

    readonly_fields = (
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

    def get_actions(self, request):
        # bulk delete skips the per-object status check
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    def has_delete_permission(self, request, obj=None):
        if obj is not None and not can_delete(obj):
            return False
        return super().has_delete_permission(request, obj)


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "created_at")
    list_filter = ("role",)
    search_fields = ("user__username",)


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("user", "title", "level", "read", "created_at")
    list_filter = ("level", "read")
    search_fields = ("user__username", "title")
