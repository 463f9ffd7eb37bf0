# review_core/serializers.py
from __future__ import annotations

from typing import Any, Dict

from rest_framework import serializers

from review_core.models import Task, TaskStageEvent
from review_core.workflows import Role, TaskStatus
from review_core.workflows.events import EVENT_TYPES, DomainEvent


class DomainEventSerializer(serializers.Serializer):
    """
    JSON shape of a DomainEvent for the Celery hop.
    """

    type = serializers.ChoiceField(choices=EVENT_TYPES)
    task_id = serializers.IntegerField()
    actor_role = serializers.ChoiceField(choices=Role.choices)
    resulting_status = serializers.ChoiceField(choices=TaskStatus.choices)
    timestamp = serializers.DateTimeField()
    feedback = serializers.CharField(allow_blank=True, default="", trim_whitespace=False)
    cycle = serializers.IntegerField(min_value=1, default=1)

    def create(self, validated_data: Dict[str, Any]) -> DomainEvent:
        return DomainEvent(**validated_data)


class TaskStageEventSerializer(serializers.ModelSerializer):
    performed_by = serializers.SlugRelatedField(slug_field="username", read_only=True)

    class Meta:
        model = TaskStageEvent
        fields = (
            "stage",
            "action",
            "from_status",
            "to_status",
            "performed_by",
            "role",
            "text",
            "files",
            "cycle",
            "created_at",
        )
        read_only_fields = fields


class TaskSnapshotSerializer(serializers.ModelSerializer):
    learner = serializers.SlugRelatedField(slug_field="username", read_only=True)
    accessor = serializers.SlugRelatedField(slug_field="username", read_only=True)
    iqa = serializers.SlugRelatedField(slug_field="username", read_only=True)
    eqa = serializers.SlugRelatedField(slug_field="username", read_only=True)
    feedback = serializers.SerializerMethodField()
    assessed_at = serializers.SerializerMethodField()

    class Meta:
        model = Task
        fields = (
            "id",
            "title",
            "course_ref",
            "status",
            "learner",
            "accessor",
            "iqa",
            "eqa",
            "submitted_at",
            "resubmission_count",
            "feedback",
            "assessed_at",
            "created_at",
        )
        read_only_fields = fields

    def get_feedback(self, obj: Task) -> Dict[str, str]:
        return obj.feedback

    def get_assessed_at(self, obj: Task) -> Dict[str, str]:
        field = serializers.DateTimeField()
        return {
            stage: field.to_representation(at)
            for stage, at in obj.stage_timestamps["assessed_at"].items()
        }
