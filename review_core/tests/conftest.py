# review_core/tests/conftest.py

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any, Callable, Optional

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from review_core.directory import UserDirectory
from review_core.models import Task, UserRole
from review_core.workflows import TaskStatus
from review_core.workflows.engine import TaskWorkflow


def _rand(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _user_with_role(username: str, role: str):
    User = get_user_model()
    user, _ = User.objects.get_or_create(username=username)
    UserRole.objects.update_or_create(user=user, defaults={"role": role})
    return user


@pytest.fixture
def learner(db):
    return _user_with_role("learner", "learner")


@pytest.fixture
def other_learner(db):
    return _user_with_role("learner2", "learner")


@pytest.fixture
def accessor(db):
    return _user_with_role("accessor", "accessor")


@pytest.fixture
def other_accessor(db):
    return _user_with_role("accessor2", "accessor")


@pytest.fixture
def iqa_user(db):
    return _user_with_role("iqa", "iqa")


@pytest.fixture
def other_iqa(db):
    return _user_with_role("iqa2", "iqa")


@pytest.fixture
def eqa_user(db):
    return _user_with_role("eqa", "eqa")


@pytest.fixture
def admin_user(db):
    return _user_with_role("admin", "admin")


@pytest.fixture
def directory() -> UserDirectory:
    return UserDirectory()


@pytest.fixture
def workflow() -> TaskWorkflow:
    return TaskWorkflow(enforce_assignment=False)


# Statuses that imply a submission already exists.
_SUBMITTED_STATES = {s.value for s in TaskStatus} - {TaskStatus.ASSIGNED.value}


@pytest.fixture
def task_factory(db, learner, accessor) -> Callable[..., Task]:
    """
    Creates tasks directly in a given status (bypassing the workflow), with
    a submission filled in for any status past `assigned`.
    """

    def _factory(
        *,
        status: str = TaskStatus.ASSIGNED,
        learner_user: Optional[Any] = None,
        accessor_user: Optional[Any] = None,
        title: Optional[str] = None,
        **extra: Any,
    ) -> Task:
        kwargs = {
            "title": title or _rand("Task"),
            "description": "Write an essay",
            "course_ref": "CRS-1",
            "learner": learner_user or learner,
            "accessor": accessor_user or accessor,
            "status": str(status),
        }
        if str(status) in _SUBMITTED_STATES:
            kwargs.setdefault("submission_content", "Essay v1")
            kwargs.setdefault("submitted_at", timezone.now() - timedelta(minutes=5))
        kwargs.update(extra)
        return Task.objects.create(**kwargs)

    return _factory


@pytest.fixture
def memory_task() -> Callable[..., Task]:
    """
    Unsaved Task instances for pure state-machine tests (no database).
    """

    def _factory(status: str = TaskStatus.ASSIGNED, **extra: Any) -> Task:
        kwargs = {
            "title": "Essay",
            "learner_id": 1,
            "accessor_id": 2,
            "status": str(status),
            "created_at": timezone.now() - timedelta(days=1),
        }
        if str(status) in _SUBMITTED_STATES:
            kwargs.setdefault("submission_content", "Essay v1")
            kwargs.setdefault("submitted_at", timezone.now() - timedelta(hours=1))
        kwargs.update(extra)
        return Task(**kwargs)

    return _factory


class CollectingSink:
    def __init__(self):
        self.events = []

    def deliver(self, events):
        events = list(events)
        self.events.extend(events)
        return len(events)


@pytest.fixture
def collecting_sink() -> CollectingSink:
    return CollectingSink()
