# review_core/tests/test_notifications.py

from __future__ import annotations

import logging
from datetime import timedelta

import pytest
from django.utils import timezone

from review_core.models import Notification
from review_core.notifications import (
    DatabaseNotificationSink,
    LoggingNotificationSink,
    clear_all,
    mark_all_read,
    mark_read,
    notifications_for,
    recipients_for,
)
from review_core.serializers import DomainEventSerializer
from review_core.tasks import deliver_domain_events
from review_core.workflows import Role, TaskStatus
from review_core.workflows.errors import ValidationFailed
from review_core.workflows.events import (
    EVENT_TASK_ASSESSED,
    EVENT_TASK_REVIEWED,
    EVENT_TASK_SUBMITTED,
    DomainEvent,
)


def _event(task, status, event_type=EVENT_TASK_ASSESSED, role="accessor", at=None, feedback="", cycle=1):
    return DomainEvent(
        type=event_type,
        task_id=task.pk,
        actor_role=role,
        resulting_status=status,
        timestamp=at or timezone.now(),
        feedback=feedback,
        cycle=cycle,
    )


# ---------------------------------------------------------------
# Routing
# ---------------------------------------------------------------

@pytest.mark.django_db
def test_submission_goes_to_accessor(task_factory, accessor):
    task = task_factory(status=TaskStatus.SUBMITTED)
    out = recipients_for(_event(task, "submitted", EVENT_TASK_SUBMITTED, "learner"), task)

    assert [(user, title) for user, _, title, _ in out] == [(accessor, f"Submitted: {task.title}")]


@pytest.mark.django_db
def test_resubmission_is_labelled(task_factory):
    task = task_factory(status=TaskStatus.SUBMITTED, resubmission_count=2)
    out = recipients_for(_event(task, "submitted", EVENT_TASK_SUBMITTED, "learner", cycle=3), task)

    assert out[0][2].startswith("Resubmitted")


@pytest.mark.django_db
def test_accessor_pass_reaches_learner_and_iqa_pool(task_factory, learner, iqa_user, other_iqa):
    task = task_factory(status=TaskStatus.ACCESSOR_PASS, accessor_feedback="good")
    users = [user for user, *_ in recipients_for(_event(task, "accessor_pass"), task)]

    assert users[0] == learner
    assert set(users[1:]) == {iqa_user, other_iqa}


@pytest.mark.django_db
def test_iqa_pool_skips_inactive_reviewers(task_factory, iqa_user, other_iqa):
    other_iqa.is_active = False
    other_iqa.save()
    task = task_factory(status=TaskStatus.ACCESSOR_PASS)

    users = [user for user, *_ in recipients_for(_event(task, "accessor_pass"), task)]
    assert other_iqa not in users
    assert iqa_user in users


@pytest.mark.django_db
def test_iqa_fail_tells_accessor_and_learner(task_factory, learner, accessor):
    task = task_factory(status=TaskStatus.IQA_FAIL, iqa_feedback="sampling issue")
    event = _event(task, "iqa_fail", EVENT_TASK_REVIEWED, "iqa", feedback="sampling issue")
    out = recipients_for(event, task)

    assert {user for user, *_ in out} == {learner, accessor}
    assert all(message == "sampling issue" for *_, message in out)

    learner_title = next(title for user, _, title, _ in out if user == learner)
    assert "Resubmission" not in learner_title


@pytest.mark.django_db
def test_eqa_decision_skips_unclaimed_iqa(task_factory, learner, accessor):
    task = task_factory(status=TaskStatus.EQA_FAIL, eqa_feedback="non compliant")
    out = recipients_for(_event(task, "eqa_fail", EVENT_TASK_REVIEWED, "eqa"), task)

    assert [user for user, *_ in out] == [learner, accessor]
    assert all(level == Notification.Level.ERROR for _, level, _, _ in out)


# ---------------------------------------------------------------
# Database sink
# ---------------------------------------------------------------

@pytest.mark.django_db
def test_redelivery_is_a_noop(task_factory, accessor):
    task = task_factory(status=TaskStatus.SUBMITTED)
    event = _event(task, "submitted", EVENT_TASK_SUBMITTED, "learner")
    sink = DatabaseNotificationSink()

    assert sink.deliver([event]) == 1
    assert sink.deliver([event]) == 0
    assert Notification.objects.filter(user=accessor).count() == 1
    stored = Notification.objects.get(user=accessor)
    assert stored.dedup_key == f"{task.pk}:submitted@{event.timestamp.isoformat()}"


@pytest.mark.django_db
def test_same_status_at_later_time_is_a_new_notification(task_factory, accessor):
    task = task_factory(status=TaskStatus.SUBMITTED)
    first = _event(task, "submitted", EVENT_TASK_SUBMITTED, "learner")
    later = _event(task, "submitted", EVENT_TASK_SUBMITTED, "learner", at=first.timestamp + timedelta(minutes=1))

    DatabaseNotificationSink().deliver([first, later])
    assert Notification.objects.filter(user=accessor).count() == 2


@pytest.mark.django_db
def test_late_delivery_uses_feedback_from_the_event(task_factory, learner):
    # the task has since been resubmitted and failed again with new feedback
    task = task_factory(status=TaskStatus.ACCESSOR_FAIL, accessor_feedback="second attempt: still thin")
    stale = _event(task, "accessor_fail", feedback="first attempt: cite sources")

    DatabaseNotificationSink().deliver([stale])

    assert Notification.objects.get(user=learner).message == "first attempt: cite sources"


@pytest.mark.django_db
def test_first_submission_label_ignores_later_resubmissions(task_factory):
    task = task_factory(status=TaskStatus.SUBMITTED, resubmission_count=1)
    out = recipients_for(_event(task, "submitted", EVENT_TASK_SUBMITTED, "learner", cycle=1), task)

    assert out[0][2].startswith("Submitted")


@pytest.mark.django_db
def test_event_for_missing_task_is_dropped(task_factory):
    task = task_factory(status=TaskStatus.SUBMITTED)
    event = _event(task, "submitted", EVENT_TASK_SUBMITTED, "learner")
    task.delete()

    assert DatabaseNotificationSink().deliver([event]) == 0


@pytest.mark.django_db
def test_celery_task_round_trips_payload(task_factory, learner):
    task = task_factory(status=TaskStatus.ACCESSOR_FAIL, accessor_feedback="cite sources")
    payload = [dict(item) for item in DomainEventSerializer([_event(task, "accessor_fail", feedback="cite sources")], many=True).data]

    created = deliver_domain_events(payload)

    assert created == 1
    note = Notification.objects.get(user=learner)
    assert note.message == "cite sources"
    assert note.level == Notification.Level.WARNING
    assert note.task_id == task.pk


def test_logging_sink_counts_events(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("review_core"), "propagate", True)
    event = DomainEvent(
        type=EVENT_TASK_SUBMITTED,
        task_id=7,
        actor_role="learner",
        resulting_status="submitted",
        timestamp=timezone.now(),
    )
    with caplog.at_level("INFO", logger="review_core.notifications"):
        assert LoggingNotificationSink().deliver([event, event]) == 2
    assert "task=7 status=SUBMITTED" in caplog.text


# ---------------------------------------------------------------
# Inbox
# ---------------------------------------------------------------

@pytest.fixture
def inbox(learner, other_learner):
    for i in range(3):
        Notification.objects.create(user=learner, title=f"note {i}")
    Notification.objects.create(user=other_learner, title="someone else")
    return learner


@pytest.mark.django_db
def test_mark_read_only_touches_own_notification(inbox, other_learner):
    mine = notifications_for(inbox).first()
    theirs = notifications_for(other_learner).first()

    assert mark_read(inbox, mine.pk) is True
    assert mark_read(inbox, theirs.pk) is False
    assert notifications_for(inbox, unread_only=True).count() == 2
    assert notifications_for(other_learner, unread_only=True).count() == 1


@pytest.mark.django_db
def test_mark_all_read_and_clear_all(inbox, other_learner):
    assert mark_all_read(inbox) == 3
    assert mark_all_read(inbox) == 0
    assert notifications_for(inbox, unread_only=True).count() == 0

    assert clear_all(inbox) == 3
    assert not notifications_for(inbox).exists()
    assert notifications_for(other_learner).count() == 1


# ---------------------------------------------------------------
# Directory
# ---------------------------------------------------------------

@pytest.mark.django_db
def test_role_resolution(directory, learner, django_user_model):
    root = django_user_model.objects.create(username="root", is_superuser=True)
    nobody = django_user_model.objects.create(username="nobody")

    assert directory.role_of(learner) == Role.LEARNER
    assert directory.role_of(root) == Role.ADMIN
    assert directory.role_of(nobody) is None
    assert directory.role_of(None) is None


@pytest.mark.django_db
def test_assign_role_accepts_aliases(directory, django_user_model):
    user = django_user_model.objects.create(username="newcomer")

    directory.assign_role(user, "ASSESSOR")
    assert directory.role_of(user) == Role.ACCESSOR

    directory.assign_role(user, "iqa")
    assert directory.role_of(user) == Role.IQA
    assert list(directory.users_with_role("IQA")) == [user]


@pytest.mark.django_db
def test_require_role_reports_field(directory, learner):
    directory.require_role(learner, "learner", field="learner")

    with pytest.raises(ValidationFailed) as exc:
        directory.require_role(learner, Role.EQA, field="eqa")
    assert exc.value.field == "eqa"
