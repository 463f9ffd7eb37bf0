# review_core/selectors.py
"""
QuerySet counterparts of review_core.workflows.queries, for callers that
should not pull the whole task table into memory.
"""

from django.db.models import Count, Q

from review_core.models import Task
from review_core.workflows import TaskStatus
from review_core.workflows.queries import EQA_VISIBLE, IQA_VISIBLE
from review_core.workflows.reports import PROGRESS_BUCKETS


def _base(qs=None):
    return (qs if qs is not None else Task.objects.all()).select_related("learner", "accessor")


def tasks_for_learner(learner, qs=None):
    return _base(qs).filter(learner=learner)


def tasks_for_accessor(accessor, qs=None):
    return _base(qs).filter(accessor=accessor)


def tasks_awaiting_accessor_review(accessor, qs=None):
    return tasks_for_accessor(accessor, qs).filter(status=TaskStatus.SUBMITTED)


def tasks_for_iqa(qs=None):
    return _base(qs).filter(status__in=sorted(IQA_VISIBLE))


def tasks_awaiting_iqa_review(qs=None):
    return _base(qs).filter(status=TaskStatus.ACCESSOR_PASS)


def tasks_for_eqa(qs=None):
    return _base(qs).filter(status__in=sorted(EQA_VISIBLE))


def tasks_awaiting_eqa_review(qs=None):
    return _base(qs).filter(status=TaskStatus.IQA_PASS)


def visible_tasks(role, user=None, *, awaiting: bool = False):
    """
    Dispatch by role name; used by the review_queue command.
    """
    role = str(role)
    if role == "learner":
        return tasks_for_learner(user)
    if role == "accessor":
        return tasks_awaiting_accessor_review(user) if awaiting else tasks_for_accessor(user)
    if role == "iqa":
        return tasks_awaiting_iqa_review() if awaiting else tasks_for_iqa()
    if role == "eqa":
        return tasks_awaiting_eqa_review() if awaiting else tasks_for_eqa()
    if role == "admin":
        return _base()
    return Task.objects.none()


def learner_progress(accessor, qs=None):
    """
    Same rows as reports.learner_progress, computed in one grouped query.
    """
    buckets = {
        bucket: Count("id", filter=Q(status=status))
        for status, bucket in PROGRESS_BUCKETS.items()
    }
    rows = (
        (qs if qs is not None else Task.objects.all())
        .filter(accessor=accessor)
        .values("learner")
        .annotate(total=Count("id"), **buckets)
        .order_by("learner")
    )
    return list(rows)
