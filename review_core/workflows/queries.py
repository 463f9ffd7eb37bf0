# review_core/workflows/queries.py
"""
Per-role visible task sets.

Pure functions over any iterable of tasks (model instances or anything with
the same attributes). Order of the input is preserved; empty input or no
matches yields an empty list.
"""

from __future__ import annotations

from typing import Any, Iterable, List

from review_core.workflows import TaskStatus

IQA_VISIBLE = frozenset(s.value for s in (TaskStatus.ACCESSOR_PASS, TaskStatus.IQA_PASS, TaskStatus.IQA_FAIL))
EQA_VISIBLE = frozenset(s.value for s in (TaskStatus.IQA_PASS, TaskStatus.EQA_PASS, TaskStatus.EQA_FAIL))


def _ref(user: Any) -> Any:
    return getattr(user, "pk", user)


def _with_status(tasks: Iterable, statuses) -> List:
    return [t for t in tasks if str(t.status) in statuses]


def tasks_for_learner(tasks: Iterable, learner) -> List:
    ref = _ref(learner)
    return [t for t in tasks if t.learner_id == ref]


def tasks_for_accessor(tasks: Iterable, accessor) -> List:
    ref = _ref(accessor)
    return [t for t in tasks if t.accessor_id == ref]


def tasks_awaiting_accessor_review(tasks: Iterable, accessor) -> List:
    return _with_status(tasks_for_accessor(tasks, accessor), {TaskStatus.SUBMITTED.value})


def tasks_for_iqa(tasks: Iterable) -> List:
    return _with_status(tasks, IQA_VISIBLE)


def tasks_awaiting_iqa_review(tasks: Iterable) -> List:
    return _with_status(tasks, {TaskStatus.ACCESSOR_PASS.value})


def tasks_for_eqa(tasks: Iterable) -> List:
    return _with_status(tasks, EQA_VISIBLE)


def tasks_awaiting_eqa_review(tasks: Iterable) -> List:
    return _with_status(tasks, {TaskStatus.IQA_PASS.value})


__all__ = [
    "IQA_VISIBLE",
    "EQA_VISIBLE",
    "tasks_for_learner",
    "tasks_for_accessor",
    "tasks_awaiting_accessor_review",
    "tasks_for_iqa",
    "tasks_awaiting_iqa_review",
    "tasks_for_eqa",
    "tasks_awaiting_eqa_review",
]
