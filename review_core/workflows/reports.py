# review_core/workflows/reports.py
from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List

from review_core.workflows import TaskStatus

AWAITING_REVIEW = frozenset({TaskStatus.SUBMITTED, TaskStatus.ACCESSOR_PASS, TaskStatus.IQA_PASS})
APPROVED = frozenset({TaskStatus.EQA_PASS, TaskStatus.COMPLETED})
REJECTED = frozenset({TaskStatus.ACCESSOR_FAIL, TaskStatus.IQA_FAIL, TaskStatus.EQA_FAIL})


def audit_summary(tasks: Iterable) -> Dict[str, Any]:
    """
    Compliance overview for EQA audit reports.

    `approved` counts both eqa_pass and the legacy `completed` status.
    """
    by_status: Counter = Counter()
    resubmissions = 0

    for t in tasks:
        by_status[str(t.status)] += 1
        resubmissions += int(getattr(t, "resubmission_count", 0) or 0)

    def _count(states) -> int:
        return sum(by_status[s.value] for s in states)

    return {
        "total": sum(by_status.values()),
        "by_status": {s: by_status[s] for s in TaskStatus.values},
        "awaiting_review": _count(AWAITING_REVIEW),
        "approved": _count(APPROVED),
        "rejected": _count(REJECTED),
        "resubmissions": resubmissions,
    }


# Per-learner buckets shown to an accessor. Each status feeds at most one bucket.
PROGRESS_BUCKETS = {
    TaskStatus.SUBMITTED.value: "pending",
    TaskStatus.ACCESSOR_PASS.value: "passed",
    TaskStatus.ACCESSOR_FAIL.value: "failed",
    TaskStatus.COMPLETED.value: "completed",
}


def learner_progress(tasks: Iterable, accessor) -> List[Dict[str, Any]]:
    """
    Group the accessor's tasks by learner.

    One row per learner in first-seen order:
    {"learner", "total", "pending", "passed", "failed", "completed"}.
    """
    ref = getattr(accessor, "pk", accessor)
    rows: Dict[Any, Dict[str, Any]] = {}

    for t in tasks:
        if t.accessor_id != ref:
            continue
        row = rows.get(t.learner_id)
        if row is None:
            row = {"learner": t.learner_id, "total": 0}
            row.update({bucket: 0 for bucket in PROGRESS_BUCKETS.values()})
            rows[t.learner_id] = row

        row["total"] += 1
        bucket = PROGRESS_BUCKETS.get(str(t.status))
        if bucket is not None:
            row[bucket] += 1

    return list(rows.values())
