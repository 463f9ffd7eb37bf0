# review_core/workflows/events.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from review_core.workflows import Role, Stage, TaskStatus


EVENT_TASK_SUBMITTED = "task_submitted"
EVENT_TASK_ASSESSED = "task_assessed"
EVENT_TASK_REVIEWED = "task_reviewed"

EVENT_TYPES = (EVENT_TASK_SUBMITTED, EVENT_TASK_ASSESSED, EVENT_TASK_REVIEWED)

_EVENT_FOR_STAGE = {
    Stage.SUBMISSION: EVENT_TASK_SUBMITTED,
    Stage.ACCESSOR: EVENT_TASK_ASSESSED,
    Stage.IQA: EVENT_TASK_REVIEWED,
    Stage.EQA: EVENT_TASK_REVIEWED,
}


def event_type_for_stage(stage: Stage) -> str:
    return _EVENT_FOR_STAGE[stage]


@dataclass(frozen=True)
class DomainEvent:
    """
    Emitted on every successful transition; delivered by the caller.

    `feedback` and `cycle` are captured at transition time; consumers must
    not re-read them from the task row.
    """

    type: str
    task_id: Any
    actor_role: str
    resulting_status: str
    timestamp: datetime
    feedback: str = ""
    cycle: int = 1

    @property
    def dedup_key(self) -> str:
        return f"{self.task_id}:{self.resulting_status}"


@dataclass(frozen=True)
class StageRecord:
    """
    Pending audit row produced by a transition. The store persists it
    together with the task.
    """

    stage: Stage
    action: str
    from_status: TaskStatus
    to_status: TaskStatus
    actor_role: Role
    actor_id: Optional[int]
    text: str
    cycle: int
    created_at: datetime
    files: List[str] = field(default_factory=list)


__all__ = [
    "EVENT_TASK_SUBMITTED",
    "EVENT_TASK_ASSESSED",
    "EVENT_TASK_REVIEWED",
    "EVENT_TYPES",
    "DomainEvent",
    "StageRecord",
    "event_type_for_stage",
]
