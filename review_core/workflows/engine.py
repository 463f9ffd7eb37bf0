# review_core/workflows/engine.py
"""
Task review state machine.

Validates and applies one transition to an in-memory task. No database
access and no notification delivery happen here: the caller persists the
task (and the returned stage records) through the task store and forwards
the returned events to a notification sink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings
from django.utils import timezone

from review_core.workflows import (
    RESUBMISSION_STATES,
    Action,
    Role,
    Stage,
    TRANSITIONS,
    normalize_action,
    normalize_role,
    normalize_status,
)
from review_core.workflows.errors import InvalidTransition, ValidationFailed
from review_core.workflows.events import DomainEvent, StageRecord, event_type_for_stage

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    task: Any
    events: List[DomainEvent] = field(default_factory=list)
    records: List[StageRecord] = field(default_factory=list)


def _actor_id(actor: Any) -> Optional[int]:
    if actor is None:
        return None
    return getattr(actor, "pk", actor)


def _clean_files(files: Any) -> List[str]:
    if files is None:
        return []
    if isinstance(files, (str, bytes)) or not hasattr(files, "__iter__"):
        raise ValidationFailed("files", "Must be a sequence of file references.")
    out = []
    for ref in files:
        if not isinstance(ref, str) or not ref.strip():
            raise ValidationFailed("files", "File references must be non-empty strings.")
        out.append(ref)
    return out


class TaskWorkflow:
    """
    apply(task, actor_role, actor, action, payload) -> TransitionResult

    Raises InvalidTransition or ValidationFailed before touching the task;
    a task is never partially updated.
    """

    def __init__(
        self,
        *,
        enforce_assignment: Optional[bool] = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        if enforce_assignment is None:
            enforce_assignment = getattr(settings, "REVIEW_ENFORCE_ASSIGNMENT", False)
        self.enforce_assignment = bool(enforce_assignment)
        self.clock = clock

    # ----------------------------------------------------------
    # Validation
    # ----------------------------------------------------------
    def _resolve(self, task, actor_role, action):
        current_raw = getattr(task, "status", None)

        try:
            current = normalize_status(current_raw)
        except ValueError:
            raise InvalidTransition(
                current=current_raw, action=action, role=actor_role, reason="unknown current status"
            )

        try:
            role = normalize_role(actor_role)
            act = normalize_action(action)
        except ValueError as exc:
            raise InvalidTransition(current=current.value, action=action, role=actor_role, reason=str(exc))

        transition = TRANSITIONS.get((current, act))
        if transition is None or transition.role != role:
            raise InvalidTransition(current=current.value, action=act.value, role=role.value)

        return current, role, act, transition

    def _check_ownership(self, task, transition, actor_id, current, role, act) -> None:
        if not self.enforce_assignment:
            return

        stage = transition.stage
        if stage in (Stage.SUBMISSION, Stage.ACCESSOR):
            expected = task.learner_id if stage == Stage.SUBMISSION else task.accessor_id
        else:
            # IQA/EQA refs are claimed by the first reviewer of the stage.
            expected = getattr(task, f"{stage.value}_id", None)
            if expected is None:
                return

        if actor_id is None or actor_id != expected:
            raise InvalidTransition(
                current=current.value,
                action=act.value,
                role=role.value,
                reason="actor is not assigned to this task",
            )

    def _validate_payload(self, transition, payload: Dict[str, Any]) -> Dict[str, Any]:
        if transition.stage == Stage.SUBMISSION:
            content = payload.get("content")
            if not isinstance(content, str) or not content.strip():
                raise ValidationFailed("content", "Submission content is required.")
            return {"content": content, "files": _clean_files(payload.get("files"))}

        feedback = payload.get("feedback")
        if not isinstance(feedback, str) or not feedback.strip():
            raise ValidationFailed("feedback", "Feedback is required for every decision.")
        return {"feedback": feedback}

    def _prepare(self, task, actor_role, actor_id, action, payload):
        current, role, act, transition = self._resolve(task, actor_role, action)
        self._check_ownership(task, transition, actor_id, current, role, act)
        clean = self._validate_payload(transition, payload)
        if transition.stage != Stage.SUBMISSION and getattr(task, "submitted_at", None) is None:
            raise InvalidTransition(
                current=current.value, action=act.value, role=role.value, reason="task has no submission"
            )
        return current, role, act, transition, clean

    # ----------------------------------------------------------
    # Public API
    # ----------------------------------------------------------
    def check(self, task, actor_role, actor, action, payload: Optional[Dict[str, Any]] = None) -> None:
        """
        Run every validation apply() would run, without mutating the task.
        """
        self._prepare(task, actor_role, _actor_id(actor), action, payload or {})

    def apply(
        self,
        task,
        actor_role,
        actor,
        action,
        payload: Optional[Dict[str, Any]] = None,
        *,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        payload = payload or {}
        actor_id = _actor_id(actor)

        try:
            current, role, act, transition, clean = self._prepare(task, actor_role, actor_id, action, payload)
        except (InvalidTransition, ValidationFailed) as exc:
            logger.info("Rejected transition on task %s: %s", getattr(task, "pk", None), exc)
            raise

        now = now or self.clock()
        stage = transition.stage

        # --------------------------------------------------
        # Mutation (nothing above this line touched the task)
        # --------------------------------------------------
        if stage == Stage.SUBMISSION:
            at = now
            previous = task.submitted_at
            if previous is not None and at <= previous:
                at = previous + timedelta(microseconds=1)

            if current in RESUBMISSION_STATES:
                task.resubmission_count = (task.resubmission_count or 0) + 1

            task.submission_content = clean["content"]
            task.submission_files = list(clean["files"])
            task.submitted_at = at
            text = clean["content"]
            files = list(clean["files"])
        else:
            created_at = getattr(task, "created_at", None)
            at = max(now, created_at) if created_at is not None else now

            task.record_decision(stage, clean["feedback"], at)
            if stage in (Stage.IQA, Stage.EQA) and actor_id is not None:
                setattr(task, f"{stage.value}_id", actor_id)
            text = clean["feedback"]
            files = []

        task.status = transition.target

        record = StageRecord(
            stage=stage,
            action=act.value,
            from_status=current,
            to_status=transition.target,
            actor_role=role,
            actor_id=actor_id,
            text=text,
            cycle=(task.resubmission_count or 0) + 1,
            created_at=at,
            files=files,
        )

        event = DomainEvent(
            type=event_type_for_stage(stage),
            task_id=getattr(task, "pk", None),
            actor_role=role.value,
            resulting_status=transition.target.value,
            timestamp=at,
            feedback="" if stage == Stage.SUBMISSION else text,
            cycle=record.cycle,
        )

        logger.info(
            "Task %s: %s -> %s (%s by %s %s)",
            event.task_id,
            current.value,
            transition.target.value,
            act.value,
            role.value,
            actor_id,
        )

        return TransitionResult(task=task, events=[event], records=[record])


def submit(workflow: TaskWorkflow, task, actor, content: str, files=None, **kwargs) -> TransitionResult:
    return workflow.apply(task, Role.LEARNER, actor, Action.SUBMIT, {"content": content, "files": files}, **kwargs)


def assess(workflow: TaskWorkflow, task, actor, result: str, feedback: str, **kwargs) -> TransitionResult:
    return workflow.apply(task, Role.ACCESSOR, actor, result, {"feedback": feedback}, **kwargs)


def review(workflow: TaskWorkflow, task, actor_role, actor, result: str, feedback: str, **kwargs) -> TransitionResult:
    return workflow.apply(task, actor_role, actor, result, {"feedback": feedback}, **kwargs)


__all__ = ["TaskWorkflow", "TransitionResult", "submit", "assess", "review"]
