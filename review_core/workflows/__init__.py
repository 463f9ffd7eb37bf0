# review_core/workflows/__init__.py
from __future__ import annotations

import re
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from django.db import models


# ===============================================================
# Canonical vocabularies
# ===============================================================

class TaskStatus(models.TextChoices):
    ASSIGNED = "assigned", "Assigned"
    SUBMITTED = "submitted", "Submitted"
    ACCESSOR_PASS = "accessor_pass", "Accessor pass"
    ACCESSOR_FAIL = "accessor_fail", "Accessor fail"
    IQA_PASS = "iqa_pass", "IQA pass"
    IQA_FAIL = "iqa_fail", "IQA fail"
    EQA_PASS = "eqa_pass", "EQA pass"
    EQA_FAIL = "eqa_fail", "EQA fail"
    COMPLETED = "completed", "Completed"


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    LEARNER = "learner", "Learner"
    ACCESSOR = "accessor", "Accessor"
    IQA = "iqa", "IQA"
    EQA = "eqa", "EQA"


class Action(models.TextChoices):
    SUBMIT = "submit", "Submit"
    PASS = "pass", "Pass"
    FAIL = "fail", "Fail"
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"


class Stage(models.TextChoices):
    SUBMISSION = "submission", "Submission"
    ACCESSOR = "accessor", "Accessor"
    IQA = "iqa", "IQA"
    EQA = "eqa", "EQA"


# Stages that carry a reviewer decision (feedback + assessed_at).
DECISION_STAGES: Tuple[Stage, ...] = (Stage.ACCESSOR, Stage.IQA, Stage.EQA)

INITIAL_STATUS = TaskStatus.ASSIGNED

TERMINAL_STATES = frozenset({TaskStatus.EQA_PASS, TaskStatus.COMPLETED})


# ===============================================================
# Transition table
# ===============================================================

class Transition(NamedTuple):
    role: Role
    target: TaskStatus
    stage: Stage


TRANSITIONS: Dict[Tuple[TaskStatus, Action], Transition] = {
    (TaskStatus.ASSIGNED, Action.SUBMIT): Transition(Role.LEARNER, TaskStatus.SUBMITTED, Stage.SUBMISSION),
    (TaskStatus.ACCESSOR_FAIL, Action.SUBMIT): Transition(Role.LEARNER, TaskStatus.SUBMITTED, Stage.SUBMISSION),
    (TaskStatus.SUBMITTED, Action.PASS): Transition(Role.ACCESSOR, TaskStatus.ACCESSOR_PASS, Stage.ACCESSOR),
    (TaskStatus.SUBMITTED, Action.FAIL): Transition(Role.ACCESSOR, TaskStatus.ACCESSOR_FAIL, Stage.ACCESSOR),
    (TaskStatus.ACCESSOR_PASS, Action.PASS): Transition(Role.IQA, TaskStatus.IQA_PASS, Stage.IQA),
    (TaskStatus.ACCESSOR_PASS, Action.FAIL): Transition(Role.IQA, TaskStatus.IQA_FAIL, Stage.IQA),
    (TaskStatus.IQA_PASS, Action.APPROVE): Transition(Role.EQA, TaskStatus.EQA_PASS, Stage.EQA),
    (TaskStatus.IQA_PASS, Action.REJECT): Transition(Role.EQA, TaskStatus.EQA_FAIL, Stage.EQA),
}

# Re-entry into submitted from this state counts as a resubmission. IQA and
# EQA failures are outcomes recorded for audit; the learner cannot resubmit.
RESUBMISSION_STATES = frozenset({TaskStatus.ACCESSOR_FAIL})


# ===============================================================
# Normalization
# ===============================================================

ROLE_ALIASES: Dict[str, str] = {
    "ADMIN": "admin",
    "ADMINISTRATOR": "admin",
    "LEARNER": "learner",
    "STUDENT": "learner",
    "ACCESSOR": "accessor",
    "ASSESSOR": "accessor",
    "IQA": "iqa",
    "INTERNAL_QUALITY_ASSURANCE": "iqa",
    "EQA": "eqa",
    "EXTERNAL_QUALITY_ASSURANCE": "eqa",
}


def _canon(value: Any) -> str:
    r = str(value or "").strip().upper()
    r = re.sub(r"[\s\-]+", "_", r)
    return re.sub(r"_+", "_", r)


def normalize_role(value: Any) -> Role:
    """
    Canonicalize role strings ("Assessor", "internal quality assurance", "IQA")
    into a Role member. Raises ValueError for anything unrecognised.
    """
    if isinstance(value, Role):
        return value
    key = ROLE_ALIASES.get(_canon(value))
    if key is None:
        raise ValueError(f"Unknown role: {value!r}")
    return Role(key)


def normalize_status(value: Any) -> TaskStatus:
    """
    Accepts "accessor_pass", "ACCESSOR PASS", "accessor-pass".
    """
    if isinstance(value, TaskStatus):
        return value
    raw = _canon(value).lower()
    if raw not in TaskStatus.values:
        raise ValueError(f"Unknown task status: {value!r}")
    return TaskStatus(raw)


def normalize_action(value: Any) -> Action:
    if isinstance(value, Action):
        return value
    raw = _canon(value).lower()
    if raw not in Action.values:
        raise ValueError(f"Unknown workflow action: {value!r}")
    return Action(raw)


# ===============================================================
# Introspection
# ===============================================================

def lookup_transition(current: Any, action: Any) -> Optional[Transition]:
    return TRANSITIONS.get((normalize_status(current), normalize_action(action)))


def required_role(current: Any, action: Any) -> Optional[Role]:
    t = lookup_transition(current, action)
    return t.role if t else None


def is_terminal(status: Any) -> bool:
    return normalize_status(status) in TERMINAL_STATES


def allowed_actions(current: Any, role: Optional[Any] = None) -> List[str]:
    """
    Actions available from `current`, optionally narrowed to one role.
    """
    cur = normalize_status(current)
    r = normalize_role(role) if role is not None else None

    out = [
        action.value
        for (state, action), t in TRANSITIONS.items()
        if state == cur and (r is None or t.role == r)
    ]
    return sorted(out)


def allowed_next_states(current: Any) -> List[str]:
    cur = normalize_status(current)
    return sorted({t.target.value for (state, _), t in TRANSITIONS.items() if state == cur})


def workflow_definition() -> Dict[str, Any]:
    """
    Stable JSON-serializable definition for UI layers.
    """
    transitions: Dict[str, List[Dict[str, str]]] = {}
    for (state, action), t in TRANSITIONS.items():
        transitions.setdefault(state.value, []).append(
            {"action": action.value, "role": t.role.value, "to": t.target.value}
        )

    return {
        "statuses": list(TaskStatus.values),
        "initial": INITIAL_STATUS.value,
        "terminal_states": sorted(s.value for s in TERMINAL_STATES),
        "transitions": {k: sorted(v, key=lambda x: x["action"]) for k, v in transitions.items()},
    }


__all__ = [
    "TaskStatus",
    "Role",
    "Action",
    "Stage",
    "Transition",
    "TRANSITIONS",
    "TERMINAL_STATES",
    "RESUBMISSION_STATES",
    "DECISION_STAGES",
    "INITIAL_STATUS",
    "normalize_role",
    "normalize_status",
    "normalize_action",
    "lookup_transition",
    "required_role",
    "is_terminal",
    "allowed_actions",
    "allowed_next_states",
    "workflow_definition",
]
