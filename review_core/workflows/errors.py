# review_core/workflows/errors.py
"""
Workflow exception taxonomy.

Callers map these onto their own surface:
- InvalidTransition  -> "action not allowed"
- ValidationFailed   -> form error
- PersistenceFailed  -> reload the task and show the new state
- NotFound           -> fatal for the request
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class WorkflowError(Exception):
    """
    Base class for every error raised by the review workflow.
    """

    code = "workflow_error"

    def as_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "detail": str(self)}


class InvalidTransition(WorkflowError):
    code = "invalid_transition"

    def __init__(self, *, current: Any, action: Any, role: Any, reason: str = ""):
        self.current = str(current)
        self.action = str(action)
        self.role = str(role)
        self.reason = reason
        msg = f"Action '{self.action}' by role '{self.role}' is not allowed from status '{self.current}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)

    def as_dict(self) -> Dict[str, Any]:
        data = super().as_dict()
        data.update({"current": self.current, "action": self.action, "role": self.role})
        return data


class ValidationFailed(WorkflowError):
    code = "validation_failed"

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

    def as_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "detail": {self.field: self.message}}


class PersistenceFailed(WorkflowError):
    """
    The store rejected a save because the task changed since it was loaded.
    """

    code = "persistence_failed"

    def __init__(self, task_id: Any, *, expected_status: Optional[str] = None, expected_version: Optional[int] = None):
        self.task_id = task_id
        self.expected_status = expected_status
        self.expected_version = expected_version
        super().__init__(
            f"Task {task_id} was modified concurrently "
            f"(expected status={expected_status}, version={expected_version}); reload and retry"
        )


class NotFound(WorkflowError):
    code = "not_found"

    def __init__(self, task_id: Any):
        self.task_id = task_id
        super().__init__(f"Task {task_id} does not exist")


__all__ = [
    "WorkflowError",
    "InvalidTransition",
    "ValidationFailed",
    "PersistenceFailed",
    "NotFound",
]
