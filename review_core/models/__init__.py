from .core import Submission, Task, TimeStampedModel, UserRole
from .notification import Notification
from .stage_event import TaskStageEvent

__all__ = [
    "TimeStampedModel",
    "UserRole",
    "Submission",
    "Task",
    "TaskStageEvent",
    "Notification",
]
