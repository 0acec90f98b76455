# boardZ type definitions
# Rev 0.1.0

from __future__ import annotations
import enum
from typing import Literal


class TaskStatus(str, enum.Enum):
    """Board columns. Any status may move to any other."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    AWAIT_FEEDBACK = "await_feedback"
    DONE = "done"


class TaskType(enum.IntEnum):
    USER_STORY = 1
    TECHNICAL_TASK = 2


# 1 is the most urgent
PRIORITY_URGENT = 1
PRIORITY_MEDIUM = 2
PRIORITY_LOW = 3

ACTIVE_STATUSES = (TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.AWAIT_FEEDBACK)

WriteKind = Literal["set", "update", "delete"]
ReconcileMode = Literal["atomic", "best_effort"]
