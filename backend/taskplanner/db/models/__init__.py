"""ORM models exposed for metadata discovery."""
from taskplanner.db.models.enums import GoalStatus, TaskPriority, TaskStatus
from taskplanner.db.models.goal import Goal
from taskplanner.db.models.task import Task

__all__ = [
    "Goal",
    "GoalStatus",
    "Task",
    "TaskPriority",
    "TaskStatus",
]
