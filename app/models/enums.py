import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"
    TEAM_MEMBER = "team_member"


class ProjectRole(str, enum.Enum):
    MANAGER = "manager"
    MEMBER = "member"


class TaskStatus(str, enum.Enum):
    BACKLOG = "Backlog"
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    DONE = "Done"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# Higher rank sorts first in project listings
PRIORITY_RANK = {
    TaskPriority.URGENT.value: 4,
    TaskPriority.HIGH.value: 3,
    TaskPriority.MEDIUM.value: 2,
    TaskPriority.LOW.value: 1,
}

DEFAULT_TASK_STATUS = TaskStatus.PENDING
DEFAULT_TASK_PRIORITY = TaskPriority.MEDIUM
