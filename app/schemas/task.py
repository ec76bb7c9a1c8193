from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from app.models.enums import TaskPriority, TaskStatus
from app.utils.sanitization import sanitize_string
from app.utils.timestamps import ensure_utc


# ── Common base for readable/writeable fields ──
class TaskBase(BaseModel):
    title: str = Field(..., max_length=200)
    description: str | None = None
    priority: TaskPriority | None = None
    assigned_to: int | None = None
    due_date: date | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class TaskCreate(TaskBase):
    project_id: int


class TaskUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""
    title: str | None = Field(None, max_length=200)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: int | None = None
    due_date: date | None = None
    expected_version: int | None = Field(None, ge=1)

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class Task(BaseModel):
    id: int
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    project_id: int
    assigned_to: int | None = None
    assignee_name: str | None = None
    created_by: int | None = None
    due_date: date | None = None
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, v):
        return ensure_utc(v)

    class Config:
        from_attributes = True


class TaskEnvelope(BaseModel):
    message: str
    task: Task
