from datetime import datetime

from pydantic import BaseModel, field_validator
from app.utils.sanitization import sanitize_string
from app.utils.timestamps import ensure_utc


class CommentCreate(BaseModel):
    content: str | None = None
    task_id: int | None = None

    @field_validator("content", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class Comment(BaseModel):
    id: int
    task_id: int
    user_id: int
    author_name: str | None = None
    content: str
    created_at: datetime | None = None

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, v):
        return ensure_utc(v)

    class Config:
        from_attributes = True


class CommentEnvelope(BaseModel):
    message: str
    comment: Comment
