from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from app.models.enums import ProjectRole
from app.utils.sanitization import sanitize_string
from app.utils.timestamps import ensure_utc


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class Project(BaseModel):
    id: int
    name: str
    description: str | None = None
    created_by: int | None = None
    created_at: datetime | None = None

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, v):
        return ensure_utc(v)

    class Config:
        from_attributes = True


class MemberCreate(BaseModel):
    user_id: int
    role: ProjectRole = ProjectRole.MEMBER


class MemberUpdate(BaseModel):
    role: ProjectRole


class Member(BaseModel):
    id: int
    project_id: int
    user_id: int
    role: ProjectRole
    username: str | None = None
    display_name: str | None = None
    created_at: datetime | None = None

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, v):
        return ensure_utc(v)

    class Config:
        from_attributes = True
