import logging
from datetime import datetime, timezone

from sqlalchemy import case, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload

from app.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.models.comment import Comment
from app.models.enums import (
    DEFAULT_TASK_PRIORITY,
    DEFAULT_TASK_STATUS,
    PRIORITY_RANK,
    TaskPriority,
)
from app.models.tasks import Task
from app.services.authorization import get_membership, is_project_manager, require_project_member
from app.services.projects import get_project
from app.services.tokens import TokenClaims
from app.utils.sanitization import is_blank

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "status", "priority", "assigned_to", "due_date")

priority_rank = case(PRIORITY_RANK, value=Task.priority, else_=0)


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


async def _check_assignee(db: AsyncSession, project_id: int, assigned_to: int | None) -> None:
    if assigned_to is None:
        return
    if await get_membership(db, project_id, assigned_to) is None:
        raise ValidationError(
            f"User {assigned_to} is not a member of project {project_id}",
            reason="InvalidAssignee",
        )


async def get_task_by_id(db: AsyncSession, task_id: int) -> Task:
    result = await db.execute(
        select(Task)
        .options(joinedload(Task.assignee))
        .filter(Task.id == task_id)
        .execution_options(populate_existing=True)
    )
    task = result.scalars().first()
    if not task:
        raise NotFoundError("Task not found")
    return task


async def create_task(
    db: AsyncSession,
    title: str,
    project_id: int,
    identity: TokenClaims,
    description: str | None = None,
    priority: TaskPriority | None = None,
    assigned_to: int | None = None,
    due_date=None,
) -> Task:
    if is_blank(title) or project_id is None:
        raise ValidationError("Title and project ID are required")

    await get_project(db, project_id)
    await require_project_member(db, identity, project_id)
    await _check_assignee(db, project_id, assigned_to)

    now = datetime.now(timezone.utc)
    new_task = Task(
        title=title,
        description=description,
        status=DEFAULT_TASK_STATUS.value,
        priority=TaskPriority(priority or DEFAULT_TASK_PRIORITY).value,
        project_id=project_id,
        assigned_to=assigned_to,
        created_by=identity.subject,
        due_date=due_date,
        version=1,
        created_at=now,
        updated_at=now,
    )
    db.add(new_task)
    await db.flush()
    logger.info("User %s created task %s in project %s", identity.subject, new_task.id, project_id)
    return await get_task_by_id(db, new_task.id)


async def _can_edit(db: AsyncSession, task: Task, identity: TokenClaims) -> bool:
    if identity.subject in (task.created_by, task.assigned_to):
        return True
    membership = await get_membership(db, task.project_id, identity.subject)
    return is_project_manager(identity, membership)


async def update_task(db: AsyncSession, task_id: int, identity: TokenClaims, patch: dict) -> Task:
    """
    Apply a partial update to a task.

    ``patch`` holds only the fields the caller sent. Status may move between
    any two values. When ``expected_version`` is given the write is rejected
    if someone else updated the task first; otherwise last write wins.
    """
    task = await get_task_by_id(db, task_id)

    if not await _can_edit(db, task, identity):
        logger.info("User %s may not edit task %s", identity.subject, task_id)
        raise AuthorizationError("Not authorized to update this task")

    expected_version = patch.get("expected_version")
    if expected_version is not None and expected_version != task.version:
        raise ConflictError(
            f"Task was modified (version {task.version}, expected {expected_version})",
            reason="StaleWrite",
        )

    if "title" in patch and is_blank(patch["title"]):
        raise ValidationError("Title cannot be empty")
    if "status" in patch and patch["status"] is None:
        raise ValidationError("Status cannot be empty")
    if "priority" in patch and patch["priority"] is None:
        raise ValidationError("Priority cannot be empty")
    if "assigned_to" in patch and patch["assigned_to"] != task.assigned_to:
        await _check_assignee(db, task.project_id, patch["assigned_to"])

    for key in UPDATABLE_FIELDS:
        if key in patch:
            setattr(task, key, _enum_value(patch[key]))

    task.version = task.version + 1
    task.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return await get_task_by_id(db, task_id)


async def list_for_project(db: AsyncSession, project_id: int) -> list[Task]:
    result = await db.execute(
        select(Task)
        .options(joinedload(Task.assignee))
        .filter(Task.project_id == project_id)
        .order_by(priority_rank.desc(), Task.created_at.asc(), Task.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_for_user(db: AsyncSession, user_id: int) -> list[Task]:
    result = await db.execute(
        select(Task)
        .options(joinedload(Task.assignee))
        .filter(Task.assigned_to == user_id)
        .order_by(Task.project_id, priority_rank.desc(), Task.created_at.asc(), Task.id.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def delete_task(db: AsyncSession, task_id: int, identity: TokenClaims) -> None:
    task = await get_task_by_id(db, task_id)

    if identity.subject != task.created_by:
        membership = await get_membership(db, task.project_id, identity.subject)
        if not is_project_manager(identity, membership):
            logger.info("User %s may not delete task %s", identity.subject, task_id)
            raise AuthorizationError("Not authorized to delete this task")

    await db.execute(delete(Comment).where(Comment.task_id == task_id))
    await db.delete(task)
    await db.flush()
    logger.info("User %s deleted task %s", identity.subject, task_id)
