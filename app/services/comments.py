import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload

from app.errors import NotFoundError, ValidationError
from app.models.comment import Comment
from app.models.tasks import Task
from app.services.authorization import require_owner_or_admin
from app.services.tokens import TokenClaims
from app.utils.sanitization import is_blank

logger = logging.getLogger(__name__)


async def _ensure_task_exists(db: AsyncSession, task_id: int) -> None:
    result = await db.execute(select(Task.id).filter(Task.id == task_id))
    if result.first() is None:
        raise NotFoundError("Task not found")


async def get_comment(db: AsyncSession, comment_id: int) -> Comment:
    result = await db.execute(
        select(Comment)
        .options(joinedload(Comment.author))
        .filter(Comment.id == comment_id)
        .execution_options(populate_existing=True)
    )
    comment = result.scalars().first()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


async def list_for_task(db: AsyncSession, task_id: int) -> list[Comment]:
    await _ensure_task_exists(db, task_id)
    result = await db.execute(
        select(Comment)
        .options(joinedload(Comment.author))
        .filter(Comment.task_id == task_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return list(result.scalars().all())


async def create_comment(db: AsyncSession, task_id: int | None, author_id: int, content: str | None) -> Comment:
    if is_blank(content) or task_id is None:
        raise ValidationError("Content and task ID are required")
    await _ensure_task_exists(db, task_id)

    comment = Comment(
        task_id=task_id,
        user_id=author_id,
        content=content,
        created_at=datetime.now(timezone.utc),
    )
    db.add(comment)
    await db.flush()
    logger.info("User %s commented on task %s (comment %s)", author_id, task_id, comment.id)
    return await get_comment(db, comment.id)


async def delete_comment(db: AsyncSession, comment_id: int, identity: TokenClaims) -> None:
    comment = await get_comment(db, comment_id)
    require_owner_or_admin(identity, comment.user_id)

    await db.delete(comment)
    await db.flush()
    logger.info("User %s deleted comment %s", identity.subject, comment_id)
