from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db, get_current_identity
from app.schemas.comment import Comment, CommentCreate, CommentEnvelope
from app.schemas.user import MessageResponse
from app.services import comments as comment_service
from app.services.tokens import TokenClaims

router = APIRouter(prefix="/comments", tags=["comments"])

@router.get("/task/{task_id}", response_model=list[Comment])
async def list_task_comments(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    return await comment_service.list_for_task(db, task_id)

@router.post("", response_model=CommentEnvelope)
async def create_comment(
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    comment = await comment_service.create_comment(db, data.task_id, identity.subject, data.content)
    await db.commit()
    return {"message": "Comment created successfully", "comment": comment}

@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    await comment_service.delete_comment(db, comment_id, identity)
    await db.commit()
    return {"message": "Comment deleted successfully"}
