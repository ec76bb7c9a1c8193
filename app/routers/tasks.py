from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db, get_current_identity
from app.schemas.task import Task as TaskSchema, TaskCreate, TaskEnvelope, TaskUpdate
from app.schemas.user import MessageResponse
from app.services import tasks as task_service
from app.services.tokens import TokenClaims

router = APIRouter(prefix="/tasks", tags=["tasks"])

@router.get("", response_model=list[TaskSchema])
async def list_my_tasks(
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    return await task_service.list_for_user(db, identity.subject)

@router.get("/project/{project_id}", response_model=list[TaskSchema])
async def list_project_tasks(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    return await task_service.list_for_project(db, project_id)

@router.get("/{task_id}", response_model=TaskSchema)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    return await task_service.get_task_by_id(db, task_id)

@router.post("", response_model=TaskEnvelope)
async def create_task(
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    task = await task_service.create_task(
        db,
        title=task_data.title,
        project_id=task_data.project_id,
        identity=identity,
        description=task_data.description,
        priority=task_data.priority,
        assigned_to=task_data.assigned_to,
        due_date=task_data.due_date,
    )
    await db.commit()
    return {"message": "Task created successfully", "task": task}

@router.put("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: int,
    update_data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    task = await task_service.update_task(db, task_id, identity, update_data.model_dump(exclude_unset=True))
    await db.commit()
    return {"message": "Task updated successfully", "task": task}

@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    await task_service.delete_task(db, task_id, identity)
    await db.commit()
    return {"message": "Task deleted successfully"}
