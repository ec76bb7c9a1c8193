from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.dependencies import get_db, get_current_identity
from app.schemas.project import Member, MemberCreate, MemberUpdate, Project, ProjectCreate
from app.schemas.user import MessageResponse
from app.services import projects as project_service
from app.services.tokens import TokenClaims

router = APIRouter(prefix="/projects", tags=["projects"])

@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    project = await project_service.create_project(db, data.name, identity, description=data.description)
    await db.commit()
    return project

@router.get("", response_model=list[Project])
async def list_projects(
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    return await project_service.list_projects(db, identity)

@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    return await project_service.get_project(db, project_id)

@router.get("/{project_id}/members", response_model=list[Member])
async def list_members(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    return await project_service.list_members(db, project_id)

@router.post("/{project_id}/members", response_model=Member, status_code=status.HTTP_201_CREATED)
async def add_member(
    project_id: int,
    data: MemberCreate,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    member = await project_service.add_member(db, project_id, data.user_id, identity, role=data.role)
    await db.commit()
    return member

@router.put("/{project_id}/members/{user_id}", response_model=Member)
async def update_member_role(
    project_id: int,
    user_id: int,
    data: MemberUpdate,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    member = await project_service.update_member_role(db, project_id, user_id, data.role, identity)
    await db.commit()
    return member

@router.delete("/{project_id}/members/{user_id}", response_model=MessageResponse)
async def remove_member(
    project_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    await project_service.remove_member(db, project_id, user_id, identity)
    await db.commit()
    return {"message": "Member removed successfully"}
