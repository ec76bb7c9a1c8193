import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload

from app.errors import AuthorizationError, ConflictError, NotFoundError
from app.models.enums import ProjectRole, UserRole
from app.models.project import Project, ProjectMember
from app.models.tasks import Task
from app.services.authorization import get_membership, is_project_manager, require_role
from app.services.tokens import TokenClaims
from app.services.users import get_user

logger = logging.getLogger(__name__)


async def get_project(db: AsyncSession, project_id: int) -> Project:
    result = await db.execute(select(Project).filter(Project.id == project_id))
    project = result.scalars().first()
    if not project:
        raise NotFoundError("Project not found")
    return project


async def create_project(db: AsyncSession, name: str, identity: TokenClaims, description: str | None = None) -> Project:
    require_role(identity, [UserRole.ADMIN, UserRole.PROJECT_MANAGER])

    project = Project(name=name, description=description, created_by=identity.subject)
    db.add(project)
    await db.flush()

    db.add(ProjectMember(project_id=project.id, user_id=identity.subject, role=ProjectRole.MANAGER.value))
    await db.flush()
    logger.info("User %s created project %s (id=%s)", identity.subject, name, project.id)
    return project


async def list_projects(db: AsyncSession, identity: TokenClaims) -> list[Project]:
    query = select(Project).order_by(Project.id)
    if not identity.is_admin:
        query = query.join(ProjectMember).filter(ProjectMember.user_id == identity.subject)
    result = await db.execute(query)
    return list(result.scalars().all())


async def _require_manager(db: AsyncSession, identity: TokenClaims, project_id: int) -> None:
    membership = await get_membership(db, project_id, identity.subject)
    if not is_project_manager(identity, membership):
        raise AuthorizationError("Only a project manager or admin may manage members")


async def _load_member(db: AsyncSession, member_id: int) -> ProjectMember:
    result = await db.execute(
        select(ProjectMember)
        .options(joinedload(ProjectMember.user))
        .filter(ProjectMember.id == member_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def list_members(db: AsyncSession, project_id: int) -> list[ProjectMember]:
    await get_project(db, project_id)
    result = await db.execute(
        select(ProjectMember)
        .options(joinedload(ProjectMember.user))
        .filter(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def add_member(
    db: AsyncSession,
    project_id: int,
    user_id: int,
    identity: TokenClaims,
    role: ProjectRole = ProjectRole.MEMBER,
) -> ProjectMember:
    await get_project(db, project_id)
    await _require_manager(db, identity, project_id)
    await get_user(db, user_id)

    member = ProjectMember(project_id=project_id, user_id=user_id, role=ProjectRole(role).value)
    db.add(member)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("User is already a member of this project", reason="DuplicateMember")

    logger.info("User %s added to project %s as %s", user_id, project_id, member.role)
    return await _load_member(db, member.id)


async def update_member_role(
    db: AsyncSession,
    project_id: int,
    user_id: int,
    role: ProjectRole,
    identity: TokenClaims,
) -> ProjectMember:
    require_role(identity, [UserRole.ADMIN])
    member = await get_membership(db, project_id, user_id)
    if not member:
        raise NotFoundError("Project member not found")
    member.role = ProjectRole(role).value
    await db.flush()
    return await _load_member(db, member.id)


async def remove_member(db: AsyncSession, project_id: int, user_id: int, identity: TokenClaims) -> None:
    await _require_manager(db, identity, project_id)
    member = await get_membership(db, project_id, user_id)
    if not member:
        raise NotFoundError("Project member not found")

    # Former members may not stay assigned to tasks in the project
    await db.execute(
        update(Task)
        .where(Task.project_id == project_id, Task.assigned_to == user_id)
        .values(assigned_to=None)
    )
    await db.delete(member)
    await db.flush()
    logger.info("User %s removed from project %s", user_id, project_id)
