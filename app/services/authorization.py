import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.errors import AuthorizationError
from app.models.enums import ProjectRole, UserRole
from app.models.project import ProjectMember
from app.services.tokens import TokenClaims

logger = logging.getLogger(__name__)


def require_role(identity: TokenClaims, allowed_roles) -> None:
    allowed = {UserRole(r) for r in allowed_roles}
    if identity.role not in allowed:
        logger.info("User %s with role %s denied; requires one of %s",
                    identity.subject, identity.role.value, sorted(r.value for r in allowed))
        raise AuthorizationError("Insufficient role for this action")


def require_owner_or_admin(identity: TokenClaims, resource_owner_id) -> None:
    if identity.is_admin or identity.subject == resource_owner_id:
        return
    logger.info("User %s denied access to resource owned by %s", identity.subject, resource_owner_id)
    raise AuthorizationError("Only the owner or an admin may do this")


async def get_membership(db: AsyncSession, project_id: int, user_id: int) -> ProjectMember | None:
    result = await db.execute(
        select(ProjectMember).filter(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
    )
    return result.scalars().first()


async def require_project_member(db: AsyncSession, identity: TokenClaims, project_id: int) -> ProjectMember | None:
    """
    Pass if the caller belongs to the project or is an admin.

    Returns the caller's membership row (None for an admin who is not a member).
    """
    membership = await get_membership(db, project_id, identity.subject)
    if membership is None and not identity.is_admin:
        logger.info("User %s is not a member of project %s", identity.subject, project_id)
        raise AuthorizationError("Not a member of this project")
    return membership


def is_project_manager(identity: TokenClaims, membership: ProjectMember | None) -> bool:
    if identity.is_admin:
        return True
    if membership is None:
        return False
    return identity.role == UserRole.PROJECT_MANAGER or membership.role == ProjectRole.MANAGER.value
