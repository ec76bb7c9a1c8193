import logging
import re

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.models.comment import Comment
from app.models.enums import UserRole
from app.models.project import ProjectMember
from app.models.tasks import Task
from app.models.user import User
from app.utils.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)

ADMIN_ONLY_FIELDS = {"role", "is_active"}
REQUIRED_FIELDS = {"username", "email", "role", "is_active"}
PROFILE_FIELDS = {"username", "email", "first_name", "last_name", "role", "is_active"}


def parse_role(role) -> UserRole:
    try:
        return UserRole(role)
    except ValueError:
        raise ValidationError(f"Invalid user role '{role}'", reason="InvalidRole")


# Unique constraints on users as SQLite ("users.email") and PostgreSQL ("ix_users_email") name them
UNIQUE_COLUMNS = {
    "users.email": "email",
    "ix_users_email": "email",
    "users.username": "username",
    "ix_users_username": "username",
}
_CONSTRAINT_RE = re.compile(r'unique constraint (?:failed: ([\w.]+)|"([^"]+)")', re.IGNORECASE)


def _collided_column(exc: IntegrityError) -> str | None:
    constraint = getattr(getattr(exc.orig, "__cause__", None), "constraint_name", None)
    if constraint is None:
        # Only the constraint identifier is read; the DETAIL part echoes the stored value
        match = _CONSTRAINT_RE.search(str(exc.orig))
        if match:
            constraint = match.group(1) or match.group(2)
    return UNIQUE_COLUMNS.get(constraint)


def _conflict(column: str) -> ConflictError:
    if column == "email":
        return ConflictError("Email already exists", reason="DuplicateEmail")
    return ConflictError("Username already exists", reason="DuplicateUsername")


async def _duplicate_error(
    db: AsyncSession, exc: IntegrityError, username, email, user_id: int | None = None
) -> ConflictError | None:
    """
    Map a unique-constraint failure on users to the field that collided.

    Returns None when the failure is not a duplicate of another account.
    """
    column = _collided_column(exc)
    if column:
        return _conflict(column)

    # Driver message did not name the constraint; look at what is stored now
    for column, value in (("email", email), ("username", username)):
        if value is None:
            continue
        query = select(User.id).filter(getattr(User, column) == value)
        if user_id is not None:
            query = query.filter(User.id != user_id)
        if (await db.execute(query)).first():
            return _conflict(column)
    return None


async def create_account(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    role=None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    if not username or not email or not password:
        raise ValidationError("Username, email, and password are required")
    user_role = UserRole.TEAM_MEMBER if role is None else parse_role(role)

    new_user = User(
        username=username,
        email=email,
        password_hash=get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role=user_role.value,
        is_active=True,
    )
    db.add(new_user)
    # No pre-check: the unique constraints are the only dedup authority
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        conflict = await _duplicate_error(db, exc, username, email)
        if conflict is None:
            raise
        raise conflict

    logger.info("Created account %s (id=%s, role=%s)", username, new_user.id, user_role.value)
    return new_user


async def verify_credentials(db: AsyncSession, email: str, password: str) -> User:
    result = await db.execute(select(User).filter(User.email == email))
    user = result.scalars().first()

    if user is None or not user.is_active:
        verify_password(password, None)
        logger.info("Failed login for %s", email)
        raise AuthenticationError("Invalid credentials", reason="InvalidCredentials")
    if not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise AuthenticationError("Invalid credentials", reason="InvalidCredentials")
    return user


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).filter(User.id == user_id))
    user = result.scalars().first()
    if not user:
        raise NotFoundError("User not found")
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.username))
    return list(result.scalars().all())


async def update_profile(db: AsyncSession, user_id: int, fields: dict, allow_admin_fields: bool = False) -> User:
    user = await get_user(db, user_id)

    fields = dict(fields)
    if not allow_admin_fields and ADMIN_ONLY_FIELDS & fields.keys():
        raise AuthorizationError("Only an admin may change role or activation")

    for key in REQUIRED_FIELDS & fields.keys():
        if fields[key] is None:
            raise ValidationError(f"{key} cannot be empty")
    if "role" in fields:
        fields["role"] = parse_role(fields["role"]).value

    password = fields.pop("password", None)
    if password:
        user.password_hash = get_password_hash(password)

    for key, value in fields.items():
        if key not in PROFILE_FIELDS:
            continue
        setattr(user, key, value)

    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        conflict = await _duplicate_error(db, exc, fields.get("username"), fields.get("email"), user_id=user_id)
        if conflict is None:
            raise
        raise conflict
    return user


async def delete_account(db: AsyncSession, user_id: int) -> None:
    user = await get_user(db, user_id)

    await db.execute(delete(Comment).where(Comment.user_id == user_id))
    await db.execute(delete(ProjectMember).where(ProjectMember.user_id == user_id))
    await db.execute(update(Task).where(Task.assigned_to == user_id).values(assigned_to=None))
    await db.execute(update(Task).where(Task.created_by == user_id).values(created_by=None))
    await db.delete(user)
    await db.flush()
    logger.info("Deleted account %s (id=%s)", user.username, user_id)
