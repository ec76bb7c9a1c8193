from datetime import datetime, timezone

import pytest

from app.errors import AuthorizationError
from app.models.enums import ProjectRole, UserRole
from app.services.authorization import (
    is_project_manager,
    require_owner_or_admin,
    require_project_member,
    require_role,
)
from app.services.tokens import TokenClaims
from app.utils.views import default_view


def claims(subject=1, role=UserRole.TEAM_MEMBER):
    now = datetime.now(timezone.utc)
    return TokenClaims(subject=subject, email=f"user{subject}@example.com", role=role, issued_at=now, expires_at=now)


def test_require_role():
    require_role(claims(role=UserRole.ADMIN), [UserRole.ADMIN])
    require_role(claims(role=UserRole.PROJECT_MANAGER), ["admin", "project_manager"])

    with pytest.raises(AuthorizationError):
        require_role(claims(role=UserRole.TEAM_MEMBER), [UserRole.ADMIN, UserRole.PROJECT_MANAGER])


def test_require_owner_or_admin():
    require_owner_or_admin(claims(subject=5), 5)
    require_owner_or_admin(claims(subject=9, role=UserRole.ADMIN), 5)

    with pytest.raises(AuthorizationError):
        require_owner_or_admin(claims(subject=9, role=UserRole.PROJECT_MANAGER), 5)


async def test_require_project_member(db, make_user, make_project, identity_for):
    manager = await make_user("morgan", role=UserRole.PROJECT_MANAGER)
    member = await make_user("alice")
    stranger = await make_user("olivia")
    admin = await make_user("root", role=UserRole.ADMIN)
    project = await make_project(manager, members=[member])

    membership = await require_project_member(db, identity_for(member), project.id)
    assert membership.role == ProjectRole.MEMBER.value

    # Admins pass without a membership row
    assert await require_project_member(db, identity_for(admin), project.id) is None

    with pytest.raises(AuthorizationError):
        await require_project_member(db, identity_for(stranger), project.id)


def test_is_project_manager():
    class Membership:
        def __init__(self, role):
            self.role = role

    assert is_project_manager(claims(role=UserRole.ADMIN), None)
    assert is_project_manager(claims(role=UserRole.PROJECT_MANAGER), Membership("member"))
    assert is_project_manager(claims(role=UserRole.TEAM_MEMBER), Membership("manager"))
    assert not is_project_manager(claims(role=UserRole.TEAM_MEMBER), Membership("member"))
    assert not is_project_manager(claims(role=UserRole.PROJECT_MANAGER), None)


@pytest.mark.parametrize("role,expected", [
    ("admin", "/admin/dashboard"),
    (UserRole.PROJECT_MANAGER, "/project-manager/dashboard"),
    ("team_member", "/team-member/dashboard"),
    ("auditor", "/dashboard"),
    (None, "/dashboard"),
])
def test_default_view(role, expected):
    assert default_view(role) == expected
