from app.models.enums import UserRole

GENERIC_DASHBOARD = "/dashboard"

DASHBOARD_ROUTES = {
    UserRole.ADMIN.value: "/admin/dashboard",
    UserRole.PROJECT_MANAGER.value: "/project-manager/dashboard",
    UserRole.TEAM_MEMBER.value: "/team-member/dashboard",
}


def default_view(role) -> str:
    """Landing view for a role; unknown roles get the generic dashboard."""
    if isinstance(role, UserRole):
        role = role.value
    return DASHBOARD_ROUTES.get(role, GENERIC_DASHBOARD)
