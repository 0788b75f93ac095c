"""Role permission table and navigation access map."""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable

from app.domain.identity import OrganizationMembership

PermissionName = str
RoleName = str

USERS_VIEW = "users:view"
USERS_INVITE = "users:invite"
USERS_MANAGE_ROLES = "users:manage_roles"
ORGANIZATION_VIEW = "organization:view"
ORGANIZATION_MANAGE_SETTINGS = "organization:manage_settings"
ORGANIZATION_MANAGE_BILLING = "organization:manage_billing"
PROJECTS_VIEW_ALL = "projects:view_all"
PROJECTS_VIEW_ASSIGNED = "projects:view_assigned"
PROJECTS_CREATE = "projects:create"
PROJECTS_UPDATE = "projects:update"
PROJECTS_DELETE = "projects:delete"
CLIENTS_VIEW_ALL = "clients:view_all"
CLIENTS_VIEW_ASSIGNED = "clients:view_assigned"
CLIENTS_CREATE = "clients:create"
CLIENTS_UPDATE = "clients:update"
CLIENTS_DELETE = "clients:delete"
DOCUMENTS_VIEW = "documents:view"
DOCUMENTS_UPLOAD = "documents:upload"
ANALYTICS_VIEW_BASIC = "analytics:view_basic"
ANALYTICS_VIEW_ADVANCED = "analytics:view_advanced"
SUPPORT_VIEW_TICKETS = "support:view_tickets"
SUPPORT_CREATE_TICKETS = "support:create_tickets"
BILLING_VIEW = "billing:view"
BILLING_MANAGE = "billing:manage"

ADMIN = "admin"
TEAM_MEMBER = "team_member"
CLIENT = "client"

ALL_PERMISSIONS: FrozenSet[PermissionName] = frozenset(
    {
        USERS_VIEW,
        USERS_INVITE,
        USERS_MANAGE_ROLES,
        ORGANIZATION_VIEW,
        ORGANIZATION_MANAGE_SETTINGS,
        ORGANIZATION_MANAGE_BILLING,
        PROJECTS_VIEW_ALL,
        PROJECTS_VIEW_ASSIGNED,
        PROJECTS_CREATE,
        PROJECTS_UPDATE,
        PROJECTS_DELETE,
        CLIENTS_VIEW_ALL,
        CLIENTS_VIEW_ASSIGNED,
        CLIENTS_CREATE,
        CLIENTS_UPDATE,
        CLIENTS_DELETE,
        DOCUMENTS_VIEW,
        DOCUMENTS_UPLOAD,
        ANALYTICS_VIEW_BASIC,
        ANALYTICS_VIEW_ADVANCED,
        SUPPORT_VIEW_TICKETS,
        SUPPORT_CREATE_TICKETS,
        BILLING_VIEW,
        BILLING_MANAGE,
    }
)

ROLE_PERMISSIONS: Dict[RoleName, FrozenSet[PermissionName]] = {
    ADMIN: ALL_PERMISSIONS,
    TEAM_MEMBER: frozenset(
        {
            PROJECTS_VIEW_ASSIGNED,
            PROJECTS_UPDATE,
            DOCUMENTS_VIEW,
            DOCUMENTS_UPLOAD,
            BILLING_VIEW,
            SUPPORT_VIEW_TICKETS,
            SUPPORT_CREATE_TICKETS,
        }
    ),
    CLIENT: frozenset(
        {
            PROJECTS_VIEW_ASSIGNED,
            CLIENTS_VIEW_ASSIGNED,
            DOCUMENTS_VIEW,
            DOCUMENTS_UPLOAD,
            BILLING_VIEW,
            SUPPORT_VIEW_TICKETS,
            SUPPORT_CREATE_TICKETS,
        }
    ),
}

# Any one listed permission opens the route; unlisted routes are unrestricted.
NAVIGATION_ACCESS: Dict[str, FrozenSet[PermissionName]] = {
    "/dashboard": frozenset({PROJECTS_VIEW_ALL, PROJECTS_VIEW_ASSIGNED}),
    "/projects": frozenset({PROJECTS_VIEW_ALL, PROJECTS_VIEW_ASSIGNED}),
    "/clients": frozenset({CLIENTS_VIEW_ALL}),
    "/team": frozenset({USERS_VIEW}),
    "/onboarding": frozenset({ORGANIZATION_MANAGE_SETTINGS}),
    "/assets": frozenset({DOCUMENTS_VIEW}),
    "/billing": frozenset({BILLING_VIEW}),
    "/analytics": frozenset({ANALYTICS_VIEW_BASIC, ANALYTICS_VIEW_ADVANCED}),
    "/support": frozenset({SUPPORT_VIEW_TICKETS, SUPPORT_CREATE_TICKETS}),
    "/messages": frozenset({PROJECTS_VIEW_ALL, PROJECTS_VIEW_ASSIGNED}),
    "/settings": frozenset({ORGANIZATION_VIEW}),
    "/admin": frozenset({USERS_MANAGE_ROLES, ORGANIZATION_MANAGE_SETTINGS}),
}


def permissions_for(membership: OrganizationMembership) -> FrozenSet[PermissionName]:
    """Return the role permissions plus any tags granted on the membership itself."""

    return ROLE_PERMISSIONS.get(membership.role, frozenset()) | frozenset(membership.permissions)


def is_granted(membership: OrganizationMembership, permission: PermissionName) -> bool:
    """Admins hold every permission; other roles need the tag in their grant."""

    if membership.role == ADMIN:
        return True
    return permission in permissions_for(membership)


def required_for_route(path: str) -> FrozenSet[PermissionName]:
    """Return the permissions guarding *path* (matched on its first segment)."""

    stripped = (path or "").split("?", 1)[0].strip().strip("/")
    if not stripped:
        return frozenset()
    return NAVIGATION_ACCESS.get("/" + stripped.split("/", 1)[0], frozenset())


def can_access_route(path: str, granted: Iterable[PermissionName]) -> bool:
    """Return ``True`` if any permission guarding *path* is in *granted*."""

    required = required_for_route(path)
    if not required:
        return True
    return bool(required & set(granted))
