"""
Page permission map.

Maps dashboard paths to the permissions that unlock them. A path needs
any one of its listed permissions; an empty list means any signed-in user.
"""

from typing import List, Optional

from auth.session import AuthUser, has_any_permission

_ADMIN_PAGES = [
    "overview", "tenants", "subscriptions", "animals", "farms", "users", "sales",
    "expenses", "delegations", "audit-logs", "search", "system-settings", "database",
]

PAGE_PERMISSIONS = {
    "/dashboard": [],
    "/dashboard/animals": ["view_animals"],
    "/dashboard/sales": ["view_financial_reports"],
    "/dashboard/expenses": ["view_financial_reports"],

    "/dashboard/permissions": ["manage_roles"],
    "/dashboard/role-templates": ["manage_roles"],
    "/dashboard/roles": ["manage_roles"],
    "/dashboard/roles/create": ["manage_roles"],
    "/dashboard/roles/edit": ["manage_roles"],
    "/dashboard/policies": ["manage_roles"],
    "/dashboard/policies/create": ["manage_roles"],
    "/dashboard/policies/edit": ["manage_roles"],

    "/dashboard/users": ["manage_users"],
    "/dashboard/users/invite": ["manage_users"],
    "/dashboard/delegations": ["manage_users"],
    "/dashboard/delegations/create": ["manage_users"],
    "/dashboard/farms": ["manage_users"],

    "/dashboard/audit-logs": ["view_audit_logs"],

    "/dashboard/vet/animal-tracking": ["edit_health", "create_health_check"],
    "/dashboard/vet/medications": ["edit_health"],
    "/dashboard/vet/medical-expenses": ["edit_health"],

    "/dashboard/helper/animals": ["view_animals"],
    "/dashboard/helper/farms": ["view_animals"],
    "/dashboard/helper/animal-types": ["view_animals"],
    "/dashboard/helper/production": ["create_general"],
    "/dashboard/helper/weaning": ["create_general"],
    "/dashboard/helper/sales": ["view_financial_reports"],
    "/dashboard/helper/pregnancy": ["create_breeding"],
}

PAGE_PERMISSIONS.update({f"/dashboard/admin/{page}": ["super_admin"] for page in _ADMIN_PAGES})

PUBLIC_PATHS = ["/", "/login", "/signup", "/unauthorized"]


def _normalize(path: str) -> str:
    path = (path or "/").split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


def get_required_permissions(path: str) -> List[str]:
    """
    Permissions required for a path.
    Exact match first, then the longest configured prefix ending on a
    path-segment boundary, else no requirement.
    """
    path = _normalize(path)
    if path in PAGE_PERMISSIONS:
        return list(PAGE_PERMISSIONS[path])

    best = None
    for prefix in PAGE_PERMISSIONS:
        if path.startswith(prefix + "/") and (best is None or len(prefix) > len(best)):
            best = prefix
    if best is None:
        return []
    return list(PAGE_PERMISSIONS[best])


def is_public_path(path: str) -> bool:
    return _normalize(path) in PUBLIC_PATHS


def can_access_path(user: Optional[AuthUser], path: str) -> bool:
    if user is None:
        return False
    if is_public_path(path):
        return True
    required = get_required_permissions(path)
    if not required:
        return True
    return has_any_permission(user, required)
