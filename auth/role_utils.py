"""
Primary role resolution, feature gates and navigation.

A user's primary role is a coarse label derived from the owner and super
admin flags, then from the name and permissions of the first assigned role.
Feature gates are named boolean checks layered on the permission checks.
"""

from typing import Callable, Dict, List, Optional

from auth.session import AuthUser, has_any_permission, has_permission

OWNER = "owner"
SUPER_ADMIN = "super_admin"
VETERINARIAN = "veterinarian"
VET_TECH = "vet_tech"
FARM_MANAGER = "farm_manager"
FIELD_WORKER = "field_worker"
ACCOUNTANT = "accountant"

ALL_ROLES = [OWNER, SUPER_ADMIN, VETERINARIAN, VET_TECH, FARM_MANAGER, FIELD_WORKER, ACCOUNTANT]


def get_user_primary_role(user: Optional[AuthUser]) -> Optional[str]:
    if user is None:
        return None
    if user.is_super_admin:
        return SUPER_ADMIN
    if user.is_owner:
        return OWNER
    if not user.roles:
        return FIELD_WORKER

    role_name = user.roles[0].name.lower()
    if "veterinarian" in role_name or "vet" in role_name:
        return VETERINARIAN if has_permission(user, "edit_health") else VET_TECH
    if "manager" in role_name or "helper" in role_name:
        if has_any_permission(user, ["create_animals", "edit_animals"]):
            return FARM_MANAGER
        return FIELD_WORKER
    if "accountant" in role_name:
        return ACCOUNTANT
    return FIELD_WORKER


def _any_of(*permissions: str) -> Callable[[Optional[AuthUser]], bool]:
    return lambda user: has_any_permission(user, list(permissions))


def _owner_only(user: Optional[AuthUser]) -> bool:
    return bool(user and user.is_owner)


def _super_admin_only(user: Optional[AuthUser]) -> bool:
    return bool(user and user.is_super_admin)


def _owner_or_super_admin(user: Optional[AuthUser]) -> bool:
    return bool(user and (user.is_owner or user.is_super_admin))


ROLE_FEATURES: Dict[str, Callable[[Optional[AuthUser]], bool]] = {
    # Animals
    "can_view_animals": _any_of("view_animals"),
    "can_create_animals": _any_of("create_animals"),
    "can_edit_animals": _any_of("edit_animals"),
    "can_delete_animals": _owner_only,
    "can_view_lineage": _any_of("view_animals"),

    # Health
    "can_edit_health": _any_of("edit_health"),
    "can_log_health_check": _any_of("create_health_check"),
    "can_record_treatment": _any_of("edit_health"),
    "can_record_medication": _any_of("edit_health"),
    "can_record_vaccination": _any_of("edit_health", "create_health_check"),
    "can_record_deworming": _any_of("edit_health", "create_health_check"),

    # Activities
    "can_log_feeding": _any_of("create_feeding", "create_general"),
    "can_log_breeding": _any_of("create_breeding"),
    "can_log_general_activity": _any_of("create_general"),
    "can_log_castration": _any_of("edit_health", "create_health_check", "create_general"),
    "can_schedule_castration": _any_of("create_animals"),

    # Production & breeding
    "can_log_production": _any_of("create_general"),
    "can_view_production": _any_of("view_operational_reports", "create_general"),
    "can_manage_breeding": _any_of("create_breeding"),
    "can_view_breeding": _any_of("create_breeding", "view_animals"),
    "can_manage_weaning": _any_of("create_general"),

    # Financial
    "can_view_financials": _any_of("view_financial_reports"),
    "can_manage_financials": _any_of("view_financial_reports"),
    "can_view_sales": _any_of("view_financial_reports"),
    "can_record_sales": _any_of("view_financial_reports"),
    "can_view_expenses": _any_of("view_financial_reports"),
    "can_record_expenses": _any_of("view_financial_reports"),

    # Management
    "can_manage_users": _any_of("manage_users"),
    "can_manage_roles": _any_of("manage_roles"),
    "can_view_audit_logs": _any_of("view_audit_logs"),
    "can_view_subscriptions": _owner_or_super_admin,
    "can_manage_farms": _owner_or_super_admin,
    "can_view_farms": _any_of("view_animals"),

    # Reports
    "can_view_health_reports": _any_of("view_health_reports"),
    "can_view_operational_reports": _any_of("view_operational_reports"),
    "can_view_analytics": _any_of("view_operational_reports"),
    "can_view_birth_rate_analytics": _any_of("view_operational_reports"),
    "can_view_inventory_reports": _any_of("view_operational_reports"),
    "can_view_castration_reports": _any_of("view_operational_reports"),

    # Inventory
    "can_view_inventory": _any_of("view_animals", "view_operational_reports"),
    "can_manage_inventory": _any_of("create_animals", "create_general"),

    # Tasks
    "can_view_schedules": _any_of("view_animals", "create_general"),
    "can_create_tasks": _any_of("create_general"),
    "can_assign_tasks": _any_of("edit_activities"),

    # Platform administration
    "is_super_admin": _super_admin_only,
    "can_view_all_tenants": _super_admin_only,
    "can_view_all_animals": _super_admin_only,
    "can_view_all_farms": _super_admin_only,
    "can_view_all_users": _super_admin_only,
    "can_view_all_sales": _super_admin_only,
    "can_view_all_expenses": _super_admin_only,
    "can_view_all_audit_logs": _super_admin_only,
}


def can_access_feature(user: Optional[AuthUser], feature: str) -> bool:
    """Evaluate a named feature gate; unknown features are denied"""
    check = ROLE_FEATURES.get(feature)
    if check is None:
        return False
    return check(user)


def get_feature_flags(user: Optional[AuthUser]) -> Dict[str, bool]:
    return {name: check(user) for name, check in ROLE_FEATURES.items()}


ROLE_DISPLAY_NAMES = {
    OWNER: "Farm Owner",
    SUPER_ADMIN: "Super Administrator",
    VETERINARIAN: "Veterinarian",
    FARM_MANAGER: "Farm Manager",
    FIELD_WORKER: "Field Worker",
    VET_TECH: "Veterinary Technician",
    ACCOUNTANT: "Accountant",
}

ROLE_DESCRIPTIONS = {
    OWNER: "Full control of farm operations within tenant organization",
    SUPER_ADMIN: "Platform-wide system administrator across all tenants",
    VETERINARIAN: "Medical professional with specialized animal health access",
    FARM_MANAGER: "Operational management with extensive permissions",
    FIELD_WORKER: "Basic operational tasks and daily activity logging",
    VET_TECH: "Veterinary support and medical assistance",
    ACCOUNTANT: "Financial specialist with reporting access",
}

ROLE_HOMEPAGES = {
    SUPER_ADMIN: "/dashboard/admin/overview",
    OWNER: "/dashboard",
    VETERINARIAN: "/dashboard/vet/animal-tracking",
    VET_TECH: "/dashboard/vet/animal-tracking",
    FARM_MANAGER: "/dashboard/animals",
    FIELD_WORKER: "/dashboard/schedules",
    ACCOUNTANT: "/dashboard/sales",
}


def get_role_display_name(role: Optional[str]) -> str:
    return ROLE_DISPLAY_NAMES.get(role, "User")


def get_role_description(role: Optional[str]) -> str:
    return ROLE_DESCRIPTIONS.get(role, "")


def get_role_homepage(user: Optional[AuthUser]) -> str:
    return ROLE_HOMEPAGES.get(get_user_primary_role(user), "/dashboard")


NAV_ITEMS = [
    {"path": "/dashboard", "label": "Dashboard", "icon": "LayoutDashboard", "roles": list(ALL_ROLES)},
    {"path": "/dashboard/animals", "label": "Animals", "icon": "Beef",
     "roles": [OWNER, FARM_MANAGER, FIELD_WORKER, VETERINARIAN, VET_TECH]},
    {"path": "/dashboard/vet/animal-tracking", "label": "Animal Health", "icon": "Stethoscope",
     "roles": [OWNER, VETERINARIAN, VET_TECH]},
    {"path": "/dashboard/schedules", "label": "Daily Schedules", "icon": "Calendar",
     "roles": [OWNER, FARM_MANAGER, FIELD_WORKER]},
    {"path": "/dashboard/alerts", "label": "Alerts", "icon": "Bell",
     "roles": [OWNER, FARM_MANAGER, FIELD_WORKER, VETERINARIAN]},
    {"path": "/dashboard/sales", "label": "Sales", "icon": "DollarSign",
     "roles": [OWNER, FARM_MANAGER, ACCOUNTANT]},
    {"path": "/dashboard/expenses", "label": "Expenses", "icon": "Receipt",
     "roles": [OWNER, FARM_MANAGER, ACCOUNTANT]},
    {"path": "/dashboard/analytics/birth-rates", "label": "Analytics", "icon": "TrendingUp",
     "roles": [OWNER, FARM_MANAGER]},
    {"path": "/dashboard/users", "label": "Users", "icon": "Users", "roles": [OWNER, SUPER_ADMIN]},
    {"path": "/dashboard/roles", "label": "Roles", "icon": "Shield", "roles": [OWNER, SUPER_ADMIN]},
    {"path": "/dashboard/audit-logs", "label": "Audit Logs", "icon": "FileText", "roles": [OWNER, SUPER_ADMIN]},
    {"path": "/dashboard/admin/overview", "label": "Admin Panel", "icon": "Settings", "roles": [SUPER_ADMIN]},
]


def get_accessible_nav_items(user: Optional[AuthUser]) -> List[dict]:
    """Navigation entries visible to the user's primary role"""
    role = get_user_primary_role(user)
    if role is None:
        return []
    return [
        {"path": item["path"], "label": item["label"], "icon": item["icon"]}
        for item in NAV_ITEMS
        if role in item["roles"]
    ]
