# permission_catalog.py
"""
System permission library and role templates.
Defines every named permission, the bundles offered as role templates,
and the roles seeded for a new tenant.
"""

PERMISSIONS = {
    # Animals
    "view_animals": {
        "permission_id": 1,
        "display_name": "View Animals",
        "description": "View list and details of animals",
        "category": "animals",
        "action": "view_animals",
        "resource_type": "animal",
    },
    "create_animals": {
        "permission_id": 2,
        "display_name": "Create Animals",
        "description": "Add new animals to the system",
        "category": "animals",
        "action": "create_animals",
        "resource_type": "animal",
    },
    "edit_animals": {
        "permission_id": 3,
        "display_name": "Edit Animals",
        "description": "Modify animal information",
        "category": "animals",
        "action": "edit_animals",
        "resource_type": "animal",
    },
    "delete_animals": {
        "permission_id": 4,
        "display_name": "Delete Animals",
        "description": "Remove animals from the system",
        "category": "animals",
        "action": "delete_animals",
        "resource_type": "animal",
    },
    "edit_health": {
        "permission_id": 5,
        "display_name": "Edit Animal Health",
        "description": "Update animal health status",
        "category": "animals",
        "action": "edit_health",
        "resource_type": "animal",
    },
    # Activities
    "create_feeding": {
        "permission_id": 6,
        "display_name": "Log Feeding",
        "description": "Create feeding activity records",
        "category": "activities",
        "action": "create_activity",
        "resource_type": "activity",
    },
    "create_breeding": {
        "permission_id": 7,
        "display_name": "Log Breeding",
        "description": "Create breeding activity records",
        "category": "activities",
        "action": "create_activity",
        "resource_type": "activity",
    },
    "create_health_check": {
        "permission_id": 8,
        "display_name": "Log Health Check",
        "description": "Create health check/vaccination records",
        "category": "activities",
        "action": "create_activity",
        "resource_type": "activity",
    },
    "create_general": {
        "permission_id": 9,
        "display_name": "Log General Activity",
        "description": "Create general activity records",
        "category": "activities",
        "action": "create_activity",
        "resource_type": "activity",
    },
    "edit_activities": {
        "permission_id": 10,
        "display_name": "Edit Activities",
        "description": "Modify existing activity records",
        "category": "activities",
        "action": "edit_activities",
        "resource_type": "activity",
    },
    "delete_activities": {
        "permission_id": 11,
        "display_name": "Delete Activities",
        "description": "Remove activity records",
        "category": "activities",
        "action": "delete_activities",
        "resource_type": "activity",
    },
    # Reports
    "view_health_reports": {
        "permission_id": 12,
        "display_name": "View Health Reports",
        "description": "Access health-related reports",
        "category": "reports",
        "action": "view_reports",
        "resource_type": "report",
    },
    "view_operational_reports": {
        "permission_id": 13,
        "display_name": "View Operational Reports",
        "description": "Access operational/activity reports",
        "category": "reports",
        "action": "view_reports",
        "resource_type": "report",
    },
    "view_financial_reports": {
        "permission_id": 14,
        "display_name": "View Financial Reports",
        "description": "Access financial/invoice reports",
        "category": "reports",
        "action": "view_reports",
        "resource_type": "report",
    },
    # Management
    "manage_users": {
        "permission_id": 15,
        "display_name": "Manage Users",
        "description": "Create, edit, and assign users to roles",
        "category": "management",
        "action": "manage_users",
        "resource_type": "user",
    },
    "manage_roles": {
        "permission_id": 16,
        "display_name": "Manage Roles",
        "description": "Create and customize roles and permissions",
        "category": "management",
        "action": "manage_roles",
        "resource_type": "role",
    },
    "manage_subscriptions": {
        "permission_id": 17,
        "display_name": "Manage Subscriptions",
        "description": "View and manage subscription plans",
        "category": "management",
        "action": "manage_subscriptions",
        "resource_type": "subscription",
    },
    "view_audit_logs": {
        "permission_id": 18,
        "display_name": "View Audit Logs",
        "description": "Access audit trail and history",
        "category": "management",
        "action": "view_audit_logs",
        "resource_type": "audit",
    },
    "super_admin": {
        "permission_id": 19,
        "display_name": "Super Admin",
        "description": "Full system administration access across all tenants",
        "category": "management",
        "action": "super_admin",
        "resource_type": "system",
    },
}

ROLE_TEMPLATES = {
    "veterinarian": {
        "template_id": 1,
        "display_name": "Veterinarian",
        "description": "Medical professional with full animal health access",
        "category": "medical",
        "permissions": ["view_animals", "edit_health", "create_health_check", "view_health_reports"],
    },
    "farm_manager": {
        "template_id": 2,
        "display_name": "Farm Manager",
        "description": "Full operational control of the farm",
        "category": "operations",
        "permissions": [
            "view_animals", "create_animals", "edit_animals",
            "create_feeding", "create_breeding", "create_general",
            "edit_activities", "view_operational_reports",
        ],
    },
    "field_worker": {
        "template_id": 3,
        "display_name": "Field Worker",
        "description": "Daily operational tasks and activity logging",
        "category": "operations",
        "permissions": ["view_animals", "create_feeding", "create_general"],
    },
    "accountant": {
        "template_id": 4,
        "display_name": "Accountant",
        "description": "Financial reporting and sales management",
        "category": "financial",
        "permissions": ["view_animals", "view_financial_reports", "manage_subscriptions"],
    },
}

# Roles created for the demo tenant on first start (tenant 0 is system-wide)
DEFAULT_ROLES = [
    {
        "name": "Veterinarian",
        "tenant_id": 1,
        "template": "veterinarian",
        "description": "Medical professional role",
        "permissions": ROLE_TEMPLATES["veterinarian"]["permissions"],
    },
    {
        "name": "Helper",
        "tenant_id": 1,
        "template": None,
        "description": "Farm data manager - handles all farm records except veterinary data",
        "permissions": [
            "view_animals", "create_animals", "edit_animals",
            "create_feeding", "create_breeding", "create_general",
            "edit_activities", "view_operational_reports", "view_financial_reports",
        ],
    },
    {
        "name": "Super Admin",
        "tenant_id": 0,
        "template": None,
        "description": "Full system administration access across all tenants",
        "permissions": list(PERMISSIONS.keys()),
    },
]


def validate_permission(name: str) -> bool:
    """Validate if permission exists"""
    return name in PERMISSIONS


def validate_template(template_name: str) -> bool:
    """Validate if role template exists"""
    return template_name.lower() in ROLE_TEMPLATES


def get_template_permissions(template_name: str) -> list:
    """Get permissions bundled by a role template"""
    template = ROLE_TEMPLATES.get(template_name.lower(), {})
    return list(template.get("permissions", []))
