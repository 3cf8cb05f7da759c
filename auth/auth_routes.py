"""
FastAPI authentication and role administration endpoints.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from auth.auth_manager import auth_manager
from auth.cache_manager import cache_manager
from auth.permission_catalog import validate_permission, validate_template
from auth.rbac_dependencies import (
    get_bearer_token, get_current_user, require_any_permission, require_permission, require_super_admin
)
from auth.role_utils import (
    get_accessible_nav_items, get_feature_flags, get_role_description,
    get_role_display_name, get_role_homepage, get_user_primary_role
)
from auth.route_permissions import can_access_path, get_required_permissions, is_public_path
from auth.session import AuthUser

router = APIRouter(prefix="/api/auth", tags=["auth"])

# ==================== REQUEST MODELS ====================


class LoginRequest(BaseModel):
    email: str
    password: str


class CreateRoleRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
    template: Optional[str] = Field(default=None, description="Role template to copy permissions from")
    tenant_id: Optional[int] = Field(default=None, description="Target tenant (super admins only)")

    @field_validator("permissions")
    @classmethod
    def validate_permission_names(cls, v):
        unknown = [p for p in v if not validate_permission(p)]
        if unknown:
            raise ValueError(f"Unknown permissions: {', '.join(unknown)}")
        return v

    @field_validator("template")
    @classmethod
    def validate_template_name(cls, v):
        if v is not None and not validate_template(v):
            raise ValueError(f"Unknown role template: {v}")
        return v


class CreateDelegationRequest(BaseModel):
    delegate_id: int
    delegation_type: str = Field(..., pattern="^(permission|role|full_access)$")
    start_date: datetime
    end_date: datetime
    permissions: List[str] = Field(default_factory=list)
    role_id: Optional[int] = None
    reason: Optional[str] = None

    @field_validator("permissions")
    @classmethod
    def validate_permission_names(cls, v):
        unknown = [p for p in v if not validate_permission(p)]
        if unknown:
            raise ValueError(f"Unknown permissions: {', '.join(unknown)}")
        return v

# ==================== HELPER FUNCTIONS ====================


def get_client_ip(request: Request) -> str:
    """Extract client IP from request"""
    if request.client:
        return request.client.host
    return "unknown"


def _profile(user: AuthUser) -> dict:
    role = get_user_primary_role(user)
    return {
        **user.to_session(),
        "full_name": user.full_name,
        "primary_role": role,
        "role_display_name": get_role_display_name(role),
        "role_description": get_role_description(role),
        "homepage": get_role_homepage(user),
    }


def _check_same_tenant(admin: AuthUser, user_id: int):
    tenant_id = auth_manager.get_user_tenant(user_id)
    if tenant_id is None:
        raise HTTPException(status_code=404, detail="User not found")
    if not admin.is_super_admin and tenant_id != admin.tenant_id:
        logger.warning(f"[ROLE] User {admin.user_id} attempted cross-tenant change on user {user_id}")
        raise HTTPException(status_code=403, detail="User belongs to another tenant")

# ==================== LOGIN & LOGOUT ====================


@router.post("/login")
async def login(data: LoginRequest, request: Request):
    """Login user and return an access token carrying the session user."""
    try:
        result = auth_manager.login(data.email, data.password, ip_address=get_client_ip(request))
        if "error" in result:
            raise HTTPException(status_code=401, detail=result["error"])
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login error: {e}")
        raise HTTPException(status_code=500, detail="Login failed")


@router.post("/logout")
async def logout(
    request: Request,
    token: str = Depends(get_bearer_token),
    user: AuthUser = Depends(get_current_user),
):
    """Logout user and revoke the access token."""
    try:
        return auth_manager.logout(token, user.user_id, ip_address=get_client_ip(request))
    except Exception as e:
        logger.error(f"Logout error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

# ==================== CURRENT USER ====================


@router.get("/me")
async def me(user: AuthUser = Depends(get_current_user)):
    return _profile(user)


@router.get("/me/navigation")
async def my_navigation(user: AuthUser = Depends(get_current_user)):
    return {
        "primary_role": get_user_primary_role(user),
        "homepage": get_role_homepage(user),
        "items": get_accessible_nav_items(user),
    }


@router.get("/me/features")
async def my_features(user: AuthUser = Depends(get_current_user)):
    return {"features": get_feature_flags(user)}


@router.get("/me/security-events")
async def my_security_events(
    limit: int = Query(20, ge=1, le=100),
    user: AuthUser = Depends(get_current_user),
):
    """Recent security events of the current user, newest first."""
    return {"events": cache_manager.get_security_events(user.user_id, limit=limit)}


@router.get("/access")
async def check_access(path: str = Query(..., min_length=1), user: AuthUser = Depends(get_current_user)):
    """Whether the current user may open a dashboard path."""
    return {
        "path": path,
        "public": is_public_path(path),
        "required_permissions": get_required_permissions(path),
        "allowed": can_access_path(user, path),
    }

# ==================== ROLE MANAGEMENT ====================


@router.get("/permissions")
async def list_permissions(user: AuthUser = Depends(require_permission("manage_roles"))):
    return {"permissions": auth_manager.list_permissions()}


@router.get("/role-templates")
async def list_role_templates(user: AuthUser = Depends(require_permission("manage_roles"))):
    return {"templates": auth_manager.list_role_templates()}


@router.get("/roles")
async def list_roles(user: AuthUser = Depends(require_any_permission(["manage_roles", "manage_users"]))):
    tenant_id = None if user.is_super_admin else user.tenant_id
    return {"roles": auth_manager.list_roles(tenant_id)}


@router.post("/roles", status_code=201)
async def create_role(data: CreateRoleRequest, user: AuthUser = Depends(require_permission("manage_roles"))):
    """Create a role from a template or an explicit permission list."""
    try:
        tenant_id = user.tenant_id
        if data.tenant_id is not None and data.tenant_id != user.tenant_id:
            if not user.is_super_admin:
                raise HTTPException(status_code=403, detail="Cannot create roles for another tenant")
            tenant_id = data.tenant_id

        if data.template:
            result = auth_manager.create_role_from_template(
                tenant_id, data.template, name=data.name, admin_id=user.user_id
            )
        else:
            if not data.name:
                raise HTTPException(status_code=400, detail="Role name is required")
            if not data.permissions:
                raise HTTPException(status_code=400, detail="At least one permission is required")
            result = auth_manager.create_role(
                tenant_id, data.name, data.permissions,
                description=data.description, admin_id=user.user_id
            )

        if "error" in result:
            raise HTTPException(status_code=400, detail=result["error"])
        return result["role"]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Create role error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/users/{user_id}/roles/{role_name}")
async def assign_role(user_id: int, role_name: str, user: AuthUser = Depends(require_permission("manage_users"))):
    """Assign role to user."""
    try:
        _check_same_tenant(user, user_id)
        result = auth_manager.assign_role(
            user_id, role_name, admin_id=user.user_id, include_system=user.is_super_admin
        )
        if "error" in result:
            raise HTTPException(status_code=400, detail=result["error"])
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Assign role error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/users/{user_id}/roles/{role_name}")
async def revoke_role(user_id: int, role_name: str, user: AuthUser = Depends(require_permission("manage_users"))):
    """Revoke role from user."""
    try:
        _check_same_tenant(user, user_id)
        result = auth_manager.revoke_role(user_id, role_name, admin_id=user.user_id)
        if "error" in result:
            raise HTTPException(status_code=400, detail=result["error"])
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Revoke role error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

# ==================== DELEGATIONS ====================


@router.get("/delegations")
async def list_delegations(user: AuthUser = Depends(require_permission("manage_users"))):
    tenant_id = None if user.is_super_admin else user.tenant_id
    return {"delegations": auth_manager.list_delegations(tenant_id)}


@router.post("/delegations", status_code=201)
async def create_delegation(data: CreateDelegationRequest, user: AuthUser = Depends(require_permission("manage_users"))):
    """Delegate permissions, a role or full access to another user of the tenant."""
    try:
        _check_same_tenant(user, data.delegate_id)
        result = auth_manager.create_delegation(
            user.user_id, data.delegate_id, data.delegation_type,
            data.start_date, data.end_date, permissions=data.permissions,
            role_id=data.role_id, reason=data.reason
        )
        if "error" in result:
            raise HTTPException(status_code=400, detail=result["error"])
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Create delegation error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/delegations/{delegation_id}")
async def revoke_delegation(delegation_id: int, user: AuthUser = Depends(require_permission("manage_users"))):
    """Revoke a delegation."""
    try:
        tenant_id = auth_manager.get_delegation_tenant(delegation_id)
        if tenant_id is None:
            raise HTTPException(status_code=404, detail="Delegation not found")
        if not user.is_super_admin and tenant_id != user.tenant_id:
            logger.warning(f"[DELEGATION] User {user.user_id} attempted cross-tenant revoke of {delegation_id}")
            raise HTTPException(status_code=403, detail="Delegation belongs to another tenant")

        result = auth_manager.revoke_delegation(delegation_id, admin_id=user.user_id)
        if "error" in result:
            raise HTTPException(status_code=400, detail=result["error"])
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Revoke delegation error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

# ==================== AUDIT ====================


@router.get("/audit-logs")
async def audit_logs(
    limit: int = Query(100, ge=1, le=1000),
    user: AuthUser = Depends(require_permission("view_audit_logs")),
):
    tenant_id = None if user.is_super_admin else user.tenant_id
    return {"logs": auth_manager.get_audit_logs(tenant_id, limit=limit)}

# ==================== PLATFORM ====================


@router.get("/tenants")
async def list_tenants(user: AuthUser = Depends(require_super_admin)):
    return {"tenants": auth_manager.list_tenants()}
