"""
Role-Based Access Control (RBAC) dependencies for FastAPI.
Provides reusable dependency functions to protect routes with permission and feature checks.
"""

from fastapi import Depends, HTTPException, Header
from loguru import logger

from auth.auth_manager import auth_manager
from auth.cache_manager import cache_manager
from auth.role_utils import can_access_feature
from auth.session import AuthUser, has_any_permission, has_permission

# ==================== DEPENDENCY FUNCTIONS ====================


async def get_bearer_token(authorization: str = Header(None)) -> str:
    """
    Dependency: Extract the bearer token from the Authorization header.
    """
    if not authorization or "Bearer " not in authorization:
        raise HTTPException(status_code=401, detail="Missing authorization token")
    return authorization.replace("Bearer ", "").strip()


async def verify_jwt_token(token: str = Depends(get_bearer_token)) -> dict:
    """
    Dependency: Verify JWT token and return payload.
    """
    if cache_manager.is_token_blacklisted(token):
        raise HTTPException(status_code=401, detail="Token has been revoked")

    payload = auth_manager.verify_token(token)

    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return payload


async def get_current_user(payload: dict = Depends(verify_jwt_token)) -> AuthUser:
    """
    Dependency: Session user rebuilt from the store.
    Role changes take effect on the next request, not at token expiry.
    """
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject")

    user = auth_manager.load_auth_user(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    if user.account_status != "active":
        logger.warning(f"User {user_id} with status {user.account_status} attempted access")
        raise HTTPException(status_code=403, detail="Account is not active")
    return user


def require_permission(required_permission: str):
    """
    Dependency factory: Require specific permission.
    """
    async def _require_permission(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        if not has_permission(user, required_permission):
            logger.warning(f"User {user.user_id} denied permission: {required_permission}")
            raise HTTPException(
                status_code=403,
                detail=f"Permission '{required_permission}' required"
            )
        return user

    return _require_permission


def require_any_permission(required_permissions: list):
    """
    Dependency factory: Require one of several permissions.
    """
    async def _require_any_permission(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        if not has_any_permission(user, required_permissions):
            logger.warning(
                f"User {user.user_id} attempted to access endpoint requiring "
                f"one of {required_permissions}"
            )
            raise HTTPException(
                status_code=403,
                detail=f"One of permissions {required_permissions} required"
            )
        return user

    return _require_any_permission


def require_feature(feature: str):
    """
    Dependency factory: Require a named feature gate.
    """
    async def _require_feature(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        if not can_access_feature(user, feature):
            logger.warning(f"User {user.user_id} denied feature: {feature}")
            raise HTTPException(status_code=403, detail=f"Feature '{feature}' not available")
        return user

    return _require_feature


async def require_super_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """
    Dependency: Require platform super admin.
    """
    if not user.is_super_admin:
        logger.warning(f"User {user.user_id} attempted super admin access")
        raise HTTPException(status_code=403, detail="Super admin access required")
    return user

