"""
Session user and permission checks.

The session user is the serialized object carried inside access tokens
and returned by /api/auth/me. Permission checks always treat owners and
super admins as holding every permission.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from loguru import logger


@dataclass
class SessionRole:
    role_id: int
    name: str
    permissions: List[str] = field(default_factory=list)


@dataclass
class AuthUser:
    """Authenticated user as seen by permission checks"""

    user_id: int
    email: str
    first_name: str = ""
    last_name: str = ""
    account_status: str = "active"
    is_owner: bool = False
    is_super_admin: bool = False
    tenant_id: int = 0
    roles: List[SessionRole] = field(default_factory=list)
    permissions: List[str] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_session(self) -> dict:
        """Serialize to the session object stored client-side"""
        return {
            "user_id": self.user_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "account_status": self.account_status,
            "is_owner": self.is_owner,
            "is_super_admin": self.is_super_admin,
            "tenant_id": self.tenant_id,
            "roles": [
                {"role_id": r.role_id, "name": r.name, "permissions": list(r.permissions)}
                for r in self.roles
            ],
            "permissions": sorted(set(self.permissions)),
        }

    @classmethod
    def from_session(cls, data) -> Optional["AuthUser"]:
        """
        Rebuild a user from a session object.
        Returns None when the data is missing or malformed.
        """
        if not isinstance(data, dict):
            return None
        try:
            roles = [
                SessionRole(
                    role_id=int(r["role_id"]),
                    name=str(r["name"]),
                    permissions=[str(p) for p in r.get("permissions", [])],
                )
                for r in data.get("roles", [])
            ]
            return cls(
                user_id=int(data["user_id"]),
                email=str(data["email"]),
                first_name=data.get("first_name") or "",
                last_name=data.get("last_name") or "",
                account_status=data.get("account_status") or "active",
                is_owner=bool(data.get("is_owner", False)),
                is_super_admin=bool(data.get("is_super_admin", False)),
                tenant_id=int(data.get("tenant_id", 0)),
                roles=roles,
                permissions=[str(p) for p in data.get("permissions", [])],
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"[SESSION] Malformed session data: {type(e).__name__}: {e}")
            return None


def has_permission(user: Optional[AuthUser], permission: str) -> bool:
    """Check a single permission"""
    if user is None:
        return False
    if user.is_owner or user.is_super_admin:
        return True
    return permission in user.permissions


def has_any_permission(user: Optional[AuthUser], permissions: Iterable[str]) -> bool:
    """True if the user holds at least one of the permissions"""
    if user is None:
        return False
    if user.is_owner or user.is_super_admin:
        return True
    return any(p in user.permissions for p in permissions)


def has_all_permissions(user: Optional[AuthUser], permissions: Iterable[str]) -> bool:
    """True if the user holds every one of the permissions"""
    if user is None:
        return False
    if user.is_owner or user.is_super_admin:
        return True
    return all(p in user.permissions for p in permissions)
