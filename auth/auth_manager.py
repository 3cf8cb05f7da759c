"""
Authentication manager with bcrypt hashing, JWT sessions and role administration.
"""

import jwt
import os
from datetime import datetime, timedelta
from typing import Optional
import bcrypt
from loguru import logger
from sqlalchemy import func

from auth.models import (
    Tenant, User, Role, Permission, Delegation, AuditLog, get_db_session
)
from auth.cache_manager import cache_manager
from auth.permission_catalog import PERMISSIONS, ROLE_TEMPLATES, get_template_permissions, validate_template
from auth.session import AuthUser, SessionRole


class AuthManager:
    """Authentication manager"""

    def __init__(self):
        self.jwt_secret = os.getenv("JWT_SECRET")
        if not self.jwt_secret:
            raise ValueError("JWT_SECRET environment variable not set. Cannot initialize auth system.")
        if len(self.jwt_secret) < 32:
            logger.warning("JWT_SECRET is less than 32 bytes - use a stronger secret!")
        self.jwt_expiry = int(os.getenv("JWT_EXPIRY_SECONDS", "3600"))
        self.session_cache_ttl = 300
        self.max_failed_logins = 5
        logger.info("AuthManager initialized")

    # ==================== PASSWORD HASHING ====================

    def _verify_password(self, password: str, password_hash: str) -> bool:
        """Verify password against hash"""
        if not password_hash:
            logger.error("[VERIFY] Password hash is None or empty")
            return False
        try:
            password_bytes = password.encode('utf-8')[:72]
            hash_bytes = password_hash if isinstance(password_hash, bytes) else password_hash.encode('utf-8')
            return bcrypt.checkpw(password_bytes, hash_bytes)
        except ValueError as e:
            logger.error(f"[VERIFY] Malformed password hash: {e}")
            return False

    # ==================== SESSION USER ====================

    def _grantable_permissions(self, user: User) -> set:
        """Permissions a user may hand on; only super admins can pass on super_admin"""
        if user.is_super_admin:
            return set(PERMISSIONS)
        if user.is_owner:
            return set(PERMISSIONS) - {"super_admin"}
        granted = set()
        for role in user.roles:
            granted.update(p.name for p in role.permissions)
        return granted

    def _delegated_permissions(self, session, user: User, now: datetime) -> set:
        """Permissions granted to a user through active delegations"""
        granted = set()
        delegations = session.query(Delegation).filter_by(delegate_id=user.user_id, status="active").all()
        for delegation in delegations:
            if not delegation.is_active(now):
                continue
            if delegation.delegation_type == "permission":
                granted.update(delegation.permissions or [])
            elif delegation.delegation_type == "role" and delegation.role_id:
                role = session.query(Role).filter_by(role_id=delegation.role_id).first()
                if role:
                    granted.update(p.name for p in role.permissions)
            elif delegation.delegation_type == "full_access":
                delegator = session.query(User).filter_by(user_id=delegation.delegator_id).first()
                if delegator is not None:
                    granted.update(self._grantable_permissions(delegator))
        return granted

    def _build_auth_user(self, session, user: User) -> AuthUser:
        """Combine role permissions and active delegations into a session user"""
        roles = []
        permissions = set()
        for role in sorted(user.roles, key=lambda r: r.role_id):
            names = sorted(p.name for p in role.permissions)
            roles.append(SessionRole(role_id=role.role_id, name=role.name, permissions=names))
            permissions.update(names)

        permissions.update(self._delegated_permissions(session, user, datetime.utcnow()))

        return AuthUser(
            user_id=user.user_id,
            email=user.email,
            first_name=user.first_name or "",
            last_name=user.last_name or "",
            account_status=user.account_status,
            is_owner=bool(user.is_owner),
            is_super_admin=bool(user.is_super_admin),
            tenant_id=user.tenant_id,
            roles=roles,
            permissions=sorted(permissions),
        )

    def load_auth_user(self, user_id: int) -> Optional[AuthUser]:
        """Rebuild the session user from the store (cached)"""
        cached = cache_manager.get_cached_session_user(user_id)
        if cached is not None:
            return AuthUser.from_session(cached)

        session = get_db_session()
        try:
            user = session.query(User).filter_by(user_id=user_id).first()
            if not user:
                logger.warning(f"[SESSION] User not found: {user_id}")
                return None
            auth_user = self._build_auth_user(session, user)
            cache_manager.cache_session_user(user_id, auth_user.to_session(), ttl=self.session_cache_ttl)
            return auth_user
        finally:
            session.close()

    # ==================== LOGIN ====================

    def login(self, email: str, password: str, ip_address: str = None) -> dict:
        """Login user and return access token"""
        session = get_db_session()
        try:
            logger.info(f"[LOGIN] Starting login for email: {email}")

            if cache_manager.failed_login_count(email) >= self.max_failed_logins:
                logger.warning(f"[LOGIN] Too many failed attempts for: {email}")
                return {"error": "Too many failed login attempts. Try again later."}

            user = session.query(User).filter_by(email=email).first()
            if not user or not self._verify_password(password, user.password_hash):
                cache_manager.record_failed_login(email)
                logger.warning(f"[LOGIN] Invalid credentials for: {email}")
                self.log_audit_event(user.user_id if user else None, "login_failed",
                                     {"email": email}, status="failure", ip_address=ip_address,
                                     tenant_id=user.tenant_id if user else None)
                return {"error": "Invalid email or password"}

            if user.account_status != "active":
                logger.warning(f"[LOGIN] Account is {user.account_status} for: {email}")
                return {"error": "Account is not active"}

            user.last_login = datetime.utcnow()
            session.commit()
            cache_manager.reset_failed_logins(email)

            auth_user = self._build_auth_user(session, user)
            session_data = auth_user.to_session()
            cache_manager.cache_session_user(user.user_id, session_data, ttl=self.session_cache_ttl)

            access_token = jwt.encode(
                {
                    "sub": str(user.user_id),
                    "tenant_id": user.tenant_id,
                    "session": session_data,
                    "iat": datetime.utcnow(),
                    "exp": datetime.utcnow() + timedelta(seconds=self.jwt_expiry)
                },
                self.jwt_secret,
                algorithm="HS256"
            )

            self.log_audit_event(user.user_id, "login", {"email": email},
                                 ip_address=ip_address, tenant_id=user.tenant_id)
            logger.info(f"[LOGIN] User logged in successfully: {email}")

            return {
                "success": True,
                "access_token": access_token,
                "token_type": "bearer",
                "expires_in": self.jwt_expiry,
                "user": session_data,
            }
        except Exception as e:
            logger.error(f"[LOGIN] Login error: {type(e).__name__}: {e}")
            session.rollback()
            return {"error": str(e)}
        finally:
            session.close()

    def logout(self, token: str, user_id: int = None, ip_address: str = None) -> dict:
        """Revoke an access token for the rest of its lifetime"""
        payload = self.verify_token(token)
        ttl = self.jwt_expiry
        if payload and payload.get("exp"):
            ttl = max(1, int(payload["exp"] - datetime.utcnow().timestamp()))
        cache_manager.blacklist_token(token, ttl=ttl)
        if user_id is not None:
            cache_manager.invalidate_user_cache(user_id)
        self.log_audit_event(user_id, "logout", {}, ip_address=ip_address)
        logger.info(f"[LOGOUT] User logged out: {user_id}")
        return {"success": True, "message": "Logged out"}

    # ==================== TOKENS ====================

    def verify_token(self, token: str) -> Optional[dict]:
        """Verify JWT token and return payload"""
        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=["HS256"])
            logger.debug(f"[TOKEN_VERIFY] Token verified successfully for user: {payload.get('sub')}")
            return payload
        except jwt.ExpiredSignatureError:
            logger.warning("[TOKEN_VERIFY] Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"[TOKEN_VERIFY] Invalid token: {e}")
            return None

    def get_current_user(self, token: Optional[str]) -> Optional[AuthUser]:
        """Session user carried by a token, or None"""
        if not token:
            return None
        if cache_manager.is_token_blacklisted(token):
            logger.warning("[TOKEN_VERIFY] Token is revoked")
            return None
        payload = self.verify_token(token)
        if not payload:
            return None
        return AuthUser.from_session(payload.get("session"))

    # ==================== RBAC ====================

    def list_permissions(self) -> list:
        session = get_db_session()
        try:
            return [p.to_dict() for p in session.query(Permission).order_by(Permission.permission_id).all()]
        finally:
            session.close()

    def list_role_templates(self) -> list:
        return [
            {"name": name, **template}
            for name, template in sorted(ROLE_TEMPLATES.items(), key=lambda t: t[1]["template_id"])
        ]

    def list_roles(self, tenant_id: int = None) -> list:
        """Roles of a tenant (all roles, system ones included, when tenant_id is None)"""
        session = get_db_session()
        try:
            query = session.query(Role)
            if tenant_id is not None:
                query = query.filter(Role.tenant_id == tenant_id)
            return [r.to_dict() for r in query.order_by(Role.role_id).all()]
        finally:
            session.close()

    def create_role(self, tenant_id: int, name: str, permissions: list, description: str = None,
                    template: str = None, admin_id: int = None) -> dict:
        """Create a tenant role from permission names"""
        session = get_db_session()
        try:
            unknown = [p for p in permissions if p not in PERMISSIONS]
            if unknown:
                logger.warning(f"[ROLE] Unknown permissions: {unknown}")
                return {"error": f"Unknown permissions: {', '.join(unknown)}"}

            if session.query(Role).filter_by(tenant_id=tenant_id, name=name).first():
                logger.warning(f"[ROLE] Role already exists: {name} (tenant {tenant_id})")
                return {"error": f"Role '{name}' already exists"}

            role = Role(
                tenant_id=tenant_id,
                name=name,
                description=description,
                template=template,
                permissions=session.query(Permission).filter(Permission.name.in_(permissions)).all(),
            )
            session.add(role)
            session.commit()

            self.log_audit_event(admin_id, "role_created",
                                 {"role": name, "permissions": sorted(permissions), "template": template},
                                 tenant_id=tenant_id)
            logger.info(f"[ROLE] Created role {name} for tenant {tenant_id}")
            return {"success": True, "role": role.to_dict()}
        except Exception as e:
            logger.error(f"[ROLE] Error creating role: {type(e).__name__}: {e}")
            session.rollback()
            return {"error": str(e)}
        finally:
            session.close()

    def create_role_from_template(self, tenant_id: int, template_name: str, name: str = None,
                                  admin_id: int = None) -> dict:
        if not validate_template(template_name):
            logger.warning(f"[ROLE] Invalid template: {template_name}")
            return {"error": f"Template '{template_name}' not found"}
        template = ROLE_TEMPLATES[template_name.lower()]
        return self.create_role(
            tenant_id=tenant_id,
            name=name or template["display_name"],
            permissions=get_template_permissions(template_name),
            description=template["description"],
            template=template_name.lower(),
            admin_id=admin_id,
        )

    def _find_role(self, session, role_name: str, tenant_id: int, include_system: bool = False):
        tenants = [tenant_id, 0] if include_system else [tenant_id]
        return session.query(Role).filter(
            Role.name == role_name, Role.tenant_id.in_(tenants)
        ).order_by(Role.tenant_id.desc()).first()

    def assign_role(self, user_id: int, role_name: str, admin_id: int = None,
                    include_system: bool = False) -> dict:
        """
        Assign role to user.

        Only roles of the user's own tenant are matched unless include_system
        is set, which also matches the platform (tenant 0) roles.
        """
        session = get_db_session()
        try:
            user = session.query(User).filter_by(user_id=user_id).first()
            if not user:
                logger.warning(f"[ROLE] User not found: {user_id}")
                return {"error": "User not found"}

            role = self._find_role(session, role_name, user.tenant_id, include_system=include_system)
            if not role:
                logger.warning(f"[ROLE] Role not found: {role_name}")
                return {"error": f"Role '{role_name}' not found"}

            if role not in user.roles:
                user.roles.append(role)
                session.commit()
                cache_manager.invalidate_user_cache(user_id)
                self.log_audit_event(admin_id, "role_assigned",
                                     {"user_id": user_id, "role": role_name}, tenant_id=user.tenant_id)

            return {"success": True, "message": f"Role {role_name} assigned"}
        except Exception as e:
            logger.error(f"[ROLE] Error assigning role: {type(e).__name__}: {e}")
            session.rollback()
            return {"error": str(e)}
        finally:
            session.close()

    def revoke_role(self, user_id: int, role_name: str, admin_id: int = None) -> dict:
        """Revoke role from user"""
        session = get_db_session()
        try:
            user = session.query(User).filter_by(user_id=user_id).first()
            if not user:
                logger.warning(f"[ROLE] User not found: {user_id}")
                return {"error": "User not found"}

            role = next((r for r in user.roles if r.name == role_name), None)
            if not role:
                logger.warning(f"[ROLE] Role not assigned: {role_name}")
                return {"error": f"Role '{role_name}' not found"}

            user.roles.remove(role)
            session.commit()
            cache_manager.invalidate_user_cache(user_id)
            self.log_audit_event(admin_id, "role_revoked",
                                 {"user_id": user_id, "role": role_name}, tenant_id=user.tenant_id)

            return {"success": True, "message": f"Role {role_name} revoked"}
        except Exception as e:
            logger.error(f"[ROLE] Error revoking role: {type(e).__name__}: {e}")
            session.rollback()
            return {"error": str(e)}
        finally:
            session.close()

    def list_tenants(self) -> list:
        """All tenants with their user counts"""
        session = get_db_session()
        try:
            counts = dict(
                session.query(User.tenant_id, func.count(User.user_id)).group_by(User.tenant_id).all()
            )
            return [
                {**t.to_dict(), "user_count": counts.get(t.tenant_id, 0)}
                for t in session.query(Tenant).order_by(Tenant.tenant_id).all()
            ]
        finally:
            session.close()

    def get_user_tenant(self, user_id: int) -> Optional[int]:
        session = get_db_session()
        try:
            user = session.query(User).filter_by(user_id=user_id).first()
            return user.tenant_id if user else None
        finally:
            session.close()

    # ==================== DELEGATIONS ====================

    def create_delegation(self, delegator_id: int, delegate_id: int, delegation_type: str,
                          start_date: datetime, end_date: datetime, permissions: list = None,
                          role_id: int = None, reason: str = None) -> dict:
        """Grant a time-boxed delegation"""
        if delegation_type not in ("permission", "role", "full_access"):
            return {"error": f"Invalid delegation type: {delegation_type}"}
        if end_date <= start_date:
            return {"error": "End date must be after start date"}
        if delegation_type == "permission" and not permissions:
            return {"error": "Permission delegation requires permissions"}
        if delegation_type == "role" and not role_id:
            return {"error": "Role delegation requires a role"}

        session = get_db_session()
        try:
            delegator = session.query(User).filter_by(user_id=delegator_id).first()
            delegate = session.query(User).filter_by(user_id=delegate_id).first()
            if not delegator or not delegate:
                return {"error": "User not found"}
            if delegator.tenant_id != delegate.tenant_id:
                return {"error": "Delegation across tenants is not allowed"}
            if delegator_id == delegate_id:
                return {"error": "Cannot delegate to yourself"}

            grantable = self._grantable_permissions(delegator)
            if delegation_type == "permission":
                missing = sorted(set(permissions) - grantable)
                if missing:
                    logger.warning(f"[DELEGATION] User {delegator_id} cannot delegate {missing}")
                    return {"error": f"Cannot delegate permissions you do not hold: {', '.join(missing)}"}
            elif delegation_type == "role":
                role = session.query(Role).filter_by(role_id=role_id).first()
                if not role or role.tenant_id != delegator.tenant_id:
                    return {"error": f"Role {role_id} not found"}
                missing = sorted({p.name for p in role.permissions} - grantable)
                if missing:
                    logger.warning(f"[DELEGATION] User {delegator_id} cannot delegate role {role.name}")
                    return {"error": f"Cannot delegate permissions you do not hold: {', '.join(missing)}"}

            delegation = Delegation(
                tenant_id=delegator.tenant_id,
                delegator_id=delegator_id,
                delegate_id=delegate_id,
                delegation_type=delegation_type,
                permissions=list(permissions or []),
                role_id=role_id,
                start_date=start_date,
                end_date=end_date,
                reason=reason,
            )
            session.add(delegation)
            session.commit()
            cache_manager.invalidate_user_cache(delegate_id)

            self.log_audit_event(delegator_id, "delegation_created",
                                 {"delegate_id": delegate_id, "type": delegation_type},
                                 tenant_id=delegator.tenant_id)
            return {"success": True, "delegation_id": delegation.delegation_id}
        except Exception as e:
            logger.error(f"[DELEGATION] Error creating delegation: {type(e).__name__}: {e}")
            session.rollback()
            return {"error": str(e)}
        finally:
            session.close()

    def list_delegations(self, tenant_id: int = None) -> list:
        """Delegations of a tenant, newest first (all tenants when tenant_id is None)"""
        session = get_db_session()
        try:
            query = session.query(Delegation)
            if tenant_id is not None:
                query = query.filter(Delegation.tenant_id == tenant_id)
            return [d.to_dict() for d in query.order_by(Delegation.delegation_id.desc()).all()]
        finally:
            session.close()

    def get_delegation_tenant(self, delegation_id: int) -> Optional[int]:
        session = get_db_session()
        try:
            delegation = session.query(Delegation).filter_by(delegation_id=delegation_id).first()
            return delegation.tenant_id if delegation else None
        finally:
            session.close()

    def revoke_delegation(self, delegation_id: int, admin_id: int = None) -> dict:
        """Revoke a delegation and drop the delegate's cached permissions"""
        session = get_db_session()
        try:
            delegation = session.query(Delegation).filter_by(delegation_id=delegation_id).first()
            if not delegation:
                return {"error": "Delegation not found"}
            if delegation.status == "revoked":
                return {"error": "Delegation is already revoked"}

            delegation.status = "revoked"
            session.commit()
            cache_manager.invalidate_user_cache(delegation.delegate_id)

            self.log_audit_event(admin_id, "delegation_revoked",
                                 {"delegation_id": delegation_id, "delegate_id": delegation.delegate_id},
                                 tenant_id=delegation.tenant_id)
            return {"success": True, "message": f"Delegation {delegation_id} revoked"}
        except Exception as e:
            logger.error(f"[DELEGATION] Error revoking delegation: {type(e).__name__}: {e}")
            session.rollback()
            return {"error": str(e)}
        finally:
            session.close()

    # ==================== AUDIT LOGGING ====================

    def log_audit_event(self, user_id: Optional[int], event_type: str, event_details: dict = None,
                        status: str = "success", ip_address: str = None, user_agent: str = None,
                        tenant_id: int = None):
        """Log security audit event"""
        session = get_db_session()
        try:
            audit_log = AuditLog(
                tenant_id=tenant_id,
                user_id=user_id,
                event_type=event_type,
                event_details=event_details or {},
                ip_address=ip_address,
                user_agent=user_agent,
                status=status
            )
            session.add(audit_log)
            session.commit()
            cache_manager.log_security_event(user_id, event_type, event_details)

            logger.info(f"[AUDIT] {event_type} for user {user_id} - {status}")
        except Exception as e:
            logger.error(f"[AUDIT] Error logging audit event: {type(e).__name__}: {e}")
            session.rollback()
        finally:
            session.close()

    def get_audit_logs(self, tenant_id: int = None, limit: int = 100) -> list:
        """Recent audit events, newest first (all tenants when tenant_id is None)"""
        session = get_db_session()
        try:
            query = session.query(AuditLog)
            if tenant_id is not None:
                query = query.filter(AuditLog.tenant_id == tenant_id)
            rows = query.order_by(AuditLog.created_at.desc(), AuditLog.audit_id.desc()).limit(limit).all()
            return [row.to_dict() for row in rows]
        finally:
            session.close()


# Global instance
auth_manager = AuthManager()
