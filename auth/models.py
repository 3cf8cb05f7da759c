"""
SQLAlchemy models for tenants, users, roles and permissions.
Falls back to a local SQLite file when AUTH_DATABASE_URL is not set.
"""

from sqlalchemy import (
    ForeignKey, Table, create_engine, Column, String, Integer, Boolean, DateTime, Text, JSON, inspect, text
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
from sqlalchemy.pool import StaticPool
from datetime import datetime
import os
import bcrypt
import dotenv
from loguru import logger

from auth.permission_catalog import PERMISSIONS, ROLE_TEMPLATES, DEFAULT_ROLES

dotenv.load_dotenv()

Base = declarative_base()

# Global engine instance (singleton)
_engine = None
_SessionLocal = None


role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.role_id"), primary_key=True),
    Column("permission_id", Integer, ForeignKey("permissions.permission_id"), primary_key=True),
)


class Tenant(Base):
    """Organization owning farm data"""
    __tablename__ = "tenants"

    tenant_id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    status = Column(String(20), default="active")
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "tenant_id": self.tenant_id,
            "name": self.name,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class User(Base):
    """User accounts scoped to a tenant"""
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, default=0, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))

    # Flags
    is_owner = Column(Boolean, default=False)
    is_super_admin = Column(Boolean, default=False)

    # Status
    account_status = Column(String(20), default="active")  # active, suspended, pending
    created_at = Column(DateTime, default=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Roles (relationship)
    roles = relationship("Role", secondary="user_roles", back_populates="users")


class Permission(Base):
    """System-defined permission"""
    __tablename__ = "permissions"

    permission_id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    display_name = Column(String(255))
    description = Column(String(500))
    category = Column(String(50))
    action = Column(String(50))
    resource_type = Column(String(50))
    system_defined = Column(Boolean, default=True)

    def to_dict(self):
        return {
            "permission_id": self.permission_id,
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "category": self.category,
            "action": self.action,
            "resource_type": self.resource_type,
            "system_defined": self.system_defined,
        }


class Role(Base):
    """Named permission bundle owned by a tenant"""

    __tablename__ = "roles"

    role_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, default=0, index=True)
    template = Column(String(50), nullable=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500))
    created_at = Column(DateTime, default=datetime.utcnow)

    permissions = relationship("Permission", secondary=role_permissions)
    users = relationship("User", secondary="user_roles", back_populates="roles")

    def to_dict(self):
        return {
            "role_id": self.role_id,
            "tenant_id": self.tenant_id,
            "template": self.template,
            "name": self.name,
            "description": self.description,
            "permissions": sorted(p.name for p in self.permissions),
            "user_count": len(self.users),
        }


class UserRole(Base):
    """Association table for User-Role many-to-many relationship"""

    __tablename__ = "user_roles"

    user_id = Column(Integer, ForeignKey("users.user_id"), primary_key=True)
    role_id = Column(Integer, ForeignKey("roles.role_id"), primary_key=True)
    assigned_at = Column(DateTime, default=datetime.utcnow)


class Delegation(Base):
    """Time-boxed grant from one user to another"""

    __tablename__ = "delegations"

    delegation_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    delegator_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    delegate_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    delegation_type = Column(String(20), nullable=False)  # permission, role, full_access
    permissions = Column(JSON, default=list)  # permission names
    role_id = Column(Integer, ForeignKey("roles.role_id"), nullable=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    status = Column(String(20), default="active")  # active, revoked, expired
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def is_active(self, now: datetime = None) -> bool:
        now = now or datetime.utcnow()
        return self.status == "active" and self.start_date <= now <= self.end_date

    def to_dict(self):
        return {
            "delegation_id": self.delegation_id,
            "tenant_id": self.tenant_id,
            "delegator_id": self.delegator_id,
            "delegate_id": self.delegate_id,
            "delegation_type": self.delegation_type,
            "permissions": self.permissions or [],
            "role_id": self.role_id,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "status": self.status,
            "is_active": self.is_active(),
            "reason": self.reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class AuditLog(Base):
    """Security audit log for auth and administration events"""

    __tablename__ = "audit_logs"

    audit_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=True, index=True)
    event_type = Column(String(50), nullable=False)  # login, logout, role_assigned, role_created, ...
    event_details = Column(JSON)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    status = Column(String(20), default="success")  # success, failure
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "audit_id": self.audit_id,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "event_type": self.event_type,
            "event_details": self.event_details or {},
            "ip_address": self.ip_address,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def get_engine():
    """Get SQLAlchemy engine"""
    global _engine

    if _engine is not None:
        return _engine

    url = os.getenv("AUTH_DATABASE_URL", "sqlite:///./farmdesk_auth.db")
    echo = os.getenv("DB_ECHO", "false").lower() == "true"

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        _engine = create_engine(url, echo=echo, **kwargs)
    else:
        _engine = create_engine(url, echo=echo, pool_size=10, max_overflow=20)

    logger.info(f"Auth database engine created: {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def get_db_session():
    """Get database session"""
    global _SessionLocal

    if _SessionLocal is None:
        engine = get_engine()
        _SessionLocal = sessionmaker(bind=engine)

    return _SessionLocal()


def health_check() -> bool:
    """Check the auth database answers a trivial query"""
    session = get_db_session()
    try:
        session.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Auth database health check failed: {e}")
        return False
    finally:
        session.close()


def hash_password(password: str, rounds: int = None) -> str:
    """bcrypt hash (passwords truncated to bcrypt's 72-byte limit)"""
    rounds = rounds or int(os.getenv("BCRYPT_ROUNDS", "12"))
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def init_database():
    """
    Initialize database schema safely (IDEMPOTENT).
    Creates tables in correct dependency order.
    """
    try:
        engine = get_engine()
        inspector = inspect(engine)
        existing_tables = set(inspector.get_table_names())

        # Define table creation order (dependencies first)
        table_creation_order = [
            "tenants",
            "permissions",
            "roles",
            "role_permissions",   # Depends on roles, permissions
            "users",
            "user_roles",         # Depends on users, roles
            "delegations",        # Depends on users, roles
            "audit_logs",         # Depends on users (optional)
        ]

        for table_name in table_creation_order:
            table = Base.metadata.tables[table_name]
            if table_name not in existing_tables:
                logger.debug(f"Creating table: {table_name}")
                table.create(engine, checkfirst=True)
                existing_tables.add(table_name)

        _create_permissions()
        _create_default_roles()

        if os.getenv("SEED_DEMO_DATA", "true").lower() == "true":
            _create_demo_users()

        logger.info("Auth database initialization completed")

    except Exception as e:
        logger.error(f"Auth database initialization failed: {type(e).__name__}: {e}")
        raise


def _create_permissions():
    """Sync the permission table with the catalog"""
    session = get_db_session()
    try:
        existing = {p.name for p in session.query(Permission).all()}
        created = []
        for name, data in PERMISSIONS.items():
            if name not in existing:
                session.add(Permission(name=name, system_defined=True, **data))
                created.append(name)
        if created:
            session.commit()
            logger.info(f"Created {len(created)} permissions")
    except Exception as e:
        logger.error(f"Error creating permissions: {e}")
        session.rollback()
        raise
    finally:
        session.close()


def _create_default_roles():
    """Create default tenants and roles if they don't exist"""
    session = get_db_session()
    try:
        if session.query(Tenant).count() == 0:
            session.add_all([
                Tenant(tenant_id=0, name="System"),
                Tenant(tenant_id=1, name="ABC Livestock Co."),
                Tenant(tenant_id=2, name="Green Valley Farms"),
                Tenant(tenant_id=3, name="Mountain View Ranch"),
                Tenant(tenant_id=4, name="Sunset Dairy Farm"),
            ])

        existing_roles = {(r.tenant_id, r.name) for r in session.query(Role).all()}
        by_name = {p.name: p for p in session.query(Permission).all()}

        created = []
        for role_data in DEFAULT_ROLES:
            key = (role_data["tenant_id"], role_data["name"])
            if key in existing_roles:
                continue
            role = Role(
                tenant_id=role_data["tenant_id"],
                template=role_data["template"],
                name=role_data["name"],
                description=role_data["description"],
                permissions=[by_name[p] for p in role_data["permissions"]],
            )
            session.add(role)
            created.append(role_data["name"])

        session.commit()
        if created:
            logger.info(f"Created default roles: {created}")

    except Exception as e:
        logger.error(f"Error managing default roles: {e}")
        session.rollback()
        raise
    finally:
        session.close()


DEMO_USERS = [
    {"user_id": 1, "email": "owner@demo.com", "first_name": "John", "last_name": "Doe",
     "tenant_id": 1, "is_owner": True, "roles": []},
    {"user_id": 2, "email": "vet@demo.com", "first_name": "Dr. Sarah", "last_name": "Smith",
     "tenant_id": 1, "roles": ["Veterinarian"]},
    {"user_id": 3, "email": "worker@demo.com", "first_name": "Mike", "last_name": "Johnson",
     "tenant_id": 1, "roles": ["Helper"]},
    {"user_id": 4, "email": "superadmin@demo.com", "first_name": "Admin", "last_name": "System",
     "tenant_id": 0, "is_super_admin": True, "roles": ["Super Admin"]},
]


def _create_demo_users():
    """Create demo accounts (all share DEMO_PASSWORD)"""
    session = get_db_session()
    try:
        if session.query(User).count() > 0:
            return

        password_hash = hash_password(os.getenv("DEMO_PASSWORD", "demo123"))
        for data in DEMO_USERS:
            data = dict(data)
            role_names = data.pop("roles")
            user = User(password_hash=password_hash, **data)
            user.roles = session.query(Role).filter(Role.name.in_(role_names)).all() if role_names else []
            session.add(user)

        session.commit()
        logger.info(f"Created {len(DEMO_USERS)} demo users")
    except Exception as e:
        logger.error(f"Error creating demo users: {e}")
        session.rollback()
        raise
    finally:
        session.close()
