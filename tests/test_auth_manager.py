from datetime import datetime, timedelta

import pytest

from auth.auth_manager import auth_manager
from auth.cache_manager import cache_manager
from auth.permission_catalog import get_template_permissions

from conftest import DEMO_PASSWORD

# the client fixture runs app startup, which creates and seeds the auth tables
pytestmark = pytest.mark.usefixtures("client")


def test_login_issues_verifiable_token():
    result = auth_manager.login("owner@demo.com", DEMO_PASSWORD)

    assert result["success"] is True
    assert result["token_type"] == "bearer"
    assert result["user"]["is_owner"] is True

    payload = auth_manager.verify_token(result["access_token"])
    assert payload["sub"] == "1"
    assert payload["tenant_id"] == 1
    assert payload["session"]["email"] == "owner@demo.com"


def test_login_rejects_bad_credentials():
    assert auth_manager.login("owner@demo.com", "wrong")["error"] == "Invalid email or password"
    assert auth_manager.login("nobody@demo.com", DEMO_PASSWORD)["error"] == "Invalid email or password"


def test_login_throttled_after_repeated_failures():
    for _ in range(auth_manager.max_failed_logins):
        auth_manager.login("vet@demo.com", "wrong")

    result = auth_manager.login("vet@demo.com", DEMO_PASSWORD)
    assert result["error"].startswith("Too many failed login attempts")


def test_verify_token_rejects_garbage():
    assert auth_manager.verify_token("not-a-jwt") is None


def test_revoked_token_has_no_user():
    token = auth_manager.login("worker@demo.com", DEMO_PASSWORD)["access_token"]
    assert auth_manager.get_current_user(token).user_id == 3

    cache_manager.blacklist_token(token, ttl=60)
    assert auth_manager.get_current_user(token) is None
    assert auth_manager.get_current_user(None) is None


def test_load_auth_user_combines_roles():
    vet = auth_manager.load_auth_user(2)

    assert [r.name for r in vet.roles] == ["Veterinarian"]
    assert "edit_health" in vet.permissions
    assert "manage_users" not in vet.permissions
    assert auth_manager.load_auth_user(999) is None


def test_list_roles_scoped_to_tenant():
    names = {r["name"] for r in auth_manager.list_roles(1)}
    assert {"Veterinarian", "Helper"} <= names
    assert "Super Admin" not in names

    assert "Helper" not in {r["name"] for r in auth_manager.list_roles(4)}
    assert "Super Admin" in {r["name"] for r in auth_manager.list_roles()}


def test_system_roles_not_assignable_to_tenant_users_by_default():
    result = auth_manager.assign_role(3, "Super Admin", admin_id=1)
    assert result["error"] == "Role 'Super Admin' not found"
    assert "super_admin" not in auth_manager.load_auth_user(3).permissions


def test_create_role_validation():
    assert "Unknown permissions" in auth_manager.create_role(2, "Broken", ["fly_drones"])["error"]

    created = auth_manager.create_role(2, "Milker", ["view_animals", "create_general"], admin_id=1)
    assert created["role"]["permissions"] == ["create_general", "view_animals"]
    assert created["role"]["tenant_id"] == 2

    duplicate = auth_manager.create_role(2, "Milker", ["view_animals"])
    assert duplicate["error"] == "Role 'Milker' already exists"


def test_create_role_from_template():
    result = auth_manager.create_role_from_template(3, "accountant", name="Books")

    assert result["role"]["template"] == "accountant"
    assert result["role"]["permissions"] == sorted(get_template_permissions("accountant"))
    assert "error" in auth_manager.create_role_from_template(3, "astronaut")


def test_assign_and_revoke_role_refresh_cached_user():
    # warm the cache before changing roles
    assert "edit_health" not in auth_manager.load_auth_user(3).permissions

    assert auth_manager.assign_role(3, "Veterinarian", admin_id=1)["success"] is True
    assert "edit_health" in auth_manager.load_auth_user(3).permissions

    assert auth_manager.revoke_role(3, "Veterinarian", admin_id=1)["success"] is True
    assert "edit_health" not in auth_manager.load_auth_user(3).permissions

    assert "error" in auth_manager.revoke_role(3, "Veterinarian")
    assert "error" in auth_manager.assign_role(3, "Astronaut")
    assert auth_manager.assign_role(999, "Helper")["error"] == "User not found"


def test_delegation_validation():
    now = datetime.utcnow()
    later = now + timedelta(hours=1)

    assert "Invalid delegation type" in auth_manager.create_delegation(1, 2, "forever", now, later)["error"]
    assert auth_manager.create_delegation(1, 2, "permission", later, now, ["view_audit_logs"])["error"] == \
        "End date must be after start date"
    assert "requires permissions" in auth_manager.create_delegation(1, 2, "permission", now, later)["error"]
    assert "requires a role" in auth_manager.create_delegation(1, 2, "role", now, later)["error"]
    assert "across tenants" in auth_manager.create_delegation(1, 4, "full_access", now, later)["error"]


def test_active_delegation_grants_permissions():
    start = datetime.utcnow() - timedelta(minutes=5)
    end = start + timedelta(hours=1)

    assert "view_audit_logs" not in auth_manager.load_auth_user(2).permissions
    result = auth_manager.create_delegation(1, 2, "permission", start, end, ["view_audit_logs"], reason="cover")

    assert result["success"] is True
    assert "view_audit_logs" in auth_manager.load_auth_user(2).permissions


def test_delegation_limited_to_delegator_permissions():
    now = datetime.utcnow()
    later = now + timedelta(hours=1)
    roles = {r["name"]: r["role_id"] for r in auth_manager.list_roles()}

    result = auth_manager.create_delegation(3, 2, "permission", now, later, ["manage_roles", "super_admin"])
    assert result["error"] == "Cannot delegate permissions you do not hold: manage_roles, super_admin"
    assert "manage_roles" not in auth_manager.load_auth_user(2).permissions

    # the worker's Helper role has no edit_health
    assert "do not hold" in auth_manager.create_delegation(3, 1, "role", now, later, role_id=roles["Veterinarian"])["error"]
    # owners bypass checks but cannot hand on platform administration
    assert "super_admin" in auth_manager.create_delegation(1, 2, "permission", now, later, ["super_admin"])["error"]
    assert "not found" in auth_manager.create_delegation(1, 2, "role", now, later, role_id=roles["Super Admin"])["error"]
    assert auth_manager.create_delegation(2, 2, "full_access", now, later)["error"] == "Cannot delegate to yourself"


def test_full_access_delegation_excludes_super_admin_and_revokes():
    start = datetime.utcnow() - timedelta(minutes=5)
    created = auth_manager.create_delegation(1, 3, "full_access", start, start + timedelta(hours=1))
    assert created["success"] is True

    worker = auth_manager.load_auth_user(3)
    assert "manage_roles" in worker.permissions
    assert "super_admin" not in worker.permissions

    listed = {d["delegation_id"]: d for d in auth_manager.list_delegations(1)}
    assert listed[created["delegation_id"]]["is_active"] is True
    assert auth_manager.list_delegations(4) == []

    assert auth_manager.revoke_delegation(created["delegation_id"], admin_id=1)["success"] is True
    assert "manage_roles" not in auth_manager.load_auth_user(3).permissions
    assert auth_manager.revoke_delegation(created["delegation_id"])["error"] == "Delegation is already revoked"
    assert auth_manager.revoke_delegation(9999)["error"] == "Delegation not found"


def test_audit_log_newest_first():
    auth_manager.log_audit_event(1, "herd_exported", {"format": "csv"}, tenant_id=1)

    logs = auth_manager.get_audit_logs(1, limit=5)
    assert logs[0]["event_type"] == "herd_exported"
    assert logs[0]["event_details"] == {"format": "csv"}
    assert all(log["tenant_id"] == 1 for log in logs)
    assert cache_manager.get_security_events(1, limit=1)[0]["event_type"] == "herd_exported"
