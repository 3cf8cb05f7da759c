from auth.session import AuthUser, has_all_permissions, has_any_permission, has_permission

from conftest import make_user


def test_no_user_has_no_permissions():
    assert not has_permission(None, "view_animals")
    assert not has_any_permission(None, ["view_animals"])
    assert not has_all_permissions(None, [])


def test_plain_user_checks_permission_set():
    user = make_user(["view_animals", "create_general"], role_name="Helper")

    assert has_permission(user, "view_animals")
    assert not has_permission(user, "manage_users")
    assert has_any_permission(user, ["manage_users", "create_general"])
    assert not has_any_permission(user, ["manage_users", "manage_roles"])
    assert has_all_permissions(user, ["view_animals", "create_general"])
    assert not has_all_permissions(user, ["view_animals", "manage_users"])


def test_empty_permission_lists():
    user = make_user(["view_animals"], role_name="Helper")

    assert not has_any_permission(user, [])
    assert has_all_permissions(user, [])


def test_owner_and_super_admin_bypass():
    owner = make_user(is_owner=True)
    admin = make_user(is_super_admin=True)

    for user in (owner, admin):
        assert has_permission(user, "manage_subscriptions")
        assert has_any_permission(user, ["anything"])
        assert has_all_permissions(user, ["a", "b"])


def test_session_round_trip_keeps_roles():
    user = make_user(["view_animals", "edit_health", "view_animals"], role_name="Veterinarian", tenant_id=1)
    restored = AuthUser.from_session(user.to_session())

    assert restored.roles[0].name == "Veterinarian"
    assert restored.permissions == ["edit_health", "view_animals"]
    assert restored.tenant_id == 1


def test_malformed_session_is_rejected():
    assert AuthUser.from_session(None) is None
    assert AuthUser.from_session("not a dict") is None
    assert AuthUser.from_session({"email": "missing-id@example.com"}) is None
    assert AuthUser.from_session({"user_id": "abc", "email": "x@example.com"}) is None
