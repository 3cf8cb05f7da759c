from auth.route_permissions import can_access_path, get_required_permissions, is_public_path

from conftest import make_user


def test_exact_match():
    assert get_required_permissions("/dashboard/animals") == ["view_animals"]
    assert get_required_permissions("/dashboard/admin/tenants") == ["super_admin"]
    assert get_required_permissions("/dashboard") == []


def test_longest_prefix_on_segment_boundary():
    assert get_required_permissions("/dashboard/roles/edit/7") == ["manage_roles"]
    assert get_required_permissions("/dashboard/helper/pregnancy/12") == ["create_breeding"]
    assert get_required_permissions("/dashboard/users/invite/") == ["manage_users"]
    # "/dashboard/sales" must not leak onto an unrelated sibling
    assert get_required_permissions("/dashboard/salesforce") == []


def test_query_string_and_trailing_slash_ignored():
    assert get_required_permissions("/dashboard/audit-logs/?page=2") == ["view_audit_logs"]


def test_public_paths():
    assert is_public_path("/login")
    assert is_public_path("/")
    assert not is_public_path("/dashboard")


def test_can_access_path():
    vet = make_user(["view_animals", "edit_health"], role_name="Veterinarian")

    assert not can_access_path(None, "/login")
    assert can_access_path(vet, "/login")
    assert can_access_path(vet, "/dashboard")
    assert can_access_path(vet, "/dashboard/vet/medications")
    assert not can_access_path(vet, "/dashboard/roles")
    assert can_access_path(make_user(is_owner=True), "/dashboard/roles")
