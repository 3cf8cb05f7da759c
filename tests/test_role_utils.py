from auth.role_utils import (
    ACCOUNTANT, FARM_MANAGER, FIELD_WORKER, OWNER, ROLE_FEATURES, SUPER_ADMIN, VET_TECH, VETERINARIAN,
    can_access_feature, get_accessible_nav_items, get_feature_flags, get_role_display_name,
    get_role_homepage, get_user_primary_role,
)

from conftest import make_user


def test_primary_role_flags_take_precedence():
    assert get_user_primary_role(None) is None
    assert get_user_primary_role(make_user(is_super_admin=True, is_owner=True)) == SUPER_ADMIN
    assert get_user_primary_role(make_user(is_owner=True)) == OWNER
    assert get_user_primary_role(make_user()) == FIELD_WORKER


def test_primary_role_from_role_name_and_permissions():
    assert get_user_primary_role(make_user(["edit_health"], role_name="Veterinarian")) == VETERINARIAN
    assert get_user_primary_role(make_user(["view_animals"], role_name="Vet Assistant")) == VET_TECH
    assert get_user_primary_role(make_user(["create_animals"], role_name="Helper")) == FARM_MANAGER
    assert get_user_primary_role(make_user(["view_animals"], role_name="Farm Manager")) == FIELD_WORKER
    assert get_user_primary_role(make_user(["view_financial_reports"], role_name="Accountant")) == ACCOUNTANT
    assert get_user_primary_role(make_user(["view_animals"], role_name="Milker")) == FIELD_WORKER


def test_feature_gates():
    vet = make_user(["view_animals", "edit_health"], role_name="Veterinarian")

    assert can_access_feature(vet, "can_view_animals")
    assert can_access_feature(vet, "can_record_treatment")
    assert not can_access_feature(vet, "can_view_financials")
    assert not can_access_feature(vet, "can_delete_animals")
    assert not can_access_feature(vet, "no_such_feature")
    assert not can_access_feature(None, "can_view_animals")


def test_owner_only_and_super_admin_only_gates():
    owner = make_user(is_owner=True)
    admin = make_user(is_super_admin=True)

    assert can_access_feature(owner, "can_delete_animals")
    assert not can_access_feature(admin, "can_delete_animals")
    assert can_access_feature(admin, "can_view_all_tenants")
    assert not can_access_feature(owner, "can_view_all_tenants")
    assert can_access_feature(owner, "can_manage_farms")
    assert can_access_feature(admin, "can_manage_farms")


def test_feature_flags_cover_every_gate():
    flags = get_feature_flags(make_user(["create_general"], role_name="Helper"))

    assert set(flags) == set(ROLE_FEATURES)
    assert flags["can_log_production"] is True
    assert flags["can_assign_tasks"] is False


def test_display_names_and_homepages():
    assert get_role_display_name(FARM_MANAGER) == "Farm Manager"
    assert get_role_display_name("unknown") == "User"
    assert get_role_homepage(make_user(is_super_admin=True)) == "/dashboard/admin/overview"
    assert get_role_homepage(None) == "/dashboard"


def test_navigation_follows_primary_role():
    worker_paths = [item["path"] for item in get_accessible_nav_items(make_user())]
    admin_paths = [item["path"] for item in get_accessible_nav_items(make_user(is_super_admin=True))]

    assert "/dashboard/schedules" in worker_paths
    assert "/dashboard/users" not in worker_paths
    assert "/dashboard/admin/overview" in admin_paths
    assert "/dashboard/animals" not in admin_paths
    assert get_accessible_nav_items(None) == []
    assert set(get_accessible_nav_items(make_user())[0]) == {"path", "label", "icon"}
