from datetime import datetime, timedelta

import pytest

OWNER = "owner@demo.com"
VET = "vet@demo.com"
WORKER = "worker@demo.com"
SUPER_ADMIN = "superadmin@demo.com"


@pytest.fixture
def owner(auth_headers):
    return auth_headers(OWNER)


@pytest.fixture
def vet(auth_headers):
    return auth_headers(VET)


@pytest.fixture
def worker(auth_headers):
    return auth_headers(WORKER)


# ==================== SYSTEM ====================

def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["components"] == {"auth_database": True, "farm_database": True}


def test_base_lists_routes(client):
    paths = {route["path"] for route in client.get("/api/base/").json()["routes"]}
    assert "/api/auth/login" in paths
    assert "/api/farm/animals/{animal_id}/lineage" in paths


def test_security_headers(client):
    response = client.get("/")
    assert response.headers["X-Content-Type-Options"] == "nosniff"


# ==================== AUTH ====================

def test_login_failure(client):
    response = client.post("/api/auth/login", json={"email": OWNER, "password": "wrong"})
    assert response.status_code == 401


def test_missing_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/farm/animals").status_code == 401


def test_me(client, owner):
    profile = client.get("/api/auth/me", headers=owner).json()

    assert profile["user_id"] == 1
    assert profile["tenant_id"] == 1
    assert profile["primary_role"] == "owner"
    assert profile["role_display_name"] == "Farm Owner"
    assert profile["full_name"] == "John Doe"


def test_navigation_and_features(client, vet, worker):
    navigation = client.get("/api/auth/me/navigation", headers=worker).json()
    assert "/dashboard/schedules" in [item["path"] for item in navigation["items"]]

    features = client.get("/api/auth/me/features", headers=vet).json()["features"]
    assert features["can_edit_health"] is True
    assert features["can_view_financials"] is False


def test_access_check(client, vet):
    result = client.get("/api/auth/access", params={"path": "/dashboard/roles/edit/3"}, headers=vet).json()

    assert result["required_permissions"] == ["manage_roles"]
    assert result["allowed"] is False
    assert client.get("/api/auth/access", params={"path": "/dashboard/animals"}, headers=vet).json()["allowed"]


def test_logout_revokes_token(client, login):
    headers = {"Authorization": f"Bearer {login(WORKER)['access_token']}"}

    assert client.post("/api/auth/logout", headers=headers).json()["success"] is True
    response = client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Token has been revoked"


def test_role_administration_requires_permission(client, vet):
    assert client.get("/api/auth/roles", headers=vet).status_code == 403
    response = client.post("/api/auth/roles", json={"name": "Sneaky", "permissions": ["manage_users"]}, headers=vet)
    assert response.status_code == 403


def test_owner_creates_role(client, owner):
    response = client.post(
        "/api/auth/roles", json={"name": "Shearer", "permissions": ["view_animals", "create_general"]},
        headers=owner
    )
    assert response.status_code == 201
    assert response.json()["tenant_id"] == 1

    assert client.post("/api/auth/roles", json={"name": "Empty"}, headers=owner).status_code == 400
    assert client.post("/api/auth/roles", json={"name": "Bad", "permissions": ["fly"]}, headers=owner).status_code == 422
    other_tenant = client.post(
        "/api/auth/roles", json={"name": "Elsewhere", "permissions": ["view_animals"], "tenant_id": 2},
        headers=owner
    )
    assert other_tenant.status_code == 403


def test_tenants_are_super_admin_only(client, owner, auth_headers):
    assert client.get("/api/auth/tenants", headers=owner).status_code == 403

    tenants = client.get("/api/auth/tenants", headers=auth_headers(SUPER_ADMIN)).json()["tenants"]
    counts = {t["tenant_id"]: t["user_count"] for t in tenants}
    assert counts[1] == 3
    assert counts[0] == 1


def test_audit_logs_record_logins(client, owner):
    logs = client.get("/api/auth/audit-logs", headers=owner).json()["logs"]

    assert "login" in {log["event_type"] for log in logs}
    assert all(log["tenant_id"] == 1 for log in logs)


def test_cross_tenant_role_assignment_rejected(client, owner):
    assert client.post("/api/auth/users/4/roles/Helper", headers=owner).status_code == 403
    assert client.post("/api/auth/users/999/roles/Helper", headers=owner).status_code == 404


def test_tenant_admin_cannot_grant_platform_roles(client, owner, worker, auth_headers):
    roles = {r["name"] for r in client.get("/api/auth/roles", headers=owner).json()["roles"]}
    assert "Super Admin" not in roles
    platform_roles = client.get("/api/auth/roles", headers=auth_headers(SUPER_ADMIN)).json()["roles"]
    assert "Super Admin" in {r["name"] for r in platform_roles}

    response = client.post("/api/auth/users/3/roles/Super%20Admin", headers=owner)
    assert response.status_code == 400

    access = client.get("/api/auth/access", params={"path": "/dashboard/admin/tenants"}, headers=worker).json()
    assert access["allowed"] is False
    assert "super_admin" not in client.get("/api/auth/me", headers=worker).json()["permissions"]


def test_delegation_endpoints(client, owner, vet, worker):
    start = datetime.utcnow() - timedelta(minutes=5)
    window = {"start_date": start.isoformat(), "end_date": (start + timedelta(hours=1)).isoformat()}
    payload = {"delegate_id": 2, "delegation_type": "permission", "permissions": ["create_feeding"],
               "reason": "harvest cover", **window}

    assert client.post("/api/auth/delegations", json=payload, headers=worker).status_code == 403
    assert client.post("/api/auth/delegations", json={**payload, "delegate_id": 4}, headers=owner).status_code == 403
    escalation = client.post("/api/auth/delegations", json={**payload, "permissions": ["super_admin"]}, headers=owner)
    assert escalation.status_code == 400

    created = client.post("/api/auth/delegations", json=payload, headers=owner)
    assert created.status_code == 201
    delegation_id = created.json()["delegation_id"]
    assert "create_feeding" in client.get("/api/auth/me", headers=vet).json()["permissions"]

    listed = client.get("/api/auth/delegations", headers=owner).json()["delegations"]
    assert delegation_id in {d["delegation_id"] for d in listed}
    assert all(d["tenant_id"] == 1 for d in listed)

    assert client.delete(f"/api/auth/delegations/{delegation_id}", headers=owner).status_code == 200
    assert "create_feeding" not in client.get("/api/auth/me", headers=vet).json()["permissions"]
    assert client.delete(f"/api/auth/delegations/{delegation_id}", headers=owner).status_code == 400
    assert client.delete("/api/auth/delegations/9999", headers=owner).status_code == 404


def test_security_events_for_current_user(client, owner):
    events = client.get("/api/auth/me/security-events", headers=owner).json()["events"]
    assert events[0]["event_type"] == "login"


# ==================== FARMS ====================

def test_farm_created_in_requested_tenant(client, owner, auth_headers):
    admin = auth_headers(SUPER_ADMIN)

    assert client.post("/api/farm/farms", json={"farm_name": "Hill Plot", "tenant_id": 2},
                       headers=owner).status_code == 403
    own = client.post("/api/farm/farms", json={"farm_name": "Hill Plot"}, headers=owner)
    assert own.status_code == 201
    assert own.json()["tenant_id"] == 1

    assert client.post("/api/farm/farms", json={"farm_name": "Orphan"}, headers=admin).status_code == 400
    placed = client.post("/api/farm/farms", json={"farm_name": "Delta Paddock", "tenant_id": 2}, headers=admin)
    assert placed.status_code == 201
    assert placed.json()["tenant_id"] == 2

    external = client.post(
        "/api/farm/external-farms",
        json={"farm_name": "River Stud", "phone": "0700000000", "tenant_id": 2},
        headers=admin,
    )
    assert external.json()["tenant_id"] == 2


# ==================== ANIMALS ====================

def test_animals_scoped_by_tenant(client, owner, auth_headers):
    ids = {a["animal_id"] for a in client.get("/api/farm/animals", headers=owner).json()}
    assert {1, 2, 3, 4, 5} <= ids
    assert 6 not in ids

    everyone = client.get("/api/farm/animals", headers=auth_headers(SUPER_ADMIN)).json()
    assert 6 in {a["animal_id"] for a in everyone}


def test_animal_detail(client, vet):
    bull = client.get("/api/farm/animals/4", headers=vet).json()
    assert bull["gender_label"] == "Bull"
    assert bull["can_breed"] is True

    assert client.get("/api/farm/animals/6", headers=vet).status_code == 404
    assert client.get("/api/farm/animals/404", headers=vet).status_code == 404


def test_vet_cannot_register_animals(client, vet):
    payload = {"farm_id": 1, "tag_number": "GT-100", "animal_type": "goat", "gender": "male"}
    assert client.post("/api/farm/animals", json=payload, headers=vet).status_code == 403


def test_animal_with_both_parent_kinds_rejected(client, owner):
    payload = {"farm_id": 1, "tag_number": "C-900", "animal_type": "cattle", "gender": "female",
               "mother_animal_id": 2, "external_mother_id": 1}
    assert client.post("/api/farm/animals", json=payload, headers=owner).status_code == 422


def test_update_cannot_mix_parent_kinds(client, owner):
    heifer = client.post(
        "/api/farm/animals",
        json={"farm_id": 1, "tag_number": "C-901", "animal_type": "cattle", "gender": "female",
              "external_mother_id": 2},
        headers=owner,
    ).json()
    url = f"/api/farm/animals/{heifer['animal_id']}"

    response = client.patch(url, json={"mother_animal_id": 2}, headers=owner)
    assert response.status_code == 400
    assert response.json()["detail"] == "Mother must be either internal or external, not both"

    switched = client.patch(url, json={"mother_animal_id": 2, "external_mother_id": None}, headers=owner)
    assert switched.status_code == 200
    assert switched.json()["mother_animal_id"] == 2
    assert switched.json()["external_mother_id"] is None


def test_castration_rules(client, owner):
    castration = {"castration_date": "2024-05-01", "castration_method": "banding"}

    response = client.post("/api/farm/animals/1/castration", json=castration, headers=owner)
    assert response.status_code == 400
    assert response.json()["detail"] == "Only male animals can be castrated"

    buck = client.post(
        "/api/farm/animals",
        json={"farm_id": 1, "tag_number": "GT-200", "animal_type": "goat", "breed": "Boer", "gender": "male"},
        headers=owner,
    ).json()
    steer = client.post(f"/api/farm/animals/{buck['animal_id']}/castration", json=castration, headers=owner)
    assert steer.status_code == 200
    assert steer.json()["is_castrated"] is True

    again = client.post(f"/api/farm/animals/{buck['animal_id']}/castration", json=castration, headers=owner)
    assert again.status_code == 400


def test_lineage(client, vet):
    pedigree = client.get("/api/farm/animals/5/lineage", headers=vet).json()

    assert pedigree["tree"]["mother"]["animal_id"] == 2
    assert pedigree["tree"]["father"]["animal_id"] == 4
    assert pedigree["inbreeding_coefficient"] == 0.0
    assert pedigree["generation_number"] == 2

    sire = client.get("/api/farm/animals/4/lineage", headers=vet).json()
    assert [a["animal_id"] for a in sire["offspring"]] == [5]


def test_mating_risk(client, owner):
    risk = client.get("/api/farm/animals/1/mating-risk/4", headers=owner).json()
    assert risk["risk_level"] == "low"
    assert "predicted_traits" in risk

    assert client.get("/api/farm/animals/1/mating-risk/2", headers=owner).status_code == 400


# ==================== BREEDING ====================

def test_breeding_rejects_male_dam(client, owner):
    payload = {"farm_id": 1, "animal_id": 4, "sire_source": "internal", "sire_id": 4,
               "breeding_date": "2024-06-01"}
    response = client.post("/api/farm/breeding", json=payload, headers=owner)

    assert response.status_code == 400
    assert "is not a female" in response.json()["detail"]


def test_breeding_rejects_cross_species_and_missing_sire(client, owner):
    goat_sire = {"farm_id": 1, "animal_id": 3, "sire_source": "internal", "sire_id": 4,
                 "breeding_date": "2024-06-01"}
    assert client.post("/api/farm/breeding", json=goat_sire, headers=owner).status_code == 400

    no_external = {"farm_id": 1, "animal_id": 1, "sire_source": "external", "breeding_date": "2024-06-01"}
    response = client.post("/api/farm/breeding", json=no_external, headers=owner)
    assert response.json()["detail"] == "External breeding requires external_animal_id"


def test_breeding_records_filtered_by_sire_source(client, vet):
    records = client.get("/api/farm/breeding", params={"sire_source": "external"}, headers=vet).json()

    assert {r["breeding_id"] for r in records} >= {3, 4}
    assert all(r["sire_source"] == "external" for r in records)


def test_hire_payment_overpayment_rejected(client, owner):
    response = client.post(
        "/api/farm/hire-agreements/2/payments",
        json={"amount": 999999, "payment_date": "2024-02-01"},
        headers=owner,
    )
    assert response.status_code == 400


def test_hire_fee_change_rederives_payment_status(client, owner):
    agreement = client.post(
        "/api/farm/hire-agreements",
        json={"farm_id": 1, "agreement_type": "hire_out", "external_farm_id": 2, "animal_id": 4,
              "start_date": "2024-07-01", "end_date": "2024-07-31", "hire_fee": 1000},
        headers=owner,
    ).json()
    url = f"/api/farm/hire-agreements/{agreement['agreement_id']}"
    paid = client.post(f"{url}/payments", json={"amount": 500, "payment_date": "2024-07-05"}, headers=owner)
    assert paid.json()["payment_status"] == "partial"

    below_paid = client.patch(url, json={"hire_fee": 200}, headers=owner)
    assert below_paid.status_code == 400

    settled = client.patch(url, json={"hire_fee": 500}, headers=owner).json()
    assert settled["hire_fee"] == 500
    assert settled["payment_status"] == "paid"

    reopened = client.patch(url, json={"hire_fee": 800}, headers=owner).json()
    assert reopened["payment_status"] == "partial"


# ==================== INVENTORY ====================

def test_stock_cannot_go_negative(client, owner):
    response = client.post("/api/farm/inventory/3/movements", json={"movement_type": "out", "quantity": 500},
                           headers=owner)

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Insufficient stock for Chicken Feed")


def test_stock_movement_updates_item(client, owner):
    before = client.get("/api/farm/inventory/2", headers=owner).json()["current_stock"]

    response = client.post("/api/farm/inventory/2/movements",
                           json={"movement_type": "in", "quantity": 10, "reason": "purchase"}, headers=owner)
    assert response.status_code == 201
    assert response.json()["item"]["current_stock"] == before + 10
    assert response.json()["movement"]["total_cost"] == 150000


def test_zero_quantity_movement_rejected(client, owner):
    response = client.post("/api/farm/inventory/1/movements", json={"movement_type": "in", "quantity": 0},
                           headers=owner)
    assert response.status_code == 422


# ==================== EXPENSES & SCHEDULES ====================

def test_expenses_merge_hire_payments(client, worker):
    result = client.get("/api/farm/expenses", headers=worker).json()

    assert result["totals"] == {"total": 425000, "manual": 150000, "medical": 75000, "animal_hire": 200000}
    hire = client.get("/api/farm/expenses", params={"source": "animal_hire"}, headers=worker).json()["expenses"]
    assert [e["expense_id"] for e in hire] == [10001]
    assert hire[0]["description"] == "Animal hire: Bull-123 from ABC Cattle Farm"


def test_vet_cannot_view_expenses(client, vet):
    assert client.get("/api/farm/expenses", headers=vet).status_code == 403


def test_schedules_limited_to_own_without_assign_permission(client, vet, worker):
    mine = client.get("/api/farm/schedules", headers=vet).json()
    assert [s["schedule_id"] for s in mine] == [3]

    forced = client.get("/api/farm/schedules", params={"worker_user_id": 3}, headers=vet).json()
    assert [s["schedule_id"] for s in forced] == [3]

    assigner = client.get("/api/farm/schedules", params={"worker_user_id": 2}, headers=worker).json()
    assert [s["schedule_id"] for s in assigner] == [3]


def test_schedule_end_must_follow_start(client, worker):
    payload = {"farm_id": 1, "worker_user_id": 3, "schedule_date": "2024-02-01",
               "start_time": "14:00", "end_time": "09:00", "task_type": "Milking"}
    response = client.post("/api/farm/schedules", json=payload, headers=worker)

    assert response.status_code == 400
    assert response.json()["detail"] == "end_time must be after start_time"


# ==================== ANALYTICS ====================

def test_breeding_analytics(client, worker):
    result = client.get("/api/farm/analytics/breeding", headers=worker).json()

    assert result["internal"]["total"] == 2
    assert result["internal"]["successful"] == 1
    assert result["external"]["complications"] == 1
    assert result["external"]["expenses"] == 200000


def test_birth_rates(client, worker):
    result = client.get("/api/farm/analytics/birth-rates", params={"animal_type": "cattle"}, headers=worker).json()

    assert result["monthly"] == {"Aug 2024": 1}
    assert result["by_season"] == {"dry": 0, "wet": 1}


def test_herd_and_supply_reports(client, worker):
    herd = client.get("/api/farm/analytics/herd", headers=worker).json()
    assert herd["animals_by_type"]["cattle"] >= 4

    supplies = client.get("/api/farm/analytics/supplies", headers=worker).json()
    assert supplies["low_stock"] == 1
    assert "expiring_items" in supplies


def test_vet_has_no_analytics(client, vet):
    assert client.get("/api/farm/analytics/breeding", headers=vet).status_code == 403


def test_breed_catalog(client, vet):
    names = [b["name"] for b in client.get("/api/farm/breeds", params={"animal_type": "goat"}, headers=vet).json()]
    assert "Boer" in names
