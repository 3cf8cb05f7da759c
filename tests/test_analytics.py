from datetime import date

import pytest

from livestock import analytics

TODAY = date(2024, 6, 15)


@pytest.fixture
def animals():
    return [
        {"animal_id": 1, "animal_type": "cattle", "gender": "female", "status": "active", "birth_date": "2020-03-15"},
        {"animal_id": 2, "animal_type": "cattle", "gender": "female", "status": "active", "birth_date": "2019-08-20"},
        {"animal_id": 3, "animal_type": "goat", "gender": "female", "status": "active", "birth_date": "2024-01-10"},
        {"animal_id": 4, "animal_type": "cattle", "gender": "male", "status": "sold", "birth_date": "2012-06-01"},
        {"animal_id": 5, "animal_type": "chicken", "gender": "female", "status": "deceased", "birth_date": None},
    ]


@pytest.fixture
def records():
    return [
        {"breeding_id": 1, "animal_id": 1, "sire_source": "internal", "animal_hire_agreement_id": 2,
         "pregnancy_status": "confirmed", "expected_due_date": "2024-09-15"},
        {"breeding_id": 2, "animal_id": 2, "sire_source": "internal", "birth_outcome": "successful",
         "pregnancy_status": "completed", "offspring_count": 2, "actual_birth_date": "2023-12-05"},
        {"breeding_id": 3, "animal_id": 1, "sire_source": "external", "external_animal_hire_agreement_id": 1,
         "pregnancy_status": "suspected", "expected_due_date": "2024-11-20"},
        {"breeding_id": 4, "animal_id": 2, "sire_source": "external", "external_animal_hire_agreement_id": 3,
         "birth_outcome": "complications", "pregnancy_status": "completed", "offspring_count": 1,
         "complications": "Difficult delivery", "actual_birth_date": "2024-05-20"},
        {"breeding_id": 5, "animal_id": 3, "sire_source": "internal", "birth_outcome": "successful",
         "actual_birth_date": "2024-05-02"},
    ]


@pytest.fixture
def agreements():
    return [
        {"agreement_id": 1, "agreement_type": "hire_in", "hire_fee": 200000, "payment_status": "paid",
         "paid_amount": 200000, "payment_date": "2024-01-15", "start_date": "2024-01-15",
         "external_farm_id": 1, "external_animal_id": 1, "payment_reference": "TXN-1"},
        {"agreement_id": 2, "agreement_type": "hire_out", "hire_fee": 150000, "payment_status": "paid",
         "paid_amount": 150000, "start_date": "2024-01-20"},
        {"agreement_id": 3, "agreement_type": "hire_in", "hire_fee": 90000, "payment_status": "partial",
         "paid_amount": 30000, "payment_date": None, "start_date": "2024-03-01",
         "external_farm_id": 9, "external_animal_id": None},
        {"agreement_id": 4, "agreement_type": "hire_in", "hire_fee": 50000, "payment_status": "pending",
         "paid_amount": 0, "start_date": "2024-04-01"},
    ]


def test_season():
    assert analytics.get_season("2024-01-10") == "dry"
    assert analytics.get_season(date(2024, 4, 30)) == "dry"
    assert analytics.get_season("2024-05-01") == "wet"
    assert analytics.get_season("2024-11-01") == "dry"


def test_success_predicate():
    assert analytics.is_successful({"birth_outcome": "successful"})
    assert analytics.is_successful({"pregnancy_status": "completed"})
    assert not analytics.is_successful({"pregnancy_status": "completed", "birth_outcome": "stillborn"})
    assert analytics.is_successful({"status": "successful"})
    assert not analytics.is_successful({"pregnancy_status": "confirmed"})


def test_sire_source_analytics(records, agreements):
    result = analytics.sire_source_analytics(records, agreements)

    internal = result["internal"]
    assert internal["total"] == 3
    assert internal["successful"] == 2
    assert internal["avg_offspring"] == pytest.approx(1.5)
    assert internal["revenue"] == 150000

    external = result["external"]
    assert external["total"] == 2
    assert external["successful"] == 0
    assert external["complications"] == 1
    assert external["complications_rate"] == pytest.approx(50.0)
    # agreement 1 is paid in full, agreement 3 counts what has been paid
    assert external["expenses"] == 230000
    assert external["cost_per_birth"] == 230000

    assert result["financial"]["net_profit"] == 150000 - 230000


def test_birth_rate_analytics(records, animals):
    result = analytics.birth_rate_analytics(records, animals)

    assert result["total_births"] == 3
    assert result["monthly"] == {"Dec 2023": 2, "May 2024": 1}
    assert result["by_animal_type"] == {"cattle": 2, "goat": 1}
    assert result["by_season"] == {"dry": 2, "wet": 1}
    assert result["top_months"][0] == {"month": "Dec 2023", "births": 2}
    assert result["average_per_month"] == 1.5
    assert result["available_years"] == [2024, 2023]


def test_birth_rate_filters(records, animals):
    assert analytics.birth_rate_analytics(records, animals, animal_type="goat")["total_births"] == 1
    assert analytics.birth_rate_analytics(records, animals, year=2023)["total_births"] == 2
    assert analytics.birth_rate_analytics(records, animals, season="wet")["monthly"] == {"May 2024": 1}

    empty = analytics.birth_rate_analytics(records, animals, animal_type="pig")
    assert empty["total_births"] == 0
    assert empty["average_per_month"] == 0.0


def test_herd_inventory_summary(animals, records):
    summary = analytics.herd_inventory_summary(animals, records, TODAY)

    assert summary["total_animals"] == 5
    assert summary["animals_by_type"] == {"cattle": 3, "goat": 1, "sheep": 0, "pig": 0, "other": 1}
    assert summary["animals_by_status"] == {"active": 3, "sold": 1, "deceased": 1, "disposed": 0}
    assert summary["animals_by_age_group"] == {"young": 1, "adult": 2, "senior": 1}

    reproductive = summary["reproductive_status"]
    assert reproductive["breeding_age_females"] == 2
    # animal 1 has two open pregnancies and is counted once
    assert reproductive["pregnant"] == 1
    assert reproductive["lactating"] == 3
    assert reproductive["available_for_breeding"] == 1
    assert summary["available_for_sale"] == 3


def test_derive_stock_status():
    item = {"current_stock": 50, "reorder_point": 20, "status": "active"}

    assert analytics.derive_stock_status(item, TODAY) == "active"
    assert analytics.derive_stock_status({**item, "current_stock": 20}, TODAY) == "low_stock"
    assert analytics.derive_stock_status({**item, "current_stock": 0}, TODAY) == "out_of_stock"
    assert analytics.derive_stock_status({**item, "expiry_date": "2024-06-01"}, TODAY) == "expired"
    assert analytics.derive_stock_status({**item, "status": "discontinued"}, TODAY) == "discontinued"


def test_supply_inventory_summary():
    items = [
        {"status": "active", "total_value": 1000, "expiry_date": "2024-07-10"},
        {"status": "low_stock", "total_value": 250.5, "expiry_date": "2024-06-15"},
        {"status": "out_of_stock", "total_value": 0, "expiry_date": None},
        {"status": "active", "total_value": 10, "expiry_date": "2024-09-01"},
    ]
    summary = analytics.supply_inventory_summary(items, TODAY)

    assert summary["total_items"] == 4
    assert summary["low_stock"] == 1
    assert summary["out_of_stock"] == 1
    assert summary["total_value"] == pytest.approx(1260.5)
    assert summary["expiring_soon"] == 1


def test_production_aggregates():
    records = [
        {"animal_id": 1, "production_type": "milk", "quantity": 25, "unit": "liters", "production_date": "2024-01-20"},
        {"animal_id": 1, "production_type": "milk", "quantity": 28, "unit": "liters", "production_date": "2024-01-21"},
        {"animal_id": 2, "production_type": "milk", "quantity": 22, "unit": "liters", "production_date": "2024-01-20"},
        {"animal_id": None, "production_type": "eggs", "quantity": 150, "unit": "pieces", "production_date": "2024-01-21"},
    ]

    by_animal = analytics.production_by_animal(records)
    assert [row["animal_id"] for row in by_animal] == [1, 2]
    assert by_animal[0]["total_quantity"] == 53
    assert by_animal[0]["average_quantity"] == 26.5
    assert by_animal[0]["last_production_date"] == "2024-01-21"

    totals = analytics.production_totals_by_type(records)
    assert totals["milk"]["quantity"] == 75
    assert totals["eggs"] == {"quantity": 150, "unit": "pieces", "records": 1}


def test_aggregate_all_expenses(agreements):
    expenses = [
        {"expense_id": 1, "expense_type": "feed", "description": "Animal feed purchase",
         "amount": 150000, "expense_date": "2024-01-10"},
        {"expense_id": 2, "expense_type": "other", "description": "Veterinary call-out",
         "amount": 40000, "expense_date": "2024-02-01"},
        {"expense_id": 3, "expense_type": "medicine", "description": "Vaccines",
         "amount": 75000, "expense_date": "2024-01-18"},
    ]
    unified = analytics.aggregate_all_expenses(
        expenses, agreements, external_farms={1: "ABC Cattle Farm"}, external_animal_tags={1: "Bull-123"}
    )

    assert [e["expense_id"] for e in unified] == [10003, 2, 3, 10001, 1]
    assert [e["source"] for e in unified] == ["animal_hire", "medical", "medical", "animal_hire", "manual"]

    hire = unified[3]
    assert hire["description"] == "Animal hire: Bull-123 from ABC Cattle Farm"
    assert hire["amount"] == 200000
    assert hire["receipt_url"] == "Reference: TXN-1"
    assert hire["source_reference"] == "Hire Agreement #1"

    unlinked = unified[0]
    assert unlinked["description"] == "Animal hire: External Animal from External Farm"
    assert unlinked["expense_date"] == "2024-03-01"


def test_expense_filters_and_totals(agreements):
    expenses = [
        {"expense_id": 1, "expense_type": "feed", "description": "Feed", "amount": 100, "expense_date": "2024-01-15"},
        {"expense_id": 2, "expense_type": "medicine", "description": "Drugs", "amount": 50, "expense_date": "2024-01-18"},
    ]
    unified = analytics.aggregate_all_expenses(expenses, agreements)

    assert analytics.totals_by_source(unified) == {
        "total": 230150, "manual": 100, "medical": 50, "animal_hire": 230000,
    }
    assert len(analytics.expenses_by_source(unified, "animal_hire")) == 2
    assert len(analytics.expenses_by_source(unified)) == 4
    assert [e["expense_id"] for e in analytics.expenses_by_type(unified, "feed")] == [1]
