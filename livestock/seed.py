"""
Demo farm records for the demo tenants.

Ids are explicit so that demo accounts (see auth.models.DEMO_USERS) and
records line up: worker user 3 owns the schedules, tenant 1 owns almost
everything and tenant 2 has a single farm.
"""

from datetime import date, time
import logging

from sqlalchemy.orm import Session

from livestock.models import (
    Farm, Animal, ExternalFarm, ExternalAnimal, BreedingRecord, HireAgreement,
    InventoryItem, InventoryMovement, Production, Expense, Schedule,
)

logger = logging.getLogger(__name__)


def _farms():
    return [
        Farm(farm_id=1, tenant_id=1, farm_name="Main Farm", location="Kampala", district="Kampala", farm_type="dairy"),
        Farm(farm_id=2, tenant_id=1, farm_name="North Branch", location="Wakiso", district="Wakiso", farm_type="poultry"),
        Farm(farm_id=3, tenant_id=2, farm_name="Dairy Unit", location="Mukono", district="Mukono", farm_type="dairy"),
    ]


def _animals():
    return [
        Animal(animal_id=1, tenant_id=1, farm_id=1, tag_number="COW-001", animal_type="cattle",
               breed="Holstein-Friesian", gender="female", birth_date=date(2020, 3, 15),
               breeding_value=72, traits=["high_milk_yield", "docile"]),
        Animal(animal_id=2, tenant_id=1, farm_id=1, tag_number="COW-002", animal_type="cattle",
               breed="Jersey", gender="female", birth_date=date(2019, 5, 20),
               breeding_value=65, traits=["high_butterfat"]),
        Animal(animal_id=3, tenant_id=1, farm_id=2, tag_number="CHK-001", animal_type="chicken",
               breed="Rhode Island Red", gender="female", birth_date=date(2023, 8, 10)),
        Animal(animal_id=4, tenant_id=1, farm_id=1, tag_number="BULL-001", animal_type="cattle",
               breed="Boran", gender="male", birth_date=date(2018, 6, 1),
               breeding_value=85, parentage_verified=True, traits=["heat_tolerant", "high_milk_yield"]),
        Animal(animal_id=5, tenant_id=1, farm_id=1, tag_number="CALF-001", animal_type="cattle",
               breed="Crossbreed", gender="female", birth_date=date(2024, 8, 28),
               mother_animal_id=2, father_animal_id=4, parentage_verified=True),
        Animal(animal_id=6, tenant_id=2, farm_id=3, tag_number="DU-001", animal_type="cattle",
               breed="Ankole-Watusi", gender="female", birth_date=date(2021, 1, 10)),
    ]


def _external():
    farms = [
        ExternalFarm(external_farm_id=1, tenant_id=1, farm_name="ABC Cattle Farm", owner_name="John Mukasa",
                     contact_person="John Mukasa", phone="+256 700 123 456", email="john@abcfarm.com",
                     location="Mukono", district="Mukono", farm_type="cattle", specialties=["cattle_breeding"]),
        ExternalFarm(external_farm_id=2, tenant_id=1, farm_name="Green Valley Goats", owner_name="Sarah Nakato",
                     contact_person="Sarah Nakato", phone="+256 700 234 567", location="Wakiso",
                     district="Wakiso", farm_type="goat", specialties=["goat_breeding"]),
        ExternalFarm(external_farm_id=3, tenant_id=1, farm_name="Sunrise Dairy Farm", owner_name="Peter Mukasa",
                     contact_person="Peter Mukasa", phone="+256700123456", email="peter@sunrisedairy.com",
                     location="Mbarara", district="Mbarara", farm_type="dairy",
                     specialties=["cattle_breeding", "dairy_production"]),
    ]
    animals = [
        ExternalAnimal(external_animal_id=1, tenant_id=1, external_farm_id=1, tag_number="Bull-123",
                       animal_type="cattle", breed="Holstein-Friesian", gender="male", age_years=5, weight_kg=650,
                       health_status="healthy", health_certificate_available=True,
                       health_certificate_expiry=date(2024, 12, 31)),
        ExternalAnimal(external_animal_id=2, tenant_id=1, external_farm_id=2, tag_number="Buck-456",
                       animal_type="goat", breed="Boer", gender="male", age_years=3, weight_kg=85,
                       health_status="healthy"),
        ExternalAnimal(external_animal_id=3, tenant_id=1, external_farm_id=3, tag_number="EXT-BULL-001",
                       animal_type="cattle", breed="Friesian", gender="male", age_years=4, weight_kg=700,
                       health_status="healthy", health_certificate_available=True,
                       health_certificate_expiry=date(2024, 12, 31)),
    ]
    return farms + animals


def _breeding():
    agreements = [
        HireAgreement(agreement_id=1, tenant_id=1, farm_id=1, agreement_type="hire_in", external_farm_id=1,
                      external_animal_id=1, start_date=date(2024, 1, 15), end_date=date(2024, 2, 15),
                      hire_fee=200000, payment_schedule="monthly", payment_status="paid", paid_amount=200000,
                      payment_date=date(2024, 1, 15), payment_method="bank_transfer",
                      payment_reference="TXN-20240115", terms="Bull hire for breeding purposes, 1 month rental",
                      created_by_user_id=1),
        HireAgreement(agreement_id=2, tenant_id=1, farm_id=1, agreement_type="hire_out", external_farm_id=2,
                      animal_id=4, start_date=date(2024, 1, 20), end_date=date(2024, 2, 20),
                      hire_fee=150000, payment_schedule="monthly", payment_status="pending", paid_amount=0,
                      terms="Bull hire to Green Valley", created_by_user_id=1),
    ]
    records = [
        BreedingRecord(breeding_id=1, tenant_id=1, farm_id=1, animal_id=1, sire_source="internal", sire_id=4,
                       breeding_date=date(2023, 12, 1), breeding_method="artificial_insemination",
                       conception_date=date(2023, 12, 8), expected_due_date=date(2024, 9, 15),
                       pregnancy_status="confirmed", status="in_progress",
                       notes="First breeding attempt with premium genetics", recorded_by_user_id=1),
        BreedingRecord(breeding_id=2, tenant_id=1, farm_id=1, animal_id=2, sire_source="internal", sire_id=4,
                       breeding_date=date(2023, 11, 15), breeding_method="natural",
                       conception_date=date(2023, 11, 22), expected_due_date=date(2024, 8, 30),
                       actual_birth_date=date(2024, 8, 28), birth_outcome="successful", offspring_count=1,
                       offspring_ids=[5], pregnancy_status="completed", status="successful",
                       notes="Healthy calf delivered", recorded_by_user_id=1),
        BreedingRecord(breeding_id=3, tenant_id=1, farm_id=1, animal_id=1, sire_source="external",
                       external_animal_id=1, external_farm_name="ABC Cattle Farm", external_animal_tag="Bull-123",
                       external_animal_hire_agreement_id=1, breeding_date=date(2024, 2, 10),
                       breeding_method="natural", conception_date=date(2024, 2, 15),
                       expected_due_date=date(2024, 11, 20), pregnancy_status="confirmed",
                       notes="Bred with external bull from ABC Cattle Farm", recorded_by_user_id=1),
        BreedingRecord(breeding_id=4, tenant_id=1, farm_id=1, animal_id=2, sire_source="external",
                       external_animal_id=3, external_farm_name="Sunrise Dairy Farm",
                       external_animal_tag="EXT-BULL-001", breeding_date=date(2024, 1, 20),
                       breeding_method="artificial_insemination", conception_date=date(2024, 1, 27),
                       expected_due_date=date(2024, 10, 25), actual_birth_date=date(2024, 10, 22),
                       birth_outcome="complications", offspring_count=1,
                       complications="Difficult delivery, required veterinary assistance",
                       pregnancy_status="completed", recorded_by_user_id=1),
    ]
    return agreements + records


def _supplies():
    return [
        InventoryItem(item_id=1, tenant_id=1, farm_id=1, item_name="Cattle Feed Pellets", item_code="FEED-CF-001",
                      category="feed", subcategory="pellets", unit="kg", current_stock=450, reorder_point=200,
                      reorder_quantity=500, unit_cost=1200, supplier="AgriFeed Supplies",
                      location="Warehouse A - Feed Storage", status="active", created_by_user_id=1),
        InventoryItem(item_id=2, tenant_id=1, farm_id=1, item_name="Hay Bales", item_code="FEED-HB-001",
                      category="feed", subcategory="hay", unit="bales", current_stock=120, reorder_point=50,
                      reorder_quantity=100, unit_cost=15000, supplier="Green Pastures Farm",
                      location="Warehouse B - Hay Storage", status="active", created_by_user_id=1),
        InventoryItem(item_id=3, tenant_id=1, farm_id=2, item_name="Chicken Feed", item_code="FEED-CH-001",
                      category="feed", subcategory="poultry", unit="kg", current_stock=85, reorder_point=100,
                      reorder_quantity=200, unit_cost=1500, status="low_stock", created_by_user_id=1),
        InventoryMovement(movement_id=1, item_id=1, tenant_id=1, farm_id=1, movement_type="in", quantity=500,
                          unit="kg", unit_cost=1200, total_cost=600000, reason="purchase",
                          reference_number="INV-2024-001", notes="Monthly feed purchase", created_by_user_id=1),
        InventoryMovement(movement_id=2, item_id=1, tenant_id=1, farm_id=1, movement_type="out", quantity=50,
                          unit="kg", reason="usage", notes="Daily feeding", created_by_user_id=3),
    ]


def _operations():
    production = [
        Production(production_id=1, tenant_id=1, farm_id=1, production_type="milk", animal_id=1,
                   production_date=date(2024, 1, 20), quantity=25, unit="liters",
                   quality_notes="Good quality, fresh", recorded_by_user_id=1),
        Production(production_id=2, tenant_id=1, farm_id=1, production_type="milk", animal_id=1,
                   production_date=date(2024, 1, 21), quantity=28, unit="liters",
                   quality_notes="Excellent quality", recorded_by_user_id=1),
        Production(production_id=3, tenant_id=1, farm_id=1, production_type="milk", animal_id=2,
                   production_date=date(2024, 1, 20), quantity=22, unit="liters",
                   quality_notes="Normal quality", recorded_by_user_id=1),
        Production(production_id=4, tenant_id=1, farm_id=2, production_type="eggs",
                   production_date=date(2024, 1, 21), quantity=150, unit="pieces", recorded_by_user_id=1),
        Production(production_id=5, tenant_id=1, farm_id=2, production_type="eggs",
                   production_date=date(2024, 1, 22), quantity=145, unit="pieces", recorded_by_user_id=1),
    ]
    expenses = [
        Expense(expense_id=1, tenant_id=1, farm_id=1, expense_type="feed", description="Animal feed purchase",
                amount=150000, expense_date=date(2024, 1, 15), vendor="Feed Suppliers Ltd",
                payment_method="bank_transfer", created_by_user_id=1),
        Expense(expense_id=2, tenant_id=1, farm_id=1, expense_type="medicine", description="Vaccination supplies",
                amount=75000, expense_date=date(2024, 1, 18), vendor="Vet Supplies Co",
                payment_method="cash", created_by_user_id=1),
    ]
    schedules = [
        Schedule(schedule_id=1, tenant_id=1, farm_id=1, worker_user_id=3, schedule_date=date(2024, 1, 22),
                 start_time=time(6, 0), end_time=time(14, 0), task_type="Feeding and Health Monitoring",
                 assigned_animals=[1, 2], notes="Morning shift - focus on dairy cattle"),
        Schedule(schedule_id=2, tenant_id=1, farm_id=2, worker_user_id=3, schedule_date=date(2024, 1, 22),
                 start_time=time(14, 0), end_time=time(18, 0), task_type="Poultry Care",
                 assigned_animals=[3], notes="Afternoon shift - poultry feeding and egg collection"),
        Schedule(schedule_id=3, tenant_id=1, farm_id=1, worker_user_id=2, schedule_date=date(2024, 1, 23),
                 start_time=time(9, 0), end_time=time(11, 0), task_type="Herd Health Check",
                 assigned_animals=[1, 2, 4]),
    ]
    return production + expenses + schedules


def seed_demo_data(session: Session) -> bool:
    """
    Insert demo records unless farms already exist.

    Returns:
        True if records were inserted
    """
    if session.query(Farm).count() > 0:
        return False

    groups = [_farms(), _animals(), _external(), _breeding(), _supplies(), _operations()]
    for group in groups:
        session.add_all(group)
        session.flush()

    logger.info(f"Seeded {sum(len(g) for g in groups)} demo farm records")
    return True
