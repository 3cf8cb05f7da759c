"""
Database models for farm records.

Every record is owned by a tenant. Relationships between records are plain
integer id fields resolved by lookups in the repositories; there are no ORM
relationships between farm tables.

Models:
- Farm, Animal
- ExternalFarm, ExternalAnimal: partner farms and their animals used for breeding
- BreedingRecord, HireAgreement
- InventoryItem, InventoryMovement
- Production, Expense, Schedule
"""

from sqlalchemy import (
    Column, String, Date, DateTime, Time, Text, Integer, Float, Boolean, JSON, Index
)
from sqlalchemy.orm import declarative_base
from datetime import date, datetime, time

Base = declarative_base()


class SerializerMixin:
    """to_dict() over table columns with ISO dates"""

    def to_dict(self):
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, (date, datetime, time)):
                value = value.isoformat()
            data[column.name] = value
        return data


class Farm(SerializerMixin, Base):
    __tablename__ = "farms"

    farm_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    farm_name = Column(String(255), nullable=False)
    location = Column(String(255))
    district = Column(String(100))
    farm_type = Column(String(50))
    status = Column(String(20), default="active", nullable=False)  # active, inactive, archived
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Farm(id={self.farm_id}, name='{self.farm_name}')>"


class Animal(SerializerMixin, Base):
    """
    A tracked animal.

    Parents are either internal (mother_animal_id/father_animal_id) or
    external (external_mother_id/external_father_id). Castration fields only
    apply to males.
    """

    __tablename__ = "animals"

    animal_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    farm_id = Column(Integer, nullable=False, index=True)
    tag_number = Column(String(50), nullable=False)
    animal_type = Column(String(20), nullable=False)  # cattle, goat, sheep, pig, chicken, duck, other
    breed = Column(String(100))
    gender = Column(String(10), nullable=False)  # male, female
    birth_date = Column(Date)
    purchase_date = Column(Date)
    purchase_price = Column(Float)
    status = Column(String(20), default="active", nullable=False)  # active, sold, deceased, disposed
    health_status = Column(String(20), default="healthy")  # healthy, sick, recovering, quarantine

    # Lineage
    mother_animal_id = Column(Integer, nullable=True)
    father_animal_id = Column(Integer, nullable=True)
    external_mother_id = Column(Integer, nullable=True)
    external_father_id = Column(Integer, nullable=True)

    # Castration
    is_castrated = Column(Boolean, default=False, nullable=False)
    castration_date = Column(Date)
    castration_method = Column(String(20))  # surgical, banding, chemical, other
    castration_notes = Column(Text)

    # Genetics
    breeding_value = Column(Float)
    parentage_verified = Column(Boolean, default=False)
    traits = Column(JSON, default=list)

    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_animal_tenant_tag", tenant_id, tag_number),
    )

    def __repr__(self):
        return f"<Animal(id={self.animal_id}, tag='{self.tag_number}', type='{self.animal_type}')>"


class ExternalFarm(SerializerMixin, Base):
    __tablename__ = "external_farms"

    external_farm_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    farm_name = Column(String(255), nullable=False)
    owner_name = Column(String(255))
    contact_person = Column(String(255))
    phone = Column(String(50), nullable=False)
    email = Column(String(255))
    location = Column(String(255))
    district = Column(String(100))
    farm_type = Column(String(50))
    specialties = Column(JSON, default=list)
    notes = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class ExternalAnimal(SerializerMixin, Base):
    __tablename__ = "external_animals"

    external_animal_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    external_farm_id = Column(Integer, nullable=False, index=True)
    tag_number = Column(String(50))
    animal_type = Column(String(20), nullable=False)
    breed = Column(String(100))
    gender = Column(String(10))
    age_years = Column(Float)
    weight_kg = Column(Float)
    health_status = Column(String(20))
    health_certificate_available = Column(Boolean, default=False)
    health_certificate_expiry = Column(Date)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class BreedingRecord(SerializerMixin, Base):
    """
    A breeding event for one of the tenant's females.

    The sire is internal (sire_id) or external (external_animal_id). Hire
    agreement links record whether the tenant's sire was hired out or an
    external sire was hired in. `status` is the legacy lifecycle field kept
    alongside pregnancy_status.
    """

    __tablename__ = "breeding_records"

    breeding_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    farm_id = Column(Integer, nullable=False)
    animal_id = Column(Integer, nullable=False, index=True)

    sire_source = Column(String(10), nullable=False)  # internal, external
    sire_id = Column(Integer, nullable=True)
    external_animal_id = Column(Integer, nullable=True)
    external_farm_name = Column(String(255))
    external_animal_tag = Column(String(50))

    animal_hire_agreement_id = Column(Integer, nullable=True)
    external_animal_hire_agreement_id = Column(Integer, nullable=True)

    breeding_date = Column(Date, nullable=False)
    breeding_method = Column(String(30))  # natural, artificial_insemination, embryo_transfer
    conception_date = Column(Date)
    expected_due_date = Column(Date)
    actual_birth_date = Column(Date)
    birth_outcome = Column(String(20))  # successful, stillborn, aborted, complications
    offspring_count = Column(Integer)
    offspring_ids = Column(JSON, default=list)
    complications = Column(Text)
    pregnancy_status = Column(String(20))  # suspected, confirmed, completed, failed
    status = Column(String(20))  # planned, in_progress, successful, failed

    notes = Column(Text)
    recorded_by_user_id = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class HireAgreement(SerializerMixin, Base):
    """Hire of a sire into (hire_in) or out of (hire_out) the tenant's herd"""

    __tablename__ = "hire_agreements"

    agreement_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    farm_id = Column(Integer, nullable=False)
    agreement_type = Column(String(10), nullable=False)  # hire_in, hire_out
    external_farm_id = Column(Integer, nullable=False)
    animal_id = Column(Integer, nullable=True)
    external_animal_id = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    hire_fee = Column(Float, nullable=False, default=0)
    payment_schedule = Column(String(20), default="one_time")  # daily, weekly, monthly, one_time
    payment_status = Column(String(20), default="pending")  # pending, partial, paid
    paid_amount = Column(Float, default=0)
    payment_date = Column(Date)
    payment_method = Column(String(20))
    payment_reference = Column(String(100))
    status = Column(String(20), default="active")  # active, completed, cancelled
    terms = Column(Text)
    created_by_user_id = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class InventoryItem(SerializerMixin, Base):
    __tablename__ = "inventory_items"

    item_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    farm_id = Column(Integer, nullable=False)
    item_name = Column(String(255), nullable=False)
    item_code = Column(String(50))
    category = Column(String(20), nullable=False)  # feed, medication, equipment, tools, supplies, bedding, other
    subcategory = Column(String(50))
    description = Column(Text)
    unit = Column(String(20), nullable=False)
    current_stock = Column(Float, nullable=False, default=0)
    reorder_point = Column(Float, nullable=False, default=0)
    reorder_quantity = Column(Float)
    unit_cost = Column(Float)
    supplier = Column(String(255))
    supplier_contact = Column(String(100))
    location = Column(String(255))
    expiry_date = Column(Date)
    batch_number = Column(String(50))
    status = Column(String(20), default="active")  # active, low_stock, out_of_stock, expired, discontinued
    notes = Column(Text)
    created_by_user_id = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def total_value(self) -> float:
        return (self.current_stock or 0) * (self.unit_cost or 0)

    def to_dict(self):
        data = super().to_dict()
        data["total_value"] = self.total_value
        return data


class InventoryMovement(SerializerMixin, Base):
    __tablename__ = "inventory_movements"

    movement_id = Column(Integer, primary_key=True)
    item_id = Column(Integer, nullable=False, index=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    farm_id = Column(Integer, nullable=False)
    movement_type = Column(String(20), nullable=False)  # in, out, adjustment, transfer
    quantity = Column(Float, nullable=False)
    unit = Column(String(20))
    unit_cost = Column(Float)
    total_cost = Column(Float)
    reason = Column(String(100))
    reference_number = Column(String(100))
    notes = Column(Text)
    created_by_user_id = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Production(SerializerMixin, Base):
    __tablename__ = "production"

    production_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    farm_id = Column(Integer, nullable=False)
    production_type = Column(String(20), nullable=False)  # milk, eggs, wool, honey
    animal_id = Column(Integer, nullable=True, index=True)
    production_date = Column(Date, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(20), nullable=False)  # liters, kg, pieces, dozen
    quality_notes = Column(Text)
    recorded_by_user_id = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Expense(SerializerMixin, Base):
    __tablename__ = "expenses"

    expense_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    farm_id = Column(Integer, nullable=False)
    expense_type = Column(String(20), nullable=False)  # feed, medicine, labor, equipment, utilities, transport, animal_hire, other
    description = Column(String(500), nullable=False)
    amount = Column(Float, nullable=False)
    expense_date = Column(Date, nullable=False)
    vendor = Column(String(255))
    payment_method = Column(String(20))
    receipt_url = Column(String(500))
    external_animal_hire_agreement_id = Column(Integer, nullable=True)
    created_by_user_id = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Schedule(SerializerMixin, Base):
    """A worker's task for one day"""

    __tablename__ = "schedules"

    schedule_id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    farm_id = Column(Integer, nullable=False)
    worker_user_id = Column(Integer, nullable=False, index=True)
    schedule_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    task_type = Column(String(255), nullable=False)
    assigned_animals = Column(JSON, default=list)
    status = Column(String(20), default="scheduled")  # scheduled, in_progress, completed, cancelled
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
