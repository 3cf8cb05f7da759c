"""
Pydantic schemas for farm record API validation.

Create schemas carry every field a client may set; Update schemas make all
of them optional and are applied with exclude_unset.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import date, time


ANIMAL_TYPES = "^(cattle|goat|sheep|pig|chicken|duck|other)$"
GENDERS = "^(male|female)$"


# ============ Farms ============

class FarmCreate(BaseModel):
    farm_name: str = Field(..., min_length=1, max_length=255)
    location: Optional[str] = None
    district: Optional[str] = None
    farm_type: Optional[str] = None
    status: str = Field("active", pattern="^(active|inactive|archived)$")
    tenant_id: Optional[int] = Field(None, description="Target tenant (super admins only)")


class FarmUpdate(BaseModel):
    farm_name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = None
    district: Optional[str] = None
    farm_type: Optional[str] = None
    status: Optional[str] = Field(None, pattern="^(active|inactive|archived)$")


# ============ Animals ============

class AnimalCreate(BaseModel):
    """
    Request to register an animal.

    Example:
        {
            "farm_id": 1,
            "tag_number": "C-014",
            "animal_type": "cattle",
            "breed": "Boran",
            "gender": "female",
            "birth_date": "2022-03-10"
        }
    """
    farm_id: int
    tag_number: str = Field(..., min_length=1, max_length=50)
    animal_type: str = Field(..., pattern=ANIMAL_TYPES)
    breed: Optional[str] = None
    gender: str = Field(..., pattern=GENDERS)
    birth_date: Optional[date] = None
    purchase_date: Optional[date] = None
    purchase_price: Optional[float] = Field(None, ge=0)
    status: str = Field("active", pattern="^(active|sold|deceased|disposed)$")
    health_status: str = Field("healthy", pattern="^(healthy|sick|recovering|quarantine)$")
    mother_animal_id: Optional[int] = None
    father_animal_id: Optional[int] = None
    external_mother_id: Optional[int] = None
    external_father_id: Optional[int] = None
    breeding_value: Optional[float] = Field(None, ge=0, le=100)
    parentage_verified: bool = False
    traits: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_parents(self):
        if self.mother_animal_id and self.external_mother_id:
            raise ValueError("Mother must be either internal or external, not both")
        if self.father_animal_id and self.external_father_id:
            raise ValueError("Father must be either internal or external, not both")
        return self


class AnimalUpdate(BaseModel):
    tag_number: Optional[str] = Field(None, min_length=1, max_length=50)
    breed: Optional[str] = None
    birth_date: Optional[date] = None
    purchase_date: Optional[date] = None
    purchase_price: Optional[float] = Field(None, ge=0)
    status: Optional[str] = Field(None, pattern="^(active|sold|deceased|disposed)$")
    health_status: Optional[str] = Field(None, pattern="^(healthy|sick|recovering|quarantine)$")
    mother_animal_id: Optional[int] = None
    father_animal_id: Optional[int] = None
    external_mother_id: Optional[int] = None
    external_father_id: Optional[int] = None
    breeding_value: Optional[float] = Field(None, ge=0, le=100)
    parentage_verified: Optional[bool] = None
    traits: Optional[List[str]] = None
    notes: Optional[str] = None


class CastrationRequest(BaseModel):
    castration_date: date
    castration_method: str = Field(..., pattern="^(surgical|banding|chemical|other)$")
    castration_notes: Optional[str] = None


# ============ External farms / animals ============

class ExternalFarmCreate(BaseModel):
    farm_name: str = Field(..., min_length=1, max_length=255)
    owner_name: Optional[str] = None
    contact_person: Optional[str] = None
    phone: str = Field(..., min_length=3, max_length=50)
    email: Optional[str] = None
    location: Optional[str] = None
    district: Optional[str] = None
    farm_type: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    tenant_id: Optional[int] = Field(None, description="Target tenant (super admins only)")


class ExternalFarmUpdate(BaseModel):
    farm_name: Optional[str] = Field(None, min_length=1, max_length=255)
    owner_name: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[str] = None
    location: Optional[str] = None
    district: Optional[str] = None
    farm_type: Optional[str] = None
    specialties: Optional[List[str]] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class ExternalAnimalCreate(BaseModel):
    external_farm_id: int
    tag_number: Optional[str] = None
    animal_type: str = Field(..., pattern=ANIMAL_TYPES)
    breed: Optional[str] = None
    gender: Optional[str] = Field(None, pattern=GENDERS)
    age_years: Optional[float] = Field(None, ge=0)
    weight_kg: Optional[float] = Field(None, ge=0)
    health_status: Optional[str] = None
    health_certificate_available: bool = False
    health_certificate_expiry: Optional[date] = None
    notes: Optional[str] = None


# ============ Breeding ============

class BreedingRecordCreate(BaseModel):
    farm_id: int
    animal_id: int = Field(..., description="Dam")
    sire_source: str = Field(..., pattern="^(internal|external)$")
    sire_id: Optional[int] = None
    external_animal_id: Optional[int] = None
    animal_hire_agreement_id: Optional[int] = None
    external_animal_hire_agreement_id: Optional[int] = None
    breeding_date: date
    breeding_method: str = Field("natural", pattern="^(natural|artificial_insemination|embryo_transfer)$")
    conception_date: Optional[date] = None
    expected_due_date: Optional[date] = None
    pregnancy_status: Optional[str] = Field(None, pattern="^(suspected|confirmed|completed|failed)$")
    notes: Optional[str] = None


class BreedingRecordUpdate(BaseModel):
    conception_date: Optional[date] = None
    expected_due_date: Optional[date] = None
    actual_birth_date: Optional[date] = None
    birth_outcome: Optional[str] = Field(None, pattern="^(successful|stillborn|aborted|complications)$")
    offspring_count: Optional[int] = Field(None, ge=0)
    offspring_ids: Optional[List[int]] = None
    complications: Optional[str] = None
    pregnancy_status: Optional[str] = Field(None, pattern="^(suspected|confirmed|completed|failed)$")
    status: Optional[str] = Field(None, pattern="^(planned|in_progress|successful|failed)$")
    animal_hire_agreement_id: Optional[int] = None
    external_animal_hire_agreement_id: Optional[int] = None
    notes: Optional[str] = None


class HireAgreementCreate(BaseModel):
    farm_id: int
    agreement_type: str = Field(..., pattern="^(hire_in|hire_out)$")
    external_farm_id: int
    animal_id: Optional[int] = None
    external_animal_id: Optional[int] = None
    start_date: date
    end_date: date
    hire_fee: float = Field(..., ge=0)
    payment_schedule: str = Field("one_time", pattern="^(daily|weekly|monthly|one_time)$")
    terms: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class HirePaymentRequest(BaseModel):
    amount: float = Field(..., gt=0)
    payment_date: date
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None


class HireAgreementUpdate(BaseModel):
    end_date: Optional[date] = None
    hire_fee: Optional[float] = Field(None, ge=0)
    status: Optional[str] = Field(None, pattern="^(active|completed|cancelled)$")
    terms: Optional[str] = None


# ============ Inventory ============

class InventoryItemCreate(BaseModel):
    farm_id: int
    item_name: str = Field(..., min_length=1, max_length=255)
    item_code: Optional[str] = None
    category: str = Field(..., pattern="^(feed|medication|equipment|tools|supplies|bedding|other)$")
    subcategory: Optional[str] = None
    description: Optional[str] = None
    unit: str = Field(..., min_length=1)
    current_stock: float = Field(0, ge=0)
    reorder_point: float = Field(0, ge=0)
    reorder_quantity: Optional[float] = Field(None, ge=0)
    unit_cost: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = None
    supplier_contact: Optional[str] = None
    location: Optional[str] = None
    expiry_date: Optional[date] = None
    batch_number: Optional[str] = None
    notes: Optional[str] = None


class InventoryItemUpdate(BaseModel):
    item_name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, pattern="^(feed|medication|equipment|tools|supplies|bedding|other)$")
    description: Optional[str] = None
    reorder_point: Optional[float] = Field(None, ge=0)
    reorder_quantity: Optional[float] = Field(None, ge=0)
    unit_cost: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = None
    location: Optional[str] = None
    expiry_date: Optional[date] = None
    status: Optional[str] = Field(None, pattern="^(active|discontinued)$")
    notes: Optional[str] = None


class StockMovementCreate(BaseModel):
    movement_type: str = Field(..., pattern="^(in|out|adjustment|transfer)$")
    quantity: float = Field(..., description="Positive amount; adjustments may be negative")
    unit_cost: Optional[float] = Field(None, ge=0)
    reason: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v == 0:
            raise ValueError("quantity must not be zero")
        return v


# ============ Production / expenses / schedules ============

class ProductionCreate(BaseModel):
    farm_id: int
    production_type: str = Field(..., pattern="^(milk|eggs|wool|honey)$")
    animal_id: Optional[int] = None
    production_date: date
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., pattern="^(liters|kg|pieces|dozen)$")
    quality_notes: Optional[str] = None


class ExpenseCreate(BaseModel):
    farm_id: int
    expense_type: str = Field(
        ..., pattern="^(feed|medicine|labor|equipment|utilities|transport|animal_hire|other)$"
    )
    description: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., gt=0)
    expense_date: date
    vendor: Optional[str] = None
    payment_method: Optional[str] = None
    receipt_url: Optional[str] = None
    external_animal_hire_agreement_id: Optional[int] = None


class ScheduleCreate(BaseModel):
    farm_id: int
    worker_user_id: int
    schedule_date: date
    start_time: time
    end_time: time
    task_type: str = Field(..., min_length=1, max_length=255)
    assigned_animals: List[int] = Field(default_factory=list)
    notes: Optional[str] = None


class ScheduleUpdate(BaseModel):
    schedule_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    task_type: Optional[str] = Field(None, min_length=1, max_length=255)
    assigned_animals: Optional[List[int]] = None
    status: Optional[str] = Field(None, pattern="^(scheduled|in_progress|completed|cancelled)$")
    notes: Optional[str] = None
