"""
Farm records API endpoints.

Exposed endpoints (all under /api/farm, each gated by a feature):
- farms, animals (+ castration, lineage, genetic diversity, mates, mating risk)
- external-farms, external-animals
- breeding records, hire agreements (+ payments)
- inventory items (+ stock movements)
- production, expenses, schedules
- analytics: breeding, birth rates, herd inventory, supply inventory
- breeds catalog
"""

from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from auth.rbac_dependencies import require_feature
from auth.session import AuthUser
from livestock.breeds import get_breeds_for_type
from livestock.database import get_db
from livestock.schemas import (
    FarmCreate, FarmUpdate, AnimalCreate, AnimalUpdate, CastrationRequest,
    ExternalFarmCreate, ExternalFarmUpdate, ExternalAnimalCreate,
    BreedingRecordCreate, BreedingRecordUpdate, HireAgreementCreate, HireAgreementUpdate,
    HirePaymentRequest, InventoryItemCreate, InventoryItemUpdate, StockMovementCreate,
    ProductionCreate, ExpenseCreate, ScheduleCreate, ScheduleUpdate,
)
from livestock.service import (
    FarmService, AnimalService, ExternalFarmService, BreedingService, InventoryService,
    ProductionService, ExpenseService, ScheduleService, AnalyticsService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/farm", tags=["farm"])


def _raise_http(e: Exception, action: str):
    """Translate a service error into the matching HTTPException"""
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, PermissionError):
        raise HTTPException(status_code=403, detail=str(e))
    if isinstance(e, ValueError):
        status_code = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=status_code, detail=str(e))
    logger.error(f"Error {action}: {e}")
    raise HTTPException(status_code=500, detail=f"Error {action}")


# ==================== FARMS ====================

@router.get("/farms")
async def list_farms(
    status: Optional[str] = Query(None),
    user: AuthUser = Depends(require_feature("can_view_farms")),
    db: Session = Depends(get_db)
):
    try:
        return FarmService.list_farms(db, user, status=status)
    except Exception as e:
        _raise_http(e, "listing farms")


@router.get("/farms/{farm_id}")
async def get_farm(
    farm_id: int,
    user: AuthUser = Depends(require_feature("can_view_farms")),
    db: Session = Depends(get_db)
):
    try:
        return FarmService.get_farm(db, user, farm_id)
    except Exception as e:
        _raise_http(e, "getting farm")


@router.post("/farms", status_code=201)
async def create_farm(
    request: FarmCreate,
    user: AuthUser = Depends(require_feature("can_manage_farms")),
    db: Session = Depends(get_db)
):
    try:
        return FarmService.create_farm(db, user, request.model_dump())
    except Exception as e:
        _raise_http(e, "creating farm")


@router.patch("/farms/{farm_id}")
async def update_farm(
    farm_id: int,
    request: FarmUpdate,
    user: AuthUser = Depends(require_feature("can_manage_farms")),
    db: Session = Depends(get_db)
):
    try:
        return FarmService.update_farm(db, user, farm_id, request.model_dump(exclude_unset=True))
    except Exception as e:
        _raise_http(e, "updating farm")


# ==================== ANIMALS ====================

@router.get("/animals")
async def list_animals(
    farm_id: Optional[int] = Query(None),
    animal_type: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    gender: Optional[str] = Query(None),
    user: AuthUser = Depends(require_feature("can_view_animals")),
    db: Session = Depends(get_db)
):
    """
    List the tenant's animals.

    Query params filter by farm, type, status and gender. Super admins see
    animals across every tenant.
    """
    try:
        return AnimalService.list_animals(
            db, user, farm_id=farm_id, animal_type=animal_type, status=status, gender=gender
        )
    except Exception as e:
        _raise_http(e, "listing animals")


@router.get("/animals/{animal_id}")
async def get_animal(
    animal_id: int,
    user: AuthUser = Depends(require_feature("can_view_animals")),
    db: Session = Depends(get_db)
):
    try:
        return AnimalService.get_animal(db, user, animal_id)
    except Exception as e:
        _raise_http(e, "getting animal")


@router.post("/animals", status_code=201)
async def create_animal(
    request: AnimalCreate,
    user: AuthUser = Depends(require_feature("can_create_animals")),
    db: Session = Depends(get_db)
):
    """
    Register an animal.

    Example request:
        {
            "farm_id": 1,
            "tag_number": "GT-007",
            "animal_type": "goat",
            "breed": "Boer",
            "gender": "male"
        }
    """
    try:
        return AnimalService.create_animal(db, user, request.model_dump())
    except Exception as e:
        _raise_http(e, "creating animal")


@router.patch("/animals/{animal_id}")
async def update_animal(
    animal_id: int,
    request: AnimalUpdate,
    user: AuthUser = Depends(require_feature("can_edit_animals")),
    db: Session = Depends(get_db)
):
    try:
        return AnimalService.update_animal(db, user, animal_id, request.model_dump(exclude_unset=True))
    except Exception as e:
        _raise_http(e, "updating animal")


@router.delete("/animals/{animal_id}")
async def delete_animal(
    animal_id: int,
    user: AuthUser = Depends(require_feature("can_delete_animals")),
    db: Session = Depends(get_db)
):
    try:
        AnimalService.delete_animal(db, user, animal_id)
        return {"success": True, "animal_id": animal_id}
    except Exception as e:
        _raise_http(e, "deleting animal")


@router.post("/animals/{animal_id}/castration")
async def castrate_animal(
    animal_id: int,
    request: CastrationRequest,
    user: AuthUser = Depends(require_feature("can_log_castration")),
    db: Session = Depends(get_db)
):
    try:
        return AnimalService.castrate(db, user, animal_id, request.model_dump())
    except Exception as e:
        _raise_http(e, "recording castration")


@router.get("/animals/{animal_id}/lineage")
async def get_lineage(
    animal_id: int,
    generations: int = Query(3, ge=1, le=5),
    user: AuthUser = Depends(require_feature("can_view_lineage")),
    db: Session = Depends(get_db)
):
    """Pedigree tree with completeness, inbreeding and offspring"""
    try:
        return AnimalService.get_lineage(db, user, animal_id, generations)
    except Exception as e:
        _raise_http(e, "building lineage")


@router.get("/animals/{animal_id}/genetic-diversity")
async def get_genetic_diversity(
    animal_id: int,
    user: AuthUser = Depends(require_feature("can_view_lineage")),
    db: Session = Depends(get_db)
):
    try:
        return AnimalService.get_genetic_diversity(db, user, animal_id)
    except Exception as e:
        _raise_http(e, "analyzing genetic diversity")


@router.get("/animals/{animal_id}/mates")
async def get_optimal_mates(
    animal_id: int,
    limit: int = Query(10, ge=1, le=50),
    user: AuthUser = Depends(require_feature("can_manage_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return AnimalService.get_optimal_mates(db, user, animal_id, limit)
    except Exception as e:
        _raise_http(e, "finding mates")


@router.get("/animals/{animal_id}/mating-risk/{mate_id}")
async def get_mating_risk(
    animal_id: int,
    mate_id: int,
    user: AuthUser = Depends(require_feature("can_manage_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return AnimalService.assess_mating(db, user, animal_id, mate_id)
    except Exception as e:
        _raise_http(e, "assessing mating risk")


# ==================== EXTERNAL FARMS ====================

@router.get("/external-farms")
async def list_external_farms(
    is_active: Optional[bool] = Query(None),
    user: AuthUser = Depends(require_feature("can_view_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return ExternalFarmService.list_farms(db, user, is_active=is_active)
    except Exception as e:
        _raise_http(e, "listing external farms")


@router.get("/external-farms/{external_farm_id}")
async def get_external_farm(
    external_farm_id: int,
    user: AuthUser = Depends(require_feature("can_view_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return ExternalFarmService.get_farm(db, user, external_farm_id)
    except Exception as e:
        _raise_http(e, "getting external farm")


@router.post("/external-farms", status_code=201)
async def create_external_farm(
    request: ExternalFarmCreate,
    user: AuthUser = Depends(require_feature("can_manage_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return ExternalFarmService.create_farm(db, user, request.model_dump())
    except Exception as e:
        _raise_http(e, "creating external farm")


@router.patch("/external-farms/{external_farm_id}")
async def update_external_farm(
    external_farm_id: int,
    request: ExternalFarmUpdate,
    user: AuthUser = Depends(require_feature("can_manage_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return ExternalFarmService.update_farm(
            db, user, external_farm_id, request.model_dump(exclude_unset=True)
        )
    except Exception as e:
        _raise_http(e, "updating external farm")


@router.get("/external-animals")
async def list_external_animals(
    external_farm_id: Optional[int] = Query(None),
    user: AuthUser = Depends(require_feature("can_view_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return ExternalFarmService.list_animals(db, user, external_farm_id=external_farm_id)
    except Exception as e:
        _raise_http(e, "listing external animals")


@router.post("/external-animals", status_code=201)
async def create_external_animal(
    request: ExternalAnimalCreate,
    user: AuthUser = Depends(require_feature("can_manage_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return ExternalFarmService.create_animal(db, user, request.model_dump())
    except Exception as e:
        _raise_http(e, "creating external animal")


# ==================== BREEDING ====================

@router.get("/breeding")
async def list_breeding_records(
    sire_source: Optional[str] = Query(None, pattern="^(internal|external)$"),
    pregnancy_status: Optional[str] = Query(None),
    user: AuthUser = Depends(require_feature("can_view_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return BreedingService.list_records(db, user, sire_source=sire_source, pregnancy_status=pregnancy_status)
    except Exception as e:
        _raise_http(e, "listing breeding records")


@router.get("/breeding/{breeding_id}")
async def get_breeding_record(
    breeding_id: int,
    user: AuthUser = Depends(require_feature("can_view_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return BreedingService.get_record(db, user, breeding_id)
    except Exception as e:
        _raise_http(e, "getting breeding record")


@router.post("/breeding", status_code=201)
async def create_breeding_record(
    request: BreedingRecordCreate,
    user: AuthUser = Depends(require_feature("can_log_breeding")),
    db: Session = Depends(get_db)
):
    """
    Record a breeding with an internal or external sire.

    Example request:
        {
            "farm_id": 1,
            "animal_id": 1,
            "sire_source": "external",
            "external_animal_id": 1,
            "breeding_date": "2024-06-01"
        }
    """
    try:
        return BreedingService.create_record(db, user, request.model_dump())
    except Exception as e:
        _raise_http(e, "creating breeding record")


@router.patch("/breeding/{breeding_id}")
async def update_breeding_record(
    breeding_id: int,
    request: BreedingRecordUpdate,
    user: AuthUser = Depends(require_feature("can_manage_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return BreedingService.update_record(db, user, breeding_id, request.model_dump(exclude_unset=True))
    except Exception as e:
        _raise_http(e, "updating breeding record")


@router.get("/hire-agreements")
async def list_hire_agreements(
    agreement_type: Optional[str] = Query(None, pattern="^(hire_in|hire_out)$"),
    user: AuthUser = Depends(require_feature("can_view_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return BreedingService.list_agreements(db, user, agreement_type=agreement_type)
    except Exception as e:
        _raise_http(e, "listing hire agreements")


@router.post("/hire-agreements", status_code=201)
async def create_hire_agreement(
    request: HireAgreementCreate,
    user: AuthUser = Depends(require_feature("can_manage_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return BreedingService.create_agreement(db, user, request.model_dump())
    except Exception as e:
        _raise_http(e, "creating hire agreement")


@router.patch("/hire-agreements/{agreement_id}")
async def update_hire_agreement(
    agreement_id: int,
    request: HireAgreementUpdate,
    user: AuthUser = Depends(require_feature("can_manage_breeding")),
    db: Session = Depends(get_db)
):
    try:
        return BreedingService.update_agreement(db, user, agreement_id, request.model_dump(exclude_unset=True))
    except Exception as e:
        _raise_http(e, "updating hire agreement")


@router.post("/hire-agreements/{agreement_id}/payments")
async def record_hire_payment(
    agreement_id: int,
    request: HirePaymentRequest,
    user: AuthUser = Depends(require_feature("can_record_expenses")),
    db: Session = Depends(get_db)
):
    try:
        return BreedingService.record_payment(db, user, agreement_id, request.model_dump())
    except Exception as e:
        _raise_http(e, "recording hire payment")


# ==================== INVENTORY ====================

@router.get("/inventory")
async def list_inventory(
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    user: AuthUser = Depends(require_feature("can_view_inventory")),
    db: Session = Depends(get_db)
):
    try:
        return InventoryService.list_items(db, user, category=category, status=status)
    except Exception as e:
        _raise_http(e, "listing inventory")


@router.get("/inventory/{item_id}")
async def get_inventory_item(
    item_id: int,
    user: AuthUser = Depends(require_feature("can_view_inventory")),
    db: Session = Depends(get_db)
):
    try:
        return InventoryService.get_item(db, user, item_id)
    except Exception as e:
        _raise_http(e, "getting inventory item")


@router.post("/inventory", status_code=201)
async def create_inventory_item(
    request: InventoryItemCreate,
    user: AuthUser = Depends(require_feature("can_manage_inventory")),
    db: Session = Depends(get_db)
):
    try:
        return InventoryService.create_item(db, user, request.model_dump())
    except Exception as e:
        _raise_http(e, "creating inventory item")


@router.patch("/inventory/{item_id}")
async def update_inventory_item(
    item_id: int,
    request: InventoryItemUpdate,
    user: AuthUser = Depends(require_feature("can_manage_inventory")),
    db: Session = Depends(get_db)
):
    try:
        return InventoryService.update_item(db, user, item_id, request.model_dump(exclude_unset=True))
    except Exception as e:
        _raise_http(e, "updating inventory item")


@router.post("/inventory/{item_id}/movements", status_code=201)
async def record_stock_movement(
    item_id: int,
    request: StockMovementCreate,
    user: AuthUser = Depends(require_feature("can_manage_inventory")),
    db: Session = Depends(get_db)
):
    """
    Move stock in or out. Returns the movement and the item's new level.
    """
    try:
        return InventoryService.record_movement(db, user, item_id, request.model_dump())
    except Exception as e:
        _raise_http(e, "recording stock movement")


# ==================== PRODUCTION ====================

@router.get("/production")
async def list_production(
    production_type: Optional[str] = Query(None),
    animal_id: Optional[int] = Query(None),
    user: AuthUser = Depends(require_feature("can_view_production")),
    db: Session = Depends(get_db)
):
    try:
        return ProductionService.list_records(db, user, production_type=production_type, animal_id=animal_id)
    except Exception as e:
        _raise_http(e, "listing production")


@router.get("/production/summary")
async def production_summary(
    user: AuthUser = Depends(require_feature("can_view_production")),
    db: Session = Depends(get_db)
):
    try:
        return ProductionService.summary(db, user)
    except Exception as e:
        _raise_http(e, "summarizing production")


@router.post("/production", status_code=201)
async def create_production(
    request: ProductionCreate,
    user: AuthUser = Depends(require_feature("can_log_production")),
    db: Session = Depends(get_db)
):
    try:
        return ProductionService.create_record(db, user, request.model_dump())
    except Exception as e:
        _raise_http(e, "recording production")


# ==================== EXPENSES ====================

@router.get("/expenses")
async def list_expenses(
    source: Optional[str] = Query(None, pattern="^(manual|medical|animal_hire)$"),
    expense_type: Optional[str] = Query(None),
    user: AuthUser = Depends(require_feature("can_view_expenses")),
    db: Session = Depends(get_db)
):
    """
    Manual expenses merged with hire payments, newest first, with totals
    per source.
    """
    try:
        return ExpenseService.list_expenses(db, user, source=source, expense_type=expense_type)
    except Exception as e:
        _raise_http(e, "listing expenses")


@router.post("/expenses", status_code=201)
async def create_expense(
    request: ExpenseCreate,
    user: AuthUser = Depends(require_feature("can_record_expenses")),
    db: Session = Depends(get_db)
):
    try:
        return ExpenseService.create_expense(db, user, request.model_dump())
    except Exception as e:
        _raise_http(e, "creating expense")


# ==================== SCHEDULES ====================

@router.get("/schedules")
async def list_schedules(
    schedule_date: Optional[date] = Query(None),
    worker_user_id: Optional[int] = Query(None),
    user: AuthUser = Depends(require_feature("can_view_schedules")),
    db: Session = Depends(get_db)
):
    """Workers see their own schedules; task assigners see everyone's"""
    try:
        return ScheduleService.list_schedules(
            db, user, schedule_date=schedule_date, worker_user_id=worker_user_id
        )
    except Exception as e:
        _raise_http(e, "listing schedules")


@router.post("/schedules", status_code=201)
async def create_schedule(
    request: ScheduleCreate,
    user: AuthUser = Depends(require_feature("can_create_tasks")),
    db: Session = Depends(get_db)
):
    try:
        return ScheduleService.create_schedule(db, user, request.model_dump())
    except Exception as e:
        _raise_http(e, "creating schedule")


@router.patch("/schedules/{schedule_id}")
async def update_schedule(
    schedule_id: int,
    request: ScheduleUpdate,
    user: AuthUser = Depends(require_feature("can_create_tasks")),
    db: Session = Depends(get_db)
):
    try:
        return ScheduleService.update_schedule(db, user, schedule_id, request.model_dump(exclude_unset=True))
    except Exception as e:
        _raise_http(e, "updating schedule")


@router.delete("/schedules/{schedule_id}")
async def delete_schedule(
    schedule_id: int,
    user: AuthUser = Depends(require_feature("can_create_tasks")),
    db: Session = Depends(get_db)
):
    try:
        ScheduleService.delete_schedule(db, user, schedule_id)
        return {"success": True, "schedule_id": schedule_id}
    except Exception as e:
        _raise_http(e, "deleting schedule")


# ==================== ANALYTICS ====================

@router.get("/analytics/breeding")
async def breeding_analytics(
    user: AuthUser = Depends(require_feature("can_view_analytics")),
    db: Session = Depends(get_db)
):
    try:
        return AnalyticsService.breeding(db, user)
    except Exception as e:
        _raise_http(e, "computing breeding analytics")


@router.get("/analytics/birth-rates")
async def birth_rate_analytics(
    animal_type: Optional[str] = Query(None),
    season: Optional[str] = Query(None, pattern="^(dry|wet)$"),
    year: Optional[int] = Query(None),
    user: AuthUser = Depends(require_feature("can_view_birth_rate_analytics")),
    db: Session = Depends(get_db)
):
    try:
        return AnalyticsService.birth_rates(db, user, animal_type=animal_type, season=season, year=year)
    except Exception as e:
        _raise_http(e, "computing birth rates")


@router.get("/analytics/herd")
async def herd_inventory(
    user: AuthUser = Depends(require_feature("can_view_inventory_reports")),
    db: Session = Depends(get_db)
):
    try:
        return AnalyticsService.herd_inventory(db, user)
    except Exception as e:
        _raise_http(e, "summarizing herd")


@router.get("/analytics/supplies")
async def supply_inventory(
    user: AuthUser = Depends(require_feature("can_view_inventory_reports")),
    db: Session = Depends(get_db)
):
    try:
        return AnalyticsService.supply_inventory(db, user)
    except Exception as e:
        _raise_http(e, "summarizing supplies")


# ==================== REFERENCE DATA ====================

@router.get("/breeds")
async def list_breeds(
    animal_type: str = Query(...),
    user: AuthUser = Depends(require_feature("can_view_animals"))
):
    return get_breeds_for_type(animal_type)
