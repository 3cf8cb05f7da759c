"""
Business logic for farm records.

The service layer sits between API endpoints and repositories.
It handles:
- Tenant scoping from the authenticated user
- Validating business rules (castration, breeding pairs, stock levels, schedules)
- Joining records for lineage and analytics
- Formatting responses as dictionaries
"""

from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
from datetime import date
import logging

from auth.session import AuthUser
from auth.role_utils import can_access_feature
from livestock import analytics, lineage
from livestock.repository import (
    FarmRepository, AnimalRepository, ExternalFarmRepository, ExternalAnimalRepository,
    BreedingRecordRepository, HireAgreementRepository, InventoryItemRepository,
    InventoryMovementRepository, ProductionRepository, ExpenseRepository, ScheduleRepository,
)

logger = logging.getLogger(__name__)


def tenant_scope(user: AuthUser) -> Optional[int]:
    """Tenant filter for a user's queries; None lets a super admin see every tenant"""
    return None if user.is_super_admin else user.tenant_id


def owning_tenant(user: AuthUser, data: Dict[str, Any]) -> int:
    """
    Pop the requested tenant from create data and resolve the owning tenant.

    Only a super admin may name another tenant; without one their records
    would land in the system tenant, so they must name it.
    """
    requested = data.pop("tenant_id", None)
    if requested is None or requested == user.tenant_id:
        if user.is_super_admin:
            raise ValueError("Super admins must give a tenant_id")
        return user.tenant_id
    if not user.is_super_admin:
        raise PermissionError("Cannot create records for another tenant")
    return requested


def _dicts(records) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in records]


class FarmService:

    @staticmethod
    def list_farms(db: Session, user: AuthUser, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return _dicts(FarmRepository.list(db, tenant_scope(user), status=status))

    @staticmethod
    def get_farm(db: Session, user: AuthUser, farm_id: int) -> Dict[str, Any]:
        return FarmRepository.get(db, farm_id, tenant_scope(user)).to_dict()

    @staticmethod
    def create_farm(db: Session, user: AuthUser, data: Dict[str, Any]) -> Dict[str, Any]:
        data = dict(data)
        return FarmRepository.create(db, owning_tenant(user, data), **data).to_dict()

    @staticmethod
    def update_farm(db: Session, user: AuthUser, farm_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        return FarmRepository.update(db, farm_id, tenant_scope(user), updates).to_dict()


class AnimalService:
    """
    Animal registry, castration and lineage.

    Lineage helpers work on the tenant's whole herd so that parents recorded
    on another of the tenant's farms are still found.
    """

    @staticmethod
    def list_animals(
        db: Session,
        user: AuthUser,
        farm_id: Optional[int] = None,
        animal_type: Optional[str] = None,
        status: Optional[str] = None,
        gender: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        animals = AnimalRepository.list(
            db, tenant_scope(user),
            farm_id=farm_id, animal_type=animal_type, status=status, gender=gender
        )
        results = []
        for animal in animals:
            data = animal.to_dict()
            data["gender_label"] = lineage.get_gender_label(data)
            results.append(data)
        return results

    @staticmethod
    def get_animal(db: Session, user: AuthUser, animal_id: int) -> Dict[str, Any]:
        data = AnimalRepository.get(db, animal_id, tenant_scope(user)).to_dict()
        data["gender_label"] = lineage.get_gender_label(data)
        data["can_breed"] = lineage.can_breed(data)
        return data

    @staticmethod
    def _check_parents(db: Session, tenant_id: int, data: Dict[str, Any]) -> None:
        mother_id = data.get("mother_animal_id")
        father_id = data.get("father_animal_id")
        if mother_id:
            mother = AnimalRepository.get(db, mother_id, tenant_id)
            if mother.gender != "female":
                raise ValueError(f"Mother {mother_id} is not female")
        if father_id:
            father = AnimalRepository.get(db, father_id, tenant_id)
            if father.gender != "male":
                raise ValueError(f"Father {father_id} is not male")
        if data.get("external_mother_id"):
            ExternalAnimalRepository.get(db, data["external_mother_id"], tenant_id)
        if data.get("external_father_id"):
            ExternalAnimalRepository.get(db, data["external_father_id"], tenant_id)

    @staticmethod
    def create_animal(db: Session, user: AuthUser, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Register an animal on one of the user's farms.

        Args:
            db: Database session
            user: Authenticated user
            data: Validated AnimalCreate fields

        Returns:
            Dictionary with animal data

        Raises:
            ValueError: Unknown farm or parent, or parent of the wrong sex
        """
        try:
            farm = FarmRepository.get(db, data["farm_id"], tenant_scope(user))
            AnimalService._check_parents(db, farm.tenant_id, data)
            animal = AnimalRepository.create(db, farm.tenant_id, **data)
            return animal.to_dict()

        except Exception as e:
            logger.error(f"Error creating animal: {e}")
            raise

    @staticmethod
    def update_animal(db: Session, user: AuthUser, animal_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        animal = AnimalRepository.get(db, animal_id, tenant_scope(user))
        for parent_key in ("mother_animal_id", "father_animal_id"):
            if updates.get(parent_key) == animal_id:
                raise ValueError("An animal cannot be its own parent")
        for parent, internal_key, external_key in (
            ("Mother", "mother_animal_id", "external_mother_id"),
            ("Father", "father_animal_id", "external_father_id"),
        ):
            internal = updates.get(internal_key, getattr(animal, internal_key))
            external = updates.get(external_key, getattr(animal, external_key))
            if internal and external:
                raise ValueError(f"{parent} must be either internal or external, not both")
        AnimalService._check_parents(db, animal.tenant_id, updates)
        return AnimalRepository.update(db, animal_id, animal.tenant_id, updates).to_dict()

    @staticmethod
    def delete_animal(db: Session, user: AuthUser, animal_id: int) -> bool:
        return AnimalRepository.delete(db, animal_id, tenant_scope(user))

    @staticmethod
    def castrate(db: Session, user: AuthUser, animal_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """Record castration; only intact males qualify"""
        animal = AnimalRepository.get(db, animal_id, tenant_scope(user))
        if animal.gender != "male":
            raise ValueError("Only male animals can be castrated")
        if animal.is_castrated:
            raise ValueError(f"Animal {animal.tag_number} is already castrated")

        updates = dict(data, is_castrated=True)
        logger.info(f"Castration recorded for animal {animal_id} by user {user.user_id}")
        return AnimalRepository.update(db, animal_id, animal.tenant_id, updates).to_dict()

    # ---------- lineage ----------

    @staticmethod
    def _herd(db: Session, tenant_id: int):
        animals = _dicts(AnimalRepository.list(db, tenant_id))
        externals = _dicts(ExternalAnimalRepository.list(db, tenant_id))
        farm_names = {f.external_farm_id: f.farm_name for f in ExternalFarmRepository.list(db, tenant_id)}
        return animals, externals, farm_names

    @staticmethod
    def get_lineage(db: Session, user: AuthUser, animal_id: int, generations: int = 3) -> Dict[str, Any]:
        animal = AnimalRepository.get(db, animal_id, tenant_scope(user))
        animals, externals, farm_names = AnimalService._herd(db, animal.tenant_id)
        records = _dicts(BreedingRecordRepository.list(db, animal.tenant_id))

        pedigree = lineage.build_pedigree(animal_id, generations, animals, externals, farm_names)
        pedigree["generation_number"] = lineage.calculate_generation_number(animal_id, animals)
        pedigree["offspring"] = _dicts(AnimalRepository.offspring_of(db, animal_id, animal.tenant_id))
        pedigree["descendants"] = lineage.get_descendants(animal_id, animals, records)
        return pedigree

    @staticmethod
    def get_genetic_diversity(db: Session, user: AuthUser, animal_id: int) -> Dict[str, Any]:
        animal = AnimalRepository.get(db, animal_id, tenant_scope(user))
        animals, externals, _ = AnimalService._herd(db, animal.tenant_id)
        return lineage.analyze_genetic_diversity(animal_id, animals, externals)

    @staticmethod
    def get_optimal_mates(db: Session, user: AuthUser, animal_id: int, limit: int = 10) -> List[Dict[str, Any]]:
        animal = AnimalRepository.get(db, animal_id, tenant_scope(user))
        animals = _dicts(AnimalRepository.list(db, animal.tenant_id))
        return lineage.find_optimal_mates(animal_id, animals)[:limit]

    @staticmethod
    def assess_mating(db: Session, user: AuthUser, animal_id: int, mate_id: int) -> Dict[str, Any]:
        """Inbreeding risk and predicted traits for a prospective pair"""
        scope = tenant_scope(user)
        animal = AnimalRepository.get(db, animal_id, scope)
        mate = AnimalRepository.get(db, mate_id, scope)
        if animal.gender == mate.gender:
            raise ValueError("Animals must be of opposite sex")

        animals = _dicts(AnimalRepository.list(db, animal.tenant_id))
        dam, sire = (animal, mate) if animal.gender == "female" else (mate, animal)
        result = lineage.assess_inbreeding_risk(animal_id, mate_id, animals)
        result["predicted_traits"] = lineage.predict_offspring_traits(dam.to_dict(), sire.to_dict())
        return result


class ExternalFarmService:

    @staticmethod
    def list_farms(db: Session, user: AuthUser, is_active: Optional[bool] = None) -> List[Dict[str, Any]]:
        return _dicts(ExternalFarmRepository.list(db, tenant_scope(user), is_active=is_active))

    @staticmethod
    def get_farm(db: Session, user: AuthUser, external_farm_id: int) -> Dict[str, Any]:
        scope = tenant_scope(user)
        data = ExternalFarmRepository.get(db, external_farm_id, scope).to_dict()
        data["animals"] = _dicts(
            ExternalAnimalRepository.list(db, scope, external_farm_id=external_farm_id)
        )
        return data

    @staticmethod
    def create_farm(db: Session, user: AuthUser, data: Dict[str, Any]) -> Dict[str, Any]:
        data = dict(data)
        return ExternalFarmRepository.create(db, owning_tenant(user, data), **data).to_dict()

    @staticmethod
    def update_farm(db: Session, user: AuthUser, external_farm_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        return ExternalFarmRepository.update(db, external_farm_id, tenant_scope(user), updates).to_dict()

    @staticmethod
    def list_animals(db: Session, user: AuthUser, external_farm_id: Optional[int] = None) -> List[Dict[str, Any]]:
        return _dicts(ExternalAnimalRepository.list(db, tenant_scope(user), external_farm_id=external_farm_id))

    @staticmethod
    def create_animal(db: Session, user: AuthUser, data: Dict[str, Any]) -> Dict[str, Any]:
        farm = ExternalFarmRepository.get(db, data["external_farm_id"], tenant_scope(user))
        return ExternalAnimalRepository.create(db, farm.tenant_id, **data).to_dict()


class BreedingService:
    """
    Breeding records and sire hire agreements.
    """

    @staticmethod
    def list_records(
        db: Session,
        user: AuthUser,
        sire_source: Optional[str] = None,
        pregnancy_status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return _dicts(BreedingRecordRepository.list(
            db, tenant_scope(user), sire_source=sire_source, pregnancy_status=pregnancy_status
        ))

    @staticmethod
    def get_record(db: Session, user: AuthUser, breeding_id: int) -> Dict[str, Any]:
        return BreedingRecordRepository.get(db, breeding_id, tenant_scope(user)).to_dict()

    @staticmethod
    def create_record(db: Session, user: AuthUser, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Record a breeding.

        The dam must be an active female of the tenant. An internal sire must
        be an active, intact male of the same type; an external sire must name
        an external animal, whose farm and tag are copied onto the record.

        Raises:
            ValueError: On any violated pairing rule
        """
        try:
            farm = FarmRepository.get(db, data["farm_id"], tenant_scope(user))
            tenant_id = farm.tenant_id

            dam = AnimalRepository.get(db, data["animal_id"], tenant_id)
            if dam.gender != "female" or not lineage.can_breed(dam.to_dict()):
                raise ValueError(f"Animal {dam.tag_number} is not a female that can breed")
            if dam.status != "active":
                raise ValueError(f"Animal {dam.tag_number} is not active")

            fields = dict(data)
            if data["sire_source"] == "internal":
                if not data.get("sire_id"):
                    raise ValueError("Internal breeding requires sire_id")
                sire = AnimalRepository.get(db, data["sire_id"], tenant_id)
                if sire.gender != "male" or sire.is_castrated:
                    raise ValueError(f"Sire {sire.tag_number} is not an intact male")
                if sire.status != "active":
                    raise ValueError(f"Sire {sire.tag_number} is not active")
                if sire.animal_type != dam.animal_type:
                    raise ValueError("Sire and dam must be the same animal type")
                fields["external_animal_id"] = None
            else:
                if not data.get("external_animal_id"):
                    raise ValueError("External breeding requires external_animal_id")
                external = ExternalAnimalRepository.get(db, data["external_animal_id"], tenant_id)
                external_farm = ExternalFarmRepository.get(db, external.external_farm_id, tenant_id)
                fields["sire_id"] = None
                fields["external_farm_name"] = external_farm.farm_name
                fields["external_animal_tag"] = external.tag_number

            fields["status"] = "in_progress"
            record = BreedingRecordRepository.create(
                db, tenant_id, recorded_by_user_id=user.user_id, **fields
            )
            return record.to_dict()

        except Exception as e:
            logger.error(f"Error creating breeding record: {e}")
            raise

    @staticmethod
    def update_record(db: Session, user: AuthUser, breeding_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Update pregnancy progress or record the birth outcome"""
        record = BreedingRecordRepository.get(db, breeding_id, tenant_scope(user))
        updates = dict(updates)
        if updates.get("birth_outcome"):
            updates.setdefault("pregnancy_status", "completed")
            updates["status"] = "successful" if updates["birth_outcome"] == "successful" else "failed"
        elif updates.get("pregnancy_status") == "failed":
            updates["status"] = "failed"
        return BreedingRecordRepository.update(db, breeding_id, record.tenant_id, updates).to_dict()

    @staticmethod
    def list_agreements(db: Session, user: AuthUser, agreement_type: Optional[str] = None) -> List[Dict[str, Any]]:
        return _dicts(HireAgreementRepository.list(db, tenant_scope(user), agreement_type=agreement_type))

    @staticmethod
    def create_agreement(db: Session, user: AuthUser, data: Dict[str, Any]) -> Dict[str, Any]:
        farm = FarmRepository.get(db, data["farm_id"], tenant_scope(user))
        ExternalFarmRepository.get(db, data["external_farm_id"], farm.tenant_id)
        if data["agreement_type"] == "hire_out":
            if not data.get("animal_id"):
                raise ValueError("hire_out agreements require animal_id")
            AnimalRepository.get(db, data["animal_id"], farm.tenant_id)
        elif data.get("external_animal_id"):
            ExternalAnimalRepository.get(db, data["external_animal_id"], farm.tenant_id)

        agreement = HireAgreementRepository.create(
            db, farm.tenant_id, created_by_user_id=user.user_id, **data
        )
        return agreement.to_dict()

    @staticmethod
    def update_agreement(db: Session, user: AuthUser, agreement_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Update agreement terms; a new hire fee re-derives the payment status"""
        agreement = HireAgreementRepository.get(db, agreement_id, tenant_scope(user))
        updates = dict(updates)
        if updates.get("hire_fee") is not None:
            paid = agreement.paid_amount or 0
            if updates["hire_fee"] < paid:
                raise ValueError(f"Hire fee cannot be lower than the {paid} already paid")
            updates["payment_status"] = BreedingService._payment_status(paid, updates["hire_fee"])
        return HireAgreementRepository.update(db, agreement_id, agreement.tenant_id, updates).to_dict()

    @staticmethod
    def _payment_status(paid: float, hire_fee: float) -> str:
        if paid <= 0:
            return "pending"
        return "paid" if paid >= hire_fee else "partial"

    @staticmethod
    def record_payment(db: Session, user: AuthUser, agreement_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Add a payment to an agreement. The agreement is `paid` once the
        hire fee is covered and `partial` before that.
        """
        agreement = HireAgreementRepository.get(db, agreement_id, tenant_scope(user))
        paid = (agreement.paid_amount or 0) + data["amount"]
        if paid > agreement.hire_fee:
            raise ValueError(f"Payment exceeds outstanding balance of {agreement.hire_fee - (agreement.paid_amount or 0)}")

        updates = {
            "paid_amount": paid,
            "payment_date": data["payment_date"],
            "payment_method": data.get("payment_method"),
            "payment_reference": data.get("payment_reference"),
            "payment_status": BreedingService._payment_status(paid, agreement.hire_fee),
        }
        logger.info(f"Payment of {data['amount']} recorded on hire agreement {agreement_id}")
        return HireAgreementRepository.update(db, agreement_id, agreement.tenant_id, updates).to_dict()


class InventoryService:
    """Supply items and stock movements"""

    @staticmethod
    def list_items(
        db: Session,
        user: AuthUser,
        category: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return _dicts(InventoryItemRepository.list(db, tenant_scope(user), category=category, status=status))

    @staticmethod
    def get_item(db: Session, user: AuthUser, item_id: int) -> Dict[str, Any]:
        scope = tenant_scope(user)
        data = InventoryItemRepository.get(db, item_id, scope).to_dict()
        data["movements"] = _dicts(InventoryMovementRepository.list(db, scope, item_id=item_id))
        return data

    @staticmethod
    def create_item(db: Session, user: AuthUser, data: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
        farm = FarmRepository.get(db, data["farm_id"], tenant_scope(user))
        status = analytics.derive_stock_status(data, today or date.today())
        item = InventoryItemRepository.create(
            db, farm.tenant_id, status=status, created_by_user_id=user.user_id, **data
        )
        return item.to_dict()

    @staticmethod
    def update_item(
        db: Session,
        user: AuthUser,
        item_id: int,
        updates: Dict[str, Any],
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        item = InventoryItemRepository.get(db, item_id, tenant_scope(user))
        merged = {**item.to_dict(), **updates}
        if merged["status"] != "discontinued":
            merged["status"] = None
            updates = dict(updates, status=analytics.derive_stock_status(merged, today or date.today()))
        return InventoryItemRepository.update(db, item_id, item.tenant_id, updates).to_dict()

    @staticmethod
    def record_movement(
        db: Session,
        user: AuthUser,
        item_id: int,
        data: Dict[str, Any],
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Move stock in or out of an item.

        `in` adds, `out` and `transfer` subtract; `adjustment` applies a signed
        quantity. Stock may never go negative. The item status is re-derived
        from the new level.

        Raises:
            ValueError: Non-positive quantity for in/out/transfer, or insufficient stock
        """
        item = InventoryItemRepository.get(db, item_id, tenant_scope(user))
        quantity = data["quantity"]
        movement_type = data["movement_type"]

        if movement_type != "adjustment" and quantity <= 0:
            raise ValueError(f"{movement_type} movements need a positive quantity")

        delta = -quantity if movement_type in ("out", "transfer") else quantity
        new_stock = (item.current_stock or 0) + delta
        if new_stock < 0:
            raise ValueError(
                f"Insufficient stock for {item.item_name}: {item.current_stock} {item.unit} available"
            )

        status = analytics.derive_stock_status(
            {**item.to_dict(), "current_stock": new_stock}, today or date.today()
        )
        unit_cost = data.get("unit_cost") if data.get("unit_cost") is not None else item.unit_cost
        movement = InventoryItemRepository.record_movement(
            db, item, new_stock, status,
            movement_type=movement_type,
            quantity=quantity,
            unit_cost=unit_cost,
            total_cost=abs(quantity) * unit_cost if unit_cost is not None else None,
            reason=data.get("reason"),
            reference_number=data.get("reference_number"),
            notes=data.get("notes"),
            created_by_user_id=user.user_id,
        )
        return {"movement": movement.to_dict(), "item": item.to_dict()}


class ProductionService:

    @staticmethod
    def list_records(
        db: Session,
        user: AuthUser,
        production_type: Optional[str] = None,
        animal_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return _dicts(ProductionRepository.list(
            db, tenant_scope(user), production_type=production_type, animal_id=animal_id
        ))

    @staticmethod
    def create_record(db: Session, user: AuthUser, data: Dict[str, Any]) -> Dict[str, Any]:
        farm = FarmRepository.get(db, data["farm_id"], tenant_scope(user))
        if data.get("animal_id"):
            animal = AnimalRepository.get(db, data["animal_id"], farm.tenant_id)
            if animal.status != "active":
                raise ValueError(f"Animal {animal.tag_number} is not active")
        record = ProductionRepository.create(db, farm.tenant_id, recorded_by_user_id=user.user_id, **data)
        return record.to_dict()

    @staticmethod
    def summary(db: Session, user: AuthUser) -> Dict[str, Any]:
        records = _dicts(ProductionRepository.list(db, tenant_scope(user)))
        return {
            "by_animal": analytics.production_by_animal(records),
            "by_type": analytics.production_totals_by_type(records),
        }


class ExpenseService:
    """Manual expenses merged with hire payments"""

    @staticmethod
    def create_expense(db: Session, user: AuthUser, data: Dict[str, Any]) -> Dict[str, Any]:
        farm = FarmRepository.get(db, data["farm_id"], tenant_scope(user))
        if data.get("external_animal_hire_agreement_id"):
            HireAgreementRepository.get(db, data["external_animal_hire_agreement_id"], farm.tenant_id)
        expense = ExpenseRepository.create(db, farm.tenant_id, created_by_user_id=user.user_id, **data)
        return expense.to_dict()

    @staticmethod
    def all_expenses(db: Session, user: AuthUser) -> List[Dict[str, Any]]:
        scope = tenant_scope(user)
        farm_names = {f.external_farm_id: f.farm_name for f in ExternalFarmRepository.list(db, scope)}
        tags = {a.external_animal_id: a.tag_number for a in ExternalAnimalRepository.list(db, scope)}
        return analytics.aggregate_all_expenses(
            _dicts(ExpenseRepository.list(db, scope)),
            _dicts(HireAgreementRepository.list(db, scope)),
            farm_names,
            tags,
        )

    @staticmethod
    def list_expenses(
        db: Session,
        user: AuthUser,
        source: Optional[str] = None,
        expense_type: Optional[str] = None
    ) -> Dict[str, Any]:
        unified = ExpenseService.all_expenses(db, user)
        filtered = analytics.expenses_by_type(analytics.expenses_by_source(unified, source), expense_type)
        return {
            "expenses": filtered,
            "totals": analytics.totals_by_source(unified),
        }


class ScheduleService:
    """
    Worker schedules. Users without `can_assign_tasks` only see and create
    their own.
    """

    @staticmethod
    def list_schedules(
        db: Session,
        user: AuthUser,
        schedule_date: Optional[date] = None,
        worker_user_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        if not can_access_feature(user, "can_assign_tasks"):
            worker_user_id = user.user_id
        return _dicts(ScheduleRepository.list(
            db, tenant_scope(user), schedule_date=schedule_date, worker_user_id=worker_user_id
        ))

    @staticmethod
    def create_schedule(db: Session, user: AuthUser, data: Dict[str, Any]) -> Dict[str, Any]:
        if data["end_time"] <= data["start_time"]:
            raise ValueError("end_time must be after start_time")
        if data["worker_user_id"] != user.user_id and not can_access_feature(user, "can_assign_tasks"):
            raise PermissionError("Cannot assign tasks to other workers")

        farm = FarmRepository.get(db, data["farm_id"], tenant_scope(user))
        if data.get("assigned_animals"):
            found = AnimalRepository.by_ids(db, data["assigned_animals"], farm.tenant_id)
            missing = set(data["assigned_animals"]) - {a.animal_id for a in found}
            if missing:
                raise ValueError(f"Unknown animals: {sorted(missing)}")
        return ScheduleRepository.create(db, farm.tenant_id, **data).to_dict()

    @staticmethod
    def update_schedule(db: Session, user: AuthUser, schedule_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        schedule = ScheduleRepository.get(db, schedule_id, tenant_scope(user))
        if schedule.worker_user_id != user.user_id and not can_access_feature(user, "can_assign_tasks"):
            raise PermissionError("Cannot modify another worker's schedule")

        start = updates.get("start_time") or schedule.start_time
        end = updates.get("end_time") or schedule.end_time
        if end <= start:
            raise ValueError("end_time must be after start_time")
        return ScheduleRepository.update(db, schedule_id, schedule.tenant_id, updates).to_dict()

    @staticmethod
    def delete_schedule(db: Session, user: AuthUser, schedule_id: int) -> bool:
        schedule = ScheduleRepository.get(db, schedule_id, tenant_scope(user))
        if schedule.worker_user_id != user.user_id and not can_access_feature(user, "can_assign_tasks"):
            raise PermissionError("Cannot delete another worker's schedule")
        return ScheduleRepository.delete(db, schedule_id, schedule.tenant_id)


class AnalyticsService:
    """Dashboard aggregations over the tenant's records"""

    @staticmethod
    def breeding(db: Session, user: AuthUser) -> Dict[str, Any]:
        scope = tenant_scope(user)
        return analytics.sire_source_analytics(
            _dicts(BreedingRecordRepository.list(db, scope)),
            _dicts(HireAgreementRepository.list(db, scope)),
        )

    @staticmethod
    def birth_rates(
        db: Session,
        user: AuthUser,
        animal_type: Optional[str] = None,
        season: Optional[str] = None,
        year: Optional[int] = None
    ) -> Dict[str, Any]:
        scope = tenant_scope(user)
        return analytics.birth_rate_analytics(
            _dicts(BreedingRecordRepository.list(db, scope)),
            _dicts(AnimalRepository.list(db, scope)),
            animal_type=animal_type,
            season=season,
            year=year,
        )

    @staticmethod
    def herd_inventory(db: Session, user: AuthUser, today: Optional[date] = None) -> Dict[str, Any]:
        scope = tenant_scope(user)
        return analytics.herd_inventory_summary(
            _dicts(AnimalRepository.list(db, scope)),
            _dicts(BreedingRecordRepository.list(db, scope)),
            today or date.today(),
        )

    @staticmethod
    def supply_inventory(db: Session, user: AuthUser, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        items = _dicts(InventoryItemRepository.list(db, tenant_scope(user)))
        summary = analytics.supply_inventory_summary(items, today)
        summary["expiring_items"] = analytics.expiring_items(items, today)
        return summary
