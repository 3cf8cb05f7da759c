"""
Data access layer for farm records.

Every query is scoped by tenant. A tenant_id of None means the caller is a
super admin and sees all tenants.

Repository methods:
- get, list, create, update, delete on every entity
- Animal: by_ids, offspring_of
- InventoryItem: record_movement
"""

from sqlalchemy.orm import Session
from sqlalchemy import desc, or_
from typing import Any, Dict, List, Optional
import logging

from livestock.models import (
    Farm, Animal, ExternalFarm, ExternalAnimal, BreedingRecord, HireAgreement,
    InventoryItem, InventoryMovement, Production, Expense, Schedule,
)

logger = logging.getLogger(__name__)


class TenantRepository:
    """
    Shared CRUD for tenant-owned tables.

    Subclasses set `model`, `pk` and `label`, and may set `order_by`.
    """

    model = None
    pk = None
    label = "Record"
    order_by = None

    @classmethod
    def _query(cls, db: Session, tenant_id: Optional[int]):
        query = db.query(cls.model)
        if tenant_id is not None:
            query = query.filter(cls.model.tenant_id == tenant_id)
        return query

    @classmethod
    def get(cls, db: Session, record_id: int, tenant_id: Optional[int] = None):
        """
        Get a record by id.

        Args:
            db: Database session
            record_id: Primary key
            tenant_id: Tenant scope (None for all tenants)

        Returns:
            Model instance

        Raises:
            ValueError: If the record doesn't exist in the tenant's scope
        """
        record = cls._query(db, tenant_id).filter(getattr(cls.model, cls.pk) == record_id).first()
        if record is None:
            raise ValueError(f"{cls.label} {record_id} not found")
        return record

    @classmethod
    def list(cls, db: Session, tenant_id: Optional[int] = None, **filters) -> List[Any]:
        """
        List records, filtered by column equality. None-valued filters are ignored.
        """
        query = cls._query(db, tenant_id)
        for column, value in filters.items():
            if value is not None:
                query = query.filter(getattr(cls.model, column) == value)
        if cls.order_by is not None:
            query = query.order_by(cls.order_by)
        return query.all()

    @classmethod
    def create(cls, db: Session, tenant_id: int, **fields):
        record = cls.model(tenant_id=tenant_id, **fields)
        db.add(record)
        db.commit()
        db.refresh(record)

        logger.info(f"Created {cls.label.lower()} {getattr(record, cls.pk)} for tenant {tenant_id}")
        return record

    @classmethod
    def update(cls, db: Session, record_id: int, tenant_id: Optional[int], updates: Dict[str, Any]):
        """
        Apply field updates to a record.

        Args:
            db: Database session
            record_id: Primary key
            tenant_id: Tenant scope
            updates: Column name -> new value

        Returns:
            Updated model instance
        """
        record = cls.get(db, record_id, tenant_id)
        for column, value in updates.items():
            setattr(record, column, value)
        db.commit()
        db.refresh(record)

        logger.info(f"Updated {cls.label.lower()} {record_id}: {sorted(updates)}")
        return record

    @classmethod
    def delete(cls, db: Session, record_id: int, tenant_id: Optional[int] = None) -> bool:
        record = cls.get(db, record_id, tenant_id)
        db.delete(record)
        db.commit()

        logger.info(f"Deleted {cls.label.lower()} {record_id}")
        return True


class FarmRepository(TenantRepository):
    model = Farm
    pk = "farm_id"
    label = "Farm"
    order_by = Farm.farm_name


class AnimalRepository(TenantRepository):
    model = Animal
    pk = "animal_id"
    label = "Animal"
    order_by = Animal.tag_number

    @staticmethod
    def by_ids(db: Session, animal_ids: List[int], tenant_id: Optional[int] = None) -> List[Animal]:
        if not animal_ids:
            return []
        query = db.query(Animal).filter(Animal.animal_id.in_(animal_ids))
        if tenant_id is not None:
            query = query.filter(Animal.tenant_id == tenant_id)
        return query.all()

    @staticmethod
    def offspring_of(db: Session, animal_id: int, tenant_id: Optional[int] = None) -> List[Animal]:
        """Animals naming this animal as mother or father"""
        query = db.query(Animal).filter(
            or_(Animal.mother_animal_id == animal_id, Animal.father_animal_id == animal_id)
        )
        if tenant_id is not None:
            query = query.filter(Animal.tenant_id == tenant_id)
        return query.order_by(Animal.birth_date).all()


class ExternalFarmRepository(TenantRepository):
    model = ExternalFarm
    pk = "external_farm_id"
    label = "External farm"
    order_by = ExternalFarm.farm_name


class ExternalAnimalRepository(TenantRepository):
    model = ExternalAnimal
    pk = "external_animal_id"
    label = "External animal"
    order_by = ExternalAnimal.tag_number


class BreedingRecordRepository(TenantRepository):
    model = BreedingRecord
    pk = "breeding_id"
    label = "Breeding record"
    order_by = desc(BreedingRecord.breeding_date)


class HireAgreementRepository(TenantRepository):
    model = HireAgreement
    pk = "agreement_id"
    label = "Hire agreement"
    order_by = desc(HireAgreement.start_date)


class InventoryItemRepository(TenantRepository):
    model = InventoryItem
    pk = "item_id"
    label = "Inventory item"
    order_by = InventoryItem.item_name

    @staticmethod
    def record_movement(
        db: Session,
        item: InventoryItem,
        new_stock: float,
        new_status: str,
        **fields
    ) -> InventoryMovement:
        """
        Persist a stock movement and the item's new level in one commit.

        Args:
            db: Database session
            item: Item being moved (already tenant-checked)
            new_stock: Stock level after the movement
            new_status: Derived item status after the movement
            **fields: InventoryMovement columns

        Returns:
            Created InventoryMovement
        """
        movement = InventoryMovement(
            item_id=item.item_id,
            tenant_id=item.tenant_id,
            farm_id=item.farm_id,
            unit=item.unit,
            **fields
        )
        item.current_stock = new_stock
        item.status = new_status
        db.add(movement)
        db.commit()
        db.refresh(movement)
        db.refresh(item)

        logger.info(
            f"Stock movement {movement.movement_type} {movement.quantity} on item {item.item_id} "
            f"(now {new_stock}, {new_status})"
        )
        return movement


class InventoryMovementRepository(TenantRepository):
    model = InventoryMovement
    pk = "movement_id"
    label = "Inventory movement"
    order_by = desc(InventoryMovement.created_at)


class ProductionRepository(TenantRepository):
    model = Production
    pk = "production_id"
    label = "Production record"
    order_by = desc(Production.production_date)


class ExpenseRepository(TenantRepository):
    model = Expense
    pk = "expense_id"
    label = "Expense"
    order_by = desc(Expense.expense_date)


class ScheduleRepository(TenantRepository):
    model = Schedule
    pk = "schedule_id"
    label = "Schedule"
    order_by = Schedule.schedule_date
