"""
Aggregations over farm records.

Functions take plain record dicts (as produced by the models' to_dict())
so they can be used on query results or on fixtures alike. Date fields may
be date objects or ISO strings. Functions that depend on the current date
take a `today` argument.
"""

from collections import OrderedDict, defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional
import logging

logger = logging.getLogger(__name__)

DRY_SEASON_MONTHS = {11, 12, 1, 2, 3, 4}
HERD_TYPES = ("cattle", "goat", "sheep", "pig")
ANIMAL_STATUSES = ("active", "sold", "deceased", "disposed")
HIRE_EXPENSE_ID_OFFSET = 10000


def as_date(value) -> Optional[date]:
    """Coerce a date, datetime or ISO string to a date"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def age_in_years(birth_date, today: date) -> Optional[float]:
    birth = as_date(birth_date)
    if birth is None:
        return None
    return (today - birth).days / 365


def get_season(value) -> str:
    """Dry season runs November to April, wet season May to October"""
    return "dry" if as_date(value).month in DRY_SEASON_MONTHS else "wet"


# ==================== BREEDING ====================

def is_successful(record: Mapping[str, Any]) -> bool:
    return (
        record.get("birth_outcome") == "successful"
        or (record.get("pregnancy_status") == "completed" and not record.get("birth_outcome"))
        or record.get("status") == "successful"
    )


def _has_birth(record: Mapping[str, Any]) -> bool:
    return record.get("birth_outcome") == "successful" or record.get("pregnancy_status") == "completed"


def _source_stats(records: List[Mapping[str, Any]]) -> Dict[str, Any]:
    total = len(records)
    successful = sum(1 for r in records if is_successful(r))
    births = [r for r in records if _has_birth(r)]
    offspring = sum(r.get("offspring_count") or 1 for r in births)
    complications = sum(
        1 for r in records if r.get("birth_outcome") == "complications" or r.get("complications")
    )
    return {
        "total": total,
        "successful": successful,
        "success_rate": (successful / total) * 100 if total else 0.0,
        "births": len(births),
        "avg_offspring": offspring / len(births) if births else 0.0,
        "complications": complications,
        "complications_rate": (complications / total) * 100 if total else 0.0,
    }


def sire_source_analytics(
    records: Iterable[Mapping[str, Any]],
    agreements: Iterable[Mapping[str, Any]],
) -> Dict[str, Any]:
    """
    Compare breeding with internal sires against hired external sires.

    Revenue comes from paid hire_out agreements linked from internal records;
    expenses come from hire_in agreements linked from external records (the
    full fee once paid, otherwise what has been paid so far).
    """
    records = list(records)
    by_id = {a["agreement_id"]: a for a in agreements}

    internal = [r for r in records if r.get("sire_source") == "internal"]
    external = [r for r in records if r.get("sire_source") == "external"]

    revenue = 0.0
    for r in internal:
        agreement = by_id.get(r.get("animal_hire_agreement_id"))
        if agreement and agreement.get("payment_status") == "paid":
            revenue += agreement.get("hire_fee") or 0

    expenses = 0.0
    for r in external:
        agreement = by_id.get(r.get("external_animal_hire_agreement_id"))
        if agreement:
            if agreement.get("payment_status") == "paid":
                expenses += agreement.get("hire_fee") or 0
            else:
                expenses += agreement.get("paid_amount") or 0

    internal_stats = _source_stats(internal)
    external_stats = _source_stats(external)
    internal_stats["revenue"] = revenue
    internal_stats["cost_per_birth"] = 0.0
    external_stats["expenses"] = expenses
    external_stats["cost_per_birth"] = expenses / external_stats["births"] if external_stats["births"] else 0.0

    return {
        "internal": internal_stats,
        "external": external_stats,
        "financial": {
            "revenue": revenue,
            "expenses": expenses,
            "net_profit": revenue - expenses,
        },
    }


def birth_rate_analytics(
    records: Iterable[Mapping[str, Any]],
    animals: Iterable[Mapping[str, Any]],
    animal_type: Optional[str] = None,
    season: Optional[str] = None,
    year: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Births from successful breeding outcomes, grouped by month, animal type
    and season. Filters apply to the dam's type and the birth date.
    """
    animals_by_id = {a["animal_id"]: a for a in animals}
    births = [r for r in records if r.get("birth_outcome") == "successful"]

    filtered = []
    for record in births:
        dam = animals_by_id.get(record.get("animal_id"))
        birth_date = as_date(record.get("actual_birth_date"))
        if animal_type and (dam is None or dam.get("animal_type") != animal_type):
            continue
        if year and (birth_date is None or birth_date.year != int(year)):
            continue
        if season and (birth_date is None or get_season(birth_date) != season):
            continue
        filtered.append(record)

    monthly: Dict[date, int] = defaultdict(int)
    by_type: Dict[str, int] = defaultdict(int)
    by_season = {"dry": 0, "wet": 0}
    for record in filtered:
        count = record.get("offspring_count") or 1
        birth_date = as_date(record.get("actual_birth_date"))
        if birth_date is not None:
            monthly[birth_date.replace(day=1)] += count
            by_season[get_season(birth_date)] += count
        dam = animals_by_id.get(record.get("animal_id"))
        by_type[dam.get("animal_type") if dam else "unknown"] += count

    monthly_labels = OrderedDict(
        (month.strftime("%b %Y"), monthly[month]) for month in sorted(monthly)
    )
    top_months = sorted(monthly_labels.items(), key=lambda item: item[1], reverse=True)[:5]
    total_births = sum(r.get("offspring_count") or 1 for r in filtered)
    years = sorted(
        {as_date(r["actual_birth_date"]).year for r in births if r.get("actual_birth_date")},
        reverse=True,
    )

    return {
        "monthly": dict(monthly_labels),
        "by_animal_type": dict(by_type),
        "by_season": by_season,
        "top_months": [{"month": m, "births": c} for m, c in top_months],
        "total_births": total_births,
        "average_per_month": round(total_births / len(monthly_labels), 1) if monthly_labels else 0.0,
        "available_years": years,
    }


# ==================== INVENTORY ====================

def age_group(birth_date, today: date) -> Optional[str]:
    age = age_in_years(birth_date, today)
    if age is None:
        return None
    if age < 1:
        return "young"
    if age <= 5:
        return "adult"
    return "senior"


def herd_inventory_summary(
    animals: Iterable[Mapping[str, Any]],
    records: Iterable[Mapping[str, Any]],
    today: date,
) -> Dict[str, Any]:
    animals = list(animals)
    animal_ids = {a["animal_id"] for a in animals}

    by_type = {t: 0 for t in HERD_TYPES}
    by_type["other"] = 0
    for a in animals:
        by_type[a["animal_type"] if a["animal_type"] in HERD_TYPES else "other"] += 1

    by_status = {s: sum(1 for a in animals if a.get("status") == s) for s in ANIMAL_STATUSES}

    by_age = {"young": 0, "adult": 0, "senior": 0}
    for a in animals:
        group = age_group(a.get("birth_date"), today)
        if group:
            by_age[group] += 1

    females = [a for a in animals if a.get("gender") == "female" and a.get("status") == "active"]
    breeding_age = [a for a in females if (age_in_years(a.get("birth_date"), today) or 0) >= 1]

    pregnant_ids = {
        r["animal_id"] for r in records
        if r.get("animal_id") in animal_ids
        and r.get("pregnancy_status") in ("confirmed", "suspected")
        and r.get("expected_due_date")
        and as_date(r["expected_due_date"]) > today
    }

    return {
        "total_animals": len(animals),
        "animals_by_type": by_type,
        "animals_by_status": by_status,
        "animals_by_age_group": by_age,
        "reproductive_status": {
            "breeding_age_females": len(breeding_age),
            "pregnant": len(pregnant_ids),
            "lactating": len(females),
            "available_for_breeding": max(0, len(breeding_age) - len(pregnant_ids)),
        },
        "available_for_sale": by_status["active"],
    }


def derive_stock_status(item: Mapping[str, Any], today: date) -> str:
    """Stock status from level, reorder point and expiry; discontinued is sticky"""
    if item.get("status") == "discontinued":
        return "discontinued"
    expiry = as_date(item.get("expiry_date"))
    if expiry is not None and expiry < today:
        return "expired"
    stock = item.get("current_stock") or 0
    if stock <= 0:
        return "out_of_stock"
    if stock <= (item.get("reorder_point") or 0):
        return "low_stock"
    return "active"


def supply_inventory_summary(items: Iterable[Mapping[str, Any]], today: date) -> Dict[str, Any]:
    items = list(items)

    expiring = 0
    for item in items:
        expiry = as_date(item.get("expiry_date"))
        if expiry is not None and 0 < (expiry - today).days <= 30:
            expiring += 1

    return {
        "total_items": len(items),
        "low_stock": sum(1 for i in items if i.get("status") == "low_stock"),
        "out_of_stock": sum(1 for i in items if i.get("status") == "out_of_stock"),
        "total_value": sum(i.get("total_value") or 0 for i in items),
        "expiring_soon": expiring,
    }


# ==================== PRODUCTION ====================

def production_by_animal(records: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Per-animal totals of production records that name an animal"""
    grouped: Dict[int, List[Mapping[str, Any]]] = defaultdict(list)
    for record in records:
        if record.get("animal_id") is not None:
            grouped[record["animal_id"]].append(record)

    summary = []
    for animal_id, rows in sorted(grouped.items()):
        total = sum(r.get("quantity") or 0 for r in rows)
        summary.append({
            "animal_id": animal_id,
            "records": len(rows),
            "total_quantity": total,
            "average_quantity": total / len(rows),
            "last_production_date": max(as_date(r["production_date"]) for r in rows).isoformat(),
        })
    return summary


def production_totals_by_type(records: Iterable[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    totals: Dict[str, Dict[str, Any]] = {}
    for record in records:
        entry = totals.setdefault(
            record["production_type"], {"quantity": 0.0, "unit": record.get("unit"), "records": 0}
        )
        entry["quantity"] += record.get("quantity") or 0
        entry["records"] += 1
    return totals


# ==================== EXPENSES ====================

def _is_medical(expense: Mapping[str, Any]) -> bool:
    description = (expense.get("description") or "").lower()
    return (
        expense.get("expense_type") == "medicine"
        or "medical" in description
        or "veterinary" in description
        or "vet" in description
    )


def aggregate_all_expenses(
    expenses: Iterable[Mapping[str, Any]],
    agreements: Iterable[Mapping[str, Any]],
    external_farms: Optional[Mapping[int, str]] = None,
    external_animal_tags: Optional[Mapping[int, str]] = None,
) -> List[Dict[str, Any]]:
    """
    Merge manual expenses with payments made on hire_in agreements.

    Manual expenses are tagged `medical` or `manual`; every hire_in agreement
    with a payment becomes an `animal_hire` expense. Newest first.
    """
    external_farms = external_farms or {}
    external_animal_tags = external_animal_tags or {}
    unified = []

    for expense in expenses:
        unified.append({**expense, "source": "medical" if _is_medical(expense) else "manual"})

    for agreement in agreements:
        if agreement.get("agreement_type") != "hire_in":
            continue
        paid = agreement.get("paid_amount") or 0
        if paid <= 0:
            continue
        farm_name = external_farms.get(agreement.get("external_farm_id")) or "External Farm"
        tag = external_animal_tags.get(agreement.get("external_animal_id")) or "External Animal"
        expense_date = agreement.get("payment_date") or agreement.get("start_date")
        unified.append({
            "expense_id": HIRE_EXPENSE_ID_OFFSET + agreement["agreement_id"],
            "tenant_id": agreement.get("tenant_id"),
            "farm_id": agreement.get("farm_id"),
            "expense_type": "animal_hire",
            "description": f"Animal hire: {tag} from {farm_name}",
            "amount": paid,
            "expense_date": as_date(expense_date).isoformat(),
            "vendor": farm_name,
            "payment_method": agreement.get("payment_method"),
            "receipt_url": (
                f"Reference: {agreement['payment_reference']}" if agreement.get("payment_reference") else None
            ),
            "external_animal_hire_agreement_id": agreement["agreement_id"],
            "created_by_user_id": agreement.get("created_by_user_id"),
            "source": "animal_hire",
            "source_id": agreement["agreement_id"],
            "source_reference": f"Hire Agreement #{agreement['agreement_id']}",
        })

    unified.sort(key=lambda e: as_date(e["expense_date"]), reverse=True)
    return unified


def expenses_by_source(unified: Iterable[Mapping[str, Any]], source: Optional[str] = None) -> List[Mapping[str, Any]]:
    if not source:
        return list(unified)
    return [e for e in unified if e.get("source") == source]


def totals_by_source(unified: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    totals = {"total": 0.0, "manual": 0.0, "medical": 0.0, "animal_hire": 0.0}
    for expense in unified:
        totals["total"] += expense.get("amount") or 0
        totals[expense["source"]] += expense.get("amount") or 0
    return totals


def expenses_by_type(unified: Iterable[Mapping[str, Any]], expense_type: Optional[str] = None) -> List[Mapping[str, Any]]:
    if not expense_type:
        return list(unified)
    return [e for e in unified if e.get("expense_type") == expense_type]


def expiring_items(items: Iterable[Mapping[str, Any]], today: date, days: int = 30) -> List[Mapping[str, Any]]:
    horizon = today + timedelta(days=days)
    return [
        i for i in items
        if as_date(i.get("expiry_date")) is not None and today < as_date(i["expiry_date"]) <= horizon
    ]
