"""
Lineage, pedigree and breeding-compatibility helpers.

Operates on animal dicts carrying mother/father ids (internal) and
external_mother_id/external_father_id (external). Coefficients use a
simplified model: each common ancestor contributes 0.125.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

ANCESTOR_DEPTH_LIMIT = 5
COMMON_ANCESTOR_WEIGHT = 0.125

FEMALE_LABELS = {"cattle": "Cow", "goat": "Doe", "sheep": "Ewe", "pig": "Sow"}
CASTRATED_LABELS = {"cattle": "Steer", "goat": "Wether", "sheep": "Wether", "pig": "Barrow"}
INTACT_LABELS = {"cattle": "Bull", "goat": "Buck", "sheep": "Ram", "pig": "Boar"}


def get_gender_label(animal: Mapping[str, Any]) -> str:
    animal_type = animal.get("animal_type")
    if animal.get("gender") == "female":
        return FEMALE_LABELS.get(animal_type, "Female")
    if animal.get("is_castrated"):
        return CASTRATED_LABELS.get(animal_type, "Castrated Male")
    return INTACT_LABELS.get(animal_type, "Male")


def can_breed(animal: Mapping[str, Any]) -> bool:
    if animal.get("gender") == "female":
        return True
    return animal.get("gender") == "male" and not animal.get("is_castrated")


def _index(animals: Iterable[Mapping[str, Any]], key: str = "animal_id") -> Dict[int, Mapping[str, Any]]:
    return {a[key]: a for a in animals}


def _external_node(external: Mapping[str, Any], default_gender: str, generation: int,
                   farm_names: Mapping[int, str]) -> Dict[str, Any]:
    return {
        "external_animal_id": external["external_animal_id"],
        "source": "external",
        "tag_number": external.get("tag_number") or "Unknown",
        "breed": external.get("breed"),
        "gender": external.get("gender") or default_gender,
        "age_years": external.get("age_years"),
        "farm_name": farm_names.get(external.get("external_farm_id")),
        "generation": generation,
    }


def get_ancestors(
    animal_id: int,
    generations: int,
    animals: Iterable[Mapping[str, Any]],
    external_animals: Iterable[Mapping[str, Any]] = (),
    external_farm_names: Optional[Mapping[int, str]] = None,
) -> Optional[Dict[str, Any]]:
    """Pedigree tree rooted at animal_id, `generations` levels deep"""
    by_id = _index(animals)
    external_by_id = _index(external_animals, "external_animal_id")
    farm_names = external_farm_names or {}

    def build(current_id: int, remaining: int, generation: int, seen: frozenset):
        animal = by_id.get(current_id)
        if animal is None or current_id in seen:
            return None
        seen = seen | {current_id}
        node = {
            "animal_id": animal["animal_id"],
            "source": "internal",
            "tag_number": animal.get("tag_number"),
            "breed": animal.get("breed"),
            "gender": animal.get("gender"),
            "birth_date": animal.get("birth_date"),
            "breeding_value": animal.get("breeding_value"),
            "generation": generation,
        }
        if remaining > 0:
            for parent, internal_key, external_key, gender in (
                ("mother", "mother_animal_id", "external_mother_id", "female"),
                ("father", "father_animal_id", "external_father_id", "male"),
            ):
                if animal.get(internal_key):
                    parent_node = build(animal[internal_key], remaining - 1, generation + 1, seen)
                    if parent_node:
                        node[parent] = parent_node
                elif animal.get(external_key) in external_by_id:
                    node[parent] = _external_node(
                        external_by_id[animal[external_key]], gender, generation + 1, farm_names
                    )
        return node

    return build(animal_id, generations, 0, frozenset())


def get_descendants(
    animal_id: int,
    animals: Iterable[Mapping[str, Any]],
    breeding_records: Iterable[Mapping[str, Any]],
) -> List[Mapping[str, Any]]:
    """Offspring of an animal (as dam or sire) and their offspring, recursively"""
    by_id = _index(animals)
    records = list(breeding_records)
    descendants: List[Mapping[str, Any]] = []
    seen = set()

    def collect(parent_id: int):
        if parent_id in seen:
            return
        seen.add(parent_id)
        for record in records:
            if parent_id not in (record.get("animal_id"), record.get("sire_id")):
                continue
            for offspring_id in record.get("offspring_ids") or []:
                offspring = by_id.get(offspring_id)
                if offspring and all(d["animal_id"] != offspring_id for d in descendants):
                    descendants.append(offspring)
                    collect(offspring_id)

    collect(animal_id)
    return descendants


def _ancestor_ids(start_id: Optional[int], by_id: Mapping[int, Mapping[str, Any]]) -> set:
    """Internal ancestors reachable from start_id (inclusive) within the depth limit"""
    found = set()

    def walk(current_id, depth):
        if not current_id or depth > ANCESTOR_DEPTH_LIMIT:
            return
        animal = by_id.get(current_id)
        if animal is None:
            return
        found.add(current_id)
        walk(animal.get("mother_animal_id"), depth + 1)
        walk(animal.get("father_animal_id"), depth + 1)

    walk(start_id, 0)
    return found


def find_common_ancestors(animal_id: int, animals: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Animals appearing in both the maternal and paternal lines"""
    by_id = _index(animals)
    animal = by_id.get(animal_id)
    if animal is None:
        return []
    maternal = _ancestor_ids(animal.get("mother_animal_id"), by_id)
    paternal = _ancestor_ids(animal.get("father_animal_id"), by_id)
    return [by_id[i] for i in sorted(maternal & paternal)]


def calculate_inbreeding_coefficient(animal_id: int, animals: Iterable[Mapping[str, Any]]) -> float:
    animals = list(animals)
    animal = _index(animals).get(animal_id)
    if animal is None or not animal.get("mother_animal_id") or not animal.get("father_animal_id"):
        return 0.0
    if animal["mother_animal_id"] == animal["father_animal_id"]:
        return 1.0
    common = find_common_ancestors(animal_id, animals)
    return min(len(common) * COMMON_ANCESTOR_WEIGHT, 1.0)


def calculate_generation_number(animal_id: int, animals: Iterable[Mapping[str, Any]]) -> int:
    """Foundation stock is generation 1; offspring are one past their latest parent"""
    by_id = _index(animals)
    cache: Dict[int, int] = {}

    def generation(current_id, visiting):
        if current_id in cache:
            return cache[current_id]
        animal = by_id.get(current_id)
        if animal is None or current_id in visiting:
            return 0
        parents = [p for p in (animal.get("mother_animal_id"), animal.get("father_animal_id")) if p]
        if not parents:
            result = 1
        else:
            result = max(generation(p, visiting | {current_id}) for p in parents) + 1
        cache[current_id] = result
        return result

    return generation(animal_id, frozenset())


def build_pedigree(
    animal_id: int,
    generations: int,
    animals: Iterable[Mapping[str, Any]],
    external_animals: Iterable[Mapping[str, Any]] = (),
    external_farm_names: Optional[Mapping[int, str]] = None,
) -> Dict[str, Any]:
    """Pedigree tree with completeness and diversity statistics"""
    animals = list(animals)
    root = get_ancestors(animal_id, generations, animals, external_animals, external_farm_names)
    if root is None:
        raise ValueError(f"Animal {animal_id} not found")

    def flatten(node, line):
        if node is None or node["generation"] > generations:
            return
        line.append(node)
        flatten(node.get("mother"), line)
        flatten(node.get("father"), line)

    maternal_line: List[Dict[str, Any]] = []
    paternal_line: List[Dict[str, Any]] = []
    flatten(root.get("mother"), maternal_line)
    flatten(root.get("father"), paternal_line)

    total_expected = 2 ** (generations + 1) - 2
    tracked = len(maternal_line) + len(paternal_line)
    missing = total_expected - tracked
    completeness = (tracked / total_expected) * 100 if total_expected > 0 else 0.0

    coefficient = calculate_inbreeding_coefficient(animal_id, animals)
    common = find_common_ancestors(animal_id, animals)

    return {
        "subject_animal_id": animal_id,
        "generations": generations,
        "tree": root,
        "maternal_line": maternal_line,
        "paternal_line": paternal_line,
        "inbreeding_coefficient": coefficient,
        "common_ancestors": [a["animal_id"] for a in common],
        "genetic_diversity_score": max(0.0, 100 - coefficient * 100 - missing * 2),
        "total_ancestors_tracked": tracked,
        "missing_ancestors": missing,
        "completeness_percentage": completeness,
    }


def analyze_genetic_diversity(
    animal_id: int,
    animals: Iterable[Mapping[str, Any]],
    external_animals: Iterable[Mapping[str, Any]] = (),
) -> Dict[str, Any]:
    """Diversity score (0-100) over a three-generation pedigree"""
    pedigree = build_pedigree(animal_id, 3, animals, external_animals)
    coefficient = pedigree["inbreeding_coefficient"]
    completeness = pedigree["completeness_percentage"]

    factors: List[str] = []
    recommendations: List[str] = []
    score = 100

    if coefficient > 0.1:
        score -= 40
        factors.append(f"High inbreeding coefficient ({coefficient:.3f})")
        recommendations.append("Consider outcrossing with unrelated animals")
    elif coefficient > 0.05:
        score -= 20
        factors.append(f"Moderate inbreeding ({coefficient:.3f})")
        recommendations.append("Monitor genetic diversity, consider introducing new bloodlines")

    if completeness < 50:
        score -= 30
        factors.append(f"Incomplete lineage data ({completeness:.1f}% complete)")
        recommendations.append("Document missing ancestors to improve genetic tracking")
    elif completeness < 75:
        score -= 15
        factors.append(f"Partially complete lineage ({completeness:.1f}% complete)")
        recommendations.append("Complete lineage documentation for better genetic analysis")

    common_count = len(pedigree["common_ancestors"])
    if common_count > 2:
        score -= 10
        factors.append(f"{common_count} common ancestors in lineage")
        recommendations.append("Multiple common ancestors detected - consider diverse breeding")

    score = max(0, min(100, score))

    if score > 80:
        recommendations.append("Excellent genetic diversity - maintain current breeding strategy")
    elif score > 60:
        recommendations.append("Good genetic diversity - continue monitoring")
    else:
        recommendations.append("Genetic diversity needs improvement - prioritize outcrossing")

    return {"score": score, "factors": factors, "recommendations": recommendations}


def shared_ancestors(first_id: int, second_id: int, animals: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """
    Ancestors two animals have in common. An animal counts as an ancestor
    of the other when it appears in the other's lineage.
    """
    by_id = _index(animals)
    first = _ancestor_ids(first_id, by_id)
    second = _ancestor_ids(second_id, by_id)
    return [by_id[i] for i in sorted(first & second)]


def predict_offspring_traits(dam: Mapping[str, Any], sire: Mapping[str, Any]) -> List[Dict[str, Any]]:
    dam_traits = set(dam.get("traits") or [])
    sire_traits = set(sire.get("traits") or [])
    predictions = []
    for trait in sorted(dam_traits | sire_traits):
        if trait in dam_traits and trait in sire_traits:
            predictions.append({"trait": trait, "probability": 0.85, "inherited_from": "both"})
        elif trait in dam_traits:
            predictions.append({"trait": trait, "probability": 0.5, "inherited_from": "mother"})
        else:
            predictions.append({"trait": trait, "probability": 0.5, "inherited_from": "father"})
    return predictions


def find_optimal_mates(animal_id: int, animals: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Rank active, intact, same-type animals of the opposite sex by compatibility"""
    animals = list(animals)
    animal = _index(animals).get(animal_id)
    if animal is None or not can_breed(animal):
        return []

    candidates = [
        a for a in animals
        if a["animal_id"] != animal_id
        and a.get("gender") != animal.get("gender")
        and a.get("status") == "active"
        and can_breed(a)
        and a.get("animal_type") == animal.get("animal_type")
    ]

    results = []
    for mate in candidates:
        reasons = []
        score = 100
        shared = shared_ancestors(animal_id, mate["animal_id"], animals)
        if shared:
            score -= len(shared) * 20
            reasons.append(f"{len(shared)} shared ancestor(s) - inbreeding risk")
        else:
            score += 10
            reasons.append("No shared ancestors - good genetic diversity")

        breeding_value = mate.get("breeding_value") or 0
        if breeding_value > 80:
            score += 15
            reasons.append("High breeding value mate")
        elif breeding_value > 60:
            score += 5
            reasons.append("Good breeding value")

        if mate.get("parentage_verified"):
            score += 5
            reasons.append("Verified parentage")

        results.append({
            "animal": mate,
            "compatibility_score": max(0, min(100, score)),
            "reasons": reasons,
            "expected_inbreeding": COMMON_ANCESTOR_WEIGHT if shared else 0.0,
        })

    results.sort(key=lambda r: r["compatibility_score"], reverse=True)
    return results


def assess_inbreeding_risk(animal_id: int, mate_id: int, animals: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    animals = list(animals)
    by_id = _index(animals)
    if animal_id not in by_id or mate_id not in by_id:
        return {
            "risk_level": "low",
            "inbreeding_coefficient": 0.0,
            "common_ancestors": [],
            "recommendation": "Cannot assess - animals not found",
        }

    common = shared_ancestors(animal_id, mate_id, animals)
    coefficient = len(common) * COMMON_ANCESTOR_WEIGHT

    if coefficient > 0.25:
        level = "extreme"
        recommendation = "EXTREME RISK: Do not breed these animals. High risk of genetic defects."
    elif coefficient > 0.1:
        level = "high"
        recommendation = "HIGH RISK: Strongly consider alternative mates. Monitor offspring closely."
    elif coefficient > 0.05:
        level = "medium"
        recommendation = "MODERATE RISK: Proceed with caution. Consider genetic testing."
    else:
        level = "low"
        recommendation = "LOW RISK: Safe to breed. Good genetic diversity."

    return {
        "risk_level": level,
        "inbreeding_coefficient": coefficient,
        "common_ancestors": [a["animal_id"] for a in common],
        "recommendation": recommendation,
    }
