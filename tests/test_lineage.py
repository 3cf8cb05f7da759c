import pytest

from livestock import lineage


def _animal(animal_id, gender, mother=None, father=None, **extra):
    data = {
        "animal_id": animal_id,
        "tag_number": f"A-{animal_id}",
        "animal_type": "cattle",
        "gender": gender,
        "status": "active",
        "is_castrated": False,
        "mother_animal_id": mother,
        "father_animal_id": father,
    }
    data.update(extra)
    return data


@pytest.fixture
def herd():
    # 3 and 4 are full siblings; 5 is their offspring
    return [
        _animal(1, "female", traits=["docile", "high_milk_yield"]),
        _animal(2, "male", traits=["heat_tolerant", "high_milk_yield"]),
        _animal(3, "female", mother=1, father=2),
        _animal(4, "male", mother=1, father=2),
        _animal(5, "female", mother=3, father=4),
        _animal(6, "male", is_castrated=True),
        _animal(7, "male", breeding_value=65, parentage_verified=True),
        _animal(8, "male", animal_type="goat"),
        _animal(9, "female", mother=1, external_father_id=100),
    ]


@pytest.fixture
def external_animals():
    return [{"external_animal_id": 100, "external_farm_id": 1, "tag_number": "Bull-123",
             "breed": "Boran", "gender": "male", "age_years": 5}]


def test_gender_labels():
    assert lineage.get_gender_label({"animal_type": "cattle", "gender": "female"}) == "Cow"
    assert lineage.get_gender_label({"animal_type": "cattle", "gender": "male", "is_castrated": True}) == "Steer"
    assert lineage.get_gender_label({"animal_type": "pig", "gender": "male"}) == "Boar"
    assert lineage.get_gender_label({"animal_type": "sheep", "gender": "female"}) == "Ewe"
    assert lineage.get_gender_label({"animal_type": "chicken", "gender": "female"}) == "Female"
    assert lineage.get_gender_label({"animal_type": "other", "gender": "male", "is_castrated": True}) == "Castrated Male"


def test_can_breed():
    assert lineage.can_breed({"gender": "female"})
    assert lineage.can_breed({"gender": "male", "is_castrated": False})
    assert not lineage.can_breed({"gender": "male", "is_castrated": True})


def test_common_ancestors_and_inbreeding(herd):
    assert [a["animal_id"] for a in lineage.find_common_ancestors(5, herd)] == [1, 2]
    assert lineage.calculate_inbreeding_coefficient(5, herd) == 0.25
    assert lineage.calculate_inbreeding_coefficient(3, herd) == 0.0
    assert lineage.calculate_inbreeding_coefficient(1, herd) == 0.0
    assert lineage.calculate_inbreeding_coefficient(404, herd) == 0.0


def test_same_parent_on_both_sides_is_fully_inbred(herd):
    herd.append(_animal(10, "female", mother=1, father=1))
    assert lineage.calculate_inbreeding_coefficient(10, herd) == 1.0


def test_generation_number(herd):
    assert lineage.calculate_generation_number(1, herd) == 1
    assert lineage.calculate_generation_number(3, herd) == 2
    assert lineage.calculate_generation_number(5, herd) == 3


def test_generation_number_survives_cycles():
    looped = [_animal(1, "female", mother=2), _animal(2, "female", mother=1)]
    assert lineage.calculate_generation_number(1, looped) >= 1


def test_ancestor_tree_depth(herd):
    tree = lineage.get_ancestors(5, 1, herd)
    assert tree["mother"]["animal_id"] == 3
    assert tree["father"]["animal_id"] == 4
    assert "mother" not in tree["mother"]
    assert lineage.get_ancestors(404, 2, herd) is None


def test_complete_pedigree(herd):
    pedigree = lineage.build_pedigree(5, 2, herd)

    assert [n["animal_id"] for n in pedigree["maternal_line"]] == [3, 1, 2]
    assert [n["animal_id"] for n in pedigree["paternal_line"]] == [4, 1, 2]
    assert pedigree["missing_ancestors"] == 0
    assert pedigree["completeness_percentage"] == 100.0
    assert pedigree["genetic_diversity_score"] == 75.0
    assert pedigree["common_ancestors"] == [1, 2]


def test_pedigree_with_external_sire(herd, external_animals):
    pedigree = lineage.build_pedigree(9, 2, herd, external_animals, {1: "ABC Cattle Farm"})

    father = pedigree["tree"]["father"]
    assert father["source"] == "external"
    assert father["tag_number"] == "Bull-123"
    assert father["farm_name"] == "ABC Cattle Farm"
    assert pedigree["total_ancestors_tracked"] == 2
    assert pedigree["missing_ancestors"] == 4
    assert pedigree["genetic_diversity_score"] == 92.0


def test_pedigree_unknown_animal(herd):
    with pytest.raises(ValueError):
        lineage.build_pedigree(404, 3, herd)


def test_genetic_diversity_penalties(herd):
    result = lineage.analyze_genetic_diversity(5, herd)

    # inbreeding 0.25 and a 3-generation pedigree under half complete
    assert result["score"] == 30
    assert len(result["factors"]) == 2
    assert result["recommendations"][-1] == "Genetic diversity needs improvement - prioritize outcrossing"


def test_descendants(herd):
    records = [
        {"animal_id": 1, "sire_id": 2, "offspring_ids": [3, 4]},
        {"animal_id": 3, "sire_id": 4, "offspring_ids": [5]},
    ]
    assert [a["animal_id"] for a in lineage.get_descendants(1, herd, records)] == [3, 5, 4]
    assert lineage.get_descendants(7, herd, records) == []


def test_predict_offspring_traits(herd):
    predictions = lineage.predict_offspring_traits(herd[0], herd[1])

    assert predictions == [
        {"trait": "docile", "probability": 0.5, "inherited_from": "mother"},
        {"trait": "heat_tolerant", "probability": 0.5, "inherited_from": "father"},
        {"trait": "high_milk_yield", "probability": 0.85, "inherited_from": "both"},
    ]


def test_optimal_mates_ranks_unrelated_first(herd):
    mates = lineage.find_optimal_mates(3, herd)

    # castrated 6 and goat 8 are excluded
    assert [m["animal"]["animal_id"] for m in mates] == [7, 2, 4]
    assert [m["compatibility_score"] for m in mates] == [100, 80, 60]
    assert mates[0]["expected_inbreeding"] == 0.0
    assert mates[2]["expected_inbreeding"] == 0.125


def test_optimal_mates_for_non_breeder(herd):
    assert lineage.find_optimal_mates(6, herd) == []


def test_inbreeding_risk_levels(herd):
    assert lineage.assess_inbreeding_risk(3, 7, herd)["risk_level"] == "low"
    assert lineage.assess_inbreeding_risk(3, 2, herd)["risk_level"] == "high"

    siblings = lineage.assess_inbreeding_risk(3, 4, herd)
    assert siblings["risk_level"] == "high"
    assert siblings["inbreeding_coefficient"] == 0.25
    assert siblings["common_ancestors"] == [1, 2]

    assert lineage.assess_inbreeding_risk(5, 4, herd)["risk_level"] == "extreme"
    assert lineage.assess_inbreeding_risk(3, 404, herd)["recommendation"].startswith("Cannot assess")
