from livestock.breeds import BREEDS, get_breed_by_name, get_breed_names, get_breeds_for_type


def test_breeds_for_known_and_unknown_types():
    assert get_breeds_for_type("") == []
    assert get_breeds_for_type(None) == []
    assert get_breeds_for_type("llama") == BREEDS["other"]
    assert "Boer" in get_breed_names("goat")


def test_catalog_names_are_unique_per_type():
    for animal_type, breeds in BREEDS.items():
        names = [b["name"] for b in breeds]
        assert len(names) == len(set(names)), animal_type


def test_breed_lookup():
    assert get_breed_by_name("cattle", "Boran")["origin"] == "Kenya/Ethiopia"
    assert get_breed_by_name("cattle", "Boer") is None
