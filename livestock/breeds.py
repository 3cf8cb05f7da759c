"""
Breed catalog for African livestock, keyed by animal type.
"""

from typing import Dict, List, Optional

_CROSSBREED = ("Crossbreed", "Mixed", "Mixed breed")
_OTHER = ("Other", "Unknown", "Other breed not listed")

_CATALOG = {
    "cattle": [
        ("Ankole-Watusi", "East Africa", "Long-horned cattle, excellent heat tolerance"),
        ("Boran", "Kenya/Ethiopia", "Hardy beef breed, drought resistant"),
        ("Nguni", "Southern Africa", "Multi-colored, disease resistant"),
        ("Afrikaner", "South Africa", "Large-framed, heat tolerant"),
        ("Bonsmara", "South Africa", "Composite breed, good meat quality"),
        ("Tuli", "Zimbabwe", "Sanga type, heat and disease resistant"),
        ("Sanga", "East/Southern Africa", "Zebu-Sanga cross, adaptable"),
        ("Zebu", "East Africa", "Humped cattle, heat tolerant"),
        ("Fulani", "West Africa", "Long-horned, pastoral breed"),
        ("Muturu", "West Africa", "Dwarf breed, trypanotolerant"),
        ("N'Dama", "West Africa", "Trypanotolerant, disease resistant"),
        ("West African Shorthorn", "West Africa", "Dual-purpose, hardy"),
        ("Kenana", "Sudan", "Dairy breed, high milk production"),
        ("Butana", "Sudan", "Dairy breed, good milk yield"),
        ("Fogera", "Ethiopia", "Dual-purpose, local breed"),
        ("Horro", "Ethiopia", "Dual-purpose, indigenous"),
        ("Holstein-Friesian", "Europe (imported)", "High milk production"),
        ("Jersey", "Europe (imported)", "Small dairy breed"),
        ("Simmental", "Europe (imported)", "Dual-purpose, large frame"),
        ("Angus", "Europe (imported)", "Beef breed, good marbling"),
        ("Brahman", "Asia (imported)", "Zebu type, heat tolerant"),
        _CROSSBREED,
        _OTHER,
    ],
    "goat": [
        ("Boer", "South Africa", "Meat breed, large and fast-growing"),
        ("Kalahari Red", "South Africa", "Meat breed, heat tolerant"),
        ("Savanna", "South Africa", "Meat breed, white coat"),
        ("West African Dwarf", "West Africa", "Small, trypanotolerant"),
        ("Nigerian Dwarf", "West Africa", "Small dairy breed"),
        ("Red Sokoto", "Nigeria", "Meat breed, red coat"),
        ("Sahelian", "Sahel Region", "Large, long-legged, meat breed"),
        ("Somali", "Somalia/Ethiopia", "Dairy breed, long ears"),
        ("Galla", "Kenya/Ethiopia", "Dairy breed, good milk yield"),
        ("Small East African", "East Africa", "Indigenous, hardy"),
        ("Toggenburg", "Switzerland (imported)", "Dairy breed, brown with white markings"),
        ("Alpine", "Europe (imported)", "Dairy breed, various colors"),
        ("Saanen", "Switzerland (imported)", "Dairy breed, white"),
        ("Angora", "Turkey (imported)", "Fiber breed, mohair production"),
        ("Cashmere", "Asia (imported)", "Fiber breed, cashmere wool"),
        _CROSSBREED,
        _OTHER,
    ],
    "sheep": [
        ("Dorper", "South Africa", "Meat breed, hair sheep"),
        ("Damara", "Namibia", "Fat-tailed, hardy"),
        ("Van Rooy", "South Africa", "Fat-tailed, meat breed"),
        ("Persian", "South Africa", "Fat-tailed, black head"),
        ("Blackhead Persian", "Somalia (via South Africa)", "Fat-tailed, meat breed"),
        ("Red Maasai", "Kenya/Tanzania", "Indigenous, disease resistant"),
        ("Somali", "Somalia", "Fat-tailed, long-legged"),
        ("West African Dwarf", "West Africa", "Small, trypanotolerant"),
        ("Djallonké", "West Africa", "Small, hardy, trypanotolerant"),
        ("Fulani", "West Africa", "Long-legged, pastoral breed"),
        ("Balami", "Nigeria", "Fat-tailed, meat breed"),
        ("Uda", "West Africa", "Large, long-legged"),
        ("Yankasa", "Nigeria", "White, meat breed"),
        ("Merino", "Spain (imported)", "Wool breed, fine wool"),
        ("Dorset", "UK (imported)", "Dual-purpose, white"),
        ("Hampshire", "UK (imported)", "Meat breed, black face"),
        ("Suffolk", "UK (imported)", "Meat breed, black head"),
        _CROSSBREED,
        _OTHER,
    ],
    "pig": [
        ("Kolbroek", "South Africa", "Indigenous, hardy, spotted"),
        ("Windsnyer", "South Africa", "Indigenous, feral type"),
        ("Mukota", "Zimbabwe", "Indigenous, hardy"),
        ("West African Dwarf", "West Africa", "Small, trypanotolerant"),
        ("Nigerian Indigenous", "Nigeria", "Local breed, hardy"),
        ("Large White", "UK (imported)", "Commercial, white, fast-growing"),
        ("Landrace", "Denmark (imported)", "Commercial, white, long body"),
        ("Duroc", "USA (imported)", "Meat breed, red"),
        ("Hampshire", "UK (imported)", "Meat breed, black with white belt"),
        ("Pietrain", "Belgium (imported)", "Meat breed, heavily muscled"),
        ("Berkshire", "UK (imported)", "Meat breed, black with white points"),
        _CROSSBREED,
        _OTHER,
    ],
    "other": [
        ("Not Specified", "N/A", "Breed not specified"),
        ("Mixed/Crossbreed", "Mixed", "Mixed breed"),
        ("Other", "Unknown", "Other breed"),
    ],
}

BREEDS: Dict[str, List[Dict[str, str]]] = {
    animal_type: [
        {"name": name, "origin": origin, "description": description}
        for name, origin, description in entries
    ]
    for animal_type, entries in _CATALOG.items()
}


def get_breeds_for_type(animal_type: Optional[str]) -> List[Dict[str, str]]:
    """Breeds for an animal type; unknown types fall back to `other`"""
    if not animal_type:
        return []
    return BREEDS.get(animal_type, BREEDS["other"])


def get_breed_names(animal_type: Optional[str]) -> List[str]:
    return [breed["name"] for breed in get_breeds_for_type(animal_type)]


def get_breed_by_name(animal_type: Optional[str], breed_name: str) -> Optional[Dict[str, str]]:
    for breed in get_breeds_for_type(animal_type):
        if breed["name"] == breed_name:
            return breed
    return None
