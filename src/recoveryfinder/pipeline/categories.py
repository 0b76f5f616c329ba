"""Resource categories and their Geoapify place filters.

The provider's taxonomy is finer-grained than ours, so one logical category
fans out to several filter tags. Unknown keys fall back to the default
category instead of failing the search.

Geoapify category codes: https://apidocs.geoapify.com/docs/places/#categories
"""

ALL_CATEGORIES = "all"
DEFAULT_CATEGORY = "wellness"

CATEGORY_FILTERS: dict[str, list[str]] = {
    "detox": ["healthcare.hospital", "healthcare.clinic_or_praxis"],
    "wellness": ["healthcare.pharmacy", "leisure.spa", "service.beauty.spa"],
    "fitness": ["sport.fitness", "sport.sports_centre", "sport.swimming_pool"],
    "career": ["education.school", "education.college", "education.university"],
}

CATEGORY_LABELS: dict[str, str] = {
    "detox": "Health & Wellness",
    "wellness": "Wellness Center",
    "fitness": "Fitness",
    "career": "Career Support",
}


def expand_categories(category: str | None) -> list[str]:
    """Turn the requested category into the list of keys to search.

    'all' (or nothing) → every key in catalogue order
    'fitness'          → ['fitness']
    """
    if not category or category.strip().lower() == ALL_CATEGORIES:
        return list(CATEGORY_FILTERS)
    return [category.strip().lower()]


def filters_for(category: str) -> list[str]:
    """Provider filter tags for a category key."""
    return list(CATEGORY_FILTERS.get(category, CATEGORY_FILTERS[DEFAULT_CATEGORY]))


def label_for(category: str) -> str:
    """Human-readable label shown on each result."""
    return CATEGORY_LABELS.get(category, CATEGORY_LABELS[DEFAULT_CATEGORY])


def list_categories() -> list[dict]:
    return [
        {"key": key, "label": CATEGORY_LABELS[key], "filters": list(tags)}
        for key, tags in CATEGORY_FILTERS.items()
    ]
