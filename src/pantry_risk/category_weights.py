"""Category-based risk and waste factors.

Categories are matched against the keys below ignoring case. Anything else
falls back to DEFAULT_CATEGORY.
"""

from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class CategoryData:
    """Static spoilage data for a food category."""

    risk_factor: float  # multiplier on expiration risk
    waste_rate: float  # expected wasted fraction, 0-1
    avg_shelf_life_days: int


CATEGORY_WEIGHTS = MappingProxyType(
    {
        "Fruit": CategoryData(risk_factor=1.5, waste_rate=0.30, avg_shelf_life_days=7),
        "Vegetable": CategoryData(risk_factor=1.3, waste_rate=0.25, avg_shelf_life_days=7),
        "Dairy": CategoryData(risk_factor=1.2, waste_rate=0.15, avg_shelf_life_days=10),
        "Grain": CategoryData(risk_factor=0.5, waste_rate=0.05, avg_shelf_life_days=180),
        "Protein": CategoryData(risk_factor=1.4, waste_rate=0.20, avg_shelf_life_days=5),
        "Nuts": CategoryData(risk_factor=0.6, waste_rate=0.08, avg_shelf_life_days=90),
        "Spread": CategoryData(risk_factor=0.7, waste_rate=0.10, avg_shelf_life_days=90),
        "Beverage": CategoryData(risk_factor=1.0, waste_rate=0.12, avg_shelf_life_days=14),
    }
)

DEFAULT_CATEGORY = CategoryData(risk_factor=1.0, waste_rate=0.15, avg_shelf_life_days=14)

# Rough weight of one unit of stock
GRAMS_PER_UNIT = MappingProxyType(
    {
        "Fruit": 150,
        "Vegetable": 100,
        "Dairy": 200,
        "Grain": 500,
        "Protein": 200,
        "Nuts": 50,
        "Spread": 150,
        "Beverage": 250,
    }
)

DEFAULT_GRAMS_PER_UNIT = 100

_CANONICAL_NAMES = MappingProxyType({name.lower(): name for name in CATEGORY_WEIGHTS})


def canonical_category(category: str | None) -> str | None:
    """Known category name matching `category` in any case, or None."""
    return _CANONICAL_NAMES.get((category or "").strip().lower())


def get_category_data(category: str | None) -> CategoryData:
    """Get category data with fallback to the default."""
    return CATEGORY_WEIGHTS.get(canonical_category(category) or "", DEFAULT_CATEGORY)


def estimate_grams_per_unit(category: str | None) -> int:
    """Approximate grams in one unit of a category."""
    return GRAMS_PER_UNIT.get(canonical_category(category) or "", DEFAULT_GRAMS_PER_UNIT)
