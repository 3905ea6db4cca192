"""Seasonal spoilage adjustment by category and month."""

from dataclasses import dataclass
from datetime import date
from types import MappingProxyType

from .category_weights import canonical_category
from .models import Season

SEASONAL_RULES = MappingProxyType(
    {
        "Fruit": {Season.SPRING: 1.1, Season.SUMMER: 1.3, Season.FALL: 1.0, Season.WINTER: 0.9},
        "Vegetable": {
            Season.SPRING: 1.0,
            Season.SUMMER: 1.2,
            Season.FALL: 1.0,
            Season.WINTER: 0.9,
        },
        "Dairy": {Season.SPRING: 1.0, Season.SUMMER: 1.2, Season.FALL: 1.0, Season.WINTER: 1.0},
        "Protein": {
            Season.SPRING: 1.0,
            Season.SUMMER: 1.3,
            Season.FALL: 1.0,
            Season.WINTER: 0.95,
        },
        "Grain": {Season.SPRING: 1.0, Season.SUMMER: 1.0, Season.FALL: 1.0, Season.WINTER: 1.0},
        "Nuts": {Season.SPRING: 1.0, Season.SUMMER: 1.05, Season.FALL: 1.0, Season.WINTER: 1.0},
        "Spread": {Season.SPRING: 1.0, Season.SUMMER: 1.1, Season.FALL: 1.0, Season.WINTER: 1.0},
        "Beverage": {
            Season.SPRING: 1.0,
            Season.SUMMER: 1.1,
            Season.FALL: 1.0,
            Season.WINTER: 1.0,
        },
    }
)

@dataclass(frozen=True)
class SeasonalFactor:
    """Seasonal multiplier for a category."""

    season: Season
    multiplier: float
    description: str


def get_current_season(on: date | None = None) -> Season:
    """Map a calendar month to its season."""
    month = (on or date.today()).month

    if 3 <= month <= 5:
        return Season.SPRING
    if 6 <= month <= 8:
        return Season.SUMMER
    if 9 <= month <= 11:
        return Season.FALL
    return Season.WINTER


def get_seasonality_factor(category: str | None, on: date | None = None) -> SeasonalFactor:
    """Seasonal factor for a category on a date (default today)."""
    season = get_current_season(on)
    category = canonical_category(category) or category
    rules = SEASONAL_RULES.get(category or "")

    if rules is None:
        return SeasonalFactor(
            season=season,
            multiplier=1.0,
            description="No seasonal adjustment for this category",
        )

    multiplier = rules[season]
    if multiplier > 1.0:
        description = (
            f"{category} expires {(multiplier - 1) * 100:.0f}% faster in {season.value}"
        )
    elif multiplier < 1.0:
        description = f"{category} lasts {(1 - multiplier) * 100:.0f}% longer in {season.value}"
    else:
        description = f"Normal expiration rate for {category} in {season.value}"

    return SeasonalFactor(season=season, multiplier=multiplier, description=description)