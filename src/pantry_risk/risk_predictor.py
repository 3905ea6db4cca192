"""Expiration risk scoring for pantry items.

A score blends how close an item is to expiry, how often the user eats it and
how much of it is on hand, then scales by category and season.
"""

import logging
from datetime import date, timedelta

from .category_weights import get_category_data
from .expiry import days_until_expiry, is_expired_days
from .models import InventoryItem, RiskScore
from .seasonality import get_seasonality_factor
from .rounding import round_half_up
from .sqlite_store import SQLiteStore
from .text_generator import TextGenerator

logger = logging.getLogger(__name__)

FREQUENCY_WINDOW_DAYS = 30
WEEKS_IN_WINDOW = FREQUENCY_WINDOW_DAYS / 7


def calculate_base_risk_score(
    days_left: int,
    consumption_frequency: float,
    category_risk_factor: float,
    seasonal_factor: float,
    quantity: float,
) -> int:
    """Risk formula, clamped to 0-100.

    Args:
        days_left: Days until expiry (shelf life when undated)
        consumption_frequency: Uses per week
        category_risk_factor: Multiplier from the category table
        seasonal_factor: Multiplier for the current season
        quantity: Units on hand

    Returns:
        Integer risk score
    """
    if is_expired_days(days_left):
        return 100

    expiry_urgency = max(0, 100 - days_left * 3)
    if consumption_frequency < 0.5:
        consumption_risk = 80
    else:
        consumption_risk = max(0, 100 - consumption_frequency * 20)
    quantity_risk = 20 if quantity > 5 else 0

    base = (
        (expiry_urgency * 0.5 + consumption_risk * 0.3 + quantity_risk * 0.2)
        * category_risk_factor
        * seasonal_factor
    )
    return max(0, min(100, round_half_up(base)))


def simple_explanation(
    item_name: str, risk_score: int, days_left: int, consumption_frequency: float
) -> str:
    """Rule-based explanation used when no model text is available."""
    if risk_score >= 80:
        return (
            f"High risk: {item_name} expires in {days_left} days and you consume it only "
            f"{consumption_frequency:.1f}x/week. Consume immediately!"
        )
    if risk_score >= 50:
        return (
            f"Medium risk: Plan to use {item_name} within {days_left} days. "
            f"Current consumption: {consumption_frequency:.1f}x/week."
        )
    return (
        f"Low risk: {item_name} has {days_left} days until expiry and you're consuming it "
        f"regularly ({consumption_frequency:.1f}x/week)."
    )


class RiskPredictor:
    """Computes and persists expiration risk scores."""

    def __init__(self, store: SQLiteStore, text_generator: TextGenerator | None = None):
        self.store = store
        self.text_generator = text_generator

    def get_consumption_frequency(self, user_id: int, item_name: str) -> float:
        """Uses per week over the last 30 days, 0 when unknown."""
        since = date.today() - timedelta(days=FREQUENCY_WINDOW_DAYS)
        try:
            usage_count = self.store.count_usage_since(user_id, item_name, since)
        except Exception:
            logger.warning("Could not read usage logs for %s", item_name, exc_info=True)
            return 0.0
        return usage_count / WEEKS_IN_WINDOW

    def calculate_expiration_risk(self, user_id: int, item: InventoryItem) -> RiskScore:
        """Score a single inventory item."""
        frequency = self.get_consumption_frequency(user_id, item.item_name)
        category_data = get_category_data(item.category)
        seasonal = get_seasonality_factor(item.category)

        days_left = days_until_expiry(item.expiration_date)
        if days_left is None:
            days_left = category_data.avg_shelf_life_days

        score = calculate_base_risk_score(
            days_left,
            frequency,
            category_data.risk_factor,
            seasonal.multiplier,
            item.quantity,
        )

        explanation = self.generate_risk_explanation(
            item, score, days_left, frequency, seasonal.description
        )

        return RiskScore(
            inventory_item_id=item.id,
            risk_score=score,
            consumption_frequency=frequency,
            category_risk_factor=category_data.risk_factor,
            seasonal_factor=seasonal.multiplier,
            explanation=explanation,
            days_until_expiry=days_left,
        )

    def generate_risk_explanation(
        self,
        item: InventoryItem,
        risk_score: int,
        days_left: int,
        consumption_frequency: float,
        seasonal_description: str,
    ) -> str:
        """Ask the model for a short explanation, falling back to rules."""
        if self.text_generator is None:
            return simple_explanation(item.item_name, risk_score, days_left, consumption_frequency)

        prompt = (
            "Generate a brief (1-2 sentences) explanation for why this food item has a "
            f"{risk_score}/100 waste risk score:\n\n"
            f"Item: {item.item_name}\n"
            f"Category: {item.category}\n"
            f"Quantity: {item.quantity}\n"
            f"Days until expiry: {days_left}\n"
            f"Consumption frequency: {consumption_frequency:.1f} times per week\n"
            f"Seasonal factor: {seasonal_description}\n\n"
            "Keep it concise and actionable."
        )
        try:
            return self.text_generator.complete(prompt).strip()
        except Exception as exc:
            logger.warning("Falling back to rule-based explanation: %s", exc)
            return simple_explanation(item.item_name, risk_score, days_left, consumption_frequency)

    def calculate_all_risks(self, user_id: int) -> list[RiskScore]:
        """Score every item a user holds, soonest expiration first."""
        try:
            items = self.store.list_inventory(user_id)
        except Exception:
            logger.exception("Error loading inventory for user %s", user_id)
            raise

        return [self.calculate_expiration_risk(user_id, item) for item in items]

    def save_risk_scores(self, user_id: int, scores: list[RiskScore]) -> None:
        """Upsert scores by inventory item."""
        try:
            for score in scores:
                self.store.upsert_risk_score(user_id, score)
        except Exception:
            logger.exception("Error saving risk scores for user %s", user_id)
            raise

    def refresh(self, user_id: int) -> list[RiskScore]:
        """Calculate and save every score for a user."""
        scores = self.calculate_all_risks(user_id)
        self.save_risk_scores(user_id, scores)
        logger.info("Saved %d risk scores for user %s", len(scores), user_id)
        return scores

    def get_stored_risks(self, user_id: int) -> list[tuple[InventoryItem, RiskScore]]:
        """Saved scores joined with their items, riskiest first."""
        return self.store.list_risk_scores(user_id)
