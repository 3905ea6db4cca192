"""Food waste estimation, projection and pattern analysis."""

import logging
from datetime import date, timedelta

from .category_weights import estimate_grams_per_unit, get_category_data
from .expiry import is_expired_days
from .models import (
    CategoryWaste,
    EstimateType,
    HistoricalWasteStats,
    PatternType,
    WasteEstimate,
    WastePattern,
    WasteProjection,
    WasteRecord,
)
from .rounding import round_cents, round_half_up
from .sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)

DEFAULT_RISK_SCORE = 50
WEEKS_PER_MONTH = 4.3
MONTHLY_CONFIDENCE_PENALTY = 5
FALLBACK_COST_PER_UNIT = 2.0
PATTERN_WINDOW_DAYS = 90
CATEGORY_PATTERN_MIN = 3
REASON_PATTERN_MIN = 2


def calculate_confidence(item_count: int) -> int:
    """Confidence in an estimate given how many items it covers."""
    if item_count >= 20:
        return 85
    if item_count >= 10:
        return 70
    if item_count >= 5:
        return 55
    return 40


class WasteEstimator:
    """Estimates future waste and summarizes past waste."""

    def __init__(self, store: SQLiteStore):
        self.store = store

    def estimate_current_waste(self, user_id: int) -> WasteEstimate:
        """Expected waste of everything currently in the pantry.

        Each item contributes quantity * grams per unit * waste probability *
        category waste rate, where the probability is the risk score / 100.
        Expired items are counted as fully wasted.
        """
        try:
            snapshots = self.store.load_inventory_snapshot(user_id)
        except Exception:
            logger.exception("Error estimating current waste for user %s", user_id)
            raise

        total_grams = 0.0
        total_cost = 0.0
        breakdown: dict[str, list[float]] = {}

        for snapshot in snapshots:
            item = snapshot.item
            risk = snapshot.risk_score if snapshot.risk_score is not None else DEFAULT_RISK_SCORE
            waste_probability = risk / 100
            waste_rate = get_category_data(item.category).waste_rate

            if is_expired_days(item.days_until_expiry):
                waste_probability = 1.0
                waste_rate = 1.0

            factor = waste_probability * waste_rate
            grams = item.quantity * estimate_grams_per_unit(item.category) * factor
            cost = item.quantity * (snapshot.cost_per_unit or 0.0) * factor

            total_grams += grams
            total_cost += cost
            subtotal = breakdown.setdefault(item.category, [0.0, 0.0])
            subtotal[0] += grams
            subtotal[1] += cost

        return WasteEstimate(
            estimated_grams=round_half_up(total_grams),
            estimated_cost=round_cents(total_cost),
            confidence_score=calculate_confidence(len(snapshots)),
            breakdown_by_category=[
                CategoryWaste(
                    category=category,
                    estimated_grams=round_half_up(grams),
                    estimated_cost=round_cents(cost),
                )
                for category, (grams, cost) in breakdown.items()
            ],
        )

    def get_weekly_projection(self, user_id: int) -> WasteProjection:
        """Projection for the next 7 days, reused until its projection date passes."""
        existing = self.store.find_active_projection(
            user_id, EstimateType.WEEKLY, date.today()
        )
        if existing is not None:
            return existing

        estimate = self.estimate_current_waste(user_id)
        projection = WasteProjection(
            estimate_type=EstimateType.WEEKLY,
            estimated_grams=estimate.estimated_grams,
            estimated_cost=estimate.estimated_cost,
            confidence_score=estimate.confidence_score,
            projection_date=date.today() + timedelta(days=7),
        )
        return self.store.save_projection(user_id, projection)

    def get_monthly_projection(self, user_id: int) -> WasteProjection:
        """Weekly projection scaled to a month, reused until its projection date passes."""
        existing = self.store.find_active_projection(
            user_id, EstimateType.MONTHLY, date.today()
        )
        if existing is not None:
            return existing

        weekly = self.get_weekly_projection(user_id)
        projection = WasteProjection(
            estimate_type=EstimateType.MONTHLY,
            estimated_grams=round_half_up(weekly.estimated_grams * WEEKS_PER_MONTH),
            estimated_cost=round_cents(weekly.estimated_cost * WEEKS_PER_MONTH),
            confidence_score=weekly.confidence_score - MONTHLY_CONFIDENCE_PENALTY,
            projection_date=date.today() + timedelta(days=30),
        )
        return self.store.save_projection(user_id, projection)

    def analyze_waste_patterns(self, user_id: int) -> list[WastePattern]:
        """Frequent categories and reasons in the last 90 days of waste records."""
        since = date.today() - timedelta(days=PATTERN_WINDOW_DAYS)
        try:
            counts = self.store.waste_reason_counts(user_id, since)
        except Exception:
            logger.warning("Error analyzing waste patterns for user %s", user_id, exc_info=True)
            return []

        by_category: dict[str, int] = {}
        by_reason: dict[str, int] = {}
        for row in counts:
            by_category[row.category] = by_category.get(row.category, 0) + row.count
            if row.reason:
                by_reason[row.reason] = by_reason.get(row.reason, 0) + row.count

        patterns = [
            WastePattern(
                pattern_type=PatternType.CATEGORY_WASTE,
                description=f"You tend to waste {category} items frequently",
                frequency=count,
            )
            for category, count in by_category.items()
            if count >= CATEGORY_PATTERN_MIN
        ]
        patterns.extend(
            WastePattern(
                pattern_type=PatternType.WASTE_REASON,
                description=f"Common waste reason: {reason}",
                frequency=count,
            )
            for reason, count in by_reason.items()
            if count >= REASON_PATTERN_MIN
        )
        return patterns

    def record_waste(
        self,
        user_id: int,
        item_name: str,
        category: str,
        quantity_grams: float,
        cost_wasted: float,
        reason: str | None = None,
    ) -> WasteRecord:
        """Append an entry to the waste ledger.

        Raises:
            pydantic.ValidationError: If the values are out of range
        """
        record = WasteRecord(
            user_id=user_id,
            item_name=item_name,
            category=category,
            quantity_grams=quantity_grams,
            cost_wasted=cost_wasted,
            reason=reason or "not_specified",
        )
        try:
            return self.store.add_waste_record(record)
        except Exception:
            logger.exception("Error recording waste for user %s", user_id)
            raise

    def get_historical_waste_stats(self, user_id: int) -> HistoricalWasteStats:
        """Recorded waste plus expired stock that hasn't been recorded yet.

        Expired stock without a reference price is valued at $2.00 per unit.
        """
        try:
            recorded_grams, recorded_cost = self.store.waste_totals(user_id)
            expired = self.store.list_expired_inventory(user_id, date.today())
        except Exception:
            logger.warning("Error getting historical waste for user %s", user_id, exc_info=True)
            return HistoricalWasteStats()

        expired_grams = 0.0
        expired_cost = 0.0
        for snapshot in expired:
            item = snapshot.item
            expired_grams += item.quantity * estimate_grams_per_unit(item.category)
            unit_cost = snapshot.cost_per_unit
            expired_cost += item.quantity * (unit_cost if unit_cost else FALLBACK_COST_PER_UNIT)

        return HistoricalWasteStats(
            total_grams=round_half_up(recorded_grams + expired_grams),
            total_cost=round_cents(recorded_cost + expired_cost),
            recorded_grams=recorded_grams,
            recorded_cost=recorded_cost,
            unrecorded_expired_grams=expired_grams,
            unrecorded_expired_cost=expired_cost,
        )
