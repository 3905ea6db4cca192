"""Benchmark a user's waste against community averages.

The percentile is a bucketed approximation against the summed community
average, not a statistical percentile over a distribution of users.
"""

import logging
from datetime import date, timedelta

from pydantic import ValidationError

from .models import (
    AIInsight,
    CategoryComparison,
    CommunityComparison,
    CommunityWasteStat,
    Performance,
    ReasonCount,
)
from .rounding import round_half_up
from .sqlite_store import SQLiteStore
from .text_generator import TextGenerator, parse_json_array

logger = logging.getLogger(__name__)

DEFAULT_COMMUNITY_GRAMS = 500.0
DEFAULT_COMMUNITY_COST = 10.0
INSIGHT_WINDOW_DAYS = 30
INSIGHT_REASON_LIMIT = 5
MAX_INSIGHTS = 3


def calculate_percentile(user_waste: float, community_avg: float) -> int:
    """Bucket a user's waste relative to the community average (higher is better)."""
    if user_waste <= community_avg * 0.5:
        return 90
    if user_waste <= community_avg * 0.75:
        return 75
    if user_waste <= community_avg:
        return 50
    if user_waste <= community_avg * 1.25:
        return 30
    return 10


def _percent_difference(value: float, baseline: float) -> int:
    if baseline <= 0:
        return 0
    return round_half_up(abs(value - baseline) / baseline * 100)


def generate_comparison_message(percentile: int, user_waste: float, community_avg: float) -> str:
    if percentile >= 75:
        return (
            f"Excellent! You're wasting {_percent_difference(user_waste, community_avg)}% less "
            "than average users. Keep up the great work!"
        )
    if percentile >= 50:
        return (
            "Good job! You're performing about average, wasting "
            f"{round_half_up(user_waste)}g weekly compared to {round_half_up(community_avg)}g average."
        )
    if percentile >= 30:
        return (
            f"You're wasting {_percent_difference(user_waste, community_avg)}% more than "
            "average. There's room for improvement!"
        )
    return (
        f"Your waste is significantly higher than average ({round_half_up(user_waste)}g vs "
        f"{round_half_up(community_avg)}g). Let's work on reducing it!"
    )


def classify_performance(user_grams: float, community_avg: float) -> Performance:
    if user_grams < community_avg * 0.8:
        return Performance.BETTER
    if user_grams > community_avg * 1.2:
        return Performance.WORSE
    return Performance.AVERAGE


def generate_rule_based_insights(
    comparison: CommunityComparison, reason_counts: list[ReasonCount]
) -> list[AIInsight]:
    """Up to three deterministic insights from the comparison and recent waste."""
    insights = []

    if comparison.percentile < 50:
        insights.append(
            AIInsight(
                insight_type="performance",
                title="Reduce Overall Waste",
                description=(
                    "You're currently wasting more than average. Focus on consuming "
                    "perishable items first and planning meals better."
                ),
                action_items=[
                    "Check expiration dates daily",
                    "Use FIFO (First In, First Out) method",
                    "Plan weekly meals in advance",
                ],
            )
        )

    worse = [c for c in comparison.category_comparisons if c.performance == Performance.WORSE]
    if worse:
        worst = max(worse, key=lambda c: c.user_grams - c.community_avg)
        pct = _percent_difference(worst.user_grams, worst.community_avg)
        insights.append(
            AIInsight(
                insight_type="category",
                title=f"Reduce {worst.category} Waste",
                description=f"Your {worst.category} waste is {pct}% above average.",
                action_items=[
                    f"Buy smaller quantities of {worst.category}",
                    f"Learn proper storage techniques for {worst.category}",
                    f"Consider freezing excess {worst.category}",
                ],
            )
        )

    if reason_counts:
        top = reason_counts[0]
        insights.append(
            AIInsight(
                insight_type="pattern",
                title="Address Common Waste Reason",
                description=(
                    f'Your most common waste reason is "{top.reason}" for {top.category} items.'
                ),
                action_items=[
                    "Adjust purchase quantities",
                    "Improve storage conditions",
                    "Set expiration reminders",
                ],
            )
        )

    return insights[:MAX_INSIGHTS]


def build_insights_prompt(comparison: CommunityComparison, reason_counts: list[ReasonCount]) -> str:
    patterns = "\n".join(row.as_prompt_line() for row in reason_counts)
    return (
        "Based on this user's food waste data, generate 3 concise actionable insights "
        "for reducing waste:\n\n"
        f"User Waste: {comparison.user_waste_grams_weekly}g/week, "
        f"${comparison.user_waste_cost_weekly}/week\n"
        f"Community Average: {comparison.community_avg_grams_weekly}g/week\n"
        f"Percentile: {comparison.percentile}th (higher is better)\n\n"
        f"Recent waste patterns:\n{patterns}\n\n"
        "For each insight, provide:\n"
        "1. A short title (max 5 words)\n"
        "2. A brief description (1-2 sentences)\n"
        "3. 2-3 specific action items\n\n"
        'Format as JSON array: [{"title": "...", "description": "...", '
        '"action_items": ["...", "..."]}]'
    )


class CommunityComparator:
    """Compares a user's waste to community statistics and suggests fixes."""

    def __init__(self, store: SQLiteStore, text_generator: TextGenerator | None = None):
        self.store = store
        self.text_generator = text_generator

    def compare_to_community(
        self, user_id: int, user_waste_grams: float, user_waste_cost: float
    ) -> CommunityComparison:
        """Benchmark weekly waste figures against the community totals."""
        try:
            total_grams, total_cost = self.store.community_totals()
        except Exception:
            logger.exception("Error comparing user %s to community", user_id)
            raise

        community_grams = total_grams if total_grams is not None else DEFAULT_COMMUNITY_GRAMS
        community_cost = total_cost if total_cost is not None else DEFAULT_COMMUNITY_COST
        percentile = calculate_percentile(user_waste_grams, community_grams)

        return CommunityComparison(
            user_waste_grams_weekly=user_waste_grams,
            user_waste_cost_weekly=user_waste_cost,
            community_avg_grams_weekly=community_grams,
            community_avg_cost_weekly=community_cost,
            percentile=percentile,
            comparison_message=generate_comparison_message(
                percentile, user_waste_grams, community_grams
            ),
            category_comparisons=self.get_category_comparisons(user_id),
        )

    def get_category_comparisons(self, user_id: int) -> list[CategoryComparison]:
        """Per-category comparison for categories with community data."""
        try:
            weighted = self.store.category_risk_weighted_quantities(user_id)
            comparisons = []
            for category, weighted_quantity in weighted:
                stat = self.store.get_community_stat(category)
                if stat is None:
                    continue
                user_grams = weighted_quantity * 100
                comparisons.append(
                    CategoryComparison(
                        category=category,
                        user_grams=round_half_up(user_grams),
                        community_avg=round_half_up(stat.avg_waste_grams_weekly),
                        performance=classify_performance(
                            user_grams, stat.avg_waste_grams_weekly
                        ),
                    )
                )
        except Exception:
            logger.warning("Error getting category comparisons for user %s", user_id, exc_info=True)
            return []
        return comparisons

    def generate_insights(self, user_id: int, comparison: CommunityComparison) -> list[AIInsight]:
        """Model-written insights when possible, otherwise rule-based ones."""
        since = date.today() - timedelta(days=INSIGHT_WINDOW_DAYS)
        try:
            reason_counts = self.store.waste_reason_counts(
                user_id, since, limit=INSIGHT_REASON_LIMIT
            )
        except Exception:
            logger.warning("Error reading recent waste for user %s", user_id, exc_info=True)
            reason_counts = []

        if self.text_generator is not None and reason_counts:
            insights = self._generate_ai_insights(comparison, reason_counts)
            if insights:
                return insights

        return generate_rule_based_insights(comparison, reason_counts)

    def _generate_ai_insights(
        self, comparison: CommunityComparison, reason_counts: list[ReasonCount]
    ) -> list[AIInsight]:
        try:
            text = self.text_generator.complete(build_insights_prompt(comparison, reason_counts))
        except Exception as exc:
            logger.warning("Falling back to rule-based insights: %s", exc)
            return []

        result = parse_json_array(text, required_keys=("title", "description", "action_items"))
        if not result.ok:
            logger.warning("Unusable insights response (%s): %s", result.error_kind.value, result.detail)
            return []

        try:
            return [
                AIInsight(
                    insight_type="ai_generated",
                    title=entry["title"],
                    description=entry["description"],
                    action_items=entry["action_items"],
                )
                for entry in result.value
            ]
        except ValidationError as exc:
            logger.warning("Insights response has invalid fields: %s", exc)
            return []

    def get_community_averages(self) -> list[CommunityWasteStat]:
        try:
            return self.store.list_community_stats()
        except Exception:
            logger.warning("Error getting community averages", exc_info=True)
            return []
