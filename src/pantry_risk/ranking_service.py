"""Consumption ranking that blends FIFO order with risk scores.

Priority score = FIFO score * 0.4 + risk score * 0.6. Expired items always
score 100.
"""

import logging

from .expiry import is_expired_days
from .models import (
    InventorySnapshot,
    PrioritizedItem,
    RankingResult,
    WriteBackFailure,
    WriteBackSummary,
)
from .rounding import round_half_up
from .sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)

DEFAULT_RISK_SCORE = 50
FIFO_WEIGHT = 0.4
RISK_WEIGHT = 0.6
EXPIRED_RECOMMENDATION = "EXPIRED: Don't eat it, divert it to waste-to-asset."


def compute_fifo_score(days_left: int | None) -> int:
    """Score how soon an item expires; undated items score 30."""
    if days_left is None:
        return 30
    if days_left <= 0:
        return 100
    if days_left <= 2:
        return 95
    if days_left <= 5:
        return 85
    if days_left <= 7:
        return 70
    if days_left <= 14:
        return 50
    return 30


def generate_recommendation(item_name: str, priority_score: float, days_left: int | None) -> str:
    if is_expired_days(days_left):
        return EXPIRED_RECOMMENDATION
    if priority_score >= 80:
        return f"URGENT: Consume {item_name} immediately to avoid waste!"
    if priority_score >= 60:
        return f"HIGH PRIORITY: Plan to use {item_name} in the next 2-3 days."
    if priority_score >= 40:
        return f"MEDIUM: Include {item_name} in your meal planning this week."
    return f"LOW: {item_name} is stable, use when convenient."


def build_prioritized_item(snapshot: InventorySnapshot) -> PrioritizedItem:
    """Score one inventory row. The rank is assigned after sorting."""
    item = snapshot.item
    risk = snapshot.risk_score if snapshot.risk_score is not None else DEFAULT_RISK_SCORE
    days_left = item.days_until_expiry
    fifo = compute_fifo_score(days_left)

    priority = fifo * FIFO_WEIGHT + risk * RISK_WEIGHT
    if is_expired_days(days_left):
        priority = 100

    return PrioritizedItem(
        inventory_item_id=item.id,
        item_name=item.item_name,
        category=item.category,
        quantity=item.quantity,
        expiration_date=item.expiration_date,
        fifo_score=fifo,
        priority_score=round_half_up(priority),
        risk_score=risk,
        days_until_expiry=days_left,
        recommendation=generate_recommendation(item.item_name, priority, days_left),
    )


class RankingService:
    """Orders a user's inventory by what should be eaten first."""

    def __init__(self, store: SQLiteStore):
        self.store = store

    def rank_items(self, user_id: int) -> RankingResult:
        """Prioritize items and persist their ranks.

        Ranks are written one row at a time. A failed write is logged and
        recorded in the result, it never aborts the ranking.

        Returns:
            RankingResult with items sorted by priority (highest first)
        """
        try:
            snapshots = self.store.load_inventory_snapshot(user_id)
        except Exception:
            logger.exception("Error prioritizing items for user %s", user_id)
            raise

        items = sorted(
            (build_prioritized_item(snapshot) for snapshot in snapshots),
            key=lambda entry: entry.priority_score,
            reverse=True,
        )
        for index, entry in enumerate(items, start=1):
            entry.priority_rank = index

        return RankingResult(items=items, writeback=self._save_priority_ranks(items))

    def _save_priority_ranks(self, items: list[PrioritizedItem]) -> WriteBackSummary:
        summary = WriteBackSummary(attempted=len(items))
        for entry in items:
            try:
                self.store.update_priority_rank(entry.inventory_item_id, entry.priority_rank)
            except Exception as exc:
                logger.warning(
                    "Could not save priority rank for item %s: %s", entry.inventory_item_id, exc
                )
                summary.failed.append(
                    WriteBackFailure(key=str(entry.inventory_item_id), error=str(exc))
                )
            else:
                summary.succeeded += 1
        return summary

    def prioritize_items(self, user_id: int) -> list[PrioritizedItem]:
        return self.rank_items(user_id).items

    def get_top_priority_items(self, user_id: int, limit: int = 10) -> list[PrioritizedItem]:
        """First `limit` items of the full ranking."""
        return self.prioritize_items(user_id)[:limit]
