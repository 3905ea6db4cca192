"""Inventory and consumption tracking for Pantry Risk."""

import logging
from datetime import date, timedelta
from typing import Any

from .exceptions import InventoryItemNotFoundError
from .models import (
    CommunityWasteStat,
    InventoryItem,
    UsageLog,
    WriteBackFailure,
    WriteBackSummary,
)
from .sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


class InventoryManager:
    """Manages a user's pantry and usage log."""

    def __init__(self, store: SQLiteStore):
        self.store = store

    def add_item(
        self,
        user_id: int,
        item_name: str,
        quantity: float = 1.0,
        category: str = "Other",
        expiration_date: date | None = None,
        purchase_date: date | None = None,
        notes: str | None = None,
    ) -> InventoryItem:
        """Add an item to inventory.

        An existing row with the same name (any case) and expiration date
        absorbs the new quantity instead of a second row being created.

        Args:
            user_id: Owner of the item
            item_name: Name of the item
            quantity: Units in stock
            category: Food category
            expiration_date: Optional expiration date
            purchase_date: Date purchased, defaults to today
            notes: Free-form notes

        Returns:
            The created or merged InventoryItem
        """
        item = InventoryItem(
            user_id=user_id,
            item_name=item_name,
            quantity=quantity,
            category=category,
            expiration_date=expiration_date,
            purchase_date=purchase_date or date.today(),
            notes=notes,
        )

        existing = self.store.find_inventory_match(user_id, item.item_name, expiration_date)
        if existing is not None:
            existing.quantity += item.quantity
            self.store.update_inventory_item(existing)
            logger.debug("Merged %s into inventory item %s", item_name, existing.id)
            return existing

        return self.store.add_inventory_item(item)

    def get_item(self, user_id: int, item_id: int) -> InventoryItem:
        """Get an item by ID.

        Raises:
            InventoryItemNotFoundError: If the user has no such item
        """
        item = self.store.get_inventory_item(user_id, item_id)
        if item is None:
            raise InventoryItemNotFoundError(item_id, user_id)
        return item

    def update_item(
        self,
        user_id: int,
        item_id: int,
        item_name: str | None = None,
        quantity: float | None = None,
        category: str | None = None,
        expiration_date: date | None = None,
        notes: str | None = None,
    ) -> InventoryItem:
        """Update editable inventory fields. None leaves a field unchanged.

        Raises:
            InventoryItemNotFoundError: If the user has no such item
        """
        item = self.get_item(user_id, item_id)
        updates: dict[str, Any] = {
            "item_name": item_name,
            "quantity": quantity,
            "category": category,
            "expiration_date": expiration_date,
            "notes": notes,
        }
        merged = item.model_dump()
        merged.update({key: value for key, value in updates.items() if value is not None})
        updated = InventoryItem(**merged)

        self.store.update_inventory_item(updated)
        return updated

    def remove_item(self, user_id: int, item_id: int) -> InventoryItem:
        """Remove an item along with its risk score and alerts.

        Raises:
            InventoryItemNotFoundError: If the user has no such item
        """
        item = self.get_item(user_id, item_id)
        self.store.delete_inventory_item(user_id, item_id)
        return item

    def get_inventory(self, user_id: int, category: str | None = None) -> list[InventoryItem]:
        """Get inventory items, soonest expiration first.

        Args:
            user_id: Owner of the items
            category: Filter by category (case-insensitive)
        """
        inventory = self.store.list_inventory(user_id)
        if category:
            inventory = [i for i in inventory if i.category.lower() == category.lower()]
        return inventory

    def get_expiring_soon(self, user_id: int, days: int = 3) -> list[InventoryItem]:
        """Get items expiring within a number of days, expired items included."""
        cutoff = date.today() + timedelta(days=days)
        return [
            i
            for i in self.store.list_inventory(user_id)
            if i.expiration_date is not None and i.expiration_date <= cutoff
        ]

    def log_usage(
        self,
        user_id: int,
        item_name: str,
        quantity: float = 1.0,
        category: str = "Other",
        usage_date: date | None = None,
    ) -> UsageLog:
        """Record one consumption event."""
        log = UsageLog(
            user_id=user_id,
            item_name=item_name,
            quantity=quantity,
            category=category,
            usage_date=usage_date or date.today(),
        )
        return self.store.add_usage_log(log)

    def log_usage_bulk(self, user_id: int, entries: list[dict[str, Any]]) -> WriteBackSummary:
        """Record many consumption events, isolating failures per entry.

        Args:
            user_id: Owner of the usage logs
            entries: Dicts with item_name and optionally quantity, category, usage_date
        """
        summary = WriteBackSummary(attempted=len(entries))
        for index, entry in enumerate(entries):
            try:
                self.log_usage(user_id, **entry)
            except Exception as exc:
                key = str(entry.get("item_name", index))
                logger.warning("Could not log usage for %s: %s", key, exc)
                summary.failed.append(WriteBackFailure(key=key, error=str(exc)))
            else:
                summary.succeeded += 1
        return summary

    def add_items_bulk(self, user_id: int, entries: list[dict[str, Any]]) -> WriteBackSummary:
        """Add many inventory items, isolating failures per entry.

        Args:
            user_id: Owner of the items
            entries: Keyword arguments for add_item, one dict per item
        """
        summary = WriteBackSummary(attempted=len(entries))
        for index, entry in enumerate(entries):
            try:
                self.add_item(user_id, **entry)
            except Exception as exc:
                key = str(entry.get("item_name", index))
                logger.warning("Could not add inventory item %s: %s", key, exc)
                summary.failed.append(WriteBackFailure(key=key, error=str(exc)))
            else:
                summary.succeeded += 1
        return summary

    def consume(self, user_id: int, item_id: int, quantity: float = 1.0) -> InventoryItem | None:
        """Eat some of an item: log the usage and reduce stock.

        Returns:
            The item with its remaining quantity, or None if it was used up

        Raises:
            InventoryItemNotFoundError: If the user has no such item
            ValueError: If quantity is not positive
        """
        if quantity <= 0:
            raise ValueError("Quantity must be positive")

        item = self.get_item(user_id, item_id)
        self.log_usage(user_id, item.item_name, min(quantity, item.quantity), item.category)

        if quantity >= item.quantity:
            self.store.delete_inventory_item(user_id, item_id)
            return None

        item.quantity -= quantity
        self.store.update_inventory_item(item)
        return item

    def set_reference_price(self, item_name: str, cost_per_unit: float) -> None:
        if cost_per_unit < 0:
            raise ValueError("Cost per unit cannot be negative")
        self.store.set_reference_price(item_name, cost_per_unit)

    def set_community_stat(
        self, category: str, avg_waste_grams_weekly: float, avg_waste_cost_weekly: float
    ) -> CommunityWasteStat:
        stat = CommunityWasteStat(
            category=category,
            avg_waste_grams_weekly=avg_waste_grams_weekly,
            avg_waste_cost_weekly=avg_waste_cost_weekly,
        )
        self.store.upsert_community_stat(stat)
        return stat
