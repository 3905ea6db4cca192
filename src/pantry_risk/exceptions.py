"""Exceptions raised by Pantry Risk."""


class PantryRiskError(Exception):
    """Base class for Pantry Risk errors."""


class InventoryItemNotFoundError(PantryRiskError):
    """Raised when an inventory item is not found for a user."""

    def __init__(self, item_id: int, user_id: int | None = None):
        self.item_id = item_id
        self.user_id = user_id
        super().__init__(f"Inventory item not found: {item_id}")


class TextGenerationError(PantryRiskError):
    """Raised when the text generation service cannot fulfil a request."""
