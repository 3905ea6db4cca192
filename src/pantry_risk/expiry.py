"""Shared expiration predicate.

Risk scoring, ranking and waste estimation all treat an item that expires today
or earlier as fully wasted. They must agree, so the rule lives here.
"""

from datetime import date


def days_until_expiry(expiration_date: date | None, today: date | None = None) -> int | None:
    """Whole days from today until expiration.

    Returns 0 for an item expiring today, a negative number once it has passed,
    and None when there is no expiration date.
    """
    if expiration_date is None:
        return None
    return (expiration_date - (today or date.today())).days


def is_expired_days(days: int | None) -> bool:
    """Check if a days-until-expiry value means the item is expired."""
    return days is not None and days <= 0


def is_expired(expiration_date: date | None, today: date | None = None) -> bool:
    """Check if an item with this expiration date is expired."""
    return is_expired_days(days_until_expiry(expiration_date, today))
