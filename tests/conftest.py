"""Shared test fixtures for Pantry Risk."""

from datetime import date, timedelta

import pytest

from pantry_risk.exceptions import TextGenerationError
from pantry_risk.inventory_manager import InventoryManager
from pantry_risk.models import RiskScore
from pantry_risk.sqlite_store import SQLiteStore

USER_ID = 1


class FakeTextGenerator:
    """Returns a canned response and records prompts."""

    def __init__(self, response: str = "Eat it soon."):
        self.response = response
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.response


class FailingTextGenerator:
    """Always fails like an unreachable model."""

    def __init__(self, error: Exception | None = None):
        self.error = error or TextGenerationError("model unavailable")
        self.calls = 0

    def complete(self, prompt: str) -> str:
        self.calls += 1
        raise self.error


def days_from_today(days: int) -> date:
    return date.today() + timedelta(days=days)


@pytest.fixture(autouse=True)
def no_gemini_key(monkeypatch):
    """Keep tests offline regardless of the developer's environment."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


@pytest.fixture
def store(tmp_path):
    """Create a SQLite store with a temporary database."""
    return SQLiteStore(db_path=tmp_path / "test.db")


@pytest.fixture
def inventory_manager(store):
    return InventoryManager(store)


@pytest.fixture
def add_item(inventory_manager):
    """Add an item expiring `days` from today (None for no date)."""

    def _add(name, days=None, category="Other", quantity=1.0, user_id=USER_ID):
        return inventory_manager.add_item(
            user_id,
            item_name=name,
            quantity=quantity,
            category=category,
            expiration_date=days_from_today(days) if days is not None else None,
        )

    return _add


@pytest.fixture
def set_risk(store):
    """Store a risk score for an item."""

    def _set(item, score, user_id=USER_ID):
        store.upsert_risk_score(
            user_id,
            RiskScore(
                inventory_item_id=item.id,
                risk_score=score,
                explanation=f"risk {score}",
                days_until_expiry=item.days_until_expiry,
            ),
        )

    return _set
