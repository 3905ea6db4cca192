"""Tests for SQLite data store implementation."""

from datetime import date, datetime, timedelta

import pytest

from pantry_risk.models import (
    Alert,
    AlertType,
    CommunityWasteStat,
    EstimateType,
    InventoryItem,
    RiskScore,
    UsageLog,
    WasteProjection,
    WasteRecord,
)
from pantry_risk.sqlite_store import SQLiteStore

from .conftest import USER_ID, days_from_today


@pytest.fixture
def milk(store):
    return store.add_inventory_item(
        InventoryItem(
            user_id=USER_ID,
            item_name="Milk",
            quantity=2,
            category="Dairy",
            expiration_date=days_from_today(3),
        )
    )


class TestInitialization:
    """Tests for database setup."""

    def test_creates_database_file(self, tmp_path):
        """Database file and parent directories are created."""
        db_path = tmp_path / "nested" / "pantry.db"
        SQLiteStore(db_path=db_path)
        assert db_path.exists()

    def test_reopen_keeps_data(self, tmp_path):
        """Schema creation is idempotent."""
        db_path = tmp_path / "pantry.db"
        first = SQLiteStore(db_path=db_path)
        first.add_inventory_item(InventoryItem(user_id=USER_ID, item_name="Milk", quantity=1))
        first.set_reference_price("Milk", 1.5)

        second = SQLiteStore(db_path=db_path)
        [snapshot] = second.load_inventory_snapshot(USER_ID)
        assert snapshot.item.item_name == "Milk"
        assert snapshot.cost_per_unit == 1.5


class TestInventory:
    """Tests for inventory rows."""

    def test_add_assigns_id(self, milk):
        """Inserted items get an integer id."""
        assert isinstance(milk.id, int)

    def test_get_scoped_to_user(self, store, milk):
        """Other users cannot read the row."""
        assert store.get_inventory_item(USER_ID, milk.id).item_name == "Milk"
        assert store.get_inventory_item(99, milk.id) is None

    def test_list_orders_by_expiration_nulls_last(self, store):
        """Soonest expiration first, undated last."""
        for name, days in [("Rice", None), ("Bread", 5), ("Yogurt", 1)]:
            store.add_inventory_item(
                InventoryItem(
                    user_id=USER_ID,
                    item_name=name,
                    quantity=1,
                    expiration_date=days_from_today(days) if days is not None else None,
                )
            )

        names = [i.item_name for i in store.list_inventory(USER_ID)]
        assert names == ["Yogurt", "Bread", "Rice"]

    def test_find_match_ignores_case(self, store, milk):
        """Matching is case-insensitive on name and exact on date."""
        assert store.find_inventory_match(USER_ID, "MILK", milk.expiration_date).id == milk.id
        assert store.find_inventory_match(USER_ID, "milk", days_from_today(4)) is None

    def test_find_match_without_date(self, store):
        """Undated rows match undated lookups."""
        rice = store.add_inventory_item(InventoryItem(user_id=USER_ID, item_name="Rice", quantity=1))
        assert store.find_inventory_match(USER_ID, "rice", None).id == rice.id

    def test_update(self, store, milk):
        """Fields are written back."""
        milk.quantity = 5
        assert store.update_inventory_item(milk) is True
        assert store.get_inventory_item(USER_ID, milk.id).quantity == 5

    def test_delete_cascades(self, store, milk):
        """Deleting an item removes its risk score and alerts."""
        store.upsert_risk_score(USER_ID, RiskScore(inventory_item_id=milk.id, risk_score=90))
        store.add_alert(
            Alert(
                user_id=USER_ID,
                inventory_item_id=milk.id,
                alert_type=AlertType.CONSUME_NOW,
                risk_score=90,
                message="eat",
            )
        )

        assert store.delete_inventory_item(USER_ID, milk.id) is True
        assert store.get_risk_score(milk.id) is None
        assert store.count_active_alerts(USER_ID) == 0

    def test_snapshot_joins_risk_and_price(self, store, milk):
        """Snapshot carries risk score and case-insensitive price."""
        store.upsert_risk_score(USER_ID, RiskScore(inventory_item_id=milk.id, risk_score=40))
        store.set_reference_price("MILK", 1.25)

        [snapshot] = store.load_inventory_snapshot(USER_ID)
        assert snapshot.risk_score == 40
        assert snapshot.cost_per_unit == 1.25

    def test_expired_inventory(self, store, milk):
        """Items expiring on or before the date are listed."""
        store.add_inventory_item(
            InventoryItem(
                user_id=USER_ID, item_name="Eggs", quantity=1, expiration_date=date.today()
            )
        )
        expired = store.list_expired_inventory(USER_ID, date.today())
        assert [s.item.item_name for s in expired] == ["Eggs"]


class TestUsageLogs:
    """Tests for usage logs."""

    def test_count_since(self, store):
        """Only recent logs with the exact name count."""
        store.add_usage_log(UsageLog(user_id=USER_ID, item_name="Milk", quantity=1))
        store.add_usage_log(UsageLog(user_id=USER_ID, item_name="Milk", quantity=1))
        store.add_usage_log(
            UsageLog(
                user_id=USER_ID,
                item_name="Milk",
                quantity=1,
                usage_date=date.today() - timedelta(days=40),
            )
        )
        store.add_usage_log(UsageLog(user_id=USER_ID, item_name="Eggs", quantity=1))

        since = date.today() - timedelta(days=30)
        assert store.count_usage_since(USER_ID, "Milk", since) == 2
        assert len(store.list_usage_logs(USER_ID)) == 4


class TestRiskScores:
    """Tests for risk score persistence."""

    def test_upsert_overwrites(self, store, milk):
        """A second upsert replaces the first."""
        store.upsert_risk_score(USER_ID, RiskScore(inventory_item_id=milk.id, risk_score=30))
        store.upsert_risk_score(
            USER_ID, RiskScore(inventory_item_id=milk.id, risk_score=75, explanation="new")
        )

        score = store.get_risk_score(milk.id)
        assert score.risk_score == 75
        assert score.explanation == "new"
        assert score.calculated_at is not None
        [(item, listed)] = store.list_risk_scores(USER_ID)
        assert item.item_name == "Milk"
        assert listed.risk_score == 75

    def test_list_includes_low_scores(self, store, milk):
        """Every saved score is listed, riskiest first."""
        rice = store.add_inventory_item(InventoryItem(user_id=USER_ID, item_name="Rice", quantity=1))
        store.upsert_risk_score(USER_ID, RiskScore(inventory_item_id=rice.id, risk_score=0))
        store.upsert_risk_score(USER_ID, RiskScore(inventory_item_id=milk.id, risk_score=80))

        listed = store.list_risk_scores(USER_ID)
        assert [(item.item_name, risk.risk_score) for item, risk in listed] == [
            ("Milk", 80),
            ("Rice", 0),
        ]
        assert store.list_risk_scores(99) == []

    def test_priority_rank(self, store, milk):
        """Ranks need an existing score row."""
        assert store.update_priority_rank(milk.id, 1) is False
        store.upsert_risk_score(USER_ID, RiskScore(inventory_item_id=milk.id, risk_score=30))
        assert store.update_priority_rank(milk.id, 1) is True
        assert store.get_risk_score(milk.id).priority_rank == 1

    def test_high_risk_items(self, store, milk):
        """Only scores above the threshold are returned."""
        store.upsert_risk_score(USER_ID, RiskScore(inventory_item_id=milk.id, risk_score=70))
        assert store.list_high_risk_items(USER_ID, 70) == []
        [(item, risk)] = store.list_high_risk_items(USER_ID, 69)
        assert item.item_name == "Milk"
        assert risk.risk_score == 70


class TestProjections:
    """Tests for waste projections."""

    @staticmethod
    def _weekly(grams, days_out, created_at=None):
        return WasteProjection(
            estimate_type=EstimateType.WEEKLY,
            estimated_grams=grams,
            estimated_cost=1.5,
            confidence_score=40,
            projection_date=days_from_today(days_out),
            created_at=created_at,
        )

    def test_find_active(self, store):
        """Projections are found by type while their date has not passed."""
        store.save_projection(USER_ID, self._weekly(100, 7))

        found = store.find_active_projection(USER_ID, EstimateType.WEEKLY, date.today())
        assert found.estimated_grams == 100
        assert store.find_active_projection(USER_ID, EstimateType.MONTHLY, date.today()) is None
        assert store.find_active_projection(99, EstimateType.WEEKLY, date.today()) is None

    def test_projection_from_yesterday_is_active(self, store):
        """A projection made yesterday is found until its projection date."""
        store.save_projection(
            USER_ID, self._weekly(999, 6, created_at=datetime.now() - timedelta(days=1))
        )
        found = store.find_active_projection(USER_ID, EstimateType.WEEKLY, date.today())
        assert found.estimated_grams == 999

    def test_projection_due_today_is_active(self, store):
        """The projection date itself is still inside the window."""
        store.save_projection(
            USER_ID, self._weekly(50, 0, created_at=datetime.now() - timedelta(days=7))
        )
        assert store.find_active_projection(USER_ID, EstimateType.WEEKLY, date.today()) is not None

    def test_past_projection_not_found(self, store):
        """A projection whose date has passed is not reused."""
        store.save_projection(
            USER_ID, self._weekly(100, -1, created_at=datetime.now() - timedelta(days=8))
        )
        assert store.find_active_projection(USER_ID, EstimateType.WEEKLY, date.today()) is None

    def test_newest_active_wins(self, store):
        """The most recently created active projection is returned."""
        store.save_projection(
            USER_ID, self._weekly(100, 5, created_at=datetime.now() - timedelta(days=2))
        )
        store.save_projection(USER_ID, self._weekly(200, 7))

        found = store.find_active_projection(USER_ID, EstimateType.WEEKLY, date.today())
        assert found.estimated_grams == 200

class TestWasteRecords:
    """Tests for the waste ledger."""

    def test_totals(self, store):
        """Totals sum every record."""
        assert store.waste_totals(USER_ID) == (0.0, 0.0)
        store.add_waste_record(
            WasteRecord(
                user_id=USER_ID, item_name="Apple", category="Fruit", quantity_grams=150, cost_wasted=1.0
            )
        )
        store.add_waste_record(
            WasteRecord(
                user_id=USER_ID, item_name="Pear", category="Fruit", quantity_grams=50, cost_wasted=0.5
            )
        )
        assert store.waste_totals(USER_ID) == (200.0, 1.5)

    def test_reason_counts(self, store):
        """Counts group by category and reason, most frequent first."""
        for reason in ["spoiled", "spoiled", "forgot"]:
            store.add_waste_record(
                WasteRecord(
                    user_id=USER_ID,
                    item_name="Apple",
                    category="Fruit",
                    quantity_grams=100,
                    cost_wasted=0,
                    reason=reason,
                )
            )

        counts = store.waste_reason_counts(USER_ID, date.today() - timedelta(days=30))
        assert [(c.reason, c.count) for c in counts] == [("spoiled", 2), ("forgot", 1)]
        assert counts[0].total_grams == 200
        assert len(store.waste_reason_counts(USER_ID, date.today(), limit=1)) == 1


class TestCommunityStats:
    """Tests for community statistics."""

    def test_empty_totals(self, store):
        """Empty table sums to None."""
        assert store.community_totals() == (None, None)

    def test_upsert_and_totals(self, store):
        """Upserts replace per category."""
        store.upsert_community_stat(CommunityWasteStat(category="Fruit", avg_waste_grams_weekly=100, avg_waste_cost_weekly=2))
        store.upsert_community_stat(CommunityWasteStat(category="Fruit", avg_waste_grams_weekly=120, avg_waste_cost_weekly=3))
        store.upsert_community_stat(CommunityWasteStat(category="Dairy", avg_waste_grams_weekly=80, avg_waste_cost_weekly=1))

        assert store.community_totals() == (200, 4)
        assert [s.category for s in store.list_community_stats()] == ["Dairy", "Fruit"]
        assert store.get_community_stat("Fruit").avg_waste_grams_weekly == 120


class TestAlerts:
    """Tests for alert rows."""

    def _alert(self, item_id):
        return Alert(
            user_id=USER_ID,
            inventory_item_id=item_id,
            alert_type=AlertType.HIGH_RISK,
            risk_score=75,
            message="soon",
        )

    def test_active_alerts_join_item(self, store, milk):
        """Listed alerts carry item name and category."""
        store.add_alert(self._alert(milk.id))
        [alert] = store.list_active_alerts(USER_ID)
        assert alert.item_name == "Milk"
        assert alert.category == "Dairy"
        assert store.has_active_alert(milk.id) is True

    def test_dismiss(self, store, milk):
        """Dismissed alerts are no longer active."""
        alert = store.add_alert(self._alert(milk.id))
        assert store.dismiss_alert(alert.id, USER_ID) is True
        assert store.dismiss_alert(alert.id, USER_ID) is False
        assert store.has_active_alert(milk.id) is False

    def test_delete_dismissed_before(self, store, milk):
        """Only dismissed alerts older than the cutoff are deleted."""
        store.add_alert(self._alert(milk.id))
        store.add_alert(self._alert(milk.id))
        assert store.dismiss_all_alerts(USER_ID) == 2

        assert store.delete_dismissed_alerts(datetime.now() - timedelta(days=1)) == 0
        assert store.delete_dismissed_alerts(datetime.now() + timedelta(days=1)) == 2
