"""Tests for FIFO and risk based consumption ranking."""

import pytest

from pantry_risk.ranking_service import (
    EXPIRED_RECOMMENDATION,
    RankingService,
    compute_fifo_score,
    generate_recommendation,
)
from pantry_risk.risk_predictor import RiskPredictor

from .conftest import USER_ID


@pytest.fixture
def ranking(store):
    return RankingService(store)


class TestComputeFifoScore:
    """Tests for FIFO bands."""

    @pytest.mark.parametrize(
        "days,score",
        [
            (-4, 100),
            (0, 100),
            (1, 95),
            (2, 95),
            (3, 85),
            (5, 85),
            (6, 70),
            (7, 70),
            (8, 50),
            (14, 50),
            (15, 30),
            (None, 30),
        ],
    )
    def test_bands(self, days, score):
        """Days map to FIFO scores."""
        assert compute_fifo_score(days) == score


class TestGenerateRecommendation:
    """Tests for recommendation text."""

    def test_expired(self):
        """Expired items get the waste-to-asset text."""
        assert generate_recommendation("Milk", 100, 0) == EXPIRED_RECOMMENDATION

    def test_tiers(self):
        """Priority thresholds pick the tier."""
        assert generate_recommendation("Milk", 80, 1).startswith("URGENT")
        assert generate_recommendation("Milk", 60, 3).startswith("HIGH PRIORITY")
        assert generate_recommendation("Milk", 40, 10).startswith("MEDIUM")
        assert generate_recommendation("Milk", 39, 30) == "LOW: Milk is stable, use when convenient."

    def test_undated_is_not_expired(self):
        """Undated items use priority tiers."""
        assert generate_recommendation("Rice", 42, None).startswith("MEDIUM")


class TestRankItems:
    """Tests for ranking a user's inventory."""

    def test_empty(self, ranking):
        """No inventory gives an empty ranking."""
        result = ranking.rank_items(USER_ID)
        assert result.items == []
        assert result.writeback.attempted == 0

    def test_default_risk(self, ranking, add_item):
        """Items without a score use risk 50."""
        add_item("Yogurt", days=3, category="Dairy")

        [entry] = ranking.prioritize_items(USER_ID)

        assert entry.fifo_score == 85
        assert entry.risk_score == 50
        assert entry.priority_score == 64
        assert entry.recommendation.startswith("HIGH PRIORITY")

    def test_expired_item_scores_100(self, ranking, add_item, set_risk):
        """Expired items get priority 100 whatever their risk."""
        milk = add_item("Milk", days=-2, category="Dairy")
        set_risk(milk, 10)

        [entry] = ranking.prioritize_items(USER_ID)

        assert entry.fifo_score == 100
        assert entry.priority_score == 100
        assert entry.recommendation == EXPIRED_RECOMMENDATION

    def test_refreshed_expired_milk(self, store, ranking, add_item):
        """Scoring then ranking expired milk gives 100 everywhere."""
        add_item("Milk", days=-1, category="Dairy", quantity=2)
        RiskPredictor(store).refresh(USER_ID)

        [entry] = ranking.prioritize_items(USER_ID)

        assert entry.risk_score == 100
        assert entry.fifo_score == 100
        assert entry.priority_score == 100
        assert entry.recommendation.startswith("EXPIRED")

    def test_sorted_with_dense_ranks(self, ranking, add_item, set_risk):
        """Highest priority first, ranks 1..n."""
        rice = add_item("Rice", category="Grain")
        bread = add_item("Bread", days=6, category="Grain")
        milk = add_item("Milk", days=1, category="Dairy")
        set_risk(rice, 10)
        set_risk(bread, 60)
        set_risk(milk, 90)

        items = ranking.prioritize_items(USER_ID)

        assert [i.item_name for i in items] == ["Milk", "Bread", "Rice"]
        assert [i.priority_rank for i in items] == [1, 2, 3]

    def test_ties_keep_expiration_order(self, ranking, add_item):
        """Equal priorities keep the store order."""
        add_item("Flour", category="Grain")
        add_item("Pasta", days=30, category="Grain")

        items = ranking.prioritize_items(USER_ID)

        assert [i.priority_score for i in items] == [42, 42]
        assert [i.item_name for i in items] == ["Pasta", "Flour"]

    def test_ranks_are_persisted(self, store, ranking, add_item, set_risk):
        """Ranks are written to existing score rows."""
        milk = add_item("Milk", days=1, category="Dairy")
        set_risk(milk, 90)

        result = ranking.rank_items(USER_ID)

        assert result.writeback.ok
        assert store.get_risk_score(milk.id).priority_rank == 1

    def test_writeback_failures_are_collected(self, store, ranking, add_item, monkeypatch):
        """A failed rank write is reported, not raised."""
        milk = add_item("Milk", days=1, category="Dairy")
        add_item("Rice", category="Grain")

        def flaky(item_id, rank):
            if item_id == milk.id:
                raise RuntimeError("disk full")
            return True

        monkeypatch.setattr(store, "update_priority_rank", flaky)

        result = ranking.rank_items(USER_ID)

        assert len(result.items) == 2
        assert result.writeback.attempted == 2
        assert result.writeback.succeeded == 1
        assert result.writeback.failure_count == 1
        assert result.writeback.failed[0].key == str(milk.id)
        assert "disk full" in result.writeback.failed[0].error

    def test_top_priority_limit(self, ranking, add_item):
        """Top items are a prefix of the ranking."""
        for days in range(1, 6):
            add_item(f"Item {days}", days=days)

        top = ranking.get_top_priority_items(USER_ID, limit=2)

        assert len(top) == 2
        assert top == ranking.prioritize_items(USER_ID)[:2]
