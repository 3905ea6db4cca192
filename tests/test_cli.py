"""Tests for CLI commands."""

import json
from datetime import date, timedelta

import pytest
from typer.testing import CliRunner

from pantry_risk.main import app

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "pantry.db"


@pytest.fixture
def cli(db_path):
    """Invoke the app in JSON mode against a temporary database."""

    def _invoke(*args):
        return runner.invoke(app, ["--json", "--db", str(db_path), *args])

    return _invoke


def in_days(days):
    return (date.today() + timedelta(days=days)).isoformat()


class TestInventoryCommands:
    """Tests for the inventory group."""

    def test_add_item(self, cli):
        """Add item with options."""
        result = cli("inventory", "add", "Milk", "--quantity", "2", "--category", "Dairy", "--expires", in_days(3))
        assert result.exit_code == 0

        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["data"]["inventory_item"]["item_name"] == "Milk"
        assert data["data"]["inventory_item"]["quantity"] == 2

    def test_add_merges(self, cli):
        """Adding the same item and date merges quantities."""
        cli("inventory", "add", "Milk", "--expires", in_days(3))
        result = cli("inventory", "add", "milk", "--expires", in_days(3))

        data = json.loads(result.stdout)
        assert data["data"]["inventory_item"]["quantity"] == 2

    def test_add_invalid_date(self, cli):
        """Bad dates are reported as errors."""
        result = cli("inventory", "add", "Milk", "--expires", "next week")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["success"] is False

    def test_list_and_filter(self, cli):
        """List inventory filtered by category."""
        cli("inventory", "add", "Milk", "-c", "Dairy")
        cli("inventory", "add", "Rice", "-c", "Grain")

        data = json.loads(cli("inventory", "list", "--category", "grain").stdout)

        assert data["data"]["count"] == 1
        assert data["data"]["inventory"][0]["item_name"] == "Rice"

    def test_expiring(self, cli):
        """Only dated items inside the window are listed."""
        cli("inventory", "add", "Milk", "--expires", in_days(1))
        cli("inventory", "add", "Rice")

        data = json.loads(cli("inventory", "expiring", "--days", "2").stdout)

        assert [i["item_name"] for i in data["data"]["expiring"]] == ["Milk"]

    def test_remove_missing(self, cli):
        """Removing an unknown item fails."""
        result = cli("inventory", "remove", "999")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "ITEM_NOT_FOUND"

    def test_use(self, cli):
        """Using an item reduces then removes it."""
        added = json.loads(cli("inventory", "add", "Eggs", "-q", "6").stdout)
        item_id = str(added["data"]["inventory_item"]["id"])

        data = json.loads(cli("inventory", "use", item_id, "-q", "2").stdout)
        assert data["data"]["inventory_item"]["quantity"] == 4

        data = json.loads(cli("inventory", "use", item_id, "-q", "4").stdout)
        assert data["message"] == "Used up Eggs"
        assert data["data"]["inventory_item"] is None

    def test_other_user_cannot_see_items(self, cli, db_path):
        """Inventory is scoped by --user."""
        cli("inventory", "add", "Milk")
        result = runner.invoke(app, ["--json", "--db", str(db_path), "--user", "2", "inventory", "list"])
        assert json.loads(result.stdout)["data"]["count"] == 0


class TestRiskCommands:
    """Tests for risk scoring and prioritization."""

    def test_calculate(self, cli):
        """Calculate risk for every item."""
        cli("inventory", "add", "Mystery Jar")

        data = json.loads(cli("risk", "calculate").stdout)

        assert data["data"]["count"] == 1
        assert data["data"]["risk_scores"][0]["risk_score"] == 53

    def test_prioritized(self, cli):
        """Expired items come first."""
        cli("inventory", "add", "Rice", "-c", "Grain")
        cli("inventory", "add", "Milk", "-c", "Dairy", "--expires", in_days(-1))

        data = json.loads(cli("risk", "prioritized").stdout)
        items = data["data"]["prioritized"]

        assert [i["item_name"] for i in items] == ["Milk", "Rice"]
        assert items[0]["priority_score"] == 100
        assert items[0]["recommendation"].startswith("EXPIRED")
        assert data["data"]["writeback"]["failed"] == []

    def test_top(self, cli):
        """Limit the number of items shown."""
        for name in ["A", "B", "C"]:
            cli("inventory", "add", name, "--expires", in_days(2))

        data = json.loads(cli("risk", "top", "--limit", "2").stdout)
        assert data["data"]["count"] == 2

    def test_list_saved_scores(self, cli):
        """Saved scores are listed with item details, riskiest first."""
        cli("inventory", "add", "Rice", "-c", "Grain")
        cli("inventory", "add", "Milk", "-c", "Dairy", "--expires", in_days(-1))
        assert json.loads(cli("risk", "list").stdout)["data"]["count"] == 0

        cli("risk", "calculate")
        data = json.loads(cli("risk", "list").stdout)
        scores = data["data"]["risk_scores"]

        assert data["data"]["count"] == 2
        assert [s["item_name"] for s in scores] == ["Milk", "Rice"]
        assert scores[0]["risk_score"] == 100
        assert scores[0]["category"] == "Dairy"
        assert scores[0]["expiration_date"] == in_days(-1)


class TestAlertCommands:
    """Tests for the alerts group."""

    def test_generate_list_dismiss(self, cli):
        """Full alert lifecycle."""
        cli("inventory", "add", "Milk", "-c", "Dairy", "--expires", in_days(-1))
        cli("risk", "calculate")

        generated = json.loads(cli("alerts", "generate").stdout)
        assert generated["data"]["count"] == 1
        alert = generated["data"]["alerts"][0]
        assert alert["alert_type"] == "consume_now"

        listed = json.loads(cli("alerts", "list").stdout)
        assert listed["data"]["count"] == 1

        dismissed = cli("alerts", "dismiss", str(alert["id"]))
        assert dismissed.exit_code == 0

        again = cli("alerts", "dismiss", str(alert["id"]))
        assert again.exit_code == 1
        assert json.loads(again.stdout)["error_code"] == "ALERT_NOT_FOUND"

    def test_dismiss_all_and_cleanup(self, cli):
        """Dismiss everything then delete it."""
        cli("inventory", "add", "Milk", "--expires", in_days(-1))
        cli("risk", "calculate")
        cli("alerts", "generate")

        data = json.loads(cli("alerts", "dismiss-all").stdout)
        assert data["data"]["dismissed"] == 1

        data = json.loads(cli("alerts", "cleanup", "--days", "-1").stdout)
        assert data["data"]["deleted"] == 1


class TestWasteCommands:
    """Tests for the waste group."""

    def test_estimate(self, cli):
        """Estimate includes historical totals."""
        cli("inventory", "add", "Milk", "-q", "2", "-c", "Dairy", "--expires", in_days(-1))
        cli("price", "set", "Milk", "1.5")

        data = json.loads(cli("waste", "estimate").stdout)

        assert data["data"]["waste_estimate"]["estimated_grams"] == 400
        assert data["data"]["waste_estimate"]["estimated_cost"] == 3.0
        assert data["data"]["historical"]["total_cost"] == 3.0

    def test_projections(self, cli):
        """Weekly and monthly projections."""
        cli("inventory", "add", "Rice", "-q", "2", "-c", "Grain")

        data = json.loads(cli("waste", "projections").stdout)
        weekly, monthly = data["data"]["projections"]

        assert weekly["estimate_type"] == "weekly"
        assert monthly["estimated_grams"] == round(weekly["estimated_grams"] * 4.3)

    def test_record_and_patterns(self, cli):
        """Recorded waste shows up as patterns."""
        for name in ["Apple", "Pear", "Plum"]:
            result = cli("waste", "record", name, "--grams", "100", "-c", "Fruit", "-r", "spoiled")
            assert result.exit_code == 0

        data = json.loads(cli("waste", "patterns").stdout)
        descriptions = [p["description"] for p in data["data"]["patterns"]]

        assert "You tend to waste Fruit items frequently" in descriptions
        assert "Common waste reason: spoiled" in descriptions

    def test_record_invalid_grams(self, cli):
        """Zero grams is rejected."""
        result = cli("waste", "record", "Apple", "--grams", "0")
        assert result.exit_code == 1


class TestCommunityCommands:
    """Tests for the community group."""

    def test_compare_defaults(self, cli):
        """Empty community data uses defaults."""
        data = json.loads(cli("community", "compare").stdout)
        comparison = data["data"]["comparison"]

        assert comparison["community_avg_grams_weekly"] == 500
        assert comparison["percentile"] == 90

    def test_set_stat_and_averages(self, cli):
        """Set and list community averages."""
        result = cli("community", "set-stat", "Fruit", "--grams", "300", "--cost", "4")
        assert result.exit_code == 0

        data = json.loads(cli("community", "averages").stdout)
        assert data["data"]["community_stats"][0]["category"] == "Fruit"

    def test_insights_rule_based(self, cli):
        """Without a model, insights are rule-based."""
        cli("waste", "record", "Apple", "--grams", "100", "-c", "Fruit", "-r", "spoiled")

        data = json.loads(cli("community", "insights").stdout)

        assert [i["insight_type"] for i in data["data"]["insights"]] == ["pattern"]


class TestPriceCommands:
    """Tests for reference prices."""

    def test_negative_price(self, cli):
        """Negative prices are rejected."""
        result = cli("price", "set", "Milk", "--", "-1")
        assert result.exit_code == 1


class TestTextGeneratorSetup:
    """Tests for lazy text generator construction."""

    def test_offline_generator_built_once(self, monkeypatch):
        """An offline result is remembered until the next invocation."""
        from pantry_risk import main
        from pantry_risk.text_generator import OfflineTextGenerator

        calls = []

        def fake_create(**kwargs):
            calls.append(kwargs)
            return OfflineTextGenerator()

        monkeypatch.setattr(main, "create_text_generator", fake_create)
        monkeypatch.setattr(main, "text_generator", None)
        monkeypatch.setattr(main, "text_generator_offline", False)

        assert main.get_text_generator() is None
        assert main.get_text_generator() is None
        assert len(calls) == 1
