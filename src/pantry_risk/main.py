"""CLI entry point for Pantry Risk."""

import logging
from datetime import date
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from .alert_manager import AlertManager
from .community_comparator import CommunityComparator
from .config import ConfigManager
from .exceptions import InventoryItemNotFoundError
from .inventory_manager import InventoryManager
from .output_formatter import OutputFormatter
from .ranking_service import RankingService
from .risk_predictor import RiskPredictor
from .sqlite_store import SQLiteStore
from .text_generator import OfflineTextGenerator, TextGenerator, create_text_generator
from .waste_estimator import WasteEstimator

app = typer.Typer(
    name="pantry",
    help="Expiration risk and food waste tracking for your pantry",
    no_args_is_help=True,
)

# Global state (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
store: SQLiteStore | None = None
text_generator: TextGenerator | None = None
text_generator_offline: bool = False
user_id: int = 1


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def get_config() -> ConfigManager:
    """Get or create ConfigManager instance."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def get_store() -> SQLiteStore:
    """Get or create the SQLite store using config values."""
    global store
    if store is None:
        store = SQLiteStore(get_config().data.db_path)
    return store


def get_text_generator() -> TextGenerator | None:
    """Configured generator, or None when text generation is offline."""
    global text_generator, text_generator_offline
    if text_generator is None and not text_generator_offline:
        ai = get_config().ai
        generator = create_text_generator(
            enabled=ai.enabled,
            api_key=ai.api_key,
            model_name=ai.model,
            request_timeout=ai.request_timeout,
        )
        if isinstance(generator, OfflineTextGenerator):
            text_generator_offline = True
        else:
            text_generator = generator
    return text_generator


def get_inventory_manager() -> InventoryManager:
    return InventoryManager(get_store())


def get_risk_predictor() -> RiskPredictor:
    return RiskPredictor(get_store(), get_text_generator())


def get_ranking_service() -> RankingService:
    return RankingService(get_store())


def get_waste_estimator() -> WasteEstimator:
    return WasteEstimator(get_store())


def get_community_comparator() -> CommunityComparator:
    return CommunityComparator(get_store(), get_text_generator())


def get_alert_manager() -> AlertManager:
    return AlertManager(get_store(), risk_threshold=get_config().alerts.risk_threshold)


def parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    db_path: Annotated[Path | None, typer.Option("--db", help="SQLite database path")] = None,
    user: Annotated[int, typer.Option("--user", "-U", help="User ID to act as")] = 1,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Pantry Risk CLI - Eat what expires first and waste less."""
    global formatter, config, store, text_generator, text_generator_offline, user_id

    formatter = OutputFormatter(json_mode=json_output)
    user_id = user

    config = ConfigManager()
    configure_logging("DEBUG" if verbose else config.logging.level)

    # CLI --db overrides config
    store = SQLiteStore(db_path if db_path else config.data.db_path)
    text_generator = None
    text_generator_offline = False


# --- Inventory subcommand group ---
inv_app = typer.Typer(help="Inventory management commands")
app.add_typer(inv_app, name="inventory")


@inv_app.command("add")
def inv_add(
    item: Annotated[str, typer.Argument(help="Item name")],
    quantity: Annotated[float, typer.Option("--quantity", "-q", help="Quantity")] = 1.0,
    category: Annotated[str, typer.Option("--category", "-c", help="Category")] = "Other",
    expiration: Annotated[
        str | None, typer.Option("--expires", help="Expiration date (YYYY-MM-DD)")
    ] = None,
    purchased: Annotated[
        str | None, typer.Option("--purchased", help="Purchase date (YYYY-MM-DD)")
    ] = None,
    notes: Annotated[str | None, typer.Option("--notes", "-n", help="Notes")] = None,
) -> None:
    """Add an item to the pantry."""
    try:
        result = get_inventory_manager().add_item(
            user_id,
            item_name=item,
            quantity=quantity,
            category=category,
            expiration_date=parse_date(expiration),
            purchase_date=parse_date(purchased),
            notes=notes,
        )

        output_data = {
            "success": True,
            "message": f"Added {item} to inventory (now {result.quantity:g})",
            "data": {"inventory_item": result.model_dump()},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@inv_app.command("remove")
def inv_remove(
    item_id: Annotated[int, typer.Argument(help="Item ID to remove")],
) -> None:
    """Remove an item from inventory."""
    try:
        removed = get_inventory_manager().remove_item(user_id, item_id)
        output_data = {
            "success": True,
            "message": f"Removed {removed.item_name} from inventory",
            "data": {"inventory_item": removed.model_dump()},
        }
        formatter.output(output_data, output_data["message"])
    except InventoryItemNotFoundError as e:
        formatter.error(str(e), error_code="ITEM_NOT_FOUND")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@inv_app.command("list")
def inv_list(
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Filter by category")
    ] = None,
) -> None:
    """View pantry inventory."""
    try:
        items = get_inventory_manager().get_inventory(user_id, category=category)

        output_data = {
            "success": True,
            "data": {
                "inventory": [i.model_dump() for i in items],
                "count": len(items),
            },
        }
        formatter.output(output_data, f"{len(items)} items in inventory")
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@inv_app.command("expiring")
def inv_expiring(
    days: Annotated[int, typer.Option("--days", "-d", help="Days to look ahead")] = 3,
) -> None:
    """View items expiring soon."""
    try:
        items = get_inventory_manager().get_expiring_soon(user_id, days=days)

        output_data = {
            "success": True,
            "data": {
                "expiring": [i.model_dump() for i in items],
                "count": len(items),
                "days": days,
            },
        }
        formatter.output(output_data, f"{len(items)} items expiring within {days} days")
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@inv_app.command("use")
def inv_use(
    item_id: Annotated[int, typer.Argument(help="Item ID")],
    quantity: Annotated[float, typer.Option("--quantity", "-q", help="Amount to use")] = 1.0,
) -> None:
    """Consume an item: log the usage and reduce stock."""
    try:
        mgr = get_inventory_manager()
        name = mgr.get_item(user_id, item_id).item_name
        updated = mgr.consume(user_id, item_id, quantity)

        if updated is None:
            message = f"Used up {name}"
        else:
            message = f"Used {quantity:g} of {name} (remaining: {updated.quantity:g})"
        output_data = {
            "success": True,
            "message": message,
            "data": {"inventory_item": updated.model_dump() if updated else None},
        }
        formatter.output(output_data, message)
    except InventoryItemNotFoundError as e:
        formatter.error(str(e), error_code="ITEM_NOT_FOUND")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# --- Usage subcommand group ---
usage_app = typer.Typer(help="Consumption logging commands")
app.add_typer(usage_app, name="usage")


@usage_app.command("log")
def usage_log(
    item: Annotated[str, typer.Argument(help="Item name")],
    quantity: Annotated[float, typer.Option("--quantity", "-q", help="Quantity used")] = 1.0,
    category: Annotated[str, typer.Option("--category", "-c", help="Category")] = "Other",
    when: Annotated[str | None, typer.Option("--date", help="Usage date (YYYY-MM-DD)")] = None,
) -> None:
    """Log that you ate something without touching inventory."""
    try:
        log = get_inventory_manager().log_usage(
            user_id, item, quantity=quantity, category=category, usage_date=parse_date(when)
        )
        output_data = {
            "success": True,
            "message": f"Logged {quantity:g} of {item}",
            "data": {"usage_log": log.model_dump()},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# --- Risk subcommand group ---
risk_app = typer.Typer(help="Expiration risk and consumption priority")
app.add_typer(risk_app, name="risk")


@risk_app.command("calculate")
def risk_calculate() -> None:
    """Recalculate and save risk scores for every item."""
    try:
        scores = get_risk_predictor().refresh(user_id)
        output_data = {
            "success": True,
            "data": {
                "risk_scores": [s.model_dump() for s in scores],
                "count": len(scores),
            },
        }
        formatter.output(output_data, f"Calculated risk for {len(scores)} items")
    except Exception as e:
        formatter.error(str(e), error_code="RISK_CALCULATION_FAILED")
        raise typer.Exit(code=1)


@risk_app.command("list")
def risk_list() -> None:
    """Show saved risk scores, riskiest first."""
    try:
        stored = get_risk_predictor().get_stored_risks(user_id)
        output_data = {
            "success": True,
            "data": {
                "risk_scores": [
                    {
                        **risk.model_dump(),
                        "item_name": item.item_name,
                        "category": item.category,
                        "quantity": item.quantity,
                        "expiration_date": item.expiration_date,
                    }
                    for item, risk in stored
                ],
                "count": len(stored),
            },
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e), error_code="RISK_LIST_FAILED")
        raise typer.Exit(code=1)


@risk_app.command("prioritized")
def risk_prioritized() -> None:
    """Show every item in the order it should be eaten."""
    try:
        result = get_ranking_service().rank_items(user_id)
        output_data = {
            "success": True,
            "data": {
                "prioritized": [i.model_dump() for i in result.items],
                "count": len(result.items),
                "writeback": result.writeback.model_dump(),
            },
        }
        formatter.output(output_data, f"Ranked {len(result.items)} items")
    except Exception as e:
        formatter.error(str(e), error_code="PRIORITIZATION_FAILED")
        raise typer.Exit(code=1)


@risk_app.command("top")
def risk_top(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of items")] = 10,
) -> None:
    """Show the highest-priority items."""
    try:
        items = get_ranking_service().get_top_priority_items(user_id, limit=limit)
        output_data = {
            "success": True,
            "data": {
                "prioritized": [i.model_dump() for i in items],
                "count": len(items),
            },
        }
        formatter.output(output_data, f"Top {len(items)} items to eat")
    except Exception as e:
        formatter.error(str(e), error_code="PRIORITIZATION_FAILED")
        raise typer.Exit(code=1)


# --- Alerts subcommand group ---
alerts_app = typer.Typer(help="Expiration alerts")
app.add_typer(alerts_app, name="alerts")


@alerts_app.command("generate")
def alerts_generate() -> None:
    """Create alerts for high-risk items."""
    try:
        alerts = get_alert_manager().generate_alerts(user_id)
        output_data = {
            "success": True,
            "data": {"alerts": [a.model_dump() for a in alerts], "count": len(alerts)},
        }
        formatter.output(output_data, f"Created {len(alerts)} alerts")
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@alerts_app.command("list")
def alerts_list() -> None:
    """Show active alerts."""
    try:
        alerts = get_alert_manager().get_active_alerts(user_id)
        output_data = {
            "success": True,
            "data": {"alerts": [a.model_dump() for a in alerts], "count": len(alerts)},
        }
        formatter.output(output_data, f"{len(alerts)} active alerts")
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@alerts_app.command("dismiss")
def alerts_dismiss(
    alert_id: Annotated[int, typer.Argument(help="Alert ID")],
) -> None:
    """Dismiss an alert."""
    try:
        if not get_alert_manager().dismiss_alert(alert_id, user_id):
            formatter.error(f"Alert not found: {alert_id}", error_code="ALERT_NOT_FOUND")
            raise typer.Exit(code=1)
        formatter.success(f"Dismissed alert {alert_id}", {"alert_id": alert_id})
    except typer.Exit:
        raise
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@alerts_app.command("dismiss-all")
def alerts_dismiss_all() -> None:
    """Dismiss every active alert."""
    try:
        count = get_alert_manager().dismiss_all_alerts(user_id)
        formatter.success(f"Dismissed {count} alerts", {"dismissed": count})
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@alerts_app.command("cleanup")
def alerts_cleanup(
    days: Annotated[
        int | None, typer.Option("--days", "-d", help="Delete alerts dismissed this long ago")
    ] = None,
) -> None:
    """Delete old dismissed alerts."""
    days = days if days is not None else get_config().alerts.cleanup_after_days
    count = get_alert_manager().cleanup_old_alerts(days)
    formatter.success(f"Deleted {count} old alerts", {"deleted": count})


# --- Waste subcommand group ---
waste_app = typer.Typer(help="Waste estimation and tracking")
app.add_typer(waste_app, name="waste")


@waste_app.command("estimate")
def waste_estimate() -> None:
    """Estimate the waste of what's in the pantry now."""
    try:
        estimator = get_waste_estimator()
        estimate = estimator.estimate_current_waste(user_id)
        historical = estimator.get_historical_waste_stats(user_id)
        output_data = {
            "success": True,
            "data": {
                "waste_estimate": estimate.model_dump(),
                "historical": historical.model_dump(),
            },
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e), error_code="ESTIMATION_FAILED")
        raise typer.Exit(code=1)


@waste_app.command("projections")
def waste_projections() -> None:
    """Weekly and monthly waste projections."""
    try:
        estimator = get_waste_estimator()
        weekly = estimator.get_weekly_projection(user_id)
        monthly = estimator.get_monthly_projection(user_id)
        output_data = {
            "success": True,
            "data": {"projections": [weekly.model_dump(), monthly.model_dump()]},
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e), error_code="ESTIMATION_FAILED")
        raise typer.Exit(code=1)


@waste_app.command("patterns")
def waste_patterns() -> None:
    """Recurring waste patterns from the last 90 days."""
    patterns = get_waste_estimator().analyze_waste_patterns(user_id)
    output_data = {
        "success": True,
        "data": {"patterns": [p.model_dump() for p in patterns], "count": len(patterns)},
    }
    formatter.output(output_data)


@waste_app.command("record")
def waste_record(
    item: Annotated[str, typer.Argument(help="Item name")],
    grams: Annotated[float, typer.Option("--grams", "-g", help="Grams wasted")],
    category: Annotated[str, typer.Option("--category", "-c", help="Category")] = "Other",
    cost: Annotated[float, typer.Option("--cost", help="Cost of the waste")] = 0.0,
    reason: Annotated[str | None, typer.Option("--reason", "-r", help="Why it was wasted")] = None,
) -> None:
    """Record food that was thrown away."""
    try:
        record = get_waste_estimator().record_waste(
            user_id, item, category, grams, cost, reason=reason
        )
        formatter.success(f"Recorded {grams:g}g of {item} as waste", record.model_dump())
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# --- Community subcommand group ---
community_app = typer.Typer(help="Compare your waste with the community")
app.add_typer(community_app, name="community")


def _build_comparison():
    weekly = get_waste_estimator().get_weekly_projection(user_id)
    return get_community_comparator().compare_to_community(
        user_id, weekly.estimated_grams, weekly.estimated_cost
    )


@community_app.command("compare")
def community_compare() -> None:
    """Benchmark your weekly projected waste."""
    try:
        comparison = _build_comparison()
        formatter.output({"success": True, "data": {"comparison": comparison.model_dump()}})
    except Exception as e:
        formatter.error(str(e), error_code="COMPARISON_FAILED")
        raise typer.Exit(code=1)


@community_app.command("insights")
def community_insights() -> None:
    """Suggestions for reducing waste."""
    try:
        comparison = _build_comparison()
        insights = get_community_comparator().generate_insights(user_id, comparison)
        output_data = {
            "success": True,
            "data": {"insights": [i.model_dump() for i in insights], "count": len(insights)},
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e), error_code="COMPARISON_FAILED")
        raise typer.Exit(code=1)


@community_app.command("averages")
def community_averages() -> None:
    """Show community weekly averages by category."""
    stats = get_community_comparator().get_community_averages()
    formatter.output(
        {"success": True, "data": {"community_stats": [s.model_dump() for s in stats]}}
    )


@community_app.command("set-stat")
def community_set_stat(
    category: Annotated[str, typer.Argument(help="Category")],
    grams: Annotated[float, typer.Option("--grams", "-g", help="Average grams per week")],
    cost: Annotated[float, typer.Option("--cost", help="Average cost per week")],
) -> None:
    """Set the community weekly average for a category."""
    try:
        stat = get_inventory_manager().set_community_stat(category, grams, cost)
        formatter.success(f"Set community average for {category}", stat.model_dump())
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# --- Reference price subcommand group ---
price_app = typer.Typer(help="Reference prices")
app.add_typer(price_app, name="price")


@price_app.command("set")
def price_set(
    item: Annotated[str, typer.Argument(help="Item name")],
    cost: Annotated[float, typer.Argument(help="Cost per unit")],
) -> None:
    """Set the reference price used to value waste."""
    try:
        get_inventory_manager().set_reference_price(item, cost)
        formatter.success(f"Set price of {item} to ${cost:.2f}", {"item_name": item, "cost": cost})
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def dashboard() -> None:
    """Open the interactive dashboard."""
    from .tui import PantryDashboard

    PantryDashboard(
        get_store(),
        user_id=user_id,
        text_generator=get_text_generator(),
        risk_threshold=get_config().alerts.risk_threshold,
    ).run()


if __name__ == "__main__":
    app()
