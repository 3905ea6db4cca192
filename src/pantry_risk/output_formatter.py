"""Output formatting for CLI and programmatic use."""

import json
from datetime import date, datetime
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

RECOMMENDATION_ICONS = {
    "EXPIRED": "⛔",
    "URGENT": "\U0001f534",
    "HIGH PRIORITY": "\U0001f7e1",
    "MEDIUM": "\U0001f7e2",
    "LOW": "⚪",
}


def recommendation_icon(recommendation: str) -> str:
    """Icon for a recommendation based on its severity prefix."""
    for prefix, icon in RECOMMENDATION_ICONS.items():
        if recommendation.startswith(prefix):
            return icon
    return ""


def risk_style(score: float) -> str:
    if score >= 80:
        return "bold red"
    if score >= 60:
        return "yellow"
    if score >= 40:
        return "green"
    return "dim"


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for output."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)


class OutputFormatter:
    """Formats output for both Rich terminal and JSON modes."""

    def __init__(self, json_mode: bool = False):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode
        self.console = Console()

    def output(self, data: dict[str, Any], message: str = "") -> None:
        """Output data in appropriate format.

        Args:
            data: Data to output
            message: Optional message for Rich mode
        """
        if self.json_mode:
            self._output_json(data)
        else:
            self._output_rich(data, message)

    def _output_json(self, data: dict[str, Any]) -> None:
        """Output as JSON to stdout."""
        print(json.dumps(data, cls=JSONEncoder, indent=2))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        """Output with Rich formatting."""
        if message:
            self.console.print(f"[green]✓[/green] {message}")

        payload = data.get("data", {})
        if "inventory_item" in payload:
            self._render_inventory_item(data)
        elif "inventory" in payload:
            self._render_inventory(data)
        elif "expiring" in payload:
            self._render_expiring(data)
        elif "risk_scores" in payload:
            self._render_risk_scores(data)
        elif "prioritized" in payload:
            self._render_prioritized(data)
        elif "alerts" in payload:
            self._render_alerts(data)
        elif "waste_estimate" in payload:
            self._render_waste_estimate(data)
        elif "projections" in payload:
            self._render_projections(data)
        elif "patterns" in payload:
            self._render_patterns(data)
        elif "comparison" in payload:
            self._render_comparison(data)
        elif "insights" in payload:
            self._render_insights(data)
        elif "community_stats" in payload:
            self._render_community_stats(data)

        writeback = payload.get("writeback")
        if writeback and writeback.get("failed"):
            self.warning(f"{len(writeback['failed'])} ranks could not be saved")

    def _render_inventory_item(self, data: dict) -> None:
        """Render a single inventory item."""
        item = data["data"]["inventory_item"]
        if item is None:
            return

        panel_content = f"""[bold]{item["item_name"]}[/bold]

ID: {item.get("id")}
Quantity: {item.get("quantity")}
Category: {item.get("category", "Other")}
Expires: {item.get("expiration_date") or "No date"}"""

        if item.get("notes"):
            panel_content += f"\nNotes: {item['notes']}"

        self.console.print(Panel(panel_content, title="Inventory Item", border_style="green"))

    def _render_inventory(self, data: dict) -> None:
        """Render inventory list."""
        items = data["data"]["inventory"]

        if not items:
            self.console.print("[dim]No items in inventory[/dim]")
            return

        table = Table(title="Pantry Inventory", show_header=True, header_style="bold cyan")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Item", style="cyan")
        table.add_column("Qty", justify="right")
        table.add_column("Category", style="yellow")
        table.add_column("Expires", style="red")

        for item in items:
            table.add_row(
                str(item["id"]),
                item["item_name"],
                str(item.get("quantity", 1)),
                item.get("category", "Other"),
                str(item["expiration_date"]) if item.get("expiration_date") else "-",
            )

        self.console.print(table)

    def _render_expiring(self, data: dict) -> None:
        """Render expiring items."""
        items = data["data"]["expiring"]
        days = data["data"].get("days", 3)

        if not items:
            self.console.print(f"[dim]No items expiring within {days} days[/dim]")
            return

        self.console.print(f"\n[bold red]Items Expiring Within {days} Days[/bold red]")

        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Item")
        table.add_column("Expires", style="red")
        table.add_column("Qty", justify="right")

        for item in items:
            table.add_row(
                str(item["id"]),
                item["item_name"],
                str(item.get("expiration_date", "")),
                str(item.get("quantity", 1)),
            )

        self.console.print(table)

    def _render_risk_scores(self, data: dict) -> None:
        scores = data["data"]["risk_scores"]

        if not scores:
            self.console.print("[dim]No items to score[/dim]")
            return

        table = Table(title="Expiration Risk", show_header=True, header_style="bold cyan")
        table.add_column("Item")
        table.add_column("Risk", justify="right")
        table.add_column("Days", justify="right")
        table.add_column("Uses/wk", justify="right")
        table.add_column("Explanation", no_wrap=False)

        for score in scores:
            risk = score["risk_score"]
            table.add_row(
                score.get("item_name") or f"#{score['inventory_item_id']}",
                f"[{risk_style(risk)}]{risk}[/{risk_style(risk)}]",
                str(score.get("days_until_expiry", "-")),
                f"{score.get('consumption_frequency', 0):.1f}",
                score.get("explanation", ""),
            )

        self.console.print(table)

    def _render_prioritized(self, data: dict) -> None:
        """Render the consumption priority list."""
        items = data["data"]["prioritized"]

        if not items:
            self.console.print("[dim]Nothing to prioritize[/dim]")
            return

        table = Table(title="Eat These First", show_header=True, header_style="bold cyan")
        table.add_column("#", justify="right")
        table.add_column("Item", style="cyan")
        table.add_column("Priority", justify="right")
        table.add_column("FIFO", justify="right")
        table.add_column("Risk", justify="right")
        table.add_column("Days", justify="right")
        table.add_column("Recommendation", no_wrap=False)

        for item in items:
            priority = item["priority_score"]
            days = item.get("days_until_expiry")
            table.add_row(
                str(item["priority_rank"]),
                item["item_name"],
                f"[{risk_style(priority)}]{priority}[/{risk_style(priority)}]",
                str(item["fifo_score"]),
                f"{item['risk_score']:.0f}",
                str(days) if days is not None else "-",
                f"{recommendation_icon(item['recommendation'])} {item['recommendation']}",
            )

        self.console.print(table)

    def _render_alerts(self, data: dict) -> None:
        alerts = data["data"]["alerts"]

        if not alerts:
            self.console.print("[dim]No active alerts[/dim]")
            return

        table = Table(title="Expiration Alerts", show_header=True, header_style="bold red")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Type")
        table.add_column("Risk", justify="right")
        table.add_column("Message", no_wrap=False)

        for alert in alerts:
            table.add_row(
                str(alert["id"]),
                alert["alert_type"],
                f"{alert['risk_score']:.0f}",
                alert["message"],
            )

        self.console.print(table)

    def _render_waste_estimate(self, data: dict) -> None:
        """Render current waste estimate and historical totals."""
        estimate = data["data"]["waste_estimate"]
        historical = data["data"].get("historical")

        content = f"""[bold]Estimated waste:[/bold] {estimate["estimated_grams"]}g (${estimate["estimated_cost"]:.2f})
Confidence: {estimate["confidence_score"]}%"""
        if historical:
            content += (
                f"\n\n[bold]Wasted so far:[/bold] {historical['total_grams']}g "
                f"(${historical['total_cost']:.2f})"
            )

        self.console.print(Panel(content, title="Waste Estimate", border_style="yellow"))

        breakdown = estimate.get("breakdown_by_category", [])
        if breakdown:
            table = Table(show_header=True, header_style="bold")
            table.add_column("Category", style="yellow")
            table.add_column("Grams", justify="right")
            table.add_column("Cost", justify="right", style="green")

            for row in breakdown:
                table.add_row(
                    row["category"],
                    f"{row['estimated_grams']:.0f}",
                    f"${row['estimated_cost']:.2f}",
                )
            self.console.print(table)

    def _render_projections(self, data: dict) -> None:
        projections = data["data"]["projections"]

        table = Table(title="Waste Projections", show_header=True, header_style="bold cyan")
        table.add_column("Horizon")
        table.add_column("Grams", justify="right")
        table.add_column("Cost", justify="right", style="green")
        table.add_column("Confidence", justify="right")
        table.add_column("Through")

        for projection in projections:
            table.add_row(
                projection["estimate_type"],
                str(projection["estimated_grams"]),
                f"${projection['estimated_cost']:.2f}",
                f"{projection['confidence_score']}%",
                str(projection["projection_date"]),
            )

        self.console.print(table)

    def _render_patterns(self, data: dict) -> None:
        patterns = data["data"]["patterns"]

        if not patterns:
            self.console.print("[dim]No recurring waste patterns in the last 90 days[/dim]")
            return

        self.console.print("\n[bold]Waste Patterns[/bold]")
        for pattern in patterns:
            self.console.print(f"  • {pattern['description']} [dim]({pattern['frequency']}x)[/dim]")

    def _render_comparison(self, data: dict) -> None:
        """Render community comparison."""
        comparison = data["data"]["comparison"]

        content = f"""{comparison["comparison_message"]}

You: {comparison["user_waste_grams_weekly"]:.0f}g (${comparison["user_waste_cost_weekly"]:.2f}) per week
Community: {comparison["community_avg_grams_weekly"]:.0f}g (${comparison["community_avg_cost_weekly"]:.2f}) per week
Percentile: {comparison["percentile"]}"""

        self.console.print(Panel(content, title="Community Comparison", border_style="blue"))

        categories = comparison.get("category_comparisons", [])
        if categories:
            table = Table(show_header=True, header_style="bold")
            table.add_column("Category", style="yellow")
            table.add_column("You", justify="right")
            table.add_column("Community", justify="right")
            table.add_column("Performance")

            styles = {"better": "green", "average": "white", "worse": "red"}
            for row in categories:
                style = styles.get(row["performance"], "white")
                table.add_row(
                    row["category"],
                    f"{row['user_grams']}g",
                    f"{row['community_avg']}g",
                    f"[{style}]{row['performance']}[/{style}]",
                )
            self.console.print(table)

    def _render_insights(self, data: dict) -> None:
        insights = data["data"]["insights"]

        if not insights:
            self.console.print("[dim]No insights right now[/dim]")
            return

        for insight in insights:
            actions = "\n".join(f"  • {action}" for action in insight.get("action_items", []))
            self.console.print(
                Panel(
                    f"{insight['description']}\n\n{actions}",
                    title=insight["title"],
                    subtitle=insight["insight_type"],
                    border_style="magenta",
                )
            )

    def _render_community_stats(self, data: dict) -> None:
        stats = data["data"]["community_stats"]

        if not stats:
            self.console.print("[dim]No community statistics loaded[/dim]")
            return

        table = Table(title="Community Weekly Averages", show_header=True, header_style="bold")
        table.add_column("Category", style="yellow")
        table.add_column("Grams", justify="right")
        table.add_column("Cost", justify="right", style="green")

        for stat in stats:
            table.add_row(
                stat["category"],
                f"{stat['avg_waste_grams_weekly']:.0f}",
                f"${stat['avg_waste_cost_weekly']:.2f}",
            )

        self.console.print(table)

    def error(self, message: str, error_code: str | None = None) -> None:
        """Output error message.

        Args:
            message: Error message
            error_code: Optional error code
        """
        if self.json_mode:
            output = {"success": False, "error": message}
            if error_code:
                output["error_code"] = error_code
            print(json.dumps(output))
        else:
            self.console.print(f"[red]✗ Error:[/red] {message}")

    def success(self, message: str, data: dict | None = None) -> None:
        """Output success message.

        Args:
            message: Success message
            data: Optional data to include
        """
        if self.json_mode:
            output: dict[str, Any] = {"success": True, "message": message}
            if data:
                output["data"] = data
            print(json.dumps(output, cls=JSONEncoder))
        else:
            self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        if self.json_mode:
            print(json.dumps({"warning": message}))
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
