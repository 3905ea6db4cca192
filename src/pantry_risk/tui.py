"""Terminal dashboard for Pantry Risk."""

from __future__ import annotations

from datetime import date
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Static,
    TabbedContent,
    TabPane,
)

from .alert_manager import DEFAULT_RISK_THRESHOLD, AlertManager
from .inventory_manager import InventoryManager
from .output_formatter import recommendation_icon
from .ranking_service import RankingService
from .risk_predictor import RiskPredictor
from .sqlite_store import SQLiteStore
from .text_generator import TextGenerator
from .waste_estimator import WasteEstimator


class InventoryItemFormScreen(ModalScreen[dict[str, Any] | None]):
    """Modal dialog to add a pantry item."""

    DEFAULT_CSS = """
    InventoryItemFormScreen {
        align: center middle;
    }

    #inventory-item-form-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        border: round $accent;
        background: $surface;
    }

    #inventory-item-form-actions {
        align-horizontal: right;
        height: auto;
        margin-top: 1;
    }

    .field-label {
        margin-top: 1;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def compose(self) -> ComposeResult:
        with Vertical(id="inventory-item-form-dialog"):
            yield Label("Add Pantry Item", classes="field-label")
            yield Label("Name", classes="field-label")
            yield Input(placeholder="Milk", id="name")
            yield Label("Quantity", classes="field-label")
            yield Input(value="1", id="quantity")
            yield Label("Category", classes="field-label")
            yield Input(value="Other", placeholder="Dairy", id="category")
            yield Label("Expiration (YYYY-MM-DD, optional)", classes="field-label")
            yield Input(placeholder="2026-03-01", id="expiration")
            with Horizontal(id="inventory-item-form-actions"):
                yield Button("Cancel", id="cancel")
                yield Button("Add", id="submit", variant="primary")

    def action_cancel(self) -> None:
        self.dismiss(None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
            return

        if event.button.id != "submit":
            return

        name = self.query_one("#name", Input).value.strip()
        quantity_raw = self.query_one("#quantity", Input).value.strip() or "1"
        category = self.query_one("#category", Input).value.strip() or "Other"
        expiration_raw = self.query_one("#expiration", Input).value.strip()

        if not name:
            self.app.bell()
            return

        try:
            quantity = float(quantity_raw)
            expiration = date.fromisoformat(expiration_raw) if expiration_raw else None
        except ValueError:
            self.app.bell()
            return

        if quantity <= 0:
            self.app.bell()
            return

        self.dismiss(
            {
                "item_name": name,
                "quantity": quantity,
                "category": category,
                "expiration_date": expiration,
            }
        )


class PantryDashboard(App[None]):
    """Priority list, waste estimate and alerts in one screen."""

    TITLE = "Pantry Risk"
    SUB_TITLE = "Eat what expires first"

    DEFAULT_CSS = """
    #status {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $boost;
        color: $text;
    }

    #waste-summary {
        height: auto;
        padding: 1 2;
    }

    DataTable {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Recalculate"),
        Binding("i", "add_item", "Add Item"),
        Binding("u", "use_selected", "Use 1"),
        Binding("x", "remove_selected", "Remove"),
        Binding("d", "dismiss_alert", "Dismiss Alert"),
        Binding("p", "show_tab('priority')", "Priority"),
        Binding("w", "show_tab('waste')", "Waste"),
        Binding("l", "show_tab('alerts')", "Alerts"),
    ]

    def __init__(
        self,
        store: SQLiteStore,
        user_id: int = 1,
        text_generator: TextGenerator | None = None,
        risk_threshold: float = DEFAULT_RISK_THRESHOLD,
    ):
        super().__init__()
        self.user_id = user_id
        self.inventory_manager = InventoryManager(store)
        self.risk_predictor = RiskPredictor(store, text_generator)
        self.ranking_service = RankingService(store)
        self.waste_estimator = WasteEstimator(store)
        self.alert_manager = AlertManager(store, risk_threshold=risk_threshold)
        self._priority_ids: list[int] = []
        self._alert_ids: list[int] = []

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with TabbedContent(initial="priority"):
            with TabPane("Priority", id="priority"):
                yield DataTable(id="priority-table")
            with TabPane("Waste", id="waste"):
                yield Static(id="waste-summary")
                yield DataTable(id="waste-table")
            with TabPane("Alerts", id="alerts"):
                yield DataTable(id="alerts-table")
        yield Static(
            "r:recalculate  i:add  u:use one  x:remove  d:dismiss alert  q:quit",
            id="status",
        )
        yield Footer()

    def on_mount(self) -> None:
        priority_table = self.query_one("#priority-table", DataTable)
        priority_table.cursor_type = "row"
        priority_table.add_columns("#", "Item", "Priority", "Risk", "Days", "Recommendation")

        waste_table = self.query_one("#waste-table", DataTable)
        waste_table.add_columns("Category", "Grams", "Cost")

        alerts_table = self.query_one("#alerts-table", DataTable)
        alerts_table.cursor_type = "row"
        alerts_table.add_columns("Type", "Risk", "Message")

        self.action_refresh()

    def action_refresh(self) -> None:
        try:
            self.risk_predictor.refresh(self.user_id)
            self.alert_manager.generate_alerts(self.user_id)
            failures = self._refresh_priority_table()
            self._refresh_waste()
            self._refresh_alerts_table()
            if failures:
                self._set_status(f"Recalculated, {failures} ranks could not be saved")
            else:
                self._set_status("Recalculated risk, priorities and waste")
        except Exception as exc:
            self._set_status(f"Refresh failed: {exc}")

    def action_add_item(self) -> None:
        self.push_screen(InventoryItemFormScreen(), self._handle_add_item)

    def action_use_selected(self) -> None:
        item_id = self._selected_priority_id()
        if item_id is None:
            self._set_status("No item selected")
            return

        try:
            remaining = self.inventory_manager.consume(self.user_id, item_id, 1.0)
            self.action_refresh()
            if remaining is None:
                self._set_status("Used the last one")
            else:
                self._set_status(f"Used 1 of {remaining.item_name} (remaining: {remaining.quantity:g})")
        except Exception as exc:
            self._set_status(f"Use failed: {exc}")

    def action_remove_selected(self) -> None:
        item_id = self._selected_priority_id()
        if item_id is None:
            self._set_status("No item selected")
            return

        try:
            removed = self.inventory_manager.remove_item(self.user_id, item_id)
            self.action_refresh()
            self._set_status(f"Removed {removed.item_name} from inventory")
        except Exception as exc:
            self._set_status(f"Remove failed: {exc}")

    def action_dismiss_alert(self) -> None:
        table = self.query_one("#alerts-table", DataTable)
        row = table.cursor_row
        if row is None or row < 0 or row >= len(self._alert_ids):
            self._set_status("No alert selected")
            return

        if self.alert_manager.dismiss_alert(self._alert_ids[row], self.user_id):
            self._refresh_alerts_table()
            self._set_status("Alert dismissed")
        else:
            self._set_status("Alert was already dismissed")

    def action_show_tab(self, tab: str) -> None:
        self.query_one(TabbedContent).active = tab

    def _refresh_priority_table(self) -> int:
        table = self.query_one("#priority-table", DataTable)
        table.clear(columns=False)
        self._priority_ids = []

        result = self.ranking_service.rank_items(self.user_id)
        for item in result.items:
            self._priority_ids.append(item.inventory_item_id)
            table.add_row(
                str(item.priority_rank),
                item.item_name,
                str(item.priority_score),
                f"{item.risk_score:.0f}",
                str(item.days_until_expiry) if item.days_until_expiry is not None else "-",
                f"{recommendation_icon(item.recommendation)} {item.recommendation}",
                key=str(item.inventory_item_id),
            )

        if self._priority_ids:
            table.move_cursor(row=0, column=0)
        return result.writeback.failure_count

    def _refresh_waste(self) -> None:
        estimate = self.waste_estimator.estimate_current_waste(self.user_id)
        historical = self.waste_estimator.get_historical_waste_stats(self.user_id)
        self.query_one("#waste-summary", Static).update(
            f"Estimated waste: {estimate.estimated_grams}g (${estimate.estimated_cost:.2f}), "
            f"confidence {estimate.confidence_score}%\n"
            f"Wasted so far: {historical.total_grams}g (${historical.total_cost:.2f})"
        )

        table = self.query_one("#waste-table", DataTable)
        table.clear(columns=False)
        for row in estimate.breakdown_by_category:
            table.add_row(
                row.category, f"{row.estimated_grams:.0f}", f"${row.estimated_cost:.2f}"
            )

    def _refresh_alerts_table(self) -> None:
        table = self.query_one("#alerts-table", DataTable)
        table.clear(columns=False)
        self._alert_ids = []

        for alert in self.alert_manager.get_active_alerts(self.user_id):
            self._alert_ids.append(alert.id)
            table.add_row(
                alert.alert_type.value,
                f"{alert.risk_score:.0f}",
                alert.message,
                key=str(alert.id),
            )

    def _handle_add_item(self, payload: dict[str, Any] | None) -> None:
        if payload is None:
            self._set_status("Add item canceled")
            return

        try:
            added = self.inventory_manager.add_item(self.user_id, **payload)
            self.action_refresh()
            self._set_status(f"Added {added.item_name} to inventory")
        except Exception as exc:
            self._set_status(f"Add failed: {exc}")

    def _selected_priority_id(self) -> int | None:
        table = self.query_one("#priority-table", DataTable)
        row = table.cursor_row
        if row is None or row < 0 or row >= len(self._priority_ids):
            return None
        return self._priority_ids[row]

    def _set_status(self, message: str) -> None:
        self.query_one("#status", Static).update(message)
