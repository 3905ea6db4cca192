"""SQLite-based data persistence for Pantry Risk.

Every query is parameterized. Each public method opens its own connection,
commits on success and rolls back on error.
"""

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path

from .models import (
    Alert,
    AlertType,
    CommunityWasteStat,
    EstimateType,
    InventoryItem,
    InventorySnapshot,
    ReasonCount,
    RiskScore,
    UsageLog,
    WasteProjection,
    WasteRecord,
)

_INVENTORY_ORDER = "ORDER BY ui.expiration_date IS NULL, ui.expiration_date ASC, ui.id ASC"


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteStore:
    """Manages SQLite database persistence for pantry data."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | None = None):
        """Initialize SQLite store.

        Args:
            db_path: Path to the SQLite database file. Defaults to ./data/pantry.db
        """
        if db_path is None:
            db_path = Path.cwd() / "data" / "pantry.db"
        self.db_path = db_path
        self._ensure_directories()
        self._init_database()

    def _ensure_directories(self) -> None:
        """Create the database directory if it doesn't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper cleanup."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database schema if not exists."""
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                );

                -- Pantry items
                CREATE TABLE IF NOT EXISTS user_inventory (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    item_name TEXT NOT NULL,
                    quantity REAL NOT NULL CHECK (quantity > 0),
                    category TEXT NOT NULL DEFAULT 'Other',
                    purchase_date TEXT,
                    expiration_date TEXT,
                    notes TEXT,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_user_inventory_user
                    ON user_inventory(user_id, expiration_date);

                -- Consumption events
                CREATE TABLE IF NOT EXISTS food_usage_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    item_name TEXT NOT NULL,
                    quantity REAL NOT NULL CHECK (quantity > 0),
                    category TEXT NOT NULL DEFAULT 'Other',
                    usage_date TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_food_usage_user_item
                    ON food_usage_logs(user_id, item_name, usage_date);

                -- One risk score per inventory item
                CREATE TABLE IF NOT EXISTS expiration_risk_scores (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    inventory_item_id INTEGER NOT NULL UNIQUE
                        REFERENCES user_inventory(id) ON DELETE CASCADE,
                    risk_score INTEGER NOT NULL CHECK (risk_score BETWEEN 0 AND 100),
                    priority_rank INTEGER,
                    consumption_frequency REAL NOT NULL DEFAULT 0.0,
                    category_risk_factor REAL NOT NULL DEFAULT 1.0,
                    seasonal_factor REAL NOT NULL DEFAULT 1.0,
                    explanation TEXT NOT NULL DEFAULT '',
                    days_until_expiry INTEGER,
                    calculated_at TEXT NOT NULL
                );

                -- Weekly / monthly projections
                CREATE TABLE IF NOT EXISTS waste_estimates (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    estimate_type TEXT NOT NULL,
                    estimated_grams INTEGER NOT NULL,
                    estimated_cost REAL NOT NULL,
                    confidence_score INTEGER NOT NULL,
                    projection_date TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                -- Append-only waste ledger
                CREATE TABLE IF NOT EXISTS waste_records (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    item_name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    quantity_grams REAL NOT NULL,
                    cost_wasted REAL NOT NULL DEFAULT 0.0,
                    reason TEXT NOT NULL DEFAULT 'not_specified',
                    wasted_date TEXT NOT NULL
                );

                -- Community benchmarks
                CREATE TABLE IF NOT EXISTS community_waste_stats (
                    category TEXT PRIMARY KEY,
                    avg_waste_grams_weekly REAL NOT NULL,
                    avg_waste_cost_weekly REAL NOT NULL,
                    updated_at TEXT NOT NULL
                );

                -- Reference prices
                CREATE TABLE IF NOT EXISTS food_inventory (
                    item_name TEXT PRIMARY KEY COLLATE NOCASE,
                    cost_per_unit REAL NOT NULL
                );

                -- Expiration alerts
                CREATE TABLE IF NOT EXISTS expiration_alerts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    inventory_item_id INTEGER NOT NULL
                        REFERENCES user_inventory(id) ON DELETE CASCADE,
                    alert_type TEXT NOT NULL,
                    risk_score REAL NOT NULL,
                    message TEXT NOT NULL,
                    is_dismissed INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    dismissed_at TEXT
                );

                INSERT OR IGNORE INTO schema_version (version) VALUES (1);
            """)

    # --- Inventory Operations ---

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> InventoryItem:
        return InventoryItem(
            id=row["id"],
            user_id=row["user_id"],
            item_name=row["item_name"],
            quantity=row["quantity"],
            category=row["category"],
            purchase_date=_parse_date(row["purchase_date"]),
            expiration_date=_parse_date(row["expiration_date"]),
            notes=row["notes"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def add_inventory_item(self, item: InventoryItem) -> InventoryItem:
        """Insert an inventory item.

        Returns:
            The item with its assigned ID
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO user_inventory
                (user_id, item_name, quantity, category, purchase_date,
                 expiration_date, notes, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.user_id,
                    item.item_name,
                    item.quantity,
                    item.category,
                    item.purchase_date.isoformat() if item.purchase_date else None,
                    item.expiration_date.isoformat() if item.expiration_date else None,
                    item.notes,
                    item.created_at.isoformat(),
                ),
            )
        return item.model_copy(update={"id": cursor.lastrowid})

    def get_inventory_item(self, user_id: int, item_id: int) -> InventoryItem | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM user_inventory WHERE id = ? AND user_id = ?",
                (item_id, user_id),
            ).fetchone()
        return self._row_to_item(row) if row else None

    def find_inventory_match(
        self, user_id: int, item_name: str, expiration_date: date | None
    ) -> InventoryItem | None:
        """Find a row with the same name (any case) and expiration date."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM user_inventory
                WHERE user_id = ?
                  AND LOWER(item_name) = LOWER(?)
                  AND expiration_date IS ?
                ORDER BY id
                LIMIT 1
                """,
                (
                    user_id,
                    item_name,
                    expiration_date.isoformat() if expiration_date else None,
                ),
            ).fetchone()
        return self._row_to_item(row) if row else None

    def list_inventory(self, user_id: int) -> list[InventoryItem]:
        """Load a user's inventory, soonest expiration first, undated last."""
        with self._get_connection() as conn:
            rows = conn.execute(
                f"SELECT ui.* FROM user_inventory ui WHERE ui.user_id = ? {_INVENTORY_ORDER}",
                (user_id,),
            ).fetchall()
        return [self._row_to_item(row) for row in rows]

    def update_inventory_item(self, item: InventoryItem) -> bool:
        """Write back every editable field of an item."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE user_inventory
                SET item_name = ?, quantity = ?, category = ?, purchase_date = ?,
                    expiration_date = ?, notes = ?
                WHERE id = ? AND user_id = ?
                """,
                (
                    item.item_name,
                    item.quantity,
                    item.category,
                    item.purchase_date.isoformat() if item.purchase_date else None,
                    item.expiration_date.isoformat() if item.expiration_date else None,
                    item.notes,
                    item.id,
                    item.user_id,
                ),
            )
        return cursor.rowcount > 0

    def delete_inventory_item(self, user_id: int, item_id: int) -> bool:
        """Delete an item; its risk score and alerts go with it."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM user_inventory WHERE id = ? AND user_id = ?",
                (item_id, user_id),
            )
        return cursor.rowcount > 0

    def load_inventory_snapshot(self, user_id: int) -> list[InventorySnapshot]:
        """Inventory joined with risk scores and reference prices."""
        with self._get_connection() as conn:
            rows = conn.execute(
                f"""
                SELECT ui.*, ers.risk_score AS risk_score, ers.explanation AS explanation,
                       fi.cost_per_unit AS cost_per_unit
                FROM user_inventory ui
                LEFT JOIN expiration_risk_scores ers ON ui.id = ers.inventory_item_id
                LEFT JOIN food_inventory fi ON LOWER(ui.item_name) = LOWER(fi.item_name)
                WHERE ui.user_id = ?
                {_INVENTORY_ORDER}
                """,
                (user_id,),
            ).fetchall()

        return [
            InventorySnapshot(
                item=self._row_to_item(row),
                risk_score=row["risk_score"],
                explanation=row["explanation"],
                cost_per_unit=row["cost_per_unit"],
            )
            for row in rows
        ]

    def list_expired_inventory(self, user_id: int, as_of: date) -> list[InventorySnapshot]:
        """Items whose expiration date is on or before a date, with unit cost."""
        with self._get_connection() as conn:
            rows = conn.execute(
                f"""
                SELECT ui.*, fi.cost_per_unit AS cost_per_unit
                FROM user_inventory ui
                LEFT JOIN food_inventory fi ON LOWER(ui.item_name) = LOWER(fi.item_name)
                WHERE ui.user_id = ?
                  AND ui.expiration_date IS NOT NULL
                  AND ui.expiration_date <= ?
                {_INVENTORY_ORDER}
                """,
                (user_id, as_of.isoformat()),
            ).fetchall()

        return [
            InventorySnapshot(item=self._row_to_item(row), cost_per_unit=row["cost_per_unit"])
            for row in rows
        ]

    def category_risk_weighted_quantities(self, user_id: int) -> list[tuple[str, float]]:
        """Per category, the sum of quantity weighted by risk score / 100."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT ui.category AS category,
                       COALESCE(SUM(ui.quantity * ers.risk_score / 100.0), 0) AS weighted
                FROM user_inventory ui
                LEFT JOIN expiration_risk_scores ers ON ui.id = ers.inventory_item_id
                WHERE ui.user_id = ?
                GROUP BY ui.category
                ORDER BY ui.category
                """,
                (user_id,),
            ).fetchall()
        return [(row["category"], float(row["weighted"])) for row in rows]

    # --- Usage Log Operations ---

    def add_usage_log(self, log: UsageLog) -> UsageLog:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO food_usage_logs
                (user_id, item_name, quantity, category, usage_date)
                VALUES (?, ?, ?, ?, ?)
                """,
                (log.user_id, log.item_name, log.quantity, log.category, log.usage_date.isoformat()),
            )
        return log.model_copy(update={"id": cursor.lastrowid})

    def count_usage_since(self, user_id: int, item_name: str, since: date) -> int:
        """Count usage events for an item name on or after a date."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS usage_count
                FROM food_usage_logs
                WHERE user_id = ? AND item_name = ? AND usage_date >= ?
                """,
                (user_id, item_name, since.isoformat()),
            ).fetchone()
        return int(row["usage_count"])

    def list_usage_logs(self, user_id: int, since: date | None = None) -> list[UsageLog]:
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM food_usage_logs
                WHERE user_id = ? AND usage_date >= ?
                ORDER BY usage_date DESC, id DESC
                """,
                (user_id, since.isoformat() if since else ""),
            ).fetchall()

        return [
            UsageLog(
                id=row["id"],
                user_id=row["user_id"],
                item_name=row["item_name"],
                quantity=row["quantity"],
                category=row["category"],
                usage_date=date.fromisoformat(row["usage_date"]),
            )
            for row in rows
        ]

    # --- Risk Score Operations ---

    @staticmethod
    def _row_to_risk(row: sqlite3.Row) -> RiskScore:
        return RiskScore(
            inventory_item_id=row["inventory_item_id"],
            risk_score=row["risk_score"],
            consumption_frequency=row["consumption_frequency"],
            category_risk_factor=row["category_risk_factor"],
            seasonal_factor=row["seasonal_factor"],
            explanation=row["explanation"],
            days_until_expiry=row["days_until_expiry"],
            priority_rank=row["priority_rank"],
            calculated_at=_parse_datetime(row["calculated_at"]),
        )

    def upsert_risk_score(self, user_id: int, score: RiskScore) -> None:
        """Insert a risk score, overwriting any existing score for the item."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO expiration_risk_scores
                (user_id, inventory_item_id, risk_score, consumption_frequency,
                 category_risk_factor, seasonal_factor, explanation, days_until_expiry,
                 calculated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (inventory_item_id) DO UPDATE SET
                    risk_score = excluded.risk_score,
                    consumption_frequency = excluded.consumption_frequency,
                    category_risk_factor = excluded.category_risk_factor,
                    seasonal_factor = excluded.seasonal_factor,
                    explanation = excluded.explanation,
                    days_until_expiry = excluded.days_until_expiry,
                    calculated_at = excluded.calculated_at
                """,
                (
                    user_id,
                    score.inventory_item_id,
                    score.risk_score,
                    score.consumption_frequency or 0.0,
                    score.category_risk_factor,
                    score.seasonal_factor,
                    score.explanation,
                    score.days_until_expiry,
                    datetime.now().isoformat(),
                ),
            )

    def get_risk_score(self, inventory_item_id: int) -> RiskScore | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM expiration_risk_scores WHERE inventory_item_id = ?",
                (inventory_item_id,),
            ).fetchone()
        return self._row_to_risk(row) if row else None

    def list_risk_scores(self, user_id: int) -> list[tuple[InventoryItem, RiskScore]]:
        """Stored risk scores with their items, riskiest first."""
        return self.list_high_risk_items(user_id, threshold=-1)

    def update_priority_rank(self, inventory_item_id: int, rank: int) -> bool:
        """Store a priority rank; False when the item has no risk score yet."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE expiration_risk_scores SET priority_rank = ? WHERE inventory_item_id = ?",
                (rank, inventory_item_id),
            )
        return cursor.rowcount > 0

    def list_high_risk_items(
        self, user_id: int, threshold: float
    ) -> list[tuple[InventoryItem, RiskScore]]:
        """Items whose stored risk is above a threshold, riskiest first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT ui.*, ers.inventory_item_id, ers.risk_score, ers.consumption_frequency,
                       ers.category_risk_factor, ers.seasonal_factor, ers.explanation,
                       ers.days_until_expiry, ers.priority_rank, ers.calculated_at
                FROM expiration_risk_scores ers
                JOIN user_inventory ui ON ers.inventory_item_id = ui.id
                WHERE ers.user_id = ? AND ui.user_id = ? AND ers.risk_score > ?
                ORDER BY ers.risk_score DESC, ui.id
                """,
                (user_id, user_id, threshold),
            ).fetchall()
        return [(self._row_to_item(row), self._row_to_risk(row)) for row in rows]

    # --- Waste Projection Operations ---

    @staticmethod
    def _row_to_projection(row: sqlite3.Row) -> WasteProjection:
        return WasteProjection(
            estimate_type=EstimateType(row["estimate_type"]),
            estimated_grams=row["estimated_grams"],
            estimated_cost=row["estimated_cost"],
            confidence_score=row["confidence_score"],
            projection_date=date.fromisoformat(row["projection_date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def find_active_projection(
        self, user_id: int, estimate_type: EstimateType, as_of: date
    ) -> WasteProjection | None:
        """Newest projection of a type whose projection date is not before `as_of`."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM waste_estimates
                WHERE user_id = ? AND estimate_type = ? AND projection_date >= ?
                ORDER BY created_at DESC, id DESC
                LIMIT 1
                """,
                (user_id, estimate_type.value, as_of.isoformat()),
            ).fetchone()
        return self._row_to_projection(row) if row else None

    def save_projection(self, user_id: int, projection: WasteProjection) -> WasteProjection:
        created_at = projection.created_at or datetime.now()
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO waste_estimates
                (user_id, estimate_type, estimated_grams, estimated_cost, confidence_score,
                 projection_date, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    projection.estimate_type.value,
                    projection.estimated_grams,
                    projection.estimated_cost,
                    projection.confidence_score,
                    projection.projection_date.isoformat(),
                    created_at.isoformat(),
                ),
            )
        return projection.model_copy(update={"created_at": created_at})

    # --- Waste Record Operations ---

    def add_waste_record(self, record: WasteRecord) -> WasteRecord:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO waste_records
                (user_id, item_name, category, quantity_grams, cost_wasted, reason, wasted_date)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.user_id,
                    record.item_name,
                    record.category,
                    record.quantity_grams,
                    record.cost_wasted,
                    record.reason,
                    record.wasted_date.isoformat(),
                ),
            )
        return record.model_copy(update={"id": cursor.lastrowid})

    def waste_totals(self, user_id: int) -> tuple[float, float]:
        """All-time (grams, cost) recorded in the waste ledger."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT COALESCE(SUM(quantity_grams), 0) AS total_grams,
                       COALESCE(SUM(cost_wasted), 0) AS total_cost
                FROM waste_records
                WHERE user_id = ?
                """,
                (user_id,),
            ).fetchone()
        return float(row["total_grams"]), float(row["total_cost"])

    def waste_reason_counts(
        self, user_id: int, since: date, limit: int | None = None
    ) -> list[ReasonCount]:
        """Waste records since a date grouped by category and reason, most frequent first."""
        query = """
            SELECT category, reason, COUNT(*) AS count,
                   COALESCE(SUM(quantity_grams), 0) AS total_grams
            FROM waste_records
            WHERE user_id = ? AND wasted_date >= ?
            GROUP BY category, reason
            ORDER BY count DESC, category, reason
        """
        params: tuple = (user_id, since.isoformat())
        if limit is not None:
            query += " LIMIT ?"
            params += (limit,)

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            ReasonCount(
                category=row["category"],
                reason=row["reason"],
                count=row["count"],
                total_grams=row["total_grams"],
            )
            for row in rows
        ]

    # --- Community Stats Operations ---

    @staticmethod
    def _row_to_stat(row: sqlite3.Row) -> CommunityWasteStat:
        return CommunityWasteStat(
            category=row["category"],
            avg_waste_grams_weekly=row["avg_waste_grams_weekly"],
            avg_waste_cost_weekly=row["avg_waste_cost_weekly"],
            updated_at=_parse_datetime(row["updated_at"]),
        )

    def upsert_community_stat(self, stat: CommunityWasteStat) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO community_waste_stats
                (category, avg_waste_grams_weekly, avg_waste_cost_weekly, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (category) DO UPDATE SET
                    avg_waste_grams_weekly = excluded.avg_waste_grams_weekly,
                    avg_waste_cost_weekly = excluded.avg_waste_cost_weekly,
                    updated_at = excluded.updated_at
                """,
                (
                    stat.category,
                    stat.avg_waste_grams_weekly,
                    stat.avg_waste_cost_weekly,
                    (stat.updated_at or datetime.now()).isoformat(),
                ),
            )

    def list_community_stats(self) -> list[CommunityWasteStat]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM community_waste_stats ORDER BY category"
            ).fetchall()
        return [self._row_to_stat(row) for row in rows]

    def get_community_stat(self, category: str) -> CommunityWasteStat | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM community_waste_stats WHERE category = ?",
                (category,),
            ).fetchone()
        return self._row_to_stat(row) if row else None

    def community_totals(self) -> tuple[float | None, float | None]:
        """Summed (grams, cost) across categories; Nones when the table is empty."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT SUM(avg_waste_grams_weekly) AS total_grams,
                       SUM(avg_waste_cost_weekly) AS total_cost
                FROM community_waste_stats
                """
            ).fetchone()
        return row["total_grams"], row["total_cost"]

    # --- Reference Price Operations ---

    def set_reference_price(self, item_name: str, cost_per_unit: float) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO food_inventory (item_name, cost_per_unit) VALUES (?, ?)
                ON CONFLICT (item_name) DO UPDATE SET cost_per_unit = excluded.cost_per_unit
                """,
                (item_name, cost_per_unit),
            )

    # --- Alert Operations ---

    @staticmethod
    def _row_to_alert(row: sqlite3.Row) -> Alert:
        keys = row.keys()
        return Alert(
            id=row["id"],
            user_id=row["user_id"],
            inventory_item_id=row["inventory_item_id"],
            alert_type=AlertType(row["alert_type"]),
            risk_score=row["risk_score"],
            message=row["message"],
            is_dismissed=bool(row["is_dismissed"]),
            created_at=_parse_datetime(row["created_at"]),
            dismissed_at=_parse_datetime(row["dismissed_at"]),
            item_name=row["item_name"] if "item_name" in keys else None,
            category=row["category"] if "category" in keys else None,
        )

    def add_alert(self, alert: Alert) -> Alert:
        created_at = alert.created_at or datetime.now()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO expiration_alerts
                (user_id, inventory_item_id, alert_type, risk_score, message, is_dismissed,
                 created_at)
                VALUES (?, ?, ?, ?, ?, 0, ?)
                """,
                (
                    alert.user_id,
                    alert.inventory_item_id,
                    alert.alert_type.value,
                    alert.risk_score,
                    alert.message,
                    created_at.isoformat(),
                ),
            )
        return alert.model_copy(update={"id": cursor.lastrowid, "created_at": created_at})

    def has_active_alert(self, inventory_item_id: int) -> bool:
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT id FROM expiration_alerts
                WHERE inventory_item_id = ? AND is_dismissed = 0
                LIMIT 1
                """,
                (inventory_item_id,),
            ).fetchone()
        return row is not None

    def list_active_alerts(self, user_id: int) -> list[Alert]:
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT ea.*, ui.item_name AS item_name, ui.category AS category
                FROM expiration_alerts ea
                JOIN user_inventory ui ON ea.inventory_item_id = ui.id
                WHERE ea.user_id = ? AND ea.is_dismissed = 0
                ORDER BY ea.risk_score DESC, ea.created_at DESC, ea.id DESC
                """,
                (user_id,),
            ).fetchall()
        return [self._row_to_alert(row) for row in rows]

    def dismiss_alert(self, alert_id: int, user_id: int) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE expiration_alerts
                SET is_dismissed = 1, dismissed_at = ?
                WHERE id = ? AND user_id = ? AND is_dismissed = 0
                """,
                (datetime.now().isoformat(), alert_id, user_id),
            )
        return cursor.rowcount > 0

    def dismiss_all_alerts(self, user_id: int) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE expiration_alerts
                SET is_dismissed = 1, dismissed_at = ?
                WHERE user_id = ? AND is_dismissed = 0
                """,
                (datetime.now().isoformat(), user_id),
            )
        return cursor.rowcount

    def delete_dismissed_alerts(self, dismissed_before: datetime) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                DELETE FROM expiration_alerts
                WHERE is_dismissed = 1 AND dismissed_at < ?
                """,
                (dismissed_before.isoformat(),),
            )
        return cursor.rowcount

    def count_active_alerts(self, user_id: int) -> int:
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS count FROM expiration_alerts
                WHERE user_id = ? AND is_dismissed = 0
                """,
                (user_id,),
            ).fetchone()
        return int(row["count"])
