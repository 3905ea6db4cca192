"""Expiration alerts for high-risk pantry items."""

import logging
from datetime import datetime, timedelta

from .models import Alert, AlertType, InventoryItem
from .sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)

DEFAULT_RISK_THRESHOLD = 70
DEFAULT_CLEANUP_DAYS = 30


def determine_alert_type(risk_score: float) -> AlertType:
    if risk_score >= 90:
        return AlertType.CONSUME_NOW
    if risk_score >= 80:
        return AlertType.EXPIRING_SOON
    return AlertType.HIGH_RISK


def generate_alert_message(item_name: str, alert_type: AlertType) -> str:
    if alert_type == AlertType.CONSUME_NOW:
        return f"⚠️ URGENT: {item_name} needs to be consumed NOW to avoid waste!"
    if alert_type == AlertType.EXPIRING_SOON:
        return f"⏰ {item_name} is expiring soon. Plan to use it in the next 1-2 days."
    return f"⚡ {item_name} has high waste risk. Consider using it soon."


class AlertManager:
    """Creates, lists and dismisses expiration alerts."""

    def __init__(self, store: SQLiteStore, risk_threshold: float = DEFAULT_RISK_THRESHOLD):
        self.store = store
        self.risk_threshold = risk_threshold

    def generate_alerts(self, user_id: int) -> list[Alert]:
        """Create alerts for items above the risk threshold.

        Items that already have an undismissed alert are skipped.

        Returns:
            Newly created alerts, riskiest first
        """
        try:
            candidates = self.store.list_high_risk_items(user_id, self.risk_threshold)
            alerts = []
            for item, risk in candidates:
                if self.store.has_active_alert(item.id):
                    continue
                alerts.append(self._create_alert(user_id, item, risk.risk_score))
        except Exception:
            logger.exception("Error generating alerts for user %s", user_id)
            raise

        logger.info("Generated %d alerts for user %s", len(alerts), user_id)
        return alerts

    def _create_alert(self, user_id: int, item: InventoryItem, risk_score: float) -> Alert:
        alert_type = determine_alert_type(risk_score)
        alert = Alert(
            user_id=user_id,
            inventory_item_id=item.id,
            alert_type=alert_type,
            risk_score=risk_score,
            message=generate_alert_message(item.item_name, alert_type),
            item_name=item.item_name,
            category=item.category,
        )
        return self.store.add_alert(alert)

    def get_active_alerts(self, user_id: int) -> list[Alert]:
        return self.store.list_active_alerts(user_id)

    def dismiss_alert(self, alert_id: int, user_id: int) -> bool:
        """Dismiss one alert. False when it doesn't exist or is already dismissed."""
        return self.store.dismiss_alert(alert_id, user_id)

    def dismiss_all_alerts(self, user_id: int) -> int:
        return self.store.dismiss_all_alerts(user_id)

    def cleanup_old_alerts(self, days: int = DEFAULT_CLEANUP_DAYS) -> int:
        """Delete alerts dismissed more than `days` ago. Returns 0 on failure."""
        cutoff = datetime.now() - timedelta(days=days)
        try:
            return self.store.delete_dismissed_alerts(cutoff)
        except Exception:
            logger.warning("Error cleaning up old alerts", exc_info=True)
            return 0

    def get_alert_count(self, user_id: int) -> int:
        try:
            return self.store.count_active_alerts(user_id)
        except Exception:
            logger.warning("Error counting alerts for user %s", user_id, exc_info=True)
            return 0
