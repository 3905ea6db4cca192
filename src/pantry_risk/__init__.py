"""Pantry Risk - Expiration risk, consumption priority and food waste tracking."""

from .alert_manager import AlertManager
from .category_weights import CategoryData, get_category_data
from .community_comparator import CommunityComparator, calculate_percentile
from .config import ConfigManager
from .exceptions import InventoryItemNotFoundError, PantryRiskError, TextGenerationError
from .inventory_manager import InventoryManager
from .models import (
    AIInsight,
    Alert,
    AlertType,
    CategoryComparison,
    CategoryWaste,
    CommunityComparison,
    CommunityWasteStat,
    EstimateType,
    HistoricalWasteStats,
    InventoryItem,
    Performance,
    PrioritizedItem,
    RankingResult,
    RiskScore,
    Season,
    UsageLog,
    WasteEstimate,
    WastePattern,
    WasteProjection,
    WasteRecord,
    WriteBackSummary,
)
from .output_formatter import OutputFormatter
from .ranking_service import RankingService, compute_fifo_score
from .risk_predictor import RiskPredictor
from .seasonality import get_current_season, get_seasonality_factor
from .sqlite_store import SQLiteStore
from .text_generator import GeminiTextGenerator, OfflineTextGenerator, TextGenerator
from .waste_estimator import WasteEstimator

__version__ = "0.1.0"

__all__ = [
    "AIInsight",
    "Alert",
    "AlertManager",
    "AlertType",
    "calculate_percentile",
    "CategoryComparison",
    "CategoryData",
    "CategoryWaste",
    "CommunityComparator",
    "CommunityComparison",
    "CommunityWasteStat",
    "compute_fifo_score",
    "ConfigManager",
    "EstimateType",
    "GeminiTextGenerator",
    "get_category_data",
    "get_current_season",
    "get_seasonality_factor",
    "HistoricalWasteStats",
    "InventoryItem",
    "InventoryItemNotFoundError",
    "InventoryManager",
    "OfflineTextGenerator",
    "OutputFormatter",
    "PantryRiskError",
    "Performance",
    "PrioritizedItem",
    "RankingResult",
    "RankingService",
    "RiskPredictor",
    "RiskScore",
    "Season",
    "SQLiteStore",
    "TextGenerationError",
    "TextGenerator",
    "UsageLog",
    "WasteEstimate",
    "WasteEstimator",
    "WastePattern",
    "WasteProjection",
    "WasteRecord",
    "WriteBackSummary",
]
