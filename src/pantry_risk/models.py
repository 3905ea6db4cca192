"""Core data models for Pantry Risk."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from .expiry import days_until_expiry, is_expired


class Season(str, Enum):
    """Northern-hemisphere seasons used for spoilage adjustment."""

    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"


class EstimateType(str, Enum):
    """Horizon of a persisted waste projection."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Performance(str, Enum):
    """How a user's category waste compares to the community."""

    BETTER = "better"
    AVERAGE = "average"
    WORSE = "worse"


class PatternType(str, Enum):
    """Kinds of waste patterns mined from the waste ledger."""

    CATEGORY_WASTE = "category_waste"
    WASTE_REASON = "waste_reason"


class AlertType(str, Enum):
    """Expiration alert severity."""

    HIGH_RISK = "high_risk"
    EXPIRING_SOON = "expiring_soon"
    CONSUME_NOW = "consume_now"


class InventoryItem(BaseModel):
    """An item in a user's pantry."""

    id: int | None = None
    user_id: int
    item_name: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    category: str = "Other"
    purchase_date: date | None = None
    expiration_date: date | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def days_until_expiry(self) -> int | None:
        """Whole days until expiration, None without a date."""
        return days_until_expiry(self.expiration_date)

    @property
    def is_expired(self) -> bool:
        """Check if item is expired (expires today or earlier)."""
        return is_expired(self.expiration_date)


class UsageLog(BaseModel):
    """A single consumption event."""

    id: int | None = None
    user_id: int
    item_name: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    category: str = "Other"
    usage_date: date = Field(default_factory=date.today)


class RiskScore(BaseModel):
    """Expiration risk for one inventory item."""

    inventory_item_id: int
    risk_score: int = Field(ge=0, le=100)
    consumption_frequency: float = 0.0  # uses per week
    category_risk_factor: float = 1.0
    seasonal_factor: float = 1.0
    explanation: str = ""
    days_until_expiry: int | None = None
    priority_rank: int | None = None
    calculated_at: datetime | None = None


class InventorySnapshot(BaseModel):
    """An inventory row joined with its risk score and reference price."""

    item: InventoryItem
    risk_score: float | None = None
    explanation: str | None = None
    cost_per_unit: float | None = None


class PrioritizedItem(BaseModel):
    """An inventory item ranked for consumption."""

    inventory_item_id: int
    item_name: str
    category: str
    quantity: float
    expiration_date: date | None = None
    fifo_score: int
    priority_score: int
    priority_rank: int = 0
    risk_score: float
    days_until_expiry: int | None = None
    recommendation: str


class WriteBackFailure(BaseModel):
    """One row that could not be written in a best-effort loop."""

    key: str
    error: str


class WriteBackSummary(BaseModel):
    """Outcome of a fire-and-collect write loop."""

    attempted: int = 0
    succeeded: int = 0
    failed: list[WriteBackFailure] = Field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


class RankingResult(BaseModel):
    """Prioritized items plus the outcome of persisting their ranks."""

    items: list[PrioritizedItem] = Field(default_factory=list)
    writeback: WriteBackSummary = Field(default_factory=WriteBackSummary)


class CategoryWaste(BaseModel):
    """Estimated waste for one category."""

    category: str
    estimated_grams: float
    estimated_cost: float


class WasteEstimate(BaseModel):
    """Projected waste of currently held inventory."""

    estimated_grams: int
    estimated_cost: float
    confidence_score: int
    breakdown_by_category: list[CategoryWaste] = Field(default_factory=list)


class WasteProjection(BaseModel):
    """A persisted weekly or monthly waste projection."""

    estimate_type: EstimateType
    estimated_grams: int
    estimated_cost: float
    confidence_score: int
    projection_date: date
    created_at: datetime | None = None


class WasteRecord(BaseModel):
    """A food waste ledger entry."""

    id: int | None = None
    user_id: int
    item_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    quantity_grams: float = Field(gt=0)
    cost_wasted: float = Field(ge=0)
    reason: str = "not_specified"
    wasted_date: date = Field(default_factory=date.today)


class WastePattern(BaseModel):
    """A recurring waste pattern."""

    pattern_type: PatternType
    description: str
    frequency: int


class HistoricalWasteStats(BaseModel):
    """Waste already incurred: ledger totals plus unrecorded expired stock."""

    total_grams: int = 0
    total_cost: float = 0.0
    recorded_grams: float = 0.0
    recorded_cost: float = 0.0
    unrecorded_expired_grams: float = 0.0
    unrecorded_expired_cost: float = 0.0


class CommunityWasteStat(BaseModel):
    """Community average weekly waste for a category."""

    category: str
    avg_waste_grams_weekly: float
    avg_waste_cost_weekly: float
    updated_at: datetime | None = None


class CategoryComparison(BaseModel):
    """User vs community waste for one category."""

    category: str
    user_grams: int
    community_avg: int
    performance: Performance


class CommunityComparison(BaseModel):
    """User waste benchmarked against community averages."""

    user_waste_grams_weekly: float
    user_waste_cost_weekly: float
    community_avg_grams_weekly: float
    community_avg_cost_weekly: float
    percentile: int  # bucketed, higher = better than more users
    comparison_message: str
    category_comparisons: list[CategoryComparison] = Field(default_factory=list)


class AIInsight(BaseModel):
    """An actionable waste reduction insight."""

    insight_type: str
    title: str
    description: str
    action_items: list[str] = Field(default_factory=list)


class Alert(BaseModel):
    """An expiration alert for a high-risk item."""

    id: int | None = None
    user_id: int
    inventory_item_id: int
    alert_type: AlertType
    risk_score: float
    message: str
    is_dismissed: bool = False
    created_at: datetime | None = None
    dismissed_at: datetime | None = None
    item_name: str | None = None
    category: str | None = None


class ReasonCount(BaseModel):
    """Grouped waste-ledger count for a category and reason."""

    category: str
    reason: str | None = None
    count: int
    total_grams: float = 0.0

    def as_prompt_line(self) -> str:
        return f"- {self.category}: {self.reason} ({self.count} times)"

